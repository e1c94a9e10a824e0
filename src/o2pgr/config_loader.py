"""
Unified configuration loading interface for the pgRouting export.

Options are merged from three sources, later ones winning:
- Environment settings (.env files and O2PGR_* variables)
- Optional YAML run configuration with an ``export:`` section
- Explicit overrides, usually CLI options

Example YAML:

    export:
      work_dir: /data/osm2po/hh
      prefix: hh
      write_multilinestrings: true
      edge_batch_size: 25
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from .config.settings import Config, ConfigurationError
from .domain.models import ExportOptions
from .utils import load_yaml_file


def load_config(
    config_path: Optional[str] = None,
    overrides: Optional[dict[str, Any]] = None,
    env_file: Optional[Path] = None
) -> ExportOptions:
    """
    Load and merge export options from all sources.

    Args:
        config_path: Optional YAML run configuration file
        overrides: Values taking precedence over everything else; None values are ignored
        env_file: Explicit environment file passed to Config

    Returns:
        Validated ExportOptions

    Raises:
        FileNotFoundError: If config_path does not exist
        ConfigurationError: If any source holds invalid or unknown values
    """
    values = Config(env_file=env_file).get_export_settings()

    if config_path is not None:
        values.update(_load_export_section(Path(config_path)))

    if overrides:
        values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return ExportOptions(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid export options: {e}")


def _load_export_section(config_path: Path) -> dict[str, Any]:
    """Read the ``export`` mapping of a YAML run configuration."""
    try:
        content = load_yaml_file(config_path)
    except ValueError as e:
        raise ConfigurationError(str(e))

    section = content.get("export", {}) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'export' in {config_path} must be a mapping")

    unknown = set(section) - set(ExportOptions.model_fields)
    if unknown:
        raise ConfigurationError(
            f"Unknown export option(s) in {config_path}: {', '.join(sorted(unknown))}"
        )
    return section


def describe_options(options: ExportOptions) -> dict[str, Any]:
    """Resolved options plus the derived table and file names."""
    described = options.model_dump(mode="json")
    described.update({
        "line_format": options.line_format.value,
        "edge_table": options.edge_table,
        "vertex_table": options.vertex_table,
        "edge_script": options.edge_script_name,
        "vertex_script": options.vertex_script_name,
    })
    return described
