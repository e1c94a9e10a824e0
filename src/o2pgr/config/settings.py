"""
Environment-based configuration for the pgRouting export.

Usage:
    from o2pgr.config.settings import Config
    config = Config()
    work_dir = config.export.work_dir

Environment Variables:
    O2PGR_WORK_DIR: Directory with the segmented graph files (default: .)
    O2PGR_PREFIX: Table and file name prefix (default: hh)
    O2PGR_PIPE_OUT: Write SQL to stdout instead of files (default: false)
    O2PGR_WRITE_MULTILINESTRINGS: Edge geometry as MULTILINESTRING (default: false)
    O2PGR_EDGE_BATCH_SIZE: Rows per edge INSERT statement (default: 25)
    O2PGR_VERTEX_BATCH_SIZE: Rows per vertex INSERT statement (default: 50)
    O2PGR_SEGMENTS_FILE: Segmented ways file name (default: segments.2po)
    O2PGR_VERTICES_FILE: Vertices file name (default: vertices.2po)
    O2PGR_AUTHOR: Author line written to the script header (default: o2pgr)
"""

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from ..utils import parse_bool

logger = logging.getLogger(__name__)


@dataclass
class ExportSettings:
    """Export defaults read from the environment."""
    work_dir: str = "."
    prefix: str = "hh"
    pipe_out: bool = False
    write_multilinestrings: bool = False
    edge_batch_size: int = 25
    vertex_batch_size: int = 50
    segments_file: str = "segments.2po"
    vertices_file: str = "vertices.2po"
    author: str = "o2pgr"

    def __post_init__(self):
        """Validate export settings."""
        if not self.prefix:
            raise ValueError("Prefix cannot be empty")
        if self.edge_batch_size < 1:
            raise ValueError("Edge batch size must be positive")
        if self.vertex_batch_size < 1:
            raise ValueError("Vertex batch size must be positive")
        if not self.segments_file or not self.vertices_file:
            raise ValueError("Input file names cannot be empty")


class ConfigurationError(Exception):
    """Raised when configuration is invalid or incomplete."""
    pass


class Config:
    """
    Environment configuration for the export pipeline.

    Environment variables loaded (in order of preference):
    1. Explicit environment file passed to constructor
    2. .env.{ENVIRONMENT} (where ENVIRONMENT=development|production|staging)
    3. .env file in the working directory
    4. System environment variables

    Example:
        config = Config(environment="production")
        config = Config(env_file=Path("/etc/o2pgr/export.env"))
    """

    def __init__(self,
                 environment: Optional[str] = None,
                 env_file: Optional[Path] = None):
        """
        Initialize configuration from the environment.

        Args:
            environment: Target environment (development|staging|production)
            env_file: Explicit path to environment file
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "development")
        self.project_root = Path.cwd()

        self._load_environment_variables(env_file)
        self._load_export_config()

    def _load_environment_variables(self, env_file: Optional[Path]) -> None:
        """Load environment variables from appropriate source."""
        loaded_files = []

        if env_file:
            if env_file.exists():
                load_dotenv(env_file)
                loaded_files.append(str(env_file))
                logger.info(f"Loaded configuration from {env_file}")
            else:
                raise ConfigurationError(f"Specified env file not found: {env_file}")

        else:
            env_specific_file = self.project_root / f".env.{self.environment}"
            if env_specific_file.exists():
                load_dotenv(env_specific_file)
                loaded_files.append(str(env_specific_file))
                logger.info(f"Loaded environment-specific config: {env_specific_file}")

            generic_env_file = self.project_root / ".env"
            if generic_env_file.exists():
                load_dotenv(generic_env_file)
                loaded_files.append(str(generic_env_file))
                logger.info(f"Loaded generic config: {generic_env_file}")

        if not loaded_files:
            logger.debug("No .env files found, using system environment variables only")

        self._loaded_env_files = loaded_files
        logger.debug(f"Loaded env files: {loaded_files}")
        logger.debug(f"Environment: {self.environment}")

    def _load_export_config(self) -> None:
        """Load export settings with defaults."""
        try:
            self.export = ExportSettings(
                work_dir=os.getenv("O2PGR_WORK_DIR", "."),
                prefix=os.getenv("O2PGR_PREFIX", "hh"),
                pipe_out=parse_bool(os.getenv("O2PGR_PIPE_OUT", "false")),
                write_multilinestrings=parse_bool(os.getenv("O2PGR_WRITE_MULTILINESTRINGS", "false")),
                edge_batch_size=int(os.getenv("O2PGR_EDGE_BATCH_SIZE", "25")),
                vertex_batch_size=int(os.getenv("O2PGR_VERTEX_BATCH_SIZE", "50")),
                segments_file=os.getenv("O2PGR_SEGMENTS_FILE", "segments.2po"),
                vertices_file=os.getenv("O2PGR_VERTICES_FILE", "vertices.2po"),
                author=os.getenv("O2PGR_AUTHOR", "o2pgr"),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid export configuration: {e}")

    def get_export_settings(self) -> dict[str, Any]:
        """
        Get export settings as dictionary.

        Returns:
            Dictionary of export settings ready to merge with file and CLI values
        """
        return asdict(self.export)

    def __repr__(self) -> str:
        return (
            f"Config(environment={self.environment}, "
            f"work_dir={self.export.work_dir}, "
            f"prefix={self.export.prefix})"
        )
