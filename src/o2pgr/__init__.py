"""o2pgr - Export osm2po routing graphs as pgRouting SQL load scripts."""

__version__ = "0.1.0"

from .config_loader import load_config
from .domain import ExportOptions, LineFormat, RecordKind
from .pipeline import EdgeExporter, ExportResult, VertexExporter, export_all

__all__ = [
    "__version__",
    "load_config",
    "ExportOptions",
    "LineFormat",
    "RecordKind",
    "EdgeExporter",
    "VertexExporter",
    "ExportResult",
    "export_all",
]
