"""
o2pgr Pipeline Components

Source -> Derive -> Emit pipeline turning osm2po graph files into pgRouting SQL scripts.

Components:
- source: RecordSource implementations for the segmented ways and vertices files
- batch: BatchEmitter framing rows into multi-row INSERT statements
- schema: Table DDL written before and after the data
- export: EdgeExporter / VertexExporter orchestrating one table each
"""

from .batch import BatchEmitter
from .export import EdgeExporter, ExportResult, TableExporter, VertexExporter, export_all
from .source import BinaryRecordSource, IterableRecordSource, RecordSource, open_record_source

__all__ = [
    "BatchEmitter",
    "EdgeExporter",
    "VertexExporter",
    "TableExporter",
    "ExportResult",
    "export_all",
    "RecordSource",
    "BinaryRecordSource",
    "IterableRecordSource",
    "open_record_source",
]
