"""
Domain Models and Types

Records decoded from the upstream graph files and the options that drive an export.

Models:
- Node, EdgeSegment, Way: Routable edges grouped by their original way
- Vertex, Restriction: Graph vertices with optional turn restrictions
- ExportOptions: Validated runtime configuration

Enums:
- RecordKind: Record stream type tags (way, vertex)
- LineFormat: Edge geometry subtype (LINESTRING, MULTILINESTRING)
"""

from .enums import LineFormat, RecordKind
from .models import EdgeSegment, ExportOptions, GeoPoint, Node, Restriction, Vertex, Way

__all__ = [
    "GeoPoint", "Node", "EdgeSegment", "Way", "Vertex", "Restriction", "ExportOptions",
    "RecordKind", "LineFormat"
]
