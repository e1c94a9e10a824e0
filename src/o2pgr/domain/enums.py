"""
Export Enumerations

Core enums for the record streams and output geometry options.
"""

from enum import Enum, IntEnum


class RecordKind(IntEnum):
    """Type tags written as the first byte of an upstream record stream."""
    WAY = 1     # Segmented ways (edges)
    VERTEX = 2  # Graph vertices


class LineFormat(str, Enum):
    """Geometry subtype of the edge table geometry column."""
    LINESTRING = "LINESTRING"
    MULTILINESTRING = "MULTILINESTRING"
