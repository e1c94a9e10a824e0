"""
Well-Known Binary geometry encoding.

Produces 2D little-endian WKB as accepted by PostGIS for geometry columns
registered with AddGeometryColumn. Multi geometries nest complete WKB
LineStrings, each with its own byte order marker and type code.

The output is rendered as uppercase hex for embedding in SQL literals.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable, Sequence

from .domain.enums import LineFormat
from .domain.models import EdgeSegment

WKB_LITTLE_ENDIAN = 1

WKB_POINT = 1
WKB_LINESTRING = 2
WKB_MULTILINESTRING = 5

_HEADER = struct.Struct("<BI")
_COUNT = struct.Struct("<I")
_COORD = struct.Struct("<dd")

Coordinate = tuple[float, float]


def _header(geometry_type: int) -> bytes:
    return _HEADER.pack(WKB_LITTLE_ENDIAN, geometry_type)


def point_wkb(x: float, y: float) -> bytes:
    """Encode a Point (21 bytes)."""
    return _header(WKB_POINT) + _COORD.pack(x, y)


def linestring_wkb(coords: Sequence[Coordinate]) -> bytes:
    """
    Encode a LineString.

    Raises:
        ValueError: If coords is empty
    """
    if not coords:
        raise ValueError("LineString needs at least one coordinate")

    parts = [_header(WKB_LINESTRING), _COUNT.pack(len(coords))]
    parts.extend(_COORD.pack(x, y) for x, y in coords)
    return b"".join(parts)


def multilinestring_wkb(lines: Sequence[Sequence[Coordinate]]) -> bytes:
    """Encode a MultiLineString from one coordinate sequence per part."""
    parts = [_header(WKB_MULTILINESTRING), _COUNT.pack(len(lines))]
    parts.extend(linestring_wkb(line) for line in lines)
    return b"".join(parts)


def to_hex(data: bytes) -> str:
    """Uppercase hex, two characters per byte."""
    return data.hex().upper()


def point_hex(x: float, y: float) -> str:
    return to_hex(point_wkb(x, y))


def linestring_hex(coords: Sequence[Coordinate]) -> str:
    return to_hex(linestring_wkb(coords))


def multilinestring_hex(lines: Sequence[Sequence[Coordinate]]) -> str:
    return to_hex(multilinestring_wkb(lines))


def node_coords(nodes: Iterable) -> list[Coordinate]:
    """(lon, lat) pairs of anything with lon and lat attributes."""
    return [(node.lon, node.lat) for node in nodes]


def segment_geometry_hex(segment: EdgeSegment, line_format: LineFormat) -> str:
    """Hex WKB of a segment's node path in the requested line format."""
    coords = node_coords(segment.nodes)
    if line_format == LineFormat.MULTILINESTRING:
        return multilinestring_hex([coords])
    return linestring_hex(coords)
