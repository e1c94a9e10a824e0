"""
Geodesic distance helpers.

Distances are measured on the WGS84 ellipsoid, the datum of SRID 4326 used by
the geometry columns, so lengths agree with what PostGIS reports for the same
coordinates.
"""

from __future__ import annotations

from collections.abc import Sequence

from pyproj import Geod

from .domain.models import EdgeSegment, GeoPoint

_GEOD = Geod(ellps="WGS84")


def distance_m(start: GeoPoint, end: GeoPoint) -> float:
    """Ellipsoidal surface distance between two points in meters."""
    _, _, meters = _GEOD.inv(start.lon, start.lat, end.lon, end.lat)
    return meters


def path_length_km(points: Sequence[GeoPoint]) -> float:
    """
    Total length of a path in kilometers.

    Sums the distances between consecutive points. A single point has
    length 0.

    Raises:
        ValueError: If no points are given
    """
    if not points:
        raise ValueError("Path needs at least one point")

    meters = 0.0
    for start, end in zip(points, points[1:]):
        meters += distance_m(start, end)
    return meters / 1000.0


def segment_length_km(segment: EdgeSegment) -> float:
    """Length of a segment along all of its nodes in kilometers."""
    return path_length_km([node.point for node in segment.nodes])
