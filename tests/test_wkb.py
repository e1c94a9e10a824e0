import pytest
from shapely import wkb as shapely_wkb

from o2pgr.domain.enums import LineFormat
from o2pgr.wkb import (
    linestring_hex,
    linestring_wkb,
    multilinestring_hex,
    multilinestring_wkb,
    point_hex,
    point_wkb,
    segment_geometry_hex,
)

from conftest import make_segment

ZERO = "0000000000000000"
ONE = "000000000000F03F"
MINUS_ONE = "000000000000F0BF"


def test_point_reference_encoding():
    data = point_wkb(10.0, 53.5)

    assert len(data) == 21
    assert point_hex(10.0, 53.5) == "0101000000" "0000000000002440" "0000000000C04A40"
    assert len(point_hex(10.0, 53.5)) == 42


def test_point_hex_starts_with_byte_order_and_type():
    encoded = point_hex(-73.98, 40.75)
    assert encoded[:2] == "01"
    assert encoded[2:10] == "01000000"


def test_linestring_reference_encoding():
    assert linestring_hex([(0.0, 0.0), (1.0, -1.0)]) == (
        "0102000000" "02000000" + ZERO + ZERO + ONE + MINUS_ONE
    )
    assert len(linestring_wkb([(0.0, 0.0), (1.0, -1.0)])) == 9 + 2 * 16


def test_single_coordinate_linestring_is_encoded_as_is():
    assert linestring_hex([(1.0, 1.0)]) == "0102000000" "01000000" + ONE + ONE


def test_empty_linestring_is_rejected():
    with pytest.raises(ValueError):
        linestring_wkb([])


def test_multilinestring_nests_complete_linestrings():
    line = [(0.0, 0.0), (1.0, 1.0)]
    inner = "0102000000" "02000000" + ZERO + ZERO + ONE + ONE

    assert multilinestring_hex([line]) == "0105000000" "01000000" + inner
    assert multilinestring_hex([line, line]) == "0105000000" "02000000" + inner + inner
    assert len(multilinestring_wkb([line, line])) == 9 + 2 * (9 + 2 * 16)


def test_hex_is_uppercase():
    encoded = point_hex(0.1, 0.2)
    assert encoded == encoded.upper()
    assert any(c in "ABCDEF" for c in encoded)


def test_point_round_trip_through_shapely():
    geom = shapely_wkb.loads(point_hex(9.993682, 53.551086), hex=True)

    assert geom.geom_type == "Point"
    assert (geom.x, geom.y) == (9.993682, 53.551086)


def test_linestring_round_trip_through_shapely():
    coords = [(9.90, 53.55), (9.91, 53.551), (9.92, 53.552)]
    geom = shapely_wkb.loads(linestring_hex(coords), hex=True)

    assert geom.geom_type == "LineString"
    assert list(geom.coords) == coords


def test_multilinestring_round_trip_through_shapely():
    lines = [[(9.90, 53.55), (9.91, 53.551)], [(-0.1, 51.5), (-0.2, 51.4), (-0.3, 51.3)]]
    geom = shapely_wkb.loads(multilinestring_hex(lines), hex=True)

    assert geom.geom_type == "MultiLineString"
    assert [list(part.coords) for part in geom.geoms] == lines


def test_segment_geometry_follows_line_format():
    segment = make_segment(1, 1, 2, [(0.0, 0.0), (1.0, 1.0)])

    line = segment_geometry_hex(segment, LineFormat.LINESTRING)
    multi = segment_geometry_hex(segment, LineFormat.MULTILINESTRING)

    assert line == linestring_hex([(0.0, 0.0), (1.0, 1.0)])
    assert multi == "0105000000" "01000000" + line
