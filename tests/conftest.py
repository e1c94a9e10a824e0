import os
from datetime import datetime

import pytest

from o2pgr.domain.models import EdgeSegment, ExportOptions, Node, Restriction, Vertex, Way

FIXED_NOW = datetime(2024, 3, 1, 12, 30, 0)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # No O2PGR_* leftovers from the shell or from earlier dotenv loads,
    # and no .env files picked up from the repository root.
    for key in list(os.environ):
        if key.startswith("O2PGR_") or key == "ENVIRONMENT":
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def options(tmp_path):
    return ExportOptions(work_dir=tmp_path, prefix="hh")


def make_segment(segment_id, source, target, coords, first_node_id=100):
    nodes = tuple(
        Node(first_node_id + i, lon, lat) for i, (lon, lat) in enumerate(coords)
    )
    return EdgeSegment(segment_id, source, target, nodes)


def make_way(way_id=4711, segments=None, kmh=50, one_way=False, name="Elbchaussee", meta=None):
    if segments is None:
        segments = (
            make_segment(1, 10, 11, [(9.90, 53.55), (9.91, 53.551), (9.92, 53.552)]),
            make_segment(2, 11, 12, [(9.92, 53.552), (9.93, 53.55)], first_node_id=200),
        )
    return Way(
        id=way_id,
        clazz=11,
        flags=3,
        name=name,
        meta=meta,
        kmh=kmh,
        one_way=one_way,
        segments=tuple(segments),
    )


def make_vertex(vertex_id=1, restrictions=None, name=None):
    return Vertex(
        id=vertex_id,
        clazz=0,
        osm_id=240109189,
        name=name,
        ref_count=3,
        lon=10.0,
        lat=53.5,
        restrictions=restrictions,
    )


@pytest.fixture
def way():
    return make_way()


@pytest.fixture
def restricted_vertex():
    return make_vertex(
        vertex_id=7,
        restrictions=(Restriction(1, 5, 9), Restriction(0, 3, 7)),
    )
