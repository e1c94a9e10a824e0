import io
import logging

import pytest
from shapely import wkb as shapely_wkb

from o2pgr.domain.enums import RecordKind
from o2pgr.domain.models import EdgeSegment, ExportOptions
from o2pgr.geodesy import segment_length_km
from o2pgr.pipeline import export as export_module
from o2pgr.pipeline.export import EdgeExporter, VertexExporter, export_all
from o2pgr.pipeline.source import IterableRecordSource, VertexCodec, WayCodec, write_record_file
from o2pgr.sql import round_e7
from o2pgr.types import InvalidRecordError, RecordTypeMismatchError

from conftest import FIXED_NOW, make_segment, make_vertex, make_way

# Column positions of an edge row
ID, OSM_ID, NAME, META, OSM_SOURCE, OSM_TARGET, CLAZZ, FLAGS, SOURCE, TARGET = range(10)
KM, KMH, COST, REVERSE_COST, X1, Y1, X2, Y2, GEOM = range(10, 19)


def _edge_rows(options, way):
    return list(EdgeExporter(options, now=FIXED_NOW).rows_for(way))


def _script(exporter, kind, records):
    sink = io.StringIO()
    rows = exporter.write_script(IterableRecordSource(kind, records), sink)
    return sink.getvalue(), rows


# ------------------ EDGE ROWS ------------------


def test_edge_row_columns(options, way):
    rows = _edge_rows(options, way)
    assert len(rows) == 2

    first = rows[0]
    segment = way.segments[0]
    km = round_e7(segment_length_km(segment))

    assert first[ID] == "1"
    assert first[OSM_ID] == "4711"
    assert first[NAME] == "'Elbchaussee'"
    assert first[META] == "null"
    assert first[OSM_SOURCE] == "100"
    assert first[OSM_TARGET] == "102"
    assert (first[CLAZZ], first[FLAGS]) == ("11", "3")
    assert (first[SOURCE], first[TARGET]) == ("10", "11")
    assert float(first[KM]) == km
    assert first[KMH] == "50"
    assert float(first[COST]) == round_e7(km / 50)
    assert first[REVERSE_COST] == first[COST]
    assert (float(first[X1]), float(first[Y1])) == (9.90, 53.55)
    assert (float(first[X2]), float(first[Y2])) == (9.92, 53.552)


def test_edge_geometry_is_quoted_linestring_of_all_nodes(options, way):
    geom = _edge_rows(options, way)[0][GEOM]

    assert geom.startswith("'0102000000") and geom.endswith("'")
    line = shapely_wkb.loads(geom.strip("'"), hex=True)
    assert list(line.coords) == [(9.90, 53.55), (9.91, 53.551), (9.92, 53.552)]


def test_multilinestring_option(tmp_path, way):
    options = ExportOptions(work_dir=tmp_path, write_multilinestrings=True)
    geom = _edge_rows(options, way)[0][GEOM]

    assert geom.startswith("'0105000000" "01000000" "0102000000")


def test_one_way_reverse_cost_is_sentinel(options):
    rows = _edge_rows(options, make_way(one_way=True))
    assert all(row[REVERSE_COST] == "1000000.0" for row in rows)


def test_one_way_with_known_cost(options):
    # kmh = 1 makes cost equal to km
    segment = make_segment(1, 1, 2, [(0.0, 0.0), (1.0, 0.0)])
    km = round_e7(segment_length_km(segment))
    way = make_way(segments=[segment], kmh=1, one_way=True)

    row = _edge_rows(options, way)[0]
    assert float(row[COST]) == km
    assert float(row[REVERSE_COST]) == 1000000

    two_way = _edge_rows(options, make_way(segments=[segment], kmh=1))[0]
    assert two_way[REVERSE_COST] == two_way[COST]


@pytest.mark.parametrize("kmh", [0, -30])
def test_non_positive_speed_is_clamped_to_one(options, kmh):
    row = _edge_rows(options, make_way(kmh=kmh))[0]

    assert row[KMH] == "1"
    assert row[COST] == row[KM]


def test_single_node_segment_has_zero_length(options):
    segment = make_segment(1, 1, 1, [(9.9, 53.5)])
    row = _edge_rows(options, make_way(segments=[segment]))[0]

    assert float(row[KM]) == 0.0
    assert row[OSM_SOURCE] == row[OSM_TARGET]


def test_segment_without_nodes_is_rejected(options):
    way = make_way(segments=[EdgeSegment(1, 1, 2, ())])

    with pytest.raises(InvalidRecordError):
        _edge_rows(options, way)


# ------------------ SCRIPTS ------------------


def test_edge_script_layout(options, way):
    text, rows = _script(EdgeExporter(options, now=FIXED_NOW), RecordKind.WAY, [way])

    assert rows == 2
    assert text.startswith("-- Created by  : o2pgr\n")
    assert "-- Date        : Fri Mar 01 12:30:00 2024\n" in text
    assert "SET client_encoding = 'UTF8';" in text
    assert "DROP TABLE IF EXISTS hh_2po_4pgr;" in text
    assert "CREATE TABLE hh_2po_4pgr(id integer, osm_id bigint, osm_name character varying," in text
    assert "x2 double precision, y2 double precision);" in text
    assert "SELECT AddGeometryColumn('hh_2po_4pgr', 'geom_way', 4326, 'LINESTRING', 2);" in text
    assert text.count("INSERT INTO hh_2po_4pgr VALUES") == 1
    assert "ALTER TABLE hh_2po_4pgr ADD CONSTRAINT pkey_hh_2po_4pgr PRIMARY KEY(id);" in text
    assert "CREATE INDEX idx_hh_2po_4pgr_source ON hh_2po_4pgr(source);" in text
    assert "CREATE INDEX idx_hh_2po_4pgr_target ON hh_2po_4pgr(target);" in text
    assert "-- CREATE INDEX idx_hh_2po_4pgr_osm_source_id ON hh_2po_4pgr(osm_source_id);" in text
    assert "-- CREATE INDEX idx_hh_2po_4pgr_geom_way ON hh_2po_4pgr USING GIST (geom_way);" in text

    # Data sits between the geometry column registration and the constraints
    assert text.index("AddGeometryColumn") < text.index("INSERT INTO") < text.index("ALTER TABLE")


def test_multilinestring_column_registration(tmp_path, way):
    options = ExportOptions(work_dir=tmp_path, write_multilinestrings=True)
    text, _ = _script(EdgeExporter(options), RecordKind.WAY, [way])

    assert "'geom_way', 4326, 'MULTILINESTRING', 2);" in text


def test_edge_batches_follow_batch_size(options):
    segments = [make_segment(i, i, i + 1, [(0.0, 0.0), (0.1, 0.1)]) for i in range(1, 27)]
    exporter = EdgeExporter(options)
    text, rows = _script(exporter, RecordKind.WAY, [make_way(segments=segments)])

    assert rows == 26
    assert exporter.statements_written == 2
    assert text.count("INSERT INTO hh_2po_4pgr VALUES") == 2


def test_empty_input_writes_schema_without_inserts(options):
    text, rows = _script(EdgeExporter(options), RecordKind.WAY, [])

    assert rows == 0
    assert "INSERT INTO" not in text
    assert "CREATE TABLE hh_2po_4pgr(" in text
    assert "PRIMARY KEY(id);" in text


def test_vertex_script(options, restricted_vertex):
    plain = make_vertex(8, name="Jungfernstieg")
    text, rows = _script(VertexExporter(options, now=FIXED_NOW), RecordKind.VERTEX, [restricted_vertex, plain])

    point = "'0101000000" "0000000000002440" "0000000000C04A40'"
    assert rows == 2
    assert "CREATE TABLE hh_2po_vertex(id integer, clazz integer, osm_id bigint, " in text
    assert "restrictions character varying);" in text
    assert "SELECT AddGeometryColumn('hh_2po_vertex', 'geom_vertex', 4326, 'POINT', 2);" in text
    assert f"\n(7, 0, 240109189, null, 3, '-5_9+3_7', {point})," in text
    assert f"\n(8, 0, 240109189, 'Jungfernstieg', 3, null, {point});" in text
    assert "CREATE INDEX idx_hh_2po_vertex_osm_id ON hh_2po_vertex(osm_id);" in text


def test_type_mismatch_writes_nothing(options, restricted_vertex):
    sink = io.StringIO()
    source = IterableRecordSource(RecordKind.VERTEX, [restricted_vertex])

    with pytest.raises(RecordTypeMismatchError) as excinfo:
        EdgeExporter(options).write_script(source, sink)

    assert sink.getvalue() == ""
    assert excinfo.value.expected == RecordKind.WAY
    assert excinfo.value.actual == RecordKind.VERTEX


def test_progress_is_logged(options, monkeypatch, caplog):
    monkeypatch.setattr(export_module, "PROGRESS_INTERVAL", 2)
    vertices = [make_vertex(i) for i in range(1, 6)]

    with caplog.at_level(logging.INFO, logger="o2pgr.pipeline.export"):
        _script(VertexExporter(options), RecordKind.VERTEX, vertices)

    messages = [r.getMessage() for r in caplog.records]
    assert "2 Vertices written." in messages
    assert "4 Vertices written." in messages
    assert "5 Vertices written." in messages


# ------------------ FILE RUNS ------------------


def test_run_writes_script_file(options, way):
    write_record_file(options.work_dir / "segments.2po", WayCodec(), [way])

    result = EdgeExporter(options).run()

    assert result.kind == RecordKind.WAY
    assert result.table == "hh_2po_4pgr"
    assert result.rows == 2
    assert result.statements == 1
    assert result.output_path == options.work_dir / "hh_2po_4pgr.sql"
    text = result.output_path.read_text(encoding="utf-8")
    assert "'Elbchaussee'" in text
    assert text.endswith("USING GIST (geom_way);\n")


def test_run_with_missing_input_creates_nothing(options, caplog):
    with caplog.at_level(logging.ERROR):
        assert EdgeExporter(options).run() is None

    assert not (options.work_dir / "hh_2po_4pgr.sql").exists()
    assert any("File not found" in r.getMessage() for r in caplog.records)


def test_run_with_wrong_file_type_creates_no_script(options, restricted_vertex):
    write_record_file(options.work_dir / "segments.2po", VertexCodec(), [restricted_vertex])

    with pytest.raises(RecordTypeMismatchError):
        EdgeExporter(options).run()

    assert not (options.work_dir / "hh_2po_4pgr.sql").exists()


def test_run_to_stdout(tmp_path, capsys, restricted_vertex):
    options = ExportOptions(work_dir=tmp_path, pipe_out=True)
    write_record_file(tmp_path / "vertices.2po", VertexCodec(), [restricted_vertex])

    result = VertexExporter(options).run()

    assert result.output_path is None
    assert "'-5_9+3_7'" in capsys.readouterr().out
    assert not (tmp_path / "hh_2po_vertex.sql").exists()


def test_table_names_are_lowercased(tmp_path, way):
    options = ExportOptions(work_dir=tmp_path, prefix="HH")
    write_record_file(tmp_path / "segments.2po", WayCodec(), [way])

    result = EdgeExporter(options).run()

    assert result.table == "hh_2po_4pgr"
    assert result.output_path.name == "HH_2po_4pgr.sql"


def test_export_all_skips_missing_inputs(options, way):
    write_record_file(options.work_dir / "segments.2po", WayCodec(), [way])

    results = export_all(options)

    assert [r.kind for r in results] == [RecordKind.WAY]
