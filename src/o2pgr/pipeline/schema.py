"""
Table schemas and the DDL text wrapped around the INSERT statements.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..domain.enums import LineFormat

SRID = 4326

EDGE_COLUMNS = (
    ("id", "integer"),
    ("osm_id", "bigint"),
    ("osm_name", "character varying"),
    ("osm_meta", "character varying"),
    ("osm_source_id", "bigint"),
    ("osm_target_id", "bigint"),
    ("clazz", "integer"),
    ("flags", "integer"),
    ("source", "integer"),
    ("target", "integer"),
    ("km", "double precision"),
    ("kmh", "integer"),
    ("cost", "double precision"),
    ("reverse_cost", "double precision"),
    ("x1", "double precision"),
    ("y1", "double precision"),
    ("x2", "double precision"),
    ("y2", "double precision"),
)

VERTEX_COLUMNS = (
    ("id", "integer"),
    ("clazz", "integer"),
    ("osm_id", "bigint"),
    ("osm_name", "character varying"),
    ("ref_count", "integer"),
    ("restrictions", "character varying"),
)


def header_comment(author: str, now: Optional[datetime] = None) -> str:
    """Comment block identifying the tool, version, author and date."""
    from .. import __version__

    now = now or datetime.now()
    return (
        "-- Created by  : o2pgr\n"
        f"-- Version     : {__version__}\n"
        f"-- Author (c)  : {author}\n"
        f"-- Date        : {now.strftime('%a %b %d %H:%M:%S %Y')}\n"
    )


@dataclass(frozen=True)
class TableSchema:
    """Column set, geometry column and indexes of one output table."""
    table: str
    columns: tuple[tuple[str, str], ...]
    geometry_column: str
    geometry_type: str
    indexes: tuple[str, ...] = ()
    optional_indexes: tuple[str, ...] = ()
    spatial_index: bool = True
    srid: int = SRID
    primary_key: str = "id"

    def preamble(self, author: str, now: Optional[datetime] = None) -> str:
        """Header, encoding directive, table (re)creation and geometry column."""
        columns = ", ".join(f"{name} {sql_type}" for name, sql_type in self.columns)
        return (
            header_comment(author, now)
            + "\n"
            + "SET client_encoding = 'UTF8';\n"
            + "\n"
            + f"DROP TABLE IF EXISTS {self.table};\n"
            + f"-- SELECT DropGeometryTable('{self.table}');\n"
            + "\n"
            + f"CREATE TABLE {self.table}({columns});\n"
            + f"SELECT AddGeometryColumn('{self.table}', '{self.geometry_column}', "
            + f"{self.srid}, '{self.geometry_type}', 2);\n"
        )

    def postamble(self) -> str:
        """Primary key, indexes and commented-out optional indexes."""
        lines = [
            "",
            f"ALTER TABLE {self.table} ADD CONSTRAINT pkey_{self.table} "
            f"PRIMARY KEY({self.primary_key});",
        ]
        lines.extend(self._index(column) for column in self.indexes)
        lines.extend("-- " + self._index(column) for column in self.optional_indexes)
        if self.spatial_index:
            lines.append(
                f"-- CREATE INDEX idx_{self.table}_{self.geometry_column} ON {self.table} "
                f"USING GIST ({self.geometry_column});"
            )
        return "\n".join(lines) + "\n"

    def _index(self, column: str) -> str:
        return f"CREATE INDEX idx_{self.table}_{column} ON {self.table}({column});"


def edge_schema(table: str, line_format: LineFormat = LineFormat.LINESTRING) -> TableSchema:
    return TableSchema(
        table=table,
        columns=EDGE_COLUMNS,
        geometry_column="geom_way",
        geometry_type=LineFormat(line_format).value,
        indexes=("source", "target"),
        optional_indexes=("osm_source_id", "osm_target_id"),
    )


def vertex_schema(table: str) -> TableSchema:
    return TableSchema(
        table=table,
        columns=VERTEX_COLUMNS,
        geometry_column="geom_vertex",
        geometry_type="POINT",
        indexes=("osm_id",),
    )
