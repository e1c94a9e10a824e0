"""
Export Domain Models

Record types decoded from the upstream graph files, plus the pydantic model
holding the options of one export run.

Records are plain frozen dataclasses: they are built once per decoded record,
turned into rows, and dropped before the next record is read.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import LineFormat

_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


@dataclass(frozen=True)
class GeoPoint:
    """Geographic position in degrees (WGS84)."""
    lon: float
    lat: float


@dataclass(frozen=True)
class Node:
    """Shape or end point of a segment, referencing an original OSM node."""
    id: int
    lon: float
    lat: float

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.lon, self.lat)


@dataclass(frozen=True)
class EdgeSegment:
    """Routable edge between two graph vertices."""
    id: int
    source_id: int
    target_id: int
    nodes: tuple[Node, ...]

    @property
    def first(self) -> Node:
        return self.nodes[0]

    @property
    def last(self) -> Node:
        return self.nodes[-1]


@dataclass(frozen=True)
class Way:
    """Original way split into segments by the upstream segmenter."""
    id: int
    clazz: int
    flags: int
    name: Optional[str]
    meta: Optional[str]
    kmh: int
    one_way: bool
    segments: tuple[EdgeSegment, ...]


@dataclass(frozen=True)
class Restriction:
    """Turn restriction between two segments meeting at a vertex."""
    clazz: int
    from_id: int
    to_id: int

    @property
    def is_forbidden(self) -> bool:
        """Bit 0 set means a no-turn restriction, clear means only-turn."""
        return (self.clazz & 1) != 0


@dataclass(frozen=True)
class Vertex:
    """Graph vertex (intersection or dead end)."""
    id: int
    clazz: int
    osm_id: int
    name: Optional[str]
    ref_count: int
    lon: float
    lat: float
    restrictions: Optional[tuple[Restriction, ...]] = None


class ExportOptions(BaseModel):
    """Runtime configuration for one export run."""
    model_config = ConfigDict(frozen=True)

    work_dir: Path = Field(default=Path("."), description="Directory holding the graph files and output scripts")
    prefix: str = Field(default="hh", description="Prefix for table and file names")
    pipe_out: bool = Field(default=False, description="Write scripts to stdout instead of files")
    write_multilinestrings: bool = Field(default=False, description="Store edge geometry as MULTILINESTRING")
    edge_batch_size: int = Field(default=25, ge=1, description="Rows per INSERT statement in the edge table")
    vertex_batch_size: int = Field(default=50, ge=1, description="Rows per INSERT statement in the vertex table")
    segments_file: str = Field(default="segments.2po", description="Segmented ways file name in work_dir")
    vertices_file: str = Field(default="vertices.2po", description="Vertices file name in work_dir")
    author: str = Field(default="o2pgr", description="Author line of the script header")

    @field_validator("prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        # Embedded unquoted in table, constraint and index names
        if not _PREFIX_PATTERN.match(value):
            raise ValueError("prefix must be non-empty and contain only letters, digits and '_'")
        return value

    @property
    def line_format(self) -> LineFormat:
        return LineFormat.MULTILINESTRING if self.write_multilinestrings else LineFormat.LINESTRING

    @property
    def edge_table(self) -> str:
        # Unquoted identifiers fold to lower case in PostgreSQL
        return f"{self.prefix}_2po_4pgr".lower()

    @property
    def vertex_table(self) -> str:
        return f"{self.prefix}_2po_vertex".lower()

    @property
    def edge_script_name(self) -> str:
        return f"{self.prefix}_2po_4pgr.sql"

    @property
    def vertex_script_name(self) -> str:
        return f"{self.prefix}_2po_vertex.sql"
