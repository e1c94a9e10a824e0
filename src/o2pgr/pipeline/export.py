"""
Exporters - pgRouting SQL script generation

Turns the segmented ways and vertices files into SQL load scripts:
- EdgeExporter: <prefix>_2po_4pgr table (one row per segment, with km/cost)
- VertexExporter: <prefix>_2po_vertex table (one row per vertex, with restrictions)

Each export streams its input: one record is decoded, turned into rows and
written before the next one is read.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar, Optional, TextIO

from ..domain.enums import RecordKind
from ..domain.models import ExportOptions, Vertex, Way
from ..geodesy import segment_length_km
from ..sql import (
    REVERSE_COST_SENTINEL,
    format_float,
    quote_literal,
    restriction_token,
    round_e7,
)
from ..types import InvalidRecordError, RecordTypeMismatchError
from ..utils import format_count, timer
from ..wkb import point_hex, segment_geometry_hex
from .batch import BatchEmitter
from .schema import TableSchema, edge_schema, vertex_schema
from .source import CODECS, RecordCodec, RecordSource, open_record_source

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 50000


@dataclass(frozen=True)
class ExportResult:
    """Outcome of one table export."""
    kind: RecordKind
    table: str
    rows: int
    statements: int
    output_path: Optional[Path] = None  # None when written to stdout


class TableExporter:
    """
    Base exporter for one output table.

    Subclasses define the record kind, the table schema and how a record
    turns into rows.
    """
    record_kind: ClassVar[RecordKind]
    row_label: ClassVar[str] = "Rows"

    def __init__(self, options: ExportOptions, now: Optional[datetime] = None):
        self.options = options
        self.now = now
        self.schema = self.build_schema()
        self.statements_written = 0

    # Subclass hooks

    def build_schema(self) -> TableSchema:
        raise NotImplementedError

    @property
    def batch_size(self) -> int:
        raise NotImplementedError

    @property
    def input_name(self) -> str:
        raise NotImplementedError

    @property
    def script_name(self) -> str:
        raise NotImplementedError

    def rows_for(self, record: Any) -> Iterator[list[str]]:
        raise NotImplementedError

    # Export protocol

    @property
    def codec(self) -> RecordCodec:
        return CODECS[self.record_kind]

    @property
    def input_path(self) -> Path:
        return Path(self.options.work_dir) / self.input_name

    @property
    def output_path(self) -> Path:
        return Path(self.options.work_dir) / self.script_name

    def check_type(self, source: RecordSource) -> None:
        """Fail before any output if the stream holds another record kind."""
        declared = source.declared_type()
        if declared != self.record_kind:
            raise RecordTypeMismatchError(int(self.record_kind), declared)

    def write_script(self, source: RecordSource, sink: TextIO) -> int:
        """
        Write the complete SQL script for all records of source.

        Args:
            source: Record stream of this exporter's kind
            sink: Text output receiving the script

        Returns:
            Number of rows written

        Raises:
            RecordTypeMismatchError: Stream declares another record kind (nothing is written)
            InvalidRecordError: A record cannot be turned into a row
        """
        self.check_type(source)

        sink.write(self.schema.preamble(self.options.author, self.now))

        emitter = BatchEmitter(sink, self.schema.table, self.batch_size)
        for record in source:
            for fields in self.rows_for(record):
                emitter.push(fields)
                if emitter.rows_written % PROGRESS_INTERVAL == 0:
                    logger.info(f"{format_count(emitter.rows_written)} {self.row_label} written.")
        emitter.finish()

        logger.info(f"{format_count(emitter.rows_written)} {self.row_label} written.")

        sink.write(self.schema.postamble())
        self.statements_written = emitter.statements_written
        return emitter.rows_written

    def run(self) -> Optional[ExportResult]:
        """
        Export the input file of this table to stdout or a script file.

        Returns:
            ExportResult, or None when the input file does not exist
            (logged as an error, no output is created)
        """
        input_path = self.input_path
        if not input_path.exists():
            logger.error(f"File not found : {input_path}")
            return None

        with open_record_source(input_path, self.codec) as source:
            self.check_type(source)

            with self._open_sink() as (sink, output_path):
                rows = self.write_script(source, sink)

        if output_path is not None:
            logger.info(
                "commandline template:\n"
                f"psql -U [username] -d [dbname] -q -f \"{output_path.resolve()}\""
            )

        return ExportResult(
            kind=self.record_kind,
            table=self.schema.table,
            rows=rows,
            statements=self.statements_written,
            output_path=output_path,
        )

    @contextmanager
    def _open_sink(self) -> Iterator[tuple[TextIO, Optional[Path]]]:
        if self.options.pipe_out:
            logger.info("Writing results to stdout")
            yield sys.stdout, None
            sys.stdout.flush()
            return

        output_path = self.output_path
        logger.info(f"Creating sql file {output_path}")
        with open(output_path, "w", encoding="utf-8", newline="\n", buffering=0x10000) as sink:
            yield sink, output_path


class EdgeExporter(TableExporter):
    """Exports segmented ways as routable edges."""
    record_kind = RecordKind.WAY
    row_label = "Segments"

    def build_schema(self) -> TableSchema:
        return edge_schema(self.options.edge_table, self.options.line_format)

    @property
    def batch_size(self) -> int:
        return self.options.edge_batch_size

    @property
    def input_name(self) -> str:
        return self.options.segments_file

    @property
    def script_name(self) -> str:
        return self.options.edge_script_name

    def rows_for(self, record: Way) -> Iterator[list[str]]:
        name_sql = quote_literal(record.name)
        meta_sql = quote_literal(record.meta)
        kmh = record.kmh if record.kmh > 0 else 1

        for segment in record.segments:
            if not segment.nodes:
                raise InvalidRecordError(f"Segment {segment.id} of way {record.id} has no nodes")

            first, last = segment.first, segment.last
            km = round_e7(segment_length_km(segment))
            cost = round_e7(km / kmh)
            reverse_cost = REVERSE_COST_SENTINEL if record.one_way else cost
            geometry = segment_geometry_hex(segment, self.options.line_format)

            yield [
                str(segment.id),
                str(record.id),
                name_sql,
                meta_sql,
                str(first.id),
                str(last.id),
                str(record.clazz),
                str(record.flags),
                str(segment.source_id),
                str(segment.target_id),
                format_float(km),
                str(kmh),
                format_float(cost),
                format_float(reverse_cost),
                format_float(first.lon),
                format_float(first.lat),
                format_float(last.lon),
                format_float(last.lat),
                f"'{geometry}'",
            ]


class VertexExporter(TableExporter):
    """Exports graph vertices with their turn restrictions."""
    record_kind = RecordKind.VERTEX
    row_label = "Vertices"

    def build_schema(self) -> TableSchema:
        return vertex_schema(self.options.vertex_table)

    @property
    def batch_size(self) -> int:
        return self.options.vertex_batch_size

    @property
    def input_name(self) -> str:
        return self.options.vertices_file

    @property
    def script_name(self) -> str:
        return self.options.vertex_script_name

    def rows_for(self, record: Vertex) -> Iterator[list[str]]:
        yield [
            str(record.id),
            str(record.clazz),
            str(record.osm_id),
            quote_literal(record.name),
            str(record.ref_count),
            restriction_token(record.restrictions),
            f"'{point_hex(record.lon, record.lat)}'",
        ]


@timer
def export_all(options: ExportOptions) -> list[ExportResult]:
    """Run the edge export, then the vertex export."""
    results = []
    for exporter_class in (EdgeExporter, VertexExporter):
        result = exporter_class(options).run()
        if result is not None:
            results.append(result)
    return results
