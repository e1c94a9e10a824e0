"""
Batch Emitter - Multi-row INSERT framing

Rows are written as soon as they are pushed; only the row counter of the
open statement is kept, so memory use does not grow with the table.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TextIO

logger = logging.getLogger(__name__)


class BatchEmitter:
    """
    Frames rows into ``INSERT INTO <table> VALUES (...), (...);`` statements.

    At most batch_size rows go into one statement. Output order is push order.

    Example:
        emitter = BatchEmitter(sink, "hh_2po_vertex", batch_size=50)
        for fields in rows:
            emitter.push(fields)
        emitter.finish()
    """

    def __init__(self, sink: TextIO, table: str, batch_size: int):
        if batch_size < 1:
            raise ValueError(f"Batch size must be positive, got {batch_size}")

        self.sink = sink
        self.table = table
        self.batch_size = batch_size
        self.rows_written = 0
        self.statements_written = 0

        self._header = f"\nINSERT INTO {table} VALUES"
        self._in_batch = 0
        self._finished = False

    def push(self, fields: Sequence[str]) -> None:
        """Write one row of pre-rendered field values."""
        if self._finished:
            raise RuntimeError(f"Emitter for {self.table} is already finished")

        if self._in_batch == self.batch_size:
            self._terminate()

        if self._in_batch == 0:
            self.sink.write(self._header)
            self.statements_written += 1
        else:
            self.sink.write(",")

        self.sink.write("\n(" + ", ".join(fields) + ")")
        self._in_batch += 1
        self.rows_written += 1

    def finish(self) -> None:
        """Terminate the open statement, if any. Safe to call twice."""
        if self._finished:
            return
        if self._in_batch:
            self._terminate()
        self._finished = True
        logger.debug(
            f"{self.table}: {self.rows_written} rows in {self.statements_written} statements"
        )

    def _terminate(self) -> None:
        self.sink.write(";\n")
        self._in_batch = 0
