"""
Exception hierarchy for the export pipeline.

Every failure surfaces to the caller; nothing here is retried.
"""

from __future__ import annotations


class ExportError(Exception):
    """Base exception for export operations."""
    pass


class RecordTypeMismatchError(ExportError):
    """Record stream declares a different record kind than the export expects."""
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Unexpected record type {actual} (expected {expected})")


class RecordStreamError(ExportError):
    """Record stream is truncated or unreadable."""
    pass


class InvalidRecordError(ExportError):
    """Decoded record violates a structural invariant."""
    pass
