"""
SQL literal rendering for the generated load scripts.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from .domain.models import Restriction

NULL = "null"

# Reverse cost of one-way edges; pgRouting treats it as impassable
REVERSE_COST_SENTINEL = 1000000.0


def quote_literal(value: Optional[str]) -> str:
    """
    Render a string as a standard SQL literal.

    None becomes null. Single quotes are doubled; NUL characters are dropped
    since PostgreSQL text cannot store them.
    """
    if value is None:
        return NULL
    return "'" + value.replace("\x00", "").replace("'", "''") + "'"


def round_e7(value: float) -> float:
    """Round to 7 fractional digits."""
    return round(value, 7)


def format_float(value: float) -> str:
    """Shortest decimal text that reads back as the same double."""
    return repr(float(value))


def restriction_token(restrictions: Optional[Sequence[Restriction]]) -> str:
    """
    Encode a vertex's turn restrictions into one quoted token.

    Each restriction renders as '-' (no turn) or '+' (only turn) followed by
    '<from>_<to>', concatenated in input order, e.g. '-5_9+3_7'. No
    restrictions render as null.
    """
    if not restrictions:
        return NULL

    parts = []
    for restriction in restrictions:
        sign = "-" if restriction.is_forbidden else "+"
        parts.append(f"{sign}{restriction.from_id}_{restriction.to_id}")
    return "'" + "".join(parts) + "'"
