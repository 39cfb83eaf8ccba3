from __future__ import annotations

import json
from typing import Any, TypeAlias, Union

"""Row model for flattened JSON records.

A Row is an insertion-ordered mapping from column name to a scalar Value.
Values are one of None, bool, int/float or str; anything else that can come
out of ``json.loads`` (lists, dicts) is collapsed to compact JSON text here so
the column and merge services only ever see scalars.
"""

__all__ = [
    "Value",
    "Row",
    "normalize_value",
    "normalize_record",
    "is_empty",
    "Formula",
]

Value: TypeAlias = Union[None, bool, int, float, str]
Row: TypeAlias = dict[str, Value]


class Formula(str):
    """Formula text read from an existing sheet, e.g. ``=B2*10``.

    Behaves as plain text everywhere except the spreadsheet store, which
    writes it back as a formula instead of as a string.
    """


def normalize_value(raw: Any) -> Value:
    """Collapse a decoded JSON value to exactly one Value variant."""
    if raw is None or isinstance(raw, (bool, int, float, str)):
        return raw
    if isinstance(raw, (list, dict)):
        # already-flattened input is expected; nested leftovers are kept as text
        return json.dumps(raw, ensure_ascii=False, separators=(",", ":"))
    return str(raw)


def normalize_record(obj: dict[str, Any]) -> Row:
    """Build a Row from a decoded JSON object, keeping key order."""
    return {str(k): normalize_value(v) for k, v in obj.items()}


def is_empty(value: Value) -> bool:
    """True for None and the empty string (an empty cell)."""
    return value is None or value == ""
