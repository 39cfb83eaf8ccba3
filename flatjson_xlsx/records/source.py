from __future__ import annotations

import json
from enum import Enum
from typing import Any

from ..models.row_data import Row, normalize_record

"""Record source: stdin payload -> list of Rows.

Modes:
- array  : a JSON array of objects, or a single JSON object
- object : exactly one JSON object
- ndjson : one JSON object per non-blank line

When ndjson is requested but the payload starts with '[', the payload is
parsed as an array instead and a note is returned for the caller to log.
"""

__all__ = [
    "ParseError",
    "InputMode",
    "decode_payload",
    "detect_mode",
    "parse_records",
]

ARRAY_OVERRIDE_NOTE = "input looks like a JSON array; overriding NDJSON and parsing as array."


class ParseError(Exception):
    """Raised when the payload is not valid JSON or a record is not an object."""


class InputMode(str, Enum):
    ARRAY = "array"
    OBJECT = "object"
    NDJSON = "ndjson"


def decode_payload(payload: str | bytes) -> str:
    """Decode raw stdin bytes as UTF-8 (a leading BOM is dropped).

    Raises:
        ParseError: the bytes are not valid UTF-8
    """
    if isinstance(payload, str):
        return payload
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"input is not valid UTF-8: {e}") from e


def detect_mode(text: str, mode: InputMode) -> tuple[InputMode, str | None]:
    """Return the mode to parse with and an optional diagnostic note."""
    if mode is InputMode.NDJSON and text.lstrip().startswith("["):
        return InputMode.ARRAY, ARRAY_OVERRIDE_NOTE
    return mode, None


def _to_row(value: Any, where: str) -> Row:
    if not isinstance(value, dict):
        raise ParseError(
            f"{where}: each record must be a JSON object (already flattened), "
            f"got {type(value).__name__}"
        )
    return normalize_record(value)


def _parse_array(text: str) -> list[Row]:
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid JSON: {e}") from e
    if isinstance(doc, list):
        return [_to_row(item, f"record {i + 1}") for i, item in enumerate(doc)]
    if isinstance(doc, dict):
        return [normalize_record(doc)]
    raise ParseError("expected a JSON array of objects or a single object")


def _parse_object(text: str) -> list[Row]:
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid JSON: {e}") from e
    return [_to_row(doc, "payload")]


def _parse_ndjson(text: str) -> list[Row]:
    rows: list[Row] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            value = json.loads(line)
        except json.JSONDecodeError as e:
            raise ParseError(f"invalid JSON on line {lineno}: {e}") from e
        rows.append(_to_row(value, f"line {lineno}"))
    return rows


def parse_records(payload: str | bytes, mode: InputMode = InputMode.ARRAY) -> list[Row]:
    """Parse ``payload`` in ``mode`` (after ndjson/array auto-detection).

    Raises:
        ParseError: malformed JSON or a record that is not an object
    """
    payload = decode_payload(payload)
    mode, _ = detect_mode(payload, mode)
    if mode is InputMode.NDJSON:
        return _parse_ndjson(payload)
    if mode is InputMode.OBJECT:
        return _parse_object(payload)
    return _parse_array(payload)
