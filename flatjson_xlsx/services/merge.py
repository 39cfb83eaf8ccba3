from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from ..models.row_data import Row, Value, is_empty

"""Row merge service.

Reconciles input rows with the rows already in the target sheet using a
composite primary key:

- no PK configured, or a PK value missing/empty -> append
- key found in the index                        -> replace that row in place
- key not found                                 -> append and index it, so a
                                                   later input row with the
                                                   same key replaces it

Replacement is total: columns absent from the new row are gone for that row.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "KEY_SEPARATOR",
    "composite_key",
    "ExistingDataset",
    "MergeOutcome",
    "merge_rows",
]

# ASCII unit separator; never expected inside cell values
KEY_SEPARATOR = "\x1f"


def _key_part(value: Value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        # 1.0 read back from a sheet must match 1 / "1" from JSON
        return str(int(value))
    return str(value)


def composite_key(row: Row, pk: Sequence[str]) -> str | None:
    """Join the row's PK values in PK order, or None if any is missing/empty."""
    if not pk:
        return None
    parts = []
    for col in pk:
        value = row.get(col)
        if is_empty(value):
            return None
        parts.append(_key_part(value))
    return KEY_SEPARATOR.join(parts)


@dataclass
class ExistingDataset:
    """Header and rows read from the target sheet, indexed by composite key."""

    headers: list[str] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)
    index: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_sheet(
        cls, headers: Sequence[str], rows: Iterable[Row], pk: Sequence[str] = ()
    ) -> ExistingDataset:
        ds = cls(headers=list(headers), rows=list(rows))
        for pos, row in enumerate(ds.rows):
            key = composite_key(row, pk)
            if key is not None:
                # duplicate keys in the sheet: the last row wins the index
                ds.index[key] = pos
        return ds


@dataclass(frozen=True)
class MergeOutcome:
    rows: list[Row]
    updated: int
    appended: int
    keyless: int


def merge_rows(dataset: ExistingDataset, new_rows: Iterable[Row], pk: Sequence[str]) -> MergeOutcome:
    """Merge ``new_rows`` into a copy of the dataset rows, in input order.

    The dataset itself is left untouched.
    """
    rows = list(dataset.rows)
    index = dict(dataset.index)
    updated = appended = keyless = 0

    for row in new_rows:
        key = composite_key(row, pk)
        if key is None:
            rows.append(row)
            appended += 1
            if pk:
                keyless += 1
            continue
        pos = index.get(key)
        if pos is not None:
            rows[pos] = row
            updated += 1
        else:
            index[key] = len(rows)
            rows.append(row)
            appended += 1

    logger.debug(f"merge: updated={updated} appended={appended} keyless={keyless} total={len(rows)}")
    return MergeOutcome(rows=rows, updated=updated, appended=appended, keyless=keyless)
