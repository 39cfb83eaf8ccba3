from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Run result model.

Aggregates the counters reported on the SUMMARY line at the end of a run.
"""


@dataclass(frozen=True)
class RunResult:
    """Outcome of one merge run."""

    input_rows: int  # records parsed from stdin
    updated_rows: int  # existing rows replaced in place
    appended_rows: int  # rows added after the existing ones
    keyless_rows: int  # appended because a PK value was missing/empty
    total_rows: int  # data rows in the final sheet
    columns: tuple[str, ...]  # final column order
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    written: bool = True  # False on --dry-run

    @property
    def column_count(self) -> int:
        return len(self.columns)
