from __future__ import annotations

from ..models.processing_result import RunResult

"""SUMMARY line rendering."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very fast runs
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: RunResult) -> str:
    """Render the SUMMARY line for a finished run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> render_summary_line(RunResult(
        ...     input_rows=2, updated_rows=1, appended_rows=1, keyless_rows=0,
        ...     total_rows=2, columns=("id", "name"), start_time=t, end_time=t,
        ...     elapsed_seconds=0.0,
        ... ))
        'SUMMARY rows_in=2 updated=1 appended=1 keyless=0 total_rows=2 columns=2 written=yes elapsed_sec=0'
    """
    return (
        f"SUMMARY rows_in={result.input_rows} "
        f"updated={result.updated_rows} "
        f"appended={result.appended_rows} "
        f"keyless={result.keyless_rows} "
        f"total_rows={result.total_rows} "
        f"columns={result.column_count} "
        f"written={'yes' if result.written else 'no'} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
