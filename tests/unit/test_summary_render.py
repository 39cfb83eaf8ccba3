from __future__ import annotations

import re
from datetime import datetime, timezone

from flatjson_xlsx.models.processing_result import RunResult
from flatjson_xlsx.services.summary import render_summary_line

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY rows_in=([0-9]+) updated=([0-9]+) appended=([0-9]+) keyless=([0-9]+) "
    r"total_rows=([0-9]+) columns=([0-9]+) written=(yes|no) elapsed_sec=([0-9]+\.?[0-9]*)$"
)


def _result(elapsed: float, written: bool = True) -> RunResult:
    t = datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)
    return RunResult(
        input_rows=3,
        updated_rows=1,
        appended_rows=2,
        keyless_rows=1,
        total_rows=5,
        columns=("id", "name", "status"),
        start_time=t,
        end_time=t,
        elapsed_seconds=elapsed,
        written=written,
    )


def test_render_summary_line_matches_contract():
    line = render_summary_line(_result(2.0))
    m = SUMMARY_PATTERN.match(line)
    assert m is not None, line
    assert m.groups() == ("3", "1", "2", "1", "5", "3", "yes", "2")


def test_small_elapsed_avoids_scientific_notation():
    line = render_summary_line(_result(0.000012))
    assert "e-" not in line
    assert line.endswith("elapsed_sec=0.000012")


def test_elapsed_rounded_to_milliseconds():
    assert render_summary_line(_result(1.23456)).endswith("elapsed_sec=1.235")


def test_dry_run_reports_not_written():
    assert "written=no" in render_summary_line(_result(0, written=False))
