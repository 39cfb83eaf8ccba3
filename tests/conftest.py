# Shared pytest fixtures
from __future__ import annotations

import io
import sys
import tempfile
from pathlib import Path

import pytest
from openpyxl import Workbook

from flatjson_xlsx.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """out: report.xlsx
sheet: Issues
pk: [key]
pk_first: true
order: [summary]
order_rest: alpha
hyperlink:
  key: "https://jira.example.com/browse/"
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "merge.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_workbook():
    """Create an .xlsx with the given sheets; each sheet is a list of rows (row 1 = header)."""

    def _make(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
        wb = Workbook()
        wb.remove(wb.active)
        for name, rows in sheets.items():
            ws = wb.create_sheet(name)
            for row in rows:
                ws.append(row)
        wb.save(path)
        return path

    return _make


@pytest.fixture()
def stdin_payload(monkeypatch):
    """Replace sys.stdin with the given text or raw bytes."""

    def _set(data: str | bytes) -> None:
        raw = data.encode("utf-8") if isinstance(data, str) else data
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(raw), encoding="utf-8"))

    return _set


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()
