from __future__ import annotations

import datetime as dt
import logging
import os
import re
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from openpyxl import Workbook, load_workbook

from ..models.row_data import Formula, Row, Value
from ..services.render import Cell, HyperlinkCell

"""Spreadsheet store backed by openpyxl.

Reading: row 1 is the header, rows 2.. are data. Blank header cells are
skipped and data rows with no value at all are dropped. Formulas are loaded
as text: HYPERLINK cells written by this tool are decoded back to their
display value, any other formula comes back as a Formula and is written back
as a formula.

Writing: the workbook is edited in place (cell values only) so existing
column widths, fonts, fills and number formats survive, then saved through a
temporary file and an atomic replace.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "StoreError",
    "SheetData",
    "SpreadsheetStore",
    "read_sheet",
    "write_sheet",
    "hyperlink_formula",
    "decode_hyperlink",
]

_HYPERLINK_RE = re.compile(
    r'^=HYPERLINK\(\s*"((?:[^"]|"")*)"\s*,\s*"((?:[^"]|"")*)"\s*\)$', re.IGNORECASE
)


class StoreError(Exception):
    """Raised when the workbook cannot be read or written."""


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[Row]  # column name -> value


def xl_quote_escape(text: str) -> str:
    return text.replace('"', '""')


def hyperlink_formula(cell: HyperlinkCell) -> str:
    return f'=HYPERLINK("{xl_quote_escape(cell.target)}","{xl_quote_escape(cell.display)}")'


def decode_hyperlink(text: str) -> str | None:
    """Return the display text of a HYPERLINK formula, or None."""
    m = _HYPERLINK_RE.match(text)
    if m is None:
        return None
    return m.group(2).replace('""', '"')


def _header_text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return str(raw)


def _from_cell(raw: Any, data_type: str = "n") -> Value:
    if raw is None:
        return None
    if isinstance(raw, str):
        if raw == "":
            return None
        if data_type == "f":
            display = decode_hyperlink(raw)
            if display is not None:
                return display
            return Formula(raw)
        return raw
    if isinstance(raw, (bool, int, float)):
        return raw
    if isinstance(raw, (dt.datetime, dt.date, dt.time)):
        return raw.isoformat()
    return str(raw)


def read_sheet(path: Path, sheet: str) -> SheetData | None:
    """Read header and data rows of ``sheet``.

    Returns None when the file or the sheet does not exist.

    Raises:
        StoreError: the file exists but cannot be opened as a workbook
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        wb = load_workbook(path, read_only=True)
    except Exception as e:
        raise StoreError(f"cannot read workbook '{path}': {e}") from e
    try:
        if sheet not in wb.sheetnames:
            return None
        rows_iter = wb[sheet].iter_rows()
        header_cells = next(rows_iter, None)
        if header_cells is None:
            return SheetData(sheet_name=sheet, columns=[], rows=[])
        columns = [_header_text(c.value) for c in header_cells]

        rows: list[Row] = []
        for raw in rows_iter:
            row: Row = {}
            for col, cell in zip(columns, raw):
                if not col.strip():
                    continue
                # data_type "f" tells formulas from text that starts with "="
                row[col] = _from_cell(cell.value, cell.data_type)
            # rows with nothing in them are dropped
            if any(v is not None for v in row.values()):
                rows.append(row)
    finally:
        wb.close()

    logger.debug(f"read {path} [{sheet}]: {len(columns)} header cells, {len(rows)} rows")
    return SheetData(sheet_name=sheet, columns=columns, rows=rows)


def _assign(ws: Any, row: int, col: int, value: Cell) -> None:
    cell = ws.cell(row=row, column=col)
    if isinstance(value, HyperlinkCell):
        cell.value = hyperlink_formula(value)
        return
    if isinstance(value, Formula):
        cell.value = str(value)
        return
    cell.value = value
    if isinstance(value, str) and value.startswith("="):
        # plain text that only looks like a formula
        cell.data_type = "s"


def write_sheet(
    path: Path,
    sheet: str,
    header: Sequence[str],
    rows: Sequence[Sequence[Cell]],
    preserve_styles: bool = True,
) -> None:
    """Write ``header`` to row 1 and ``rows`` from row 2 of ``sheet``.

    Cells outside the written region keep their style but lose their value.
    With ``preserve_styles=False`` the sheet is recreated from scratch.

    Raises:
        StoreError: the workbook cannot be opened, built or saved
    """
    path = Path(path)
    try:
        if path.exists():
            wb = load_workbook(path)
        else:
            wb = Workbook()
            wb.active.title = sheet

        if sheet in wb.sheetnames:
            ws = wb[sheet]
            if not preserve_styles:
                pos = wb.sheetnames.index(sheet)
                wb.remove(ws)
                ws = wb.create_sheet(sheet, pos)
        else:
            ws = wb.create_sheet(sheet)

        old_max_row, old_max_col = ws.max_row, ws.max_column
        last_row, last_col = len(rows) + 1, len(header)
        for r_cells in ws.iter_rows(min_row=1, max_row=old_max_row, max_col=old_max_col):
            for cell in r_cells:
                if cell.row > last_row or cell.column > last_col:
                    cell.value = None

        for c_idx, name in enumerate(header, start=1):
            _assign(ws, 1, c_idx, name)
        for r_idx, cells in enumerate(rows, start=2):
            for c_idx, value in enumerate(cells, start=1):
                _assign(ws, r_idx, c_idx, value)
    except Exception as e:
        raise StoreError(f"cannot build workbook '{path}': {e}") from e

    _save_atomic(wb, path)
    logger.debug(f"wrote {path} [{sheet}]: {len(header)} columns, {len(rows)} rows")


def _save_atomic(wb: Workbook, path: Path) -> None:
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            dir=path.parent, prefix=f".{path.stem}-", suffix=".xlsx", delete=False
        ) as tmp:
            tmp_name = tmp.name
        wb.save(tmp_name)
        os.replace(tmp_name, path)
    except Exception as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StoreError(f"cannot write workbook '{path}': {e}") from e


class SpreadsheetStore:
    """Default store used by the orchestrator; tests may pass their own."""

    def read(self, path: Path, sheet: str) -> SheetData | None:
        return read_sheet(path, sheet)

    def write(
        self,
        path: Path,
        sheet: str,
        header: Sequence[str],
        rows: Sequence[Sequence[Cell]],
        preserve_styles: bool = True,
    ) -> None:
        write_sheet(path, sheet, header, rows, preserve_styles=preserve_styles)
