from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from .render import Cell, HyperlinkCell

"""Dry-run preview of the final grid (header + first rows) using pandas."""

PREVIEW_ROWS = 10


def _display(cell: Cell) -> object:
    if isinstance(cell, HyperlinkCell):
        return cell.display
    return "" if cell is None else cell


def preview_frame(columns: Sequence[str], grid: Sequence[Sequence[Cell]], limit: int = PREVIEW_ROWS) -> pd.DataFrame:
    """Build a DataFrame of the first ``limit`` rendered rows.

    Hyperlink cells show their display text, as they would in Excel.
    """
    data = [
        [_display(c) for c in row]
        for row in grid[:limit]
    ]
    return pd.DataFrame(data, columns=list(columns), dtype=object)


def render_preview(columns: Sequence[str], grid: Sequence[Sequence[Cell]], limit: int = PREVIEW_ROWS) -> str:
    if not columns:
        return "(no columns)"
    text = preview_frame(columns, grid, limit).to_string(index=False)
    if len(grid) > limit:
        text += f"\n... {len(grid) - limit} more rows"
    return text
