from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Union

from ..models.row_data import Formula, Row, Value

"""Cell rendering service.

Turns merged rows into the final grid. Columns listed in the link spec get a
HyperlinkCell for non-empty text values; the spreadsheet store writes those as
HYPERLINK formulas. Every other value is passed through with its type.
"""

__all__ = [
    "HyperlinkCell",
    "Cell",
    "render_cell",
    "render_grid",
]


@dataclass(frozen=True)
class HyperlinkCell:
    display: str
    target: str


Cell = Union[Value, HyperlinkCell]


def render_cell(row: Row, column: str, links: Mapping[str, str]) -> Cell:
    value = row.get(column)
    base = links.get(column)
    if base is not None and isinstance(value, str) and value != "" and not isinstance(value, Formula):
        return HyperlinkCell(display=value, target=f"{base}{value}")
    return value


def render_grid(
    rows: Sequence[Row], columns: Sequence[str], links: Mapping[str, str] | None = None
) -> list[list[Cell]]:
    """Render every row in ``columns`` order. All-empty rows are kept."""
    links = links or {}
    return [[render_cell(row, col, links) for col in columns] for row in rows]
