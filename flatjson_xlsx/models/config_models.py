from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Resolved configuration for a single merge run.

The loader in flatjson_xlsx/config/loader.py reads the optional YAML file and
overlays command line values on it; the result is one immutable MergeConfig
that is passed to every service. No service reads global state.
"""

DEFAULT_SHEET = "Sheet1"


class OrderRest(str, Enum):
    """Policy for columns not claimed by any ordering group."""

    EXISTING = "existing"  # discovery order
    ALPHA = "alpha"  # natural sort
    NONE = "none"  # dropped from the sheet


@dataclass(frozen=True)
class IncludeSpec:
    """Inclusion filter rules. Filtering is active when any list is non-empty."""

    exact: tuple[str, ...] = ()
    regex: tuple[str, ...] = ()
    substr: tuple[str, ...] = ()

    @property
    def active(self) -> bool:
        return bool(self.exact or self.regex or self.substr)


@dataclass(frozen=True)
class OrderSpec:
    """Ordering groups applied after the PK group."""

    exact: tuple[str, ...] = ()
    regex: tuple[str, ...] = ()
    substr: tuple[str, ...] = ()
    rest: OrderRest = OrderRest.EXISTING


@dataclass(frozen=True)
class MergeConfig:
    """Root configuration object for one invocation.

    ``links`` maps a column name to the base URL its values are appended to
    when rendered as hyperlinks.
    """

    out_path: str
    sheet: str = DEFAULT_SHEET
    ndjson: bool = False
    pk: tuple[str, ...] = ()
    pk_first: bool = True
    include: IncludeSpec = field(default_factory=IncludeSpec)
    order: OrderSpec = field(default_factory=OrderSpec)
    links: dict[str, str] = field(default_factory=dict)
    dry_run: bool = False
