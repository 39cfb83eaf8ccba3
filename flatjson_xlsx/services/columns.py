from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from functools import cmp_to_key

from ..config.loader import ConfigError
from ..models.config_models import IncludeSpec, OrderRest, OrderSpec
from ..models.row_data import Row

"""Column resolution service.

Decides which columns end up in the sheet and in what order:

1. build_universe   - existing headers + every key seen in the input rows,
                      in discovery order
2. filter_columns   - optional inclusion filter (exact / regex / substring),
                      PK columns always survive
3. order_columns    - PK group, ordering groups, then the remainder policy

All functions are pure; regexes are compiled per call.
"""

__all__ = [
    "natural_key",
    "natural_cmp",
    "natural_sorted",
    "compile_patterns",
    "build_universe",
    "filter_columns",
    "order_columns",
]

_DIGITS = re.compile(r"([0-9]+)")


def natural_key(name: str) -> tuple[tuple[int, int | str], ...]:
    """Sort key splitting ``name`` into digit and non-digit runs.

    Digit runs compare numerically and sort before text runs at the same
    position, so ``c.2`` < ``c.10``.
    """
    key: list[tuple[int, int | str]] = []
    for segment in _DIGITS.split(name):
        if not segment:
            continue
        # ASCII only: other Unicode digits (superscripts, Arabic-Indic) are text
        if segment.isascii() and segment.isdigit():
            key.append((0, int(segment)))
        else:
            key.append((1, segment))
    return tuple(key)


def natural_cmp(a: str, b: str) -> int:
    # raw name breaks ties such as c007 vs c7
    ka, kb = (natural_key(a), a), (natural_key(b), b)
    return (ka > kb) - (ka < kb)


def natural_sorted(names: Iterable[str]) -> list[str]:
    return sorted(names, key=cmp_to_key(natural_cmp))


def compile_patterns(patterns: Iterable[str], label: str = "regex") -> list[re.Pattern[str]]:
    """Compile user supplied patterns as-is (unanchored search semantics)."""
    compiled = []
    for pat in patterns:
        try:
            compiled.append(re.compile(pat))
        except re.error as e:
            raise ConfigError(f"invalid {label} pattern '{pat}': {e}") from e
    return compiled


def build_universe(
    existing_headers: Sequence[str],
    rows: Iterable[Row],
    pk: Sequence[str] = (),
) -> list[str]:
    """Return every candidate column in discovery order.

    Existing headers come first (blank ones and PK columns skipped), followed
    by the keys of the input rows in row-then-key order. First occurrence
    wins.
    """
    pk_set = set(pk)
    universe: dict[str, None] = {}
    for header in existing_headers:
        if header is None or not str(header).strip() or header in pk_set:
            continue
        universe.setdefault(header, None)
    for row in rows:
        for key in row:
            universe.setdefault(key, None)
    return list(universe)


def filter_columns(
    universe: Sequence[str],
    pk: Sequence[str],
    include: IncludeSpec,
) -> list[str]:
    """Apply the inclusion filter; identity when no rule is configured.

    Raises:
        ConfigError: if an include regex does not compile
    """
    if not include.active:
        return list(universe)

    exact = set(include.exact)
    regexes = compile_patterns(include.regex, "include_regex")
    pk_set = set(pk)

    def allowed(name: str) -> bool:
        if name in pk_set or name in exact:
            return True
        if any(r.search(name) for r in regexes):
            return True
        return any(sub in name for sub in include.substr)

    return [c for c in universe if allowed(c)]


def order_columns(
    columns: Sequence[str],
    pk: Sequence[str],
    order: OrderSpec,
    pk_first: bool = True,
) -> list[str]:
    """Compute the final left-to-right column sequence.

    ``columns`` is the filtered universe in discovery order. A column claimed
    by an earlier group is skipped by every later group.

    Raises:
        ConfigError: if an order regex does not compile
    """
    regexes = compile_patterns(order.regex, "order_regex")
    available = set(columns) | set(pk)
    final: list[str] = []
    seen: set[str] = set()

    def push(name: str) -> None:
        if name not in seen:
            seen.add(name)
            final.append(name)

    if pk_first:
        for name in pk:
            push(name)

    for name in order.exact:
        if name in available:
            push(name)

    for regex in regexes:
        for name in columns:
            if regex.search(name):
                push(name)

    if order.substr:
        for name in columns:
            if any(sub in name for sub in order.substr):
                push(name)

    rest = [c for c in columns if c not in seen]
    if order.rest is OrderRest.ALPHA:
        rest = natural_sorted(rest)
    if order.rest is not OrderRest.NONE:
        for name in rest:
            push(name)

    # PK columns are always rendered
    for name in pk:
        push(name)

    return final
