from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..excel.store import SpreadsheetStore
from ..models.config_models import MergeConfig
from ..models.processing_result import RunResult
from ..records.source import InputMode, decode_payload, detect_mode, parse_records
from .columns import build_universe, filter_columns, order_columns
from .merge import ExistingDataset, MergeOutcome, merge_rows
from .preview import render_preview
from .render import Cell, render_grid

"""Run orchestration.

One invocation: parse the payload, read the target sheet, merge rows by PK,
resolve the column order, render cells and write the sheet once at the end.
Everything stays in memory; collaborator errors (ParseError, StoreError,
ConfigError) propagate to the caller unchanged.
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergePlan:
    """Everything that will be written, computed before touching the file."""

    columns: list[str]
    grid: list[list[Cell]]
    input_rows: int
    outcome: MergeOutcome


def plan_merge(config: MergeConfig, payload: str | bytes, store: Any = None) -> MergePlan:
    store = store or SpreadsheetStore()
    payload = decode_payload(payload)

    requested = InputMode.NDJSON if config.ndjson else InputMode.ARRAY
    mode, note = detect_mode(payload, requested)
    if note:
        logger.warning(note)
    new_rows = parse_records(payload, mode)
    logger.info(f"parsed {len(new_rows)} records ({mode.value})")

    existing = store.read(Path(config.out_path), config.sheet)
    if existing is None:
        logger.info(f"no existing sheet '{config.sheet}' in {config.out_path}; creating it")
        headers, old_rows = [], []
    else:
        headers, old_rows = existing.columns, existing.rows
        logger.info(f"existing sheet '{config.sheet}': {len(old_rows)} rows")

    dataset = ExistingDataset.from_sheet(headers, old_rows, config.pk)
    outcome = merge_rows(dataset, new_rows, config.pk)

    universe = build_universe(headers, new_rows, config.pk)
    kept = filter_columns(universe, config.pk, config.include)
    columns = order_columns(kept, config.pk, config.order, pk_first=config.pk_first)
    logger.debug(f"columns: universe={len(universe)} kept={len(kept)} final={columns}")

    grid = render_grid(outcome.rows, columns, config.links)
    return MergePlan(columns=columns, grid=grid, input_rows=len(new_rows), outcome=outcome)


def process_run(config: MergeConfig, payload: str | bytes, store: Any = None) -> RunResult:
    """Merge ``payload`` into the configured sheet and return the run metrics."""
    store = store or SpreadsheetStore()
    start_time = datetime.now(UTC)
    t0 = time.perf_counter()

    plan = plan_merge(config, payload, store)

    if config.dry_run:
        logger.info("dry run: nothing written. Preview:\n" + render_preview(plan.columns, plan.grid))
    else:
        store.write(Path(config.out_path), config.sheet, plan.columns, plan.grid)
        logger.info(f"wrote {len(plan.grid)} rows x {len(plan.columns)} columns to {config.out_path} [{config.sheet}]")

    elapsed = time.perf_counter() - t0
    return RunResult(
        input_rows=plan.input_rows,
        updated_rows=plan.outcome.updated,
        appended_rows=plan.outcome.appended,
        keyless_rows=plan.outcome.keyless,
        total_rows=len(plan.outcome.rows),
        columns=tuple(plan.columns),
        start_time=start_time,
        end_time=datetime.now(UTC),
        elapsed_seconds=elapsed,
        written=not config.dry_run,
    )
