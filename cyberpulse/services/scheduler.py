"""Scheduler: quarterly report generation and monthly snapshot capture.

Both batches walk tenants one at a time. A tenant's failure is logged and
collected, never raised, and a cancellation event is checked between
tenants so shutdown can stop a long batch.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

import structlog

from cyberpulse.config import Settings
from cyberpulse.errors import RetentionSweepError
from cyberpulse.services.integrations import Integrations
from cyberpulse.services.reports import generate_report, previous_quarter, quarter_bounds, quarter_of
from cyberpulse.services.snapshots import (
    capture_snapshot,
    has_snapshot_in_month,
    prune_snapshots,
    retention_cutoff,
)
from cyberpulse.store import DataStore

logger = structlog.get_logger()


@dataclass
class BatchResult:
    """Outcome of one pass over all tenants."""

    processed: int = 0
    skipped: int = 0
    errors: dict[str, str] = field(default_factory=dict)
    cancelled: bool = False
    results: list[dict[str, Any]] = field(default_factory=list)
    pruned: int = 0
    sweep_errors: dict[str, str] = field(default_factory=dict)


def report_window_open(today: date, window_days: int) -> bool:
    """True during the first ``window_days`` days of a quarter."""
    quarter, year = quarter_of(today)
    start, _ = quarter_bounds(quarter, year)
    return (today - start).days < window_days


def _cancelled(cancel: asyncio.Event | None) -> bool:
    return cancel is not None and cancel.is_set()


async def run_quarterly_reports(
    store: DataStore,
    integrations: Integrations,
    today: date,
    cancel: asyncio.Event | None = None,
    force_refresh: bool = False,
) -> BatchResult:
    """Create every tenant's report for the quarter before ``today``."""
    quarter, year = previous_quarter(today)
    result = BatchResult()
    for tenant in store.list_tenants():
        if _cancelled(cancel):
            result.cancelled = True
            break
        tenant_id = tenant["id"]
        if not force_refresh and store.find_report(tenant_id, quarter, year):
            result.skipped += 1
            continue
        try:
            report = await generate_report(store, integrations, tenant_id, quarter, year, force_refresh)
        except Exception as exc:
            logger.error("quarterly_report_failed", tenant_id=tenant_id, quarter=quarter, year=year, error=str(exc))
            result.errors[tenant_id] = str(exc)
            continue
        result.processed += 1
        result.results.append({"tenant_id": tenant_id, "report_id": report["id"]})

    logger.info(
        "quarterly_reports_finished",
        quarter=quarter,
        year=year,
        processed=result.processed,
        skipped=result.skipped,
        errors=len(result.errors),
        cancelled=result.cancelled,
    )
    return result


async def run_snapshot_cycle(
    store: DataStore,
    integrations: Integrations,
    settings: Settings,
    now: datetime | None = None,
    cancel: asyncio.Event | None = None,
    once_per_month: bool = True,
) -> BatchResult:
    """Capture a snapshot per tenant, then sweep snapshots past retention.

    With ``once_per_month`` a tenant that already has a snapshot this
    calendar month is skipped. Sweep failures do not affect the capture
    result of the same tenant.
    """
    now = now or datetime.now(timezone.utc)
    today = now.date()
    cutoff = retention_cutoff(today, settings.snapshot_retention_months)
    result = BatchResult()

    for tenant in store.list_tenants():
        if _cancelled(cancel):
            result.cancelled = True
            break
        tenant_id = tenant["id"]

        if once_per_month and has_snapshot_in_month(store, tenant_id, today):
            result.skipped += 1
        else:
            try:
                row = await capture_snapshot(store, integrations, settings, tenant_id, now)
            except Exception as exc:
                logger.error("snapshot_capture_failed", tenant_id=tenant_id, error=str(exc))
                result.errors[tenant_id] = str(exc)
            else:
                result.processed += 1
                result.results.append(
                    {"tenant_id": tenant_id, "total_score": row["total_score"], "max_score": row["max_score"]}
                )

        try:
            result.pruned += prune_snapshots(store, tenant_id, cutoff)
        except RetentionSweepError as exc:
            logger.error("retention_sweep_failed", tenant_id=tenant_id, error=str(exc))
            result.sweep_errors[tenant_id] = str(exc)

    logger.info(
        "snapshot_cycle_finished",
        processed=result.processed,
        skipped=result.skipped,
        errors=len(result.errors),
        pruned=result.pruned,
        cancelled=result.cancelled,
    )
    return result


class Scheduler:
    """Runs both triggers on a fixed interval until stopped."""

    def __init__(self, store: DataStore, integrations: Integrations, settings: Settings) -> None:
        self.store = store
        self.integrations = integrations
        self.settings = settings
        self.cancel = asyncio.Event()
        self._task: asyncio.Task | None = None

    async def tick(self, now: datetime | None = None) -> dict[str, BatchResult]:
        now = now or datetime.now(timezone.utc)
        results: dict[str, BatchResult] = {}
        if report_window_open(now.date(), self.settings.report_window_days):
            results["quarterly"] = await run_quarterly_reports(
                self.store, self.integrations, now.date(), self.cancel
            )
        if not self.cancel.is_set():
            results["snapshots"] = await run_snapshot_cycle(
                self.store, self.integrations, self.settings, now, self.cancel
            )
        return results

    async def run_forever(self) -> None:
        interval = self.settings.scheduler_interval_seconds
        logger.info("scheduler_started", interval_seconds=interval)
        while not self.cancel.is_set():
            try:
                await self.tick()
            except Exception:
                logger.exception("scheduler_tick_failed")
            try:
                await asyncio.wait_for(self.cancel.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue
        logger.info("scheduler_stopped")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        self._task = asyncio.create_task(self.run_forever())
        return self._task

    async def stop(self) -> None:
        self.cancel.set()
        if self._task is not None:
            await self._task
            self._task = None
