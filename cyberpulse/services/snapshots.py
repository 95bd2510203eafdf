"""Score Snapshot Service: daily maturity and secure score records per tenant."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any

import structlog

from cyberpulse.config import Settings
from cyberpulse.errors import RetentionSweepError
from cyberpulse.services.integrations import Integrations
from cyberpulse.services.maturity import calculate_tenant_score
from cyberpulse.store import DataStore

logger = structlog.get_logger()


def percentage(part: float, whole: float) -> float:
    """part / whole as a percentage rounded to 2 decimals, 0 when whole is 0."""
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


def subtract_months(day: date, months: int) -> date:
    """Same day ``months`` earlier, clamped to the end of shorter months."""
    index = day.year * 12 + day.month - 1 - months
    year, month = divmod(index, 12)
    month += 1
    next_month = date(year + (month == 12), month % 12 + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return date(year, month, min(day.day, last_day))


def retention_cutoff(today: date, months: int = 12) -> date:
    """First day of the month ``months`` before ``today``."""
    return subtract_months(today.replace(day=1), months)


def latest_secure_score(
    entries: list[dict[str, Any]],
    now: datetime,
    lookback_days: int = 730,
) -> tuple[float, float]:
    """Most recent feed entry inside the lookback window as (score, pct)."""
    earliest = now - timedelta(days=lookback_days)
    recent = [e for e in entries if e["recorded_at"] >= earliest]
    if not recent:
        return 0.0, 0.0
    latest = max(recent, key=lambda e: e["recorded_at"])
    return latest["current_score"], percentage(latest["current_score"], latest["max_score"])


async def fetch_secure_score(
    integrations: Integrations,
    tenant_id: str,
    now: datetime,
    lookback_days: int,
) -> tuple[float, float]:
    try:
        entries = await integrations.score_feed.list_scores(tenant_id)
    except Exception as exc:
        logger.warning("secure_score_feed_failed", tenant_id=tenant_id, error=str(exc))
        return 0.0, 0.0
    return latest_secure_score(entries, now, lookback_days)


async def capture_snapshot(
    store: DataStore,
    integrations: Integrations,
    settings: Settings,
    tenant_id: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Score a tenant and upsert today's snapshot.

    A second capture on the same day overwrites the first. Maturity
    failures (e.g. missing credentials) propagate as FetchError.
    """
    now = now or datetime.now(timezone.utc)
    secure_score, secure_score_pct = await fetch_secure_score(
        integrations, tenant_id, now, settings.secure_score_lookback_days
    )
    maturity = await calculate_tenant_score(store, integrations, tenant_id)

    row, created = store.upsert_score_snapshot(
        {
            "tenant_id": tenant_id,
            "score_date": now.date(),
            "total_score": maturity.total_score,
            "max_score": maturity.max_score,
            "total_score_pct": percentage(maturity.total_score, maturity.max_score),
            "secure_score": secure_score,
            "secure_score_pct": secure_score_pct,
            "breakdown": maturity.breakdown,
            "last_updated": now,
        }
    )
    logger.info(
        "score_snapshot_saved",
        tenant_id=tenant_id,
        score_date=row["score_date"].isoformat(),
        created=created,
        total_score=row["total_score"],
        max_score=row["max_score"],
    )
    return row


def has_snapshot_in_month(store: DataStore, tenant_id: str, today: date) -> bool:
    start = today.replace(day=1)
    return bool(store.list_score_snapshots(tenant_id, start, today))


def score_history(
    store: DataStore,
    tenant_id: str,
    months: int = 3,
    today: date | None = None,
) -> list[dict[str, Any]]:
    """Snapshots from the last ``months`` months, newest first."""
    today = today or datetime.now(timezone.utc).date()
    store.get_tenant(tenant_id)
    rows = store.list_score_snapshots(tenant_id, subtract_months(today, months), today)
    return list(reversed(rows))


def prune_snapshots(store: DataStore, tenant_id: str, cutoff: date) -> int:
    """Delete a tenant's snapshots dated before ``cutoff``."""
    try:
        deleted = store.delete_score_snapshots_before(tenant_id, cutoff)
    except Exception as exc:
        raise RetentionSweepError(f"Retention sweep failed for tenant '{tenant_id}': {exc}") from exc
    if deleted:
        logger.info("score_snapshots_pruned", tenant_id=tenant_id, deleted=deleted, cutoff=cutoff.isoformat())
    return deleted
