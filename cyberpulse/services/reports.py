"""Quarterly report creation and force refresh."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any

import structlog

from cyberpulse.errors import FetchError, PreconditionError, UniqueViolation
from cyberpulse.roles import Actor, Role, require_role
from cyberpulse.schemas.metrics import SecurityMetrics
from cyberpulse.services.audit import record_audit
from cyberpulse.services.integrations import Integrations
from cyberpulse.services.risk import calculate_risk_scores
from cyberpulse.store import DataStore

logger = structlog.get_logger()

SYSTEM_USER = "system"

CREATE_ROLES = {Role.ADMIN, Role.ANALYST}

# Reports past approval keep their frozen scores
REFRESH_BLOCKED_STATUSES = {"manager_ready", "sent"}


def quarter_bounds(quarter: int, year: int) -> tuple[date, date]:
    """First and last calendar day of a quarter."""
    if quarter not in (1, 2, 3, 4):
        raise ValueError(f"Quarter must be 1-4, got {quarter}")
    start = date(year, 3 * quarter - 2, 1)
    end = date(year + 1, 1, 1) if quarter == 4 else date(year, 3 * quarter + 1, 1)
    return start, end - timedelta(days=1)


def quarter_of(day: date) -> tuple[int, int]:
    return (day.month - 1) // 3 + 1, day.year


def previous_quarter(day: date) -> tuple[int, int]:
    quarter, year = quarter_of(day)
    return (4, year - 1) if quarter == 1 else (quarter - 1, year)


def report_title(quarter: int, year: int) -> str:
    return f"Q{quarter} {year} Cyber Risk Report"


async def _load_metrics(integrations: Integrations, tenant_id: str, quarter: int, year: int) -> SecurityMetrics:
    try:
        return await integrations.metrics_source.get_metrics(tenant_id, quarter, year)
    except FetchError:
        raise
    except Exception as exc:
        raise FetchError(f"Could not load security metrics for tenant '{tenant_id}': {exc}") from exc


async def generate_report(
    store: DataStore,
    integrations: Integrations,
    tenant_id: str,
    quarter: int,
    year: int,
    force_refresh: bool = False,
    created_by: str = SYSTEM_USER,
) -> dict[str, Any]:
    """Create the tenant's report for a quarter, or refresh it in place.

    Raises:
        PreconditionError: the report exists and no refresh was requested,
            or a refresh was requested for an approved or sent report.
    """
    store.get_tenant(tenant_id)
    start_date, end_date = quarter_bounds(quarter, year)

    existing = store.find_report(tenant_id, quarter, year)
    if existing and not force_refresh:
        raise PreconditionError(f"Report for tenant '{tenant_id}' Q{quarter} {year} already exists")
    if existing and existing["status"] in REFRESH_BLOCKED_STATUSES:
        raise PreconditionError(
            f"Report '{existing['id']}' is '{existing['status']}' and can no longer be refreshed"
        )

    metrics = await _load_metrics(integrations, tenant_id, quarter, year)
    scores = calculate_risk_scores(metrics)
    security_data = metrics.model_dump()

    if existing:
        report = store.update_report(existing["id"], security_data=security_data, **scores)
        record_audit(store, created_by, tenant_id, "report_refreshed", "report", report["id"], report["title"])
        logger.info("report_refreshed", tenant_id=tenant_id, report_id=report["id"], **scores)
        return report

    now = datetime.now(timezone.utc)
    report = {
        "id": str(uuid.uuid4()),
        "tenant_id": tenant_id,
        "title": report_title(quarter, year),
        "quarter": quarter,
        "year": year,
        "start_date": start_date,
        "end_date": end_date,
        **scores,
        "status": "new",
        "security_data": security_data,
        "summary": None,
        "recommendations": None,
        "analyst_comments": None,
        "analyst_notes": None,
        "created_by": created_by,
        "approved_by": None,
        "sent_at": None,
        "created_at": now,
        "updated_at": now,
    }
    try:
        store.insert_report(report)
    except UniqueViolation as exc:
        raise PreconditionError(str(exc)) from exc

    record_audit(store, created_by, tenant_id, "report_created", "report", report["id"], report["title"])
    logger.info("report_created", tenant_id=tenant_id, report_id=report["id"], **scores)
    return report


async def create_report(
    store: DataStore,
    integrations: Integrations,
    actor: Actor,
    tenant_id: str,
    quarter: int,
    year: int,
    force_refresh: bool = False,
) -> dict[str, Any]:
    """Role-gated report creation for interactive callers."""
    require_role(actor, CREATE_ROLES, "create reports")
    return await generate_report(
        store, integrations, tenant_id, quarter, year, force_refresh, created_by=actor.user_id
    )
