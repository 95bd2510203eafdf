"""Widget override and maturity score endpoints."""

from __future__ import annotations

import secrets

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from cyberpulse.roles import Actor
from cyberpulse.routers.deps import get_actor, get_integrations
from cyberpulse.schemas.widget import (
    DailyRunResult,
    ScoreSnapshotResponse,
    TenantScoreResult,
    TenantWidgetView,
    WidgetToggleRequest,
    WidgetValueRequest,
)
from cyberpulse.services.integrations import Integrations
from cyberpulse.services.maturity import (
    calculate_tenant_score,
    list_tenant_widgets,
    set_widget_value,
    toggle_widget,
)
from cyberpulse.services.scheduler import run_snapshot_cycle
from cyberpulse.services.snapshots import score_history
from cyberpulse.store import data_store

router = APIRouter(tags=["scores"])


def _widget_view(tenant_id: str, widget_key: str) -> TenantWidgetView:
    views = list_tenant_widgets(data_store, tenant_id)
    return TenantWidgetView(**next(v for v in views if v["key"] == widget_key))


@router.get("/tenants/{tenant_id}/widgets", response_model=list[TenantWidgetView])
async def get_tenant_widgets(tenant_id: str, actor: Actor = Depends(get_actor)) -> list[TenantWidgetView]:
    """All widgets with the tenant's override values."""
    return [TenantWidgetView(**v) for v in list_tenant_widgets(data_store, tenant_id)]


@router.post("/tenants/{tenant_id}/widgets/{widget_key}/toggle", response_model=TenantWidgetView)
async def toggle_tenant_widget(
    tenant_id: str,
    widget_key: str,
    request: WidgetToggleRequest,
    actor: Actor = Depends(get_actor),
) -> TenantWidgetView:
    toggle_widget(data_store, actor, tenant_id, widget_key, request.is_enabled)
    return _widget_view(tenant_id, widget_key)


@router.patch("/tenants/{tenant_id}/widgets/{widget_key}", response_model=TenantWidgetView)
async def update_tenant_widget(
    tenant_id: str,
    widget_key: str,
    request: WidgetValueRequest,
    actor: Actor = Depends(get_actor),
) -> TenantWidgetView:
    set_widget_value(data_store, actor, tenant_id, widget_key, request.custom_value)
    return _widget_view(tenant_id, widget_key)


@router.post("/tenants/{tenant_id}/scores", response_model=TenantScoreResult)
async def score_tenant(
    tenant_id: str,
    actor: Actor = Depends(get_actor),
    integrations: Integrations = Depends(get_integrations),
) -> TenantScoreResult:
    """Calculate the tenant's maturity score without storing it."""
    result = await calculate_tenant_score(data_store, integrations, tenant_id)
    return TenantScoreResult(
        tenant_id=tenant_id, total_score=result.total_score, max_score=result.max_score
    )


@router.get("/tenants/{tenant_id}/maturity-scores", response_model=list[ScoreSnapshotResponse])
async def get_maturity_scores(
    tenant_id: str,
    http_request: Request,
    months: int | None = Query(default=None, ge=1, le=24),
    actor: Actor = Depends(get_actor),
) -> list[ScoreSnapshotResponse]:
    """Stored snapshots for the last few months, newest first."""
    months = months or http_request.app.state.settings.score_history_months
    return [ScoreSnapshotResponse(**row) for row in score_history(data_store, tenant_id, months)]


@router.post("/scores/run-daily", response_model=DailyRunResult)
async def run_daily_scores(
    http_request: Request,
    x_cron_secret: str | None = Header(default=None),
    integrations: Integrations = Depends(get_integrations),
) -> DailyRunResult:
    """Capture today's snapshot for every tenant; called by an external cron."""
    settings = http_request.app.state.settings
    if not x_cron_secret or not secrets.compare_digest(x_cron_secret, settings.cron_secret):
        raise HTTPException(status_code=401, detail="Invalid cron secret")

    result = await run_snapshot_cycle(data_store, integrations, settings, once_per_month=False)
    return DailyRunResult(
        processed=result.processed,
        skipped=result.skipped,
        errors=result.errors,
        cancelled=result.cancelled,
        results=[TenantScoreResult(**r) for r in result.results],
    )
