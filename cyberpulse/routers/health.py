"""Health check endpoints for production monitoring."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request

from cyberpulse.schemas.health import (
    CatalogueStatus,
    ComponentCheck,
    HealthResponse,
    LivenessResponse,
    ReadinessResponse,
    SchedulerStatus,
)
from cyberpulse.store import data_store

router = APIRouter(tags=["health"])


async def _check_service(name: str, check_fn) -> ComponentCheck:
    """Run a health check and time it."""
    start = time.monotonic()
    try:
        details = await check_fn()
        status = "healthy"
    except Exception as exc:
        details = str(exc)[:200]
        status = "unhealthy"
    return ComponentCheck(
        service=name,
        status=status,
        latency_ms=round((time.monotonic() - start) * 1000, 2),
        details=details,
    )


async def _check_app() -> None:
    return None


async def _check_widget_catalog() -> str:
    count = len(data_store.list_widgets())
    if count == 0:
        raise RuntimeError("Widget catalogue is empty")
    return f"{count} widgets"


def _catalogue_status() -> CatalogueStatus:
    widgets = data_store.list_widgets()
    return CatalogueStatus(widgets=len(widgets), active_widgets=sum(1 for w in widgets if w["active"]))


def _scheduler_status(request: Request) -> SchedulerStatus:
    settings = request.app.state.settings
    scheduler = getattr(request.app.state, "scheduler", None)
    return SchedulerStatus(
        enabled=settings.scheduler_enabled,
        running=scheduler is not None and scheduler.is_running,
        interval_seconds=settings.scheduler_interval_seconds,
    )


def _scheduler_check(status: SchedulerStatus) -> ComponentCheck:
    if not status.enabled:
        return ComponentCheck(service="scheduler", status="disabled")
    return ComponentCheck(service="scheduler", status="healthy" if status.running else "unhealthy")


def _overall(services: list[ComponentCheck], degraded: str) -> str:
    ok = all(s.status in ("healthy", "disabled") for s in services)
    return "healthy" if ok else degraded


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Basic health check: is the application running?"""
    settings = request.app.state.settings
    services = [await _check_service("app", _check_app)]
    return HealthResponse(
        status=_overall(services, "degraded"),
        version=settings.app_version,
        environment=settings.environment,
        services=services,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> ReadinessResponse:
    """Readiness check: catalogue seeded and scheduler running when enabled."""
    settings = request.app.state.settings
    scheduler = _scheduler_status(request)
    services = [
        await _check_service("app", _check_app),
        await _check_service("widget_catalog", _check_widget_catalog),
        _scheduler_check(scheduler),
    ]
    return ReadinessResponse(
        status=_overall(services, "unhealthy"),
        version=settings.app_version,
        environment=settings.environment,
        services=services,
        catalogue=_catalogue_status(),
        scheduler=scheduler,
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check() -> LivenessResponse:
    """Liveness probe: is the process alive?"""
    return LivenessResponse()
