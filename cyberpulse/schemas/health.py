"""Response models for the CyberPulse health endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

ComponentStatus = Literal["healthy", "unhealthy", "disabled"]


class ComponentCheck(BaseModel):
    """Result of checking one component."""

    service: str
    status: ComponentStatus
    latency_ms: float | None = None
    details: str | None = None


class CatalogueStatus(BaseModel):
    """Seeded widget catalogue."""

    widgets: int
    active_widgets: int


class SchedulerStatus(BaseModel):
    """Background report and snapshot scheduler."""

    enabled: bool
    running: bool
    interval_seconds: int


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    environment: str
    services: list[ComponentCheck]


class ReadinessResponse(HealthResponse):
    """Readiness adds the catalogue and scheduler state the engine depends on."""

    catalogue: CatalogueStatus
    scheduler: SchedulerStatus


class LivenessResponse(BaseModel):
    status: Literal["alive"] = "alive"
