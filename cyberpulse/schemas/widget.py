"""Schemas for widget and maturity-score endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class TenantWidgetView(BaseModel):
    """A widget definition merged with the tenant's override."""

    widget_id: str
    key: str
    name: str
    category: str
    scoring_type: str
    points_available: int
    manual: bool
    active: bool
    is_enabled: bool = False
    custom_value: float | None = None
    manually_toggled: bool = False
    force_manual: bool = False
    last_updated: datetime | None = None


class WidgetToggleRequest(BaseModel):
    """Set the enabled flag of a tenant's widget override."""

    is_enabled: bool


class WidgetValueRequest(BaseModel):
    """Set the custom numeric value of a tenant's widget override."""

    custom_value: float | None = Field(default=None, ge=0.0)


class WidgetBreakdown(BaseModel):
    """How a single widget contributed to a tenant's maturity score."""

    key: str
    source: str = Field(..., description="'manual' or 'automatic'")
    value: bool | int | float | str | None = None
    points: float
    points_available: float
    status: str = Field(..., description="'ok', 'fetch_failed' or 'config_error'")


class TenantScoreResult(BaseModel):
    """Result of a manually triggered scoring run."""

    tenant_id: str
    total_score: float
    max_score: float


class ScoreSnapshotResponse(BaseModel):
    """One stored daily snapshot."""

    tenant_id: str
    score_date: date
    total_score: float
    max_score: float
    total_score_pct: float
    secure_score: float
    secure_score_pct: float
    breakdown: list[WidgetBreakdown] = Field(default_factory=list)
    last_updated: datetime


class DailyRunResult(BaseModel):
    """Outcome of the externally triggered scoring run across all tenants."""

    processed: int
    skipped: int
    errors: dict[str, str]
    cancelled: bool = False
    results: list[TenantScoreResult] = Field(default_factory=list)
