"""Schemas for report lifecycle and distribution endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from cyberpulse.schemas.metrics import SecurityMetrics


class ReportCreateRequest(BaseModel):
    """Create (or force-refresh) the report for a tenant's quarter."""

    tenant_id: str
    quarter: int = Field(..., ge=1, le=4)
    year: int = Field(..., ge=2000, le=2100)
    force_refresh: bool = False


class ReportUpdateRequest(BaseModel):
    """Free-text fields that may change independently of status."""

    summary: str | None = None
    recommendations: str | None = None
    analyst_comments: str | None = None
    analyst_notes: str | None = None


class TransitionRequest(BaseModel):
    """Move a report to the next workflow status."""

    status: str = Field(..., description="'reviewed', 'analyst_ready' or 'manager_ready'")


class RiskScores(BaseModel):
    """Five category risk scores plus the weighted overall score."""

    overall_risk_score: int = Field(..., ge=0, le=100)
    identity_risk_score: int = Field(..., ge=0, le=100)
    training_risk_score: int = Field(..., ge=0, le=100)
    device_risk_score: int = Field(..., ge=0, le=100)
    cloud_risk_score: int = Field(..., ge=0, le=100)
    threat_risk_score: int = Field(..., ge=0, le=100)


class ReportResponse(RiskScores):
    """A report as returned by the API."""

    id: str
    tenant_id: str
    title: str
    quarter: int
    year: int
    start_date: date
    end_date: date
    risk_level: str
    status: str
    security_data: SecurityMetrics
    summary: str | None = None
    recommendations: str | None = None
    analyst_comments: str | None = None
    analyst_notes: str | None = None
    created_by: str | None = None
    approved_by: str | None = None
    sent_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class RecipientCreateRequest(BaseModel):
    """Attach a distribution recipient to a report."""

    email: str = Field(..., max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    name: str | None = Field(default=None, max_length=255)


class RecipientResponse(BaseModel):
    """A report recipient."""

    id: str
    report_id: str
    email: str
    name: str | None = None
    sent_at: datetime | None = None


class RecipientOutcome(BaseModel):
    """Per-recipient result of a distribution attempt."""

    recipient_id: str
    email: str
    success: bool
    sent_at: datetime | None = None
    error: str | None = None


class DistributionResult(BaseModel):
    """Aggregated result of sending a report to all its recipients."""

    report_id: str
    success: bool
    status: str
    sent_at: datetime | None = None
    outcomes: list[RecipientOutcome]


class AuditLogResponse(BaseModel):
    """One audit entry."""

    id: str
    user_id: str | None = None
    tenant_id: str | None = None
    action: str
    entity_type: str | None = None
    entity_id: str | None = None
    details: str | None = None
    timestamp: datetime
