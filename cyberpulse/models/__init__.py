"""Database models for CyberPulse."""

from cyberpulse.models.base import Base
from cyberpulse.models.tenant import Tenant
from cyberpulse.models.widget import Widget, TenantWidget
from cyberpulse.models.score import TenantScore
from cyberpulse.models.report import Report, ReportRecipient
from cyberpulse.models.audit import AuditLog, SecurityMetricsRecord

__all__ = [
    "Base",
    "Tenant",
    "Widget",
    "TenantWidget",
    "TenantScore",
    "Report",
    "ReportRecipient",
    "AuditLog",
    "SecurityMetricsRecord",
]
