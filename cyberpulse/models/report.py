"""Report models: quarterly client risk reports and their recipients."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cyberpulse.models.base import Base


class Report(Base):
    """A quarterly cyber risk report moving through the approval workflow."""

    __tablename__ = "reports"
    __table_args__ = (UniqueConstraint("tenant_id", "quarter", "year", name="uq_reports_tenant_period"),)

    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    quarter: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    overall_risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    identity_risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    training_risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    device_risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    cloud_risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    threat_risk_score: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="new")
    security_data: Mapped[dict] = mapped_column(JSON, nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    recommendations: Mapped[str | None] = mapped_column(Text, nullable=True)
    analyst_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    analyst_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Report {self.id[:8]} Q{self.quarter} {self.year} status={self.status}>"


class ReportRecipient(Base):
    """An email address a report is distributed to."""

    __tablename__ = "report_recipients"

    report_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<ReportRecipient {self.email}>"
