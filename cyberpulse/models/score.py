"""Score snapshot model: one maturity/secure-score row per tenant per day."""

from __future__ import annotations

from datetime import date

from sqlalchemy import JSON, Date, Float, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cyberpulse.models.base import Base


class TenantScore(Base):
    """Daily snapshot of a tenant's maturity and aggregate secure score."""

    __tablename__ = "tenant_scores"
    __table_args__ = (UniqueConstraint("tenant_id", "score_date", name="uq_tenant_scores_tenant_date"),)

    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    score_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_score: Mapped[float] = mapped_column(Float, default=0.0)
    max_score: Mapped[float] = mapped_column(Float, default=0.0)
    total_score_pct: Mapped[float] = mapped_column(Float, default=0.0)
    secure_score: Mapped[float] = mapped_column(Float, default=0.0)
    secure_score_pct: Mapped[float] = mapped_column(Float, default=0.0)
    breakdown: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<TenantScore tenant={self.tenant_id[:8]} date={self.score_date}>"
