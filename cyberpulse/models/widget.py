"""Widget models: scored security signals and per-tenant overrides."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cyberpulse.models.base import Base


class Widget(Base):
    """Reference definition of an independently scored security signal."""

    __tablename__ = "widgets"

    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="general")
    scoring_type: Mapped[str] = mapped_column(String(30), nullable=False, default="yesno")
    scoring_config: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    points_available: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    manual: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    manual_default: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<Widget {self.key}>"


class TenantWidget(Base):
    """Per-tenant override of a widget's value and manual handling."""

    __tablename__ = "tenant_widgets"
    __table_args__ = (UniqueConstraint("tenant_id", "widget_id", name="uq_tenant_widgets_tenant_widget"),)

    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    widget_id: Mapped[str] = mapped_column(String(36), nullable=False)
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    custom_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    manually_toggled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    force_manual: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_updated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<TenantWidget tenant={self.tenant_id[:8]} widget={self.widget_id[:8]}>"
