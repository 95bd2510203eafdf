"""Tenant model: a client organisation under management."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from cyberpulse.models.base import Base


class Tenant(Base):
    """A client organisation whose posture is scored and reported on."""

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    azure_tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<Tenant {self.name}>"
