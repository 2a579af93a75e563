"""Namespace-scoped lead model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from leadrotation.models.base import NamespaceBase, utcnow
from leadrotation.models.enums import LeadStatus


class Lead(NamespaceBase):
    __tablename__ = "leads"
    __table_args__ = (
        Index("idx_leads_assigned_to", "assigned_to"),
        Index("idx_leads_created_at", "created_at"),
        Index("idx_leads_contact_address", "contact_address"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255))
    contact_address: Mapped[str | None] = mapped_column(String(320))
    source: Mapped[str | None] = mapped_column(String(80))
    status: Mapped[str] = mapped_column(String(40), default=LeadStatus.NEW.value, nullable=False)
    assigned_to: Mapped[str | None] = mapped_column(String(320))
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
