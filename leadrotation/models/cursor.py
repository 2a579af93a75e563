"""Namespace-scoped rotation cursor and run lease records."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from leadrotation.models.base import NamespaceBase, utcnow

LEAD_ASSIGNMENT_CURSOR = "lead_assignment"
NEUTRAL_CURSOR_INDEX = -1


class AssignmentCursor(NamespaceBase):
    """Singleton rotation state carried between distribution runs."""

    __tablename__ = "assignment_cursors"

    name: Mapped[str] = mapped_column(String(80), primary_key=True)
    last_assigned_index: Mapped[int] = mapped_column(Integer, default=NEUTRAL_CURSOR_INDEX, nullable=False)
    last_assigned_agent: Mapped[str | None] = mapped_column(String(320))
    last_assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class DistributionLease(NamespaceBase):
    """Short-lived exclusive marker held while a distribution run is in flight."""

    __tablename__ = "distribution_leases"

    name: Mapped[str] = mapped_column(String(80), primary_key=True)
    owner: Mapped[str | None] = mapped_column(String(80))
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
