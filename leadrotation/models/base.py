"""Shared SQLAlchemy bases and common mixins for registry and namespace models."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp helper."""
    return datetime.now(timezone.utc)


class RegistryBase(DeclarativeBase):
    """Declarative base for the control-plane registry database."""


class NamespaceBase(DeclarativeBase):
    """Declarative base for tables created inside every tenant namespace."""


class AuditMixin:
    """Standard audit fields for mutable records."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
