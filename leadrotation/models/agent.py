"""Namespace-scoped agent model."""

from __future__ import annotations

from sqlalchemy import Boolean, Enum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from leadrotation.models.base import AuditMixin, NamespaceBase
from leadrotation.models.enums import AgentRole


class Agent(NamespaceBase, AuditMixin):
    __tablename__ = "agents"
    __table_args__ = (
        Index("idx_agents_eligibility", "is_online", "is_verified"),
        Index("idx_agents_role", "role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    contact_address: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[AgentRole] = mapped_column(Enum(AgentRole), default=AgentRole.STANDARD, nullable=False)
    is_online: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
