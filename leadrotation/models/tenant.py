"""Registry models: tenants and the contact address index."""

from __future__ import annotations

from sqlalchemy import Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from leadrotation.models.base import AuditMixin, RegistryBase
from leadrotation.models.enums import TenantStatus


class Tenant(RegistryBase, AuditMixin):
    __tablename__ = "tenants"
    __table_args__ = (Index("idx_tenants_status", "status"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    namespace: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    status: Mapped[TenantStatus] = mapped_column(Enum(TenantStatus), default=TenantStatus.ACTIVE, nullable=False)
    admin_contact: Mapped[str | None] = mapped_column(String(320), unique=True)
    max_agents: Mapped[int | None] = mapped_column(Integer)
    max_admins: Mapped[int | None] = mapped_column(Integer)

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE


class TenantContact(RegistryBase):
    """Maps an agent contact address to the tenant whose namespace holds it."""

    __tablename__ = "tenant_contacts"

    contact_address: Mapped[str] = mapped_column(String(320), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False, index=True
    )
