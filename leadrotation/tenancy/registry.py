"""Tenant registry: namespace resolution, quotas and provisioning."""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from leadrotation.core.exceptions import (
    ContactInUseError,
    QuotaExceededError,
    ServiceError,
    TenantInactiveError,
    TenantNotFoundError,
    ValidationError,
)
from leadrotation.models import Agent, AgentRole, Tenant, TenantContact, TenantStatus
from leadrotation.tenancy.namespace import NamespaceHandle, NamespaceManager

logger = logging.getLogger(__name__)

NAMESPACE_PREFIX = "leads"


def normalize_contact(address: str) -> str:
    """Contact addresses are matched case-insensitively."""
    return (address or "").strip().lower()


def build_namespace_name(display_name: str, tenant_id: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", display_name.lower()).strip("_")[:32] or "tenant"
    return f"{NAMESPACE_PREFIX}_{slug}_{tenant_id[-8:]}"


@dataclass(frozen=True)
class QuotaStatus:
    allowed: bool
    current: int
    limit: int | None
    message: str = ""


class TenantRegistry:
    """Registry of tenants and the namespaces that isolate their data."""

    def __init__(
        self,
        session_factory: sessionmaker,
        namespaces: NamespaceManager,
        default_max_agents: int = 10,
        default_max_admins: int = 2,
    ) -> None:
        self.session_factory = session_factory
        self.namespaces = namespaces
        self.default_max_agents = default_max_agents
        self.default_max_admins = default_max_admins

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    @staticmethod
    def _get_tenant(session: Session, tenant_id: str) -> Tenant:
        tenant = session.scalars(select(Tenant).where(Tenant.tenant_id == tenant_id)).first()
        if tenant is None:
            raise TenantNotFoundError(f"Tenant not found: {tenant_id}")
        return tenant

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def namespace_for(self, tenant: Tenant) -> NamespaceHandle:
        return self.namespaces.get(tenant.namespace)

    def get_tenant(self, tenant_id: str) -> Tenant:
        with self._session() as session:
            return self._get_tenant(session, tenant_id)

    def tenant_for_namespace(self, namespace: str) -> Tenant:
        with self._session() as session:
            tenant = session.scalars(select(Tenant).where(Tenant.namespace == namespace)).first()
            if tenant is None:
                raise TenantNotFoundError(f"No tenant owns namespace: {namespace}")
            return tenant

    def resolve_by_tenant_id(self, tenant_id: str) -> NamespaceHandle:
        """Return the namespace of an active tenant."""
        tenant = self.get_tenant(tenant_id)
        if not tenant.is_active:
            raise TenantInactiveError(f"Tenant is not active: {tenant_id} ({tenant.status.value})")
        return self.namespace_for(tenant)

    def resolve_by_contact_address(self, address: str) -> tuple[NamespaceHandle, Tenant]:
        """Find the active tenant owning a contact address.

        Admin contacts and indexed agent contacts resolve directly; anything
        else falls back to scanning the agents of every active tenant.
        """
        contact = normalize_contact(address)
        if not contact:
            raise ValidationError("Contact address is required.")

        with self._session() as session:
            tenant = session.scalars(
                select(Tenant).where(Tenant.admin_contact == contact, Tenant.status == TenantStatus.ACTIVE)
            ).first()
            if tenant is None:
                tenant = session.scalars(
                    select(Tenant)
                    .join(TenantContact, TenantContact.tenant_id == Tenant.tenant_id)
                    .where(TenantContact.contact_address == contact, Tenant.status == TenantStatus.ACTIVE)
                ).first()

        if tenant is None:
            tenant = self._scan_for_contact(contact)
            if tenant is not None:
                self._index_contact(contact, tenant.tenant_id)

        if tenant is None:
            raise TenantNotFoundError(f"No tenant found for contact: {contact}")
        return self.namespace_for(tenant), tenant

    def _scan_for_contact(self, contact: str) -> Tenant | None:
        for tenant in self.list_active_tenants():
            with self.namespace_for(tenant).session() as ns_session:
                found = ns_session.scalars(select(Agent.id).where(Agent.contact_address == contact)).first()
            if found is not None:
                logger.info(
                    "registry.contact.scan_hit",
                    extra={"event": "registry.contact.scan_hit", "tenant_id": tenant.tenant_id},
                )
                return tenant
        return None

    def _index_contact(self, contact: str, tenant_id: str) -> None:
        with self._session() as session:
            try:
                session.merge(TenantContact(contact_address=contact, tenant_id=tenant_id))
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise

    def is_contact_taken(self, address: str) -> bool:
        contact = normalize_contact(address)
        with self._session() as session:
            if session.scalars(select(Tenant.id).where(Tenant.admin_contact == contact)).first() is not None:
                return True
            if session.get(TenantContact, contact) is not None:
                return True
        return self._scan_for_contact(contact) is not None

    # ------------------------------------------------------------------
    # Listing and status
    # ------------------------------------------------------------------

    def list_active_tenants(self) -> list[Tenant]:
        with self._session() as session:
            return list(
                session.scalars(
                    select(Tenant)
                    .where(Tenant.status == TenantStatus.ACTIVE)
                    .order_by(Tenant.created_at, Tenant.id)
                )
            )

    def list_tenants(self) -> list[Tenant]:
        with self._session() as session:
            return list(session.scalars(select(Tenant).order_by(Tenant.created_at.desc(), Tenant.id.desc())))

    def update_status(self, tenant_id: str, status: TenantStatus | str) -> Tenant:
        new_status = TenantStatus(status)
        with self._session() as session:
            tenant = self._get_tenant(session, tenant_id)
            tenant.status = new_status
            session.commit()
            session.refresh(tenant)
            logger.info(
                "registry.tenant.status_updated",
                extra={"event": "registry.tenant.status_updated", "tenant_id": tenant_id, "status": new_status.value},
            )
            return tenant

    # ------------------------------------------------------------------
    # Quotas and agent creation
    # ------------------------------------------------------------------

    def check_quota(self, tenant_id: str, role: AgentRole | str) -> QuotaStatus:
        """Compare the tenant's agent count for ``role`` with its configured limit.

        A missing or zero limit is unlimited. This is advisory; callers insert
        after checking without a surrounding transaction.
        """
        agent_role = AgentRole(role)
        tenant = self.get_tenant(tenant_id)
        if not tenant.is_active:
            raise TenantInactiveError(f"Tenant is not active: {tenant_id} ({tenant.status.value})")

        limit = tenant.max_admins if agent_role == AgentRole.ADMIN else tenant.max_agents
        limit = limit or None
        with self.namespace_for(tenant).session() as ns_session:
            current = ns_session.scalar(select(func.count(Agent.id)).where(Agent.role == agent_role)) or 0

        allowed = limit is None or current < limit
        message = ""
        if not allowed:
            message = f"You can only create {limit} {agent_role.value} agent(s). Current: {current}."
        return QuotaStatus(allowed=allowed, current=current, limit=limit, message=message)

    def register_agent(
        self,
        tenant_id: str,
        contact_address: str,
        role: AgentRole | str = AgentRole.STANDARD,
        display_name: str | None = None,
        is_verified: bool = False,
        is_online: bool = False,
    ) -> Agent:
        """Create an agent inside a tenant's namespace and index its address."""
        contact = normalize_contact(contact_address)
        if not contact:
            raise ValidationError("Contact address is required.")
        agent_role = AgentRole(role)

        quota = self.check_quota(tenant_id, agent_role)
        if not quota.allowed:
            raise QuotaExceededError(quota.message)
        if self.is_contact_taken(contact):
            raise ContactInUseError(f"Contact address already in use: {contact}")

        handle = self.resolve_by_tenant_id(tenant_id)
        with handle.session() as ns_session:
            agent = Agent(
                contact_address=contact,
                display_name=display_name,
                role=agent_role,
                is_verified=is_verified,
                is_online=is_online,
            )
            ns_session.add(agent)
            try:
                ns_session.commit()
            except SQLAlchemyError:
                ns_session.rollback()
                raise
            ns_session.refresh(agent)

        self._index_contact(contact, tenant_id)
        return agent

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    def provision(
        self,
        display_name: str,
        admin_contact: str | None = None,
        max_agents: int | None = None,
        max_admins: int | None = None,
    ) -> NamespaceHandle:
        """Register a tenant and initialize its namespace.

        The registry record is removed again when namespace initialization fails.
        """
        name = (display_name or "").strip()
        if not name:
            raise ValidationError("Tenant display name is required.")
        admin = normalize_contact(admin_contact) if admin_contact else None
        if admin and self.is_contact_taken(admin):
            raise ContactInUseError(f"Contact address already in use: {admin}")

        tenant_id = f"tnt_{uuid.uuid4().hex[:16]}"
        namespace = build_namespace_name(name, tenant_id)
        with self._session() as session:
            session.add(
                Tenant(
                    tenant_id=tenant_id,
                    display_name=name,
                    namespace=namespace,
                    status=TenantStatus.ACTIVE,
                    admin_contact=admin,
                    max_agents=self.default_max_agents if max_agents is None else max_agents,
                    max_admins=self.default_max_admins if max_admins is None else max_admins,
                )
            )
            try:
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise

        try:
            handle = self.namespaces.create_storage(namespace)
            if admin:
                with handle.session() as ns_session:
                    ns_session.add(Agent(contact_address=admin, display_name=name, role=AgentRole.ADMIN))
                    ns_session.commit()
        except Exception as exc:
            logger.exception(
                "registry.provision.failed",
                extra={"event": "registry.provision.failed", "tenant_id": tenant_id, "namespace": namespace},
            )
            self._delete_tenant_record(tenant_id)
            raise ServiceError(f"Failed to initialize namespace {namespace}") from exc

        if admin:
            self._index_contact(admin, tenant_id)
        logger.info(
            "registry.tenant.provisioned",
            extra={"event": "registry.tenant.provisioned", "tenant_id": tenant_id, "namespace": namespace},
        )
        return handle

    def deprovision(self, tenant_id: str) -> None:
        """Drop the tenant's namespace and registry record. Irreversible."""
        tenant = self.get_tenant(tenant_id)
        self.namespaces.drop_storage(tenant.namespace)
        self._delete_tenant_record(tenant_id)
        logger.warning(
            "registry.tenant.deprovisioned",
            extra={"event": "registry.tenant.deprovisioned", "tenant_id": tenant_id, "namespace": tenant.namespace},
        )

    def _delete_tenant_record(self, tenant_id: str) -> None:
        with self._session() as session:
            try:
                session.query(TenantContact).filter(TenantContact.tenant_id == tenant_id).delete()
                session.query(Tenant).filter(Tenant.tenant_id == tenant_id).delete()
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise
