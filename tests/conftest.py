from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from leadrotation.models import (
    LEAD_ASSIGNMENT_CURSOR,
    Agent,
    AgentRole,
    AssignmentCursor,
    Lead,
    RegistryBase,
)
from leadrotation.tenancy.namespace import NamespaceManager
from leadrotation.tenancy.registry import TenantRegistry

_LEAD_EPOCH = datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def registry_session_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'registry.db'}")
    RegistryBase.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def namespaces(tmp_path):
    manager = NamespaceManager(f"sqlite:///{tmp_path / 'namespaces'}/{{namespace}}.db")
    yield manager
    manager.dispose_all()


@pytest.fixture
def registry(registry_session_factory, namespaces):
    return TenantRegistry(
        session_factory=registry_session_factory,
        namespaces=namespaces,
        default_max_agents=10,
        default_max_admins=2,
    )


@pytest.fixture
def ns_handle(namespaces):
    return namespaces.create_storage("leads_test_tenant")


@pytest.fixture
def add_agents():
    def _add(handle, *addresses, online=True, verified=True, role=AgentRole.STANDARD):
        with handle.session() as session:
            for address in addresses:
                session.add(Agent(contact_address=address, role=role, is_online=online, is_verified=verified))
            session.commit()

    return _add


@pytest.fixture
def add_leads():
    def _add(handle, count, assigned_to=None):
        with handle.session() as session:
            existing = session.scalar(select(func.count(Lead.id))) or 0
            leads = [
                Lead(
                    name=f"Lead {existing + offset}",
                    source="test",
                    assigned_to=assigned_to,
                    created_at=_LEAD_EPOCH + timedelta(minutes=existing + offset),
                )
                for offset in range(count)
            ]
            session.add_all(leads)
            session.commit()
            return [lead.id for lead in leads]

    return _add


@pytest.fixture
def assignments():
    def _read(handle, lead_ids=None):
        with handle.session() as session:
            query = select(Lead.id, Lead.assigned_to).order_by(Lead.id)
            if lead_ids is not None:
                query = query.where(Lead.id.in_(lead_ids))
            return [assigned_to for _, assigned_to in session.execute(query)]

    return _read


@pytest.fixture
def cursor_state():
    def _read(handle):
        with handle.session() as session:
            cursor = session.get(AssignmentCursor, LEAD_ASSIGNMENT_CURSOR)
            if cursor is None:
                return None
            return (
                cursor.last_assigned_index,
                cursor.last_assigned_agent,
                cursor.last_assigned_at,
                cursor.created_at,
            )

    return _read
