"""Distribution engine: fair rotation of unassigned leads for one tenant."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import or_, select, update

from leadrotation.core.exceptions import DistributionTimeoutError, ServiceError
from leadrotation.core.logging import LogContext, build_log_event
from leadrotation.distribution.lease import NamespaceLease
from leadrotation.distribution.planner import MAX_BATCH_SIZE, plan_distribution
from leadrotation.models import (
    LEAD_ASSIGNMENT_CURSOR,
    NEUTRAL_CURSOR_INDEX,
    Agent,
    AssignmentCursor,
    DistributionStatus,
    Lead,
)
from leadrotation.models.base import utcnow
from leadrotation.tenancy.namespace import NamespaceHandle

logger = logging.getLogger(__name__)

_UNASSIGNED = or_(Lead.assigned_to.is_(None), Lead.assigned_to == "")


@dataclass
class DistributionResult:
    tenant_id: str | None
    namespace: str
    status: DistributionStatus
    eligible_agents: int = 0
    unassigned_leads: int = 0
    batch_size: int = 0
    assigned: int = 0
    skipped: int = 0
    cursor_index: int | None = None
    cursor_agent: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["status"] = self.status.value
        return payload


class DistributionEngine:
    """Assigns a tenant's unassigned leads to its online, verified agents.

    Rotation state lives in the namespace's cursor record, so consecutive runs
    continue where the previous one stopped. Every lead write is committed on
    its own; an interrupted run leaves a smaller backlog for the next one.
    """

    def __init__(
        self,
        max_batch_size: int = MAX_BATCH_SIZE,
        lease_seconds: int = 300,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.max_batch_size = max_batch_size
        self.lease_seconds = lease_seconds
        self.clock = clock

    def distribute(
        self,
        handle: NamespaceHandle,
        tenant_id: str | None = None,
        deadline: float | None = None,
    ) -> DistributionResult:
        """Run one distribution pass for the namespace.

        ``deadline`` is a ``time.monotonic()`` value; the walk stops with
        ``DistributionTimeoutError`` once it passes.
        """
        context = LogContext(tenant_id=tenant_id, namespace=handle.name)
        lease = NamespaceLease(handle, ttl_seconds=self.lease_seconds, clock=self.clock)
        if not lease.acquire():
            logger.warning(
                "distribution.tenant.locked",
                extra=build_log_event("distribution.tenant.locked", context),
            )
            return DistributionResult(tenant_id=tenant_id, namespace=handle.name, status=DistributionStatus.LOCKED)

        try:
            result = self._distribute(handle, tenant_id, deadline)
        finally:
            lease.release()

        logger.info(
            "distribution.tenant.completed",
            extra=build_log_event("distribution.tenant.completed", context, **result.to_dict()),
        )
        return result

    def _distribute(self, handle: NamespaceHandle, tenant_id: str | None, deadline: float | None) -> DistributionResult:
        with handle.session() as session:
            agents = list(
                session.scalars(
                    select(Agent.contact_address)
                    .where(Agent.is_online.is_(True), Agent.is_verified.is_(True))
                    .order_by(Agent.contact_address.asc())
                )
            )
            if not agents:
                return DistributionResult(tenant_id=tenant_id, namespace=handle.name, status=DistributionStatus.NO_AGENTS)

            lead_ids = list(session.scalars(select(Lead.id).where(_UNASSIGNED).order_by(Lead.created_at, Lead.id)))
            if not lead_ids:
                return DistributionResult(
                    tenant_id=tenant_id,
                    namespace=handle.name,
                    status=DistributionStatus.NO_LEADS,
                    eligible_agents=len(agents),
                )

            cursor = session.get(AssignmentCursor, LEAD_ASSIGNMENT_CURSOR)
            last_index = cursor.last_assigned_index if cursor is not None else NEUTRAL_CURSOR_INDEX
            last_agent = cursor.last_assigned_agent if cursor is not None else None

            plan = plan_distribution(agents, lead_ids, last_index, last_agent, self.max_batch_size)
            if plan is None:
                raise ServiceError(f"No distribution plan for {handle.name} despite agents and leads")

            assigned = 0
            skipped = 0
            for lead_id, agent in plan.assignments:
                if deadline is not None and time.monotonic() > deadline:
                    raise DistributionTimeoutError(
                        f"Distribution for {handle.name} passed its deadline after {assigned} assignments"
                    )
                # Leads assigned elsewhere since the read keep their assignment.
                written = session.execute(
                    update(Lead)
                    .where(Lead.id == lead_id, _UNASSIGNED)
                    .values(assigned_to=agent, assigned_at=self.clock())
                )
                session.commit()
                if written.rowcount == 1:
                    assigned += 1
                else:
                    skipped += 1

            if cursor is None:
                cursor = AssignmentCursor(name=LEAD_ASSIGNMENT_CURSOR)
                session.add(cursor)
            cursor.last_assigned_index = plan.final_index
            cursor.last_assigned_agent = plan.final_agent
            cursor.last_assigned_at = self.clock()
            session.commit()

            return DistributionResult(
                tenant_id=tenant_id,
                namespace=handle.name,
                status=DistributionStatus.ASSIGNED,
                eligible_agents=len(agents),
                unassigned_leads=len(lead_ids),
                batch_size=plan.batch_size,
                assigned=assigned,
                skipped=skipped,
                cursor_index=plan.final_index,
                cursor_agent=plan.final_agent,
            )
