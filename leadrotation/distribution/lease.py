"""Exclusive per-namespace lease around a distribution run."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError

from leadrotation.models import LEAD_ASSIGNMENT_CURSOR, DistributionLease
from leadrotation.models.base import utcnow
from leadrotation.tenancy.namespace import NamespaceHandle

logger = logging.getLogger(__name__)


class NamespaceLease:
    """Conditional-update lease stored in the namespace's ``distribution_leases`` table.

    Only one holder can own the lease until it is released or ``ttl_seconds``
    pass, which covers a crashed holder.
    """

    def __init__(
        self,
        handle: NamespaceHandle,
        ttl_seconds: int = 300,
        name: str = LEAD_ASSIGNMENT_CURSOR,
        owner: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.handle = handle
        self.ttl_seconds = ttl_seconds
        self.name = name
        self.owner = owner or uuid.uuid4().hex
        self.clock = clock
        self.held = False

    def acquire(self) -> bool:
        now = self.clock()
        expires_at = now + timedelta(seconds=self.ttl_seconds)
        with self.handle.session() as session:
            try:
                result = session.execute(
                    update(DistributionLease)
                    .where(DistributionLease.name == self.name)
                    .where(or_(DistributionLease.expires_at.is_(None), DistributionLease.expires_at < now))
                    .values(owner=self.owner, expires_at=expires_at)
                )
                if result.rowcount == 1:
                    session.commit()
                    self.held = True
                    return True
                if session.get(DistributionLease, self.name) is None:
                    session.add(DistributionLease(name=self.name, owner=self.owner, expires_at=expires_at))
                    session.commit()
                    self.held = True
                    return True
                session.rollback()
            except IntegrityError:
                # Another holder inserted the row first.
                session.rollback()
        return False

    def release(self) -> None:
        if not self.held:
            return
        with self.handle.session() as session:
            session.execute(
                update(DistributionLease)
                .where(DistributionLease.name == self.name, DistributionLease.owner == self.owner)
                .values(owner=None, expires_at=None)
            )
            session.commit()
        self.held = False
        logger.debug(
            "distribution.lease.released",
            extra={"event": "distribution.lease.released", "namespace": self.handle.name},
        )
