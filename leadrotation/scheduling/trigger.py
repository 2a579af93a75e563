"""Schedule trigger: periodic fan-out of distribution runs across tenants."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from leadrotation.core.exceptions import DistributionTimeoutError
from leadrotation.core.logging import LogContext, build_log_event
from leadrotation.distribution.engine import DistributionEngine, DistributionResult
from leadrotation.models import Tenant
from leadrotation.models.base import utcnow
from leadrotation.scheduling.window import ActiveWindow
from leadrotation.tenancy.registry import TenantRegistry

logger = logging.getLogger(__name__)


@dataclass
class TenantOutcome:
    tenant_id: str
    namespace: str
    status: str
    result: DistributionResult | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "namespace": self.namespace,
            "status": self.status,
            "result": self.result.to_dict() if self.result is not None else None,
            "error": self.error,
        }


@dataclass
class CycleReport:
    run_id: str
    trigger: str
    started_at: datetime
    finished_at: datetime | None = None
    status: str = "completed"
    error: str | None = None
    tenants: list[TenantOutcome] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.tenants if outcome.status in {"failed", "timed_out"})

    @property
    def assigned(self) -> int:
        return sum(outcome.result.assigned for outcome in self.tenants if outcome.result is not None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "trigger": self.trigger,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "status": self.status,
            "error": self.error,
            "assigned": self.assigned,
            "failed": self.failed,
            "tenants": [outcome.to_dict() for outcome in self.tenants],
        }


class ScheduleTrigger:
    """Owns the wall-clock cadence for lead distribution.

    ``start()`` runs one cycle immediately, then fires on wall-clock multiples
    of ``interval_minutes`` while the active window is open. Tenants run one
    after another; a failing or slow tenant is logged and skipped.
    """

    def __init__(
        self,
        registry: TenantRegistry,
        engine: DistributionEngine,
        window: ActiveWindow,
        interval_minutes: int = 15,
        tenant_timeout_seconds: float | None = 120.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.registry = registry
        self.engine = engine
        self.window = window
        self.interval_minutes = interval_minutes
        self.tenant_timeout_seconds = tenant_timeout_seconds
        self.clock = clock
        self.last_report: CycleReport | None = None
        self._started = False
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def started(self) -> bool:
        return self._started

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """Start the background loop; returns False if it was already started."""
        with self._state_lock:
            if self._started:
                logger.warning("scheduler.start.ignored", extra={"event": "scheduler.start.ignored"})
                return False
            self._started = True
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._loop, name="lead-distribution-trigger", daemon=True)
            self._thread.start()

        logger.info(
            "scheduler.started",
            extra={
                "event": "scheduler.started",
                "interval_minutes": self.interval_minutes,
                "window": self.window.describe(),
            },
        )
        return True

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("scheduler.stopped", extra={"event": "scheduler.stopped"})

    def join(self) -> None:
        """Block until the loop exits (foreground mode)."""
        while self.running:
            self._thread.join(1.0)

    def seconds_until_next_tick(self, now: datetime | None = None) -> float:
        interval = self.interval_minutes * 60
        moment = (now or self.clock()).timestamp()
        return interval - (moment % interval)

    def run_manually(self) -> CycleReport:
        """Run one cycle now, ignoring the cadence and the active window."""
        logger.info("scheduler.manual.triggered", extra={"event": "scheduler.manual.triggered"})
        return self.run_cycle(trigger="manual")

    def run_cycle(self, trigger: str = "scheduled") -> CycleReport:
        run_id = uuid.uuid4().hex
        context = LogContext(run_id=run_id, trigger=trigger)
        report = CycleReport(run_id=run_id, trigger=trigger, started_at=self.clock())
        logger.info("scheduler.cycle.started", extra=build_log_event("scheduler.cycle.started", context))

        try:
            tenants = self.registry.list_active_tenants()
        except Exception as exc:
            logger.exception(
                "scheduler.cycle.skipped",
                extra=build_log_event("scheduler.cycle.skipped", context, error=str(exc)),
            )
            report.status = "skipped"
            report.error = str(exc)
            report.finished_at = self.clock()
            self.last_report = report
            return report

        for tenant in tenants:
            report.tenants.append(self._run_tenant(tenant, run_id, trigger))

        report.finished_at = self.clock()
        self.last_report = report
        logger.info(
            "scheduler.cycle.completed",
            extra=build_log_event(
                "scheduler.cycle.completed",
                context,
                tenant_count=len(report.tenants),
                assigned=report.assigned,
                failed=report.failed,
            ),
        )
        return report

    def _run_tenant(self, tenant: Tenant, run_id: str, trigger: str) -> TenantOutcome:
        context = LogContext(tenant_id=tenant.tenant_id, namespace=tenant.namespace, run_id=run_id, trigger=trigger)
        try:
            result = self._distribute_with_deadline(tenant)
        except DistributionTimeoutError as exc:
            logger.error(
                "distribution.tenant.timed_out",
                extra=build_log_event("distribution.tenant.timed_out", context, error=str(exc)),
            )
            return TenantOutcome(tenant.tenant_id, tenant.namespace, status="timed_out", error=str(exc))
        except Exception as exc:
            logger.exception(
                "distribution.tenant.failed",
                extra=build_log_event("distribution.tenant.failed", context, error=str(exc)),
            )
            return TenantOutcome(tenant.tenant_id, tenant.namespace, status="failed", error=str(exc))
        return TenantOutcome(tenant.tenant_id, tenant.namespace, status=result.status.value, result=result)

    def _distribute_with_deadline(self, tenant: Tenant) -> DistributionResult:
        handle = self.registry.namespace_for(tenant)
        timeout = self.tenant_timeout_seconds
        if not timeout:
            return self.engine.distribute(handle, tenant.tenant_id)

        deadline = time.monotonic() + timeout
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"distribute-{tenant.tenant_id}")
        try:
            future = executor.submit(self.engine.distribute, handle, tenant.tenant_id, deadline)
            try:
                return future.result(timeout=timeout)
            except FutureTimeoutError as exc:
                raise DistributionTimeoutError(
                    f"Tenant {tenant.tenant_id} exceeded {timeout:g}s distribution deadline"
                ) from exc
        finally:
            # A stuck worker is abandoned; its own deadline check stops further writes.
            executor.shutdown(wait=False)

    def _fire(self, trigger: str) -> None:
        try:
            self.run_cycle(trigger=trigger)
        except Exception:
            logger.exception("scheduler.cycle.crashed", extra={"event": "scheduler.cycle.crashed", "trigger": trigger})

    def tick_slot(self, now: datetime) -> int:
        """Index of the interval boundary nearest to ``now``."""
        return round(now.timestamp() / (self.interval_minutes * 60))

    def _loop(self) -> None:
        self._fire("startup")
        last_slot: int | None = None
        while not self._stop_event.wait(self.seconds_until_next_tick()):
            now = self.clock()
            slot = self.tick_slot(now)
            if slot == last_slot:
                # Woke again for a boundary that already fired.
                continue
            last_slot = slot
            if not self.window.contains(now):
                logger.info(
                    "scheduler.tick.suppressed",
                    extra={"event": "scheduler.tick.suppressed", "window": self.window.describe()},
                )
                continue
            self._fire("scheduled")
