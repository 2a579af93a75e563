from __future__ import annotations

import time
import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from leadrotation.distribution.engine import DistributionResult
from leadrotation.models import DistributionStatus, Tenant
from leadrotation.scheduling.trigger import ScheduleTrigger
from leadrotation.scheduling.window import ActiveWindow


class _FakeRegistry:
    def __init__(self, tenant_ids=(), fail: bool = False) -> None:
        self.tenants = [Tenant(tenant_id=tid, namespace=f"leads_{tid}", display_name=tid) for tid in tenant_ids]
        self.fail = fail

    def list_active_tenants(self):
        if self.fail:
            raise RuntimeError("registry unavailable")
        return list(self.tenants)

    def namespace_for(self, tenant):
        return SimpleNamespace(name=tenant.namespace)


class _FakeEngine:
    def __init__(self, failing=(), slow=()) -> None:
        self.failing = set(failing)
        self.slow = set(slow)
        self.calls: list[str] = []

    def distribute(self, handle, tenant_id=None, deadline=None):
        self.calls.append(tenant_id)
        if tenant_id in self.failing:
            raise RuntimeError(f"storage error for {tenant_id}")
        if tenant_id in self.slow:
            time.sleep(0.5)
        return DistributionResult(
            tenant_id=tenant_id,
            namespace=handle.name,
            status=DistributionStatus.ASSIGNED,
            assigned=2,
        )


def _trigger(registry, engine, clock=None, timeout=None, window=("09:00", "18:00")):
    return ScheduleTrigger(
        registry=registry,
        engine=engine,
        window=ActiveWindow.parse(*window, "UTC"),
        interval_minutes=15,
        tenant_timeout_seconds=timeout,
        clock=clock or (lambda: datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)),
    )


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_cycle_runs_every_active_tenant_in_order():
    engine = _FakeEngine()
    report = _trigger(_FakeRegistry(["t1", "t2", "t3"]), engine).run_cycle()

    assert engine.calls == ["t1", "t2", "t3"]
    assert report.status == "completed"
    assert report.assigned == 6
    assert [outcome.status for outcome in report.tenants] == ["assigned"] * 3


def test_tenant_failure_does_not_stop_the_cycle():
    engine = _FakeEngine(failing={"t2"})
    report = _trigger(_FakeRegistry(["t1", "t2", "t3"]), engine).run_cycle()

    assert engine.calls == ["t1", "t2", "t3"]
    assert [outcome.status for outcome in report.tenants] == ["assigned", "failed", "assigned"]
    assert "storage error" in report.tenants[1].error
    assert report.failed == 1


def test_registry_failure_skips_the_firing():
    engine = _FakeEngine()
    trigger = _trigger(_FakeRegistry(fail=True), engine)

    report = trigger.run_cycle()

    assert report.status == "skipped"
    assert "registry unavailable" in report.error
    assert engine.calls == []
    assert trigger.last_report is report


def test_slow_tenant_times_out_and_loop_continues():
    engine = _FakeEngine(slow={"t1"})
    report = _trigger(_FakeRegistry(["t1", "t2"]), engine, timeout=0.05).run_cycle()

    assert [outcome.status for outcome in report.tenants] == ["timed_out", "assigned"]
    assert report.failed == 1


def test_manual_run_ignores_window():
    engine = _FakeEngine()
    night = lambda: datetime(2026, 3, 2, 23, 0, tzinfo=timezone.utc)  # noqa: E731
    report = _trigger(_FakeRegistry(["t1"]), engine, clock=night).run_manually()

    assert report.trigger == "manual"
    assert engine.calls == ["t1"]


def test_seconds_until_next_tick_aligns_to_interval():
    trigger = _trigger(_FakeRegistry(), _FakeEngine())

    assert trigger.seconds_until_next_tick(datetime(2026, 3, 2, 9, 7, tzinfo=timezone.utc)) == 480
    assert trigger.seconds_until_next_tick(datetime(2026, 3, 2, 9, 15, tzinfo=timezone.utc)) == 900


def test_start_runs_immediately_and_only_once():
    engine = _FakeEngine()
    trigger = _trigger(_FakeRegistry(["t1"]), engine)

    assert trigger.start() is True
    assert trigger.start() is False
    try:
        assert _wait_for(lambda: trigger.last_report is not None)
        assert trigger.last_report.trigger == "startup"
        assert engine.calls == ["t1"]
    finally:
        trigger.stop()
    assert trigger.running is False


def test_ticks_outside_window_are_suppressed(monkeypatch):
    engine = _FakeEngine()
    evening = lambda: datetime(2026, 3, 2, 20, 0, tzinfo=timezone.utc)  # noqa: E731
    trigger = _trigger(_FakeRegistry(["t1"]), engine, clock=evening)
    monkeypatch.setattr(trigger, "seconds_until_next_tick", lambda now=None: 0.01)

    trigger.start()
    time.sleep(0.2)
    trigger.stop()

    # Only the startup firing ran.
    assert engine.calls == ["t1"]


def test_ticks_inside_window_fire_cycles(monkeypatch):
    engine = _FakeEngine()
    moments = itertools.count()
    base = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
    # Every clock read lands on a later boundary.
    clock = lambda: base + timedelta(minutes=15 * next(moments))  # noqa: E731
    trigger = _trigger(_FakeRegistry(["t1"]), engine, clock=clock, window=("00:00", "00:00"))
    monkeypatch.setattr(trigger, "seconds_until_next_tick", lambda now=None: 0.01)

    trigger.start()
    assert _wait_for(lambda: len(engine.calls) >= 3)
    trigger.stop()

    assert trigger.last_report.trigger == "scheduled"


def test_tick_slot_groups_early_and_late_wakes():
    trigger = _trigger(_FakeRegistry(), _FakeEngine())

    early = trigger.tick_slot(datetime(2026, 3, 2, 9, 14, 59, 990000, tzinfo=timezone.utc))
    on_time = trigger.tick_slot(datetime(2026, 3, 2, 9, 15, 0, 5000, tzinfo=timezone.utc))
    next_one = trigger.tick_slot(datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc))

    assert early == on_time
    assert next_one == on_time + 1


def test_repeated_wakes_for_one_boundary_fire_once(monkeypatch):
    engine = _FakeEngine()
    trigger = _trigger(_FakeRegistry(["t1"]), engine)
    monkeypatch.setattr(trigger, "seconds_until_next_tick", lambda now=None: 0.01)

    trigger.start()
    time.sleep(0.2)
    trigger.stop()

    # Startup plus a single scheduled firing for the 10:00 boundary.
    assert engine.calls == ["t1", "t1"]
    assert trigger.last_report.trigger == "scheduled"
