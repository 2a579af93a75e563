from __future__ import annotations

from datetime import datetime, timezone

import pytest

import leadrotation.tasks.distribution_tasks as tasks_module
from leadrotation.core.exceptions import TenantNotFoundError
from leadrotation.distribution.engine import DistributionEngine
from leadrotation.scheduling.trigger import ScheduleTrigger
from leadrotation.scheduling.window import ActiveWindow


def _trigger(registry):
    return ScheduleTrigger(
        registry=registry,
        engine=DistributionEngine(),
        window=ActiveWindow.parse("09:00", "18:00", "UTC"),
        tenant_timeout_seconds=None,
        clock=lambda: datetime(2026, 3, 2, 23, 0, tzinfo=timezone.utc),
    )


def test_distribute_task_runs_a_manual_cycle(monkeypatch, registry, add_agents, add_leads):
    handle = registry.provision("Queue Realty")
    add_agents(handle, "a@queue.example")
    add_leads(handle, 2)
    monkeypatch.setattr(tasks_module, "create_registry_schema", lambda: None)
    monkeypatch.setattr(tasks_module, "build_trigger", lambda: _trigger(registry))

    result = tasks_module.distribute_leads_task.run()

    assert result["trigger"] == "manual"
    assert result["assigned"] == 2
    assert result["tenants"][0]["status"] == "assigned"


def test_distribute_tenant_task_targets_one_tenant(monkeypatch, registry, add_agents, add_leads, assignments):
    first = registry.provision("First Realty")
    second = registry.provision("Second Realty")
    add_agents(first, "a@first.example")
    add_agents(second, "a@second.example")
    add_leads(first, 1)
    add_leads(second, 1)
    tenant_id = registry.tenant_for_namespace(second.name).tenant_id
    monkeypatch.setattr(tasks_module, "build_registry", lambda: registry)
    monkeypatch.setattr(tasks_module, "build_trigger", lambda registry: _trigger(registry))

    result = tasks_module.distribute_tenant_task.run(tenant_id)

    assert result["status"] == "assigned"
    assert result["tenant_id"] == tenant_id
    assert assignments(first) == [None]
    assert assignments(second) == ["a@second.example"]


@pytest.fixture
def dispose_calls(monkeypatch, registry):
    calls = []
    original = registry.namespaces.dispose_all

    def _dispose_all():
        calls.append(True)
        original()

    monkeypatch.setattr(registry.namespaces, "dispose_all", _dispose_all)
    return calls


def test_distribute_task_disposes_namespace_engines(monkeypatch, registry, dispose_calls):
    registry.provision("Dispose Realty")
    monkeypatch.setattr(tasks_module, "create_registry_schema", lambda: None)
    monkeypatch.setattr(tasks_module, "build_trigger", lambda: _trigger(registry))

    tasks_module.distribute_leads_task.run()

    assert dispose_calls == [True]
    assert registry.namespaces._handles == {}


def test_distribute_tenant_task_disposes_engines_on_failure(monkeypatch, registry, dispose_calls):
    monkeypatch.setattr(tasks_module, "build_registry", lambda: registry)
    monkeypatch.setattr(tasks_module, "build_trigger", lambda registry: _trigger(registry))

    with pytest.raises(TenantNotFoundError):
        tasks_module.distribute_tenant_task.run("tnt_missing")

    assert dispose_calls == [True]
