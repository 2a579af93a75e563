"""Queue entry points for manual distribution runs."""

from __future__ import annotations

import logging
from typing import Any

from leadrotation.core.startup import build_registry, build_trigger
from leadrotation.database.db import create_registry_schema
from leadrotation.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

@celery_app.task(name="leads.distribute")
def distribute_leads_task() -> dict[str, Any]:
    """Run one cycle over all active tenants, bypassing cadence and window."""
    create_registry_schema()
    trigger = build_trigger()
    try:
        report = trigger.run_manually()
    finally:
        trigger.registry.namespaces.dispose_all()
    return report.to_dict()


@celery_app.task(name="leads.distribute_tenant")
def distribute_tenant_task(tenant_id: str) -> dict[str, Any]:
    """Run the engine for a single active tenant."""
    registry = build_registry()
    try:
        trigger = build_trigger(registry=registry)
        handle = registry.resolve_by_tenant_id(tenant_id)
        result = trigger.engine.distribute(handle, tenant_id)
    finally:
        registry.namespaces.dispose_all()
    logger.info(
        "task.distribute_tenant.finished",
        extra={"event": "task.distribute_tenant.finished", "tenant_id": tenant_id, "status": result.status.value},
    )
    return result.to_dict()
