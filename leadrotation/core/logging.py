"""Structured logging helpers for scheduler and distribution runs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Normalized context fields expected in structured logs."""

    tenant_id: str | None = None
    namespace: str | None = None
    run_id: str | None = None
    trigger: str | None = None


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "tenant_id": context.tenant_id,
        "namespace": context.namespace,
        "run_id": context.run_id,
        "trigger": context.trigger,
    }
    payload.update(fields)
    return payload
