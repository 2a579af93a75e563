"""Operational endpoints for lead distribution."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from leadrotation.core.exceptions import TenantInactiveError, TenantNotFoundError
from leadrotation.models import AgentRole
from leadrotation.scheduling.trigger import ScheduleTrigger
from leadrotation.schemas.distribution import CycleReportResponse, QuotaResponse, SchedulerStatusResponse

router = APIRouter(tags=["distribution"])

_trigger: ScheduleTrigger | None = None


def set_trigger(trigger: ScheduleTrigger | None) -> None:
    global _trigger
    _trigger = trigger


def get_trigger() -> ScheduleTrigger | None:
    return _trigger


def _require_trigger(trigger: ScheduleTrigger | None) -> ScheduleTrigger:
    if trigger is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Scheduler is disabled.")
    return trigger


@router.post("/distribution/run", response_model=CycleReportResponse)
def run_distribution(trigger: ScheduleTrigger | None = Depends(get_trigger)) -> CycleReportResponse:
    report = _require_trigger(trigger).run_manually()
    return CycleReportResponse.model_validate(report.to_dict())


@router.get("/distribution/status", response_model=SchedulerStatusResponse)
def distribution_status(trigger: ScheduleTrigger | None = Depends(get_trigger)) -> SchedulerStatusResponse:
    if trigger is None:
        return SchedulerStatusResponse(enabled=False, running=False)
    last = trigger.last_report
    return SchedulerStatusResponse(
        enabled=True,
        running=trigger.running,
        interval_minutes=trigger.interval_minutes,
        window=trigger.window.describe(),
        last_report=CycleReportResponse.model_validate(last.to_dict()) if last is not None else None,
    )


@router.get("/tenants/{tenant_id}/quota", response_model=QuotaResponse)
def tenant_quota(
    tenant_id: str,
    role: AgentRole = Query(default=AgentRole.STANDARD),
    trigger: ScheduleTrigger | None = Depends(get_trigger),
) -> QuotaResponse:
    registry = _require_trigger(trigger).registry
    try:
        quota = registry.check_quota(tenant_id, role)
    except TenantNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except TenantInactiveError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return QuotaResponse(
        tenant_id=tenant_id,
        role=role.value,
        allowed=quota.allowed,
        current=quota.current,
        limit=quota.limit,
        message=quota.message,
    )
