"""Response schemas for the distribution operations API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class DistributionResultResponse(BaseModel):
    tenant_id: str | None = None
    namespace: str
    status: str
    eligible_agents: int = 0
    unassigned_leads: int = 0
    batch_size: int = 0
    assigned: int = 0
    skipped: int = 0
    cursor_index: int | None = None
    cursor_agent: str | None = None


class TenantOutcomeResponse(BaseModel):
    tenant_id: str
    namespace: str
    status: str
    result: DistributionResultResponse | None = None
    error: str | None = None


class CycleReportResponse(BaseModel):
    run_id: str
    trigger: str
    started_at: datetime
    finished_at: datetime | None = None
    status: str
    error: str | None = None
    assigned: int = 0
    failed: int = 0
    tenants: list[TenantOutcomeResponse] = Field(default_factory=list)


class SchedulerStatusResponse(BaseModel):
    enabled: bool
    running: bool
    interval_minutes: int | None = None
    window: str | None = None
    last_report: CycleReportResponse | None = None


class QuotaResponse(BaseModel):
    tenant_id: str
    role: str
    allowed: bool
    current: int
    limit: int | None = None
    message: str = ""
