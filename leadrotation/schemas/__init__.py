"""Pydantic schemas for API contracts."""

from leadrotation.schemas.distribution import (
    CycleReportResponse,
    DistributionResultResponse,
    QuotaResponse,
    SchedulerStatusResponse,
    TenantOutcomeResponse,
)

__all__ = [
    "CycleReportResponse",
    "DistributionResultResponse",
    "QuotaResponse",
    "SchedulerStatusResponse",
    "TenantOutcomeResponse",
]
