"""Periodic trigger and active-window handling for lead distribution."""

from leadrotation.scheduling.trigger import CycleReport, ScheduleTrigger, TenantOutcome
from leadrotation.scheduling.window import ActiveWindow

__all__ = ["ActiveWindow", "CycleReport", "ScheduleTrigger", "TenantOutcome"]
