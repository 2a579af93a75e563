"""Canonical enum values for registry and namespace records."""

from __future__ import annotations

import enum


class TenantStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class AgentRole(str, enum.Enum):
    ADMIN = "admin"
    STANDARD = "standard"


class LeadStatus(str, enum.Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    QUALIFIED = "Qualified"
    DISQUALIFIED = "Disqualified"


class DistributionStatus(str, enum.Enum):
    ASSIGNED = "assigned"
    NO_AGENTS = "no_agents"
    NO_LEADS = "no_leads"
    LOCKED = "locked"
