"""SQLAlchemy models for the registry database and tenant namespaces."""

from leadrotation.models.agent import Agent
from leadrotation.models.base import NamespaceBase, RegistryBase
from leadrotation.models.cursor import (
    LEAD_ASSIGNMENT_CURSOR,
    NEUTRAL_CURSOR_INDEX,
    AssignmentCursor,
    DistributionLease,
)
from leadrotation.models.enums import AgentRole, DistributionStatus, LeadStatus, TenantStatus
from leadrotation.models.lead import Lead
from leadrotation.models.tenant import Tenant, TenantContact

__all__ = [
    "Agent",
    "AgentRole",
    "AssignmentCursor",
    "DistributionLease",
    "DistributionStatus",
    "LEAD_ASSIGNMENT_CURSOR",
    "Lead",
    "LeadStatus",
    "NEUTRAL_CURSOR_INDEX",
    "NamespaceBase",
    "RegistryBase",
    "Tenant",
    "TenantContact",
    "TenantStatus",
]
