"""Tenant registry and per-tenant storage namespaces."""

from leadrotation.tenancy.namespace import NamespaceHandle, NamespaceManager
from leadrotation.tenancy.registry import QuotaStatus, TenantRegistry, normalize_contact

__all__ = [
    "NamespaceHandle",
    "NamespaceManager",
    "QuotaStatus",
    "TenantRegistry",
    "normalize_contact",
]
