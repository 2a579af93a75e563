"""Custom exceptions for the lead rotation scheduler."""


class LeadRotationError(Exception):
    """Base exception for the lead rotation scheduler."""

    pass


class ValidationError(LeadRotationError):
    """Raised when validation fails."""

    pass


class NotFoundError(LeadRotationError):
    """Raised when a resource is not found."""

    pass


class TenantNotFoundError(NotFoundError):
    """Raised when no tenant matches an id or contact address."""

    pass


class TenantInactiveError(LeadRotationError):
    """Raised when a tenant exists but is not in the active state."""

    pass


class ContactInUseError(ValidationError):
    """Raised when a contact address is already registered to some tenant."""

    pass


class QuotaExceededError(LeadRotationError):
    """Raised when an agent creation would exceed the tenant's quota."""

    pass


class ServiceError(LeadRotationError):
    """Raised when a service operation fails."""

    pass


class DistributionTimeoutError(ServiceError):
    """Raised when a tenant's distribution run exceeds its deadline."""

    pass


class ConfigurationError(LeadRotationError):
    """Raised when configuration is invalid."""

    pass
