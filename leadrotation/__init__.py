"""Multi-tenant lead distribution scheduler."""

__version__ = "1.0.0"
