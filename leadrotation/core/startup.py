"""Startup validation and scheduler bootstrap helpers."""

from __future__ import annotations

import logging

from leadrotation.core.config import Config, get_config
from leadrotation.core.logging_config import configure_logging
from leadrotation.database.db import (
    create_registry_schema,
    get_active_database_url,
    get_session_factory,
    verify_database_connection,
)
from leadrotation.distribution.engine import DistributionEngine
from leadrotation.scheduling.trigger import ScheduleTrigger
from leadrotation.scheduling.window import ActiveWindow
from leadrotation.tenancy.namespace import NamespaceManager
from leadrotation.tenancy.registry import TenantRegistry

logger = logging.getLogger(__name__)


def validate_startup_config() -> bool:
    """Check registry connectivity; returns False when storage is unavailable."""
    config = get_config()
    database_ok = verify_database_connection()
    active_database_url = get_active_database_url()
    if not database_ok and config.DB_CONNECTIVITY_REQUIRED:
        raise RuntimeError("Database connectivity check failed.")
    if not database_ok:
        logger.warning(
            "startup.database.unavailable.scheduler_disabled",
            extra={"event": "startup.database.unavailable.scheduler_disabled"},
        )
        return False

    if config.is_production and active_database_url.startswith("sqlite"):
        logger.warning(
            "startup.production.sqlite_detected",
            extra={"event": "startup.production.sqlite_detected"},
        )

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": active_database_url.split("://", 1)[0],
            "db_connectivity_required": config.DB_CONNECTIVITY_REQUIRED,
        },
    )
    return True


def build_registry(config: Config | None = None) -> TenantRegistry:
    cfg = config or get_config()
    return TenantRegistry(
        session_factory=get_session_factory(),
        namespaces=NamespaceManager(cfg.TENANT_DATABASE_URL_TEMPLATE),
        default_max_agents=cfg.DEFAULT_MAX_AGENTS,
        default_max_admins=cfg.DEFAULT_MAX_ADMINS,
    )


def build_trigger(config: Config | None = None, registry: TenantRegistry | None = None) -> ScheduleTrigger:
    """Assemble registry, engine and window into a trigger (not started)."""
    cfg = config or get_config()
    return ScheduleTrigger(
        registry=registry or build_registry(cfg),
        engine=DistributionEngine(
            max_batch_size=cfg.DISTRIBUTION_MAX_BATCH_SIZE,
            lease_seconds=cfg.DISTRIBUTION_LEASE_SECONDS,
        ),
        window=ActiveWindow.parse(cfg.SCHEDULER_WINDOW_START, cfg.SCHEDULER_WINDOW_END, cfg.SCHEDULER_TIMEZONE),
        interval_minutes=cfg.SCHEDULER_INTERVAL_MINUTES,
        tenant_timeout_seconds=cfg.DISTRIBUTION_TENANT_TIMEOUT_SECONDS or None,
    )


def start_scheduler(config: Config | None = None) -> ScheduleTrigger | None:
    """Build and start the trigger, or leave scheduling off for this process.

    Without registry storage the scheduler is disabled until restart; the
    failure is logged once here and never retried.
    """
    cfg = config or get_config()
    if not cfg.SCHEDULER_ENABLED:
        logger.info("scheduler.disabled.by_config", extra={"event": "scheduler.disabled.by_config"})
        return None
    if not verify_database_connection():
        logger.error("scheduler.disabled.no_storage", extra={"event": "scheduler.disabled.no_storage"})
        return None

    create_registry_schema()
    trigger = build_trigger(cfg)
    trigger.start()
    return trigger


def bootstrap() -> bool:
    """Initialize logging and validate runtime configuration."""
    configure_logging()
    return validate_startup_config()
