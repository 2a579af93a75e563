"""Configuration module for the lead rotation scheduler."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

import pytz
from dotenv import load_dotenv

from leadrotation.core.exceptions import ConfigurationError

load_dotenv()

_CLOCK_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    TENANT_DATABASE_URL_TEMPLATE: str
    DB_CONNECTIVITY_REQUIRED: bool
    SCHEDULER_ENABLED: bool
    SCHEDULER_INTERVAL_MINUTES: int
    SCHEDULER_WINDOW_START: str
    SCHEDULER_WINDOW_END: str
    SCHEDULER_TIMEZONE: str
    DISTRIBUTION_MAX_BATCH_SIZE: int
    DISTRIBUTION_TENANT_TIMEOUT_SECONDS: float
    DISTRIBUTION_LEASE_SECONDS: int
    DEFAULT_MAX_AGENTS: int
    DEFAULT_MAX_ADMINS: int
    REDIS_URL: str
    CELERY_BROKER_URL: str
    CELERY_RESULT_BACKEND: str
    API_HOST: str
    API_PORT: int
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))

    config = Config(
        APP_NAME="LeadRotation",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./leadrotation_registry.db"),
        TENANT_DATABASE_URL_TEMPLATE=os.getenv(
            "TENANT_DATABASE_URL_TEMPLATE", "sqlite:///./namespaces/{namespace}.db"
        ),
        DB_CONNECTIVITY_REQUIRED=_as_bool(os.getenv("DB_CONNECTIVITY_REQUIRED"), default=False),
        SCHEDULER_ENABLED=_as_bool(os.getenv("SCHEDULER_ENABLED"), default=True),
        SCHEDULER_INTERVAL_MINUTES=int(os.getenv("SCHEDULER_INTERVAL_MINUTES", "15")),
        SCHEDULER_WINDOW_START=os.getenv("SCHEDULER_WINDOW_START", "09:00"),
        SCHEDULER_WINDOW_END=os.getenv("SCHEDULER_WINDOW_END", "18:00"),
        SCHEDULER_TIMEZONE=os.getenv("SCHEDULER_TIMEZONE", "Asia/Kolkata"),
        DISTRIBUTION_MAX_BATCH_SIZE=int(os.getenv("DISTRIBUTION_MAX_BATCH_SIZE", "4")),
        DISTRIBUTION_TENANT_TIMEOUT_SECONDS=float(os.getenv("DISTRIBUTION_TENANT_TIMEOUT_SECONDS", "120")),
        DISTRIBUTION_LEASE_SECONDS=int(os.getenv("DISTRIBUTION_LEASE_SECONDS", "300")),
        DEFAULT_MAX_AGENTS=int(os.getenv("DEFAULT_MAX_AGENTS", "10")),
        DEFAULT_MAX_ADMINS=int(os.getenv("DEFAULT_MAX_ADMINS", "2")),
        REDIS_URL=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        CELERY_BROKER_URL=os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://localhost:6379/0")),
        CELERY_RESULT_BACKEND=os.getenv("CELERY_RESULT_BACKEND", os.getenv("REDIS_URL", "redis://localhost:6379/0")),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=int(os.getenv("API_PORT", "8000")),
        API_PREFIX=os.getenv("API_PREFIX", "/api/v1"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str, setting: str = "DATABASE_URL") -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(f"{setting} must use sqlite:// or postgresql:// style URL.")
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError(f"PostgreSQL {setting} is missing hostname.")


def _validate_clock(value: str, setting: str) -> None:
    if not _CLOCK_PATTERN.match(value):
        raise ConfigurationError(f"{setting} must use HH:MM 24-hour format.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)
    _validate_database_url(config.TENANT_DATABASE_URL_TEMPLATE, "TENANT_DATABASE_URL_TEMPLATE")
    if "{namespace}" not in config.TENANT_DATABASE_URL_TEMPLATE:
        raise ConfigurationError("TENANT_DATABASE_URL_TEMPLATE must contain a {namespace} placeholder.")

    if config.SCHEDULER_INTERVAL_MINUTES < 1:
        raise ConfigurationError("SCHEDULER_INTERVAL_MINUTES must be >= 1.")
    _validate_clock(config.SCHEDULER_WINDOW_START, "SCHEDULER_WINDOW_START")
    _validate_clock(config.SCHEDULER_WINDOW_END, "SCHEDULER_WINDOW_END")
    if config.SCHEDULER_TIMEZONE not in pytz.all_timezones_set:
        raise ConfigurationError(f"Unknown SCHEDULER_TIMEZONE: {config.SCHEDULER_TIMEZONE}")

    if config.DISTRIBUTION_MAX_BATCH_SIZE < 1:
        raise ConfigurationError("DISTRIBUTION_MAX_BATCH_SIZE must be >= 1.")
    if config.DISTRIBUTION_TENANT_TIMEOUT_SECONDS < 0:
        raise ConfigurationError("DISTRIBUTION_TENANT_TIMEOUT_SECONDS must be >= 0.")
    if config.DISTRIBUTION_LEASE_SECONDS < 1:
        raise ConfigurationError("DISTRIBUTION_LEASE_SECONDS must be >= 1.")
    timeout = config.DISTRIBUTION_TENANT_TIMEOUT_SECONDS
    if timeout and config.DISTRIBUTION_LEASE_SECONDS <= timeout:
        # The lease must outlive a run that is still within its deadline.
        raise ConfigurationError(
            "DISTRIBUTION_LEASE_SECONDS must be greater than DISTRIBUTION_TENANT_TIMEOUT_SECONDS."
        )
    if config.DEFAULT_MAX_AGENTS < 0 or config.DEFAULT_MAX_ADMINS < 0:
        raise ConfigurationError("DEFAULT_MAX_AGENTS and DEFAULT_MAX_ADMINS must be >= 0.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
