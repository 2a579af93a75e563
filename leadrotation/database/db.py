"""Registry database connection and session management."""

from __future__ import annotations

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from leadrotation.core.config import get_config

logger = logging.getLogger(__name__)

config = get_config()
DATABASE_URL = config.DATABASE_URL


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine with pool settings suited to the URL's backend."""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo)
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=10,
        max_overflow=20,
    )


def _configure_engine(database_url: str) -> None:
    global DATABASE_URL, engine, SessionLocal
    DATABASE_URL = database_url
    engine = build_engine(database_url, echo=config.DEBUG and not database_url.startswith("sqlite"))
    SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )


_configure_engine(DATABASE_URL)


def get_active_database_url() -> str:
    """Return the currently bound registry database URL."""
    return DATABASE_URL


def get_session_factory() -> sessionmaker:
    """Return the sessionmaker bound to the registry engine."""
    return SessionLocal


def create_registry_schema(bind: Engine | None = None) -> None:
    """Create registry tables that do not exist yet."""
    from leadrotation.models import RegistryBase

    RegistryBase.metadata.create_all(bind=bind or engine)


def verify_database_connection(bind: Engine | None = None) -> bool:
    """Verify registry connectivity; the scheduler stays off when this fails."""
    target = bind or engine
    try:
        with target.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as exc:  # pragma: no cover - exercised in deployment.
        logger.exception("database.connection_failed", extra={"event": "database.connection_failed"})
        logger.error("database.connection_failed.details: %s", exc)
        return False
