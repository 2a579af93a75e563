"""Per-tenant storage namespaces.

Every tenant owns one database (a SQLite file or a PostgreSQL database) whose
URL is derived from ``TENANT_DATABASE_URL_TEMPLATE``. A ``NamespaceHandle``
bundles the engine and session factory for that database; the
``NamespaceManager`` caches handles and owns the create/drop lifecycle.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock

from sqlalchemy import text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from leadrotation.core.exceptions import ValidationError
from leadrotation.database.db import build_engine
from leadrotation.models import (
    LEAD_ASSIGNMENT_CURSOR,
    NEUTRAL_CURSOR_INDEX,
    AssignmentCursor,
    NamespaceBase,
)

logger = logging.getLogger(__name__)

_NAMESPACE_PATTERN = re.compile(r"^[a-z][a-z0-9_]{0,62}$")


def validate_namespace_name(name: str) -> str:
    """Namespace names end up in file paths and DDL, so keep them to [a-z0-9_]."""
    if not _NAMESPACE_PATTERN.match(name or ""):
        raise ValidationError(f"Invalid namespace name: {name!r}")
    return name


@dataclass
class NamespaceHandle:
    """Open connection state for one tenant namespace."""

    name: str
    database_url: str
    engine: Engine = field(repr=False)
    session_factory: sessionmaker = field(repr=False)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()


class NamespaceManager:
    """Resolves namespace names to handles and creates/drops their storage."""

    def __init__(self, url_template: str, echo: bool = False) -> None:
        if "{namespace}" not in url_template:
            raise ValidationError("Namespace URL template must contain {namespace}.")
        self.url_template = url_template
        self.echo = echo
        self._handles: dict[str, NamespaceHandle] = {}
        self._lock = Lock()

    def url_for(self, name: str) -> str:
        return self.url_template.format(namespace=validate_namespace_name(name))

    def get(self, name: str) -> NamespaceHandle:
        with self._lock:
            handle = self._handles.get(name)
            if handle is None:
                url = self.url_for(name)
                engine = build_engine(url, echo=self.echo)
                handle = NamespaceHandle(
                    name=name,
                    database_url=url,
                    engine=engine,
                    session_factory=sessionmaker(autocommit=False, autoflush=False, bind=engine),
                )
                self._handles[name] = handle
            return handle

    def create_storage(self, name: str) -> NamespaceHandle:
        """Create the namespace database, its tables and the cursor singleton.

        Existing tables, indexes and cursor rows are left as they are.
        """
        url = self.url_for(name)
        self._ensure_database(url)
        handle = self.get(name)
        NamespaceBase.metadata.create_all(bind=handle.engine, checkfirst=True)

        with handle.session() as session:
            if session.get(AssignmentCursor, LEAD_ASSIGNMENT_CURSOR) is None:
                session.add(
                    AssignmentCursor(
                        name=LEAD_ASSIGNMENT_CURSOR,
                        last_assigned_index=NEUTRAL_CURSOR_INDEX,
                        last_assigned_agent=None,
                    )
                )
                session.commit()

        logger.info(
            "namespace.initialized",
            extra={"event": "namespace.initialized", "namespace": name},
        )
        return handle

    def drop_storage(self, name: str) -> None:
        """Drop every table of the namespace and remove its database."""
        url = self.url_for(name)
        handle = self.get(name)
        NamespaceBase.metadata.drop_all(bind=handle.engine, checkfirst=True)
        handle.engine.dispose()
        with self._lock:
            self._handles.pop(name, None)
        self._remove_database(url)
        logger.warning(
            "namespace.dropped",
            extra={"event": "namespace.dropped", "namespace": name},
        )

    def dispose_all(self) -> None:
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.engine.dispose()

    def _ensure_database(self, url: str) -> None:
        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite":
            if parsed.database and parsed.database != ":memory:":
                Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
            return

        server = build_engine(parsed.set(database="postgres").render_as_string(hide_password=False))
        try:
            with server.connect().execution_options(isolation_level="AUTOCOMMIT") as conn:
                exists = conn.execute(
                    text("SELECT 1 FROM pg_catalog.pg_database WHERE datname = :name"),
                    {"name": parsed.database},
                ).first()
                if exists is None:
                    conn.execute(text(f'CREATE DATABASE "{parsed.database}"'))
        finally:
            server.dispose()

    def _remove_database(self, url: str) -> None:
        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite":
            if parsed.database and parsed.database != ":memory:":
                Path(parsed.database).unlink(missing_ok=True)
            return

        server = build_engine(parsed.set(database="postgres").render_as_string(hide_password=False))
        try:
            with server.connect().execution_options(isolation_level="AUTOCOMMIT") as conn:
                conn.execute(text(f'DROP DATABASE IF EXISTS "{parsed.database}"'))
        finally:
            server.dispose()
