"""Engines and sessions for the import tables.

The CLI passes ``--database-url`` or relies on ``DATABASE_URL``; library
callers open a unit of work with :func:`session_scope`::

    with session_scope(database_url="sqlite:///imports.db") as session:
        history = load_history(session)

One engine is kept per URL for the life of the process, so tests can point
every case at its own SQLite file. SQLite engines get foreign keys switched
on for each connection, matching the constraints a server database enforces.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from ..logging_setup import get_logger
from .models import Base

_logger = get_logger("statement_import.db")

_URL_ENV = "DATABASE_URL"
_ENGINES: dict[str, Engine] = {}
_SESSION_MAKERS: dict[str, sessionmaker[Session]] = {}


def resolve_database_url(database_url: str | None = None) -> str:
    """Return ``database_url`` or ``$DATABASE_URL``; raise when neither is set."""

    url = database_url or os.getenv(_URL_ENV)
    if not url:
        raise RuntimeError(f"{_URL_ENV} is not set; cannot initialize database client")
    return url


def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def _build_engine(url: str) -> Engine:
    if make_url(url).get_backend_name() == "sqlite":
        engine = create_engine(url)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(url, pool_pre_ping=True)
    _logger.debug("db:engine_created dialect=%s", engine.dialect.name)
    return engine


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the engine cached for the URL, building it on first use."""

    url = resolve_database_url(database_url)
    if url not in _ENGINES:
        engine = _build_engine(url)
        _ENGINES[url] = engine
        _SESSION_MAKERS[url] = sessionmaker(bind=engine, expire_on_commit=False)
    return _ENGINES[url]


def get_session(*, database_url: str | None = None) -> Session:
    url = resolve_database_url(database_url)
    get_engine(database_url=url)
    return _SESSION_MAKERS[url]()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on any error."""

    with get_session(database_url=database_url) as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        session.commit()


def create_schema(*, database_url: str | None = None) -> None:
    """Create the ``si_*`` tables when they do not exist yet."""

    Base.metadata.create_all(get_engine(database_url=database_url))


def dispose_engines() -> None:
    """Dispose and forget every cached engine."""

    while _ENGINES:
        _, engine = _ENGINES.popitem()
        engine.dispose()
    _SESSION_MAKERS.clear()


__all__ = [
    "create_schema",
    "dispose_engines",
    "get_engine",
    "get_session",
    "resolve_database_url",
    "session_scope",
]
