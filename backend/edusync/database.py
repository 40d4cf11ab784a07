"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine from
`settings.DATABASE_URL` (a local SQLite file by default) and provides
the session dependency, the development table bootstrap and the retry
policy applied to store operations.
"""

import functools
import logging
import time

from sqlalchemy import event
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from .config import settings

logger = logging.getLogger("edusync.db")

_IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")
_TRANSIENT_MARKERS = ("locked", "busy", "timeout", "timed out", "deadlock", "connection", "server closed")


def _build_engine(url: str):
    kwargs = {"echo": False}
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in _IN_MEMORY_URLS:
            # one shared connection, otherwise every pooled connection sees an empty database
            kwargs["poolclass"] = StaticPool
    eng = create_engine(url, **kwargs)
    if is_sqlite:
        event.listen(eng, "connect", _enable_sqlite_foreign_keys)
    return eng


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = _build_engine(settings.DATABASE_URL)


def create_db_and_tables():
    """Create database tables using SQLModel metadata.

    This function is intended for local development and tests; there is
    no migration tooling, so schema changes on an existing database are
    the operator's job.
    """
    from . import models  # noqa: F401  registers the tables on the metadata
    SQLModel.metadata.create_all(engine)


def get_session():
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes.
    """
    with Session(engine) as session:
        yield session


def is_transient(exc: OperationalError) -> bool:
    """Return True for store faults worth retrying (locks, dropped connections)."""
    if getattr(exc, "connection_invalidated", False):
        return True
    text = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in text for marker in _TRANSIENT_MARKERS)


def retry_delay(attempt: int) -> float:
    """Exponential delay for the given zero-based attempt, capped by settings."""
    return min(settings.DB_RETRY_BASE_DELAY * (2 ** attempt), settings.DB_MAX_RETRY_DELAY)


def retry_on_transient(fn):
    """Retry a unit of work on transient store failures.

    Decorates service methods whose instance carries a `session`. Each
    failed attempt rolls the session back before the whole method runs
    again, so a check and its dependent write are always retried
    together. Gives up after `settings.DB_MAX_RETRIES` retries.
    """
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        attempt = 0
        while True:
            try:
                return fn(self, *args, **kwargs)
            except OperationalError as exc:
                self.session.rollback()
                if attempt >= settings.DB_MAX_RETRIES or not is_transient(exc):
                    raise
                delay = retry_delay(attempt)
                attempt += 1
                logger.warning("transient store failure in %s, retry %d in %.2fs: %s",
                               fn.__qualname__, attempt, delay, exc.orig)
                time.sleep(delay)
    return wrapper
