"""
Database engine, session factory, and metadata shared across the application.

Writers that touch a court's reservation set must hold that court's write
lock for the whole check-then-insert unit:

- PostgreSQL: repositories lock the court row with ``SELECT ... FOR UPDATE``.
- SQLite: every transaction starts with ``BEGIN IMMEDIATE`` so the database
  write lock is taken before the first read. Concurrent writers wait up to
  ``sqlite_busy_timeout_seconds`` and then fail with ``OperationalError``.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from clubreserve.core.config import settings

logger = logging.getLogger(__name__)

_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 10,
    "pool_timeout": 5,
    "pool_recycle": 300,
    "pool_pre_ping": True,
}


def _install_sqlite_hooks(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_connection: Any, connection_record: Any) -> None:
        # Hand transaction control to the "begin" hook below.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        connection_record.info["connect_time"] = datetime.now()

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_db_engine(db_url: str, *, busy_timeout: float | None = None) -> Engine:
    """Build an engine with the locking behaviour the booking services rely on."""
    if db_url.startswith("sqlite"):
        timeout = settings.sqlite_busy_timeout_seconds if busy_timeout is None else busy_timeout
        engine = create_engine(
            db_url,
            connect_args={"check_same_thread": False, "timeout": timeout},
        )
        _install_sqlite_hooks(engine)
        logger.debug("SQLite engine created with immediate transactions")
        return engine

    return create_engine(db_url, **_DEFAULT_POOL_KWARGS)


engine: Engine = create_db_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def make_session_factory(bind: Engine) -> sessionmaker:
    """Session factory with the same options as ``SessionLocal`` for another engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=bind, expire_on_commit=False)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Session scope for background jobs."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """Return the dialect name of the engine bound to ``session``."""
    bind = session.get_bind()
    if bind is None:
        return default
    return bind.dialect.name or default


__all__ = [
    "Base",
    "SessionLocal",
    "create_db_engine",
    "engine",
    "get_db_session",
    "get_dialect_name",
    "make_session_factory",
]
