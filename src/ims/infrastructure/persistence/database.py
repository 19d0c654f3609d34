"""Engine and session factory for the relational store.

SQLite is the default store; any SQLAlchemy URL works.  The lock timeout
from the settings is applied per dialect so a blocked statement fails
(and surfaces as a conflict) instead of hanging.

pysqlite defers BEGIN until the first write, so a read followed by a write
holds no lock in between.  SQLite transactions therefore start with
``BEGIN IMMEDIATE``, which takes the database write lock at the first
statement; a second writer waits up to the lock timeout and then fails.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Hashable, TypeVar

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

T = TypeVar("T")


class Base(DeclarativeBase):
    """Base class for all database models."""


def create_db_engine(url: str, echo: bool = False, lock_timeout_seconds: float = 5) -> Engine:
    parsed = make_url(url)

    if parsed.get_backend_name() == "sqlite":
        in_memory = parsed.database in (None, "", ":memory:")
        if not in_memory:
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"timeout": lock_timeout_seconds, "check_same_thread": False},
            # One shared connection, otherwise every session sees its own empty database
            poolclass=StaticPool if in_memory else None,
        )

        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, _record) -> None:
            # Hand transaction control to the "begin" listener below
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn) -> None:
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    engine = create_engine(url, echo=echo, pool_pre_ping=True)
    if parsed.get_backend_name() == "postgresql":
        timeout_ms = int(lock_timeout_seconds * 1000)

        @event.listens_for(engine, "connect")
        def _set_lock_timeout(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute(f"SET lock_timeout = {timeout_ms}")
            cursor.close()
            dbapi_connection.commit()

    return engine


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored time is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    """Create every table that does not exist yet."""
    # Register the mapped tables on Base.metadata
    from ims.infrastructure.persistence import orm  # noqa: F401

    Base.metadata.create_all(engine)


def refresh_tracked(seen: dict[Any, T], key: Hashable, fresh: T) -> T:
    """Return the tracked object for ``key`` updated in place from ``fresh``.

    Used after a locking read so that callers already holding the tracked
    object see the row as it is under the lock.
    """
    tracked: Any = seen.get(key)
    if tracked is None:
        seen[key] = fresh
        return fresh
    for f in dataclasses.fields(fresh):
        setattr(tracked, f.name, getattr(fresh, f.name))
    return tracked
