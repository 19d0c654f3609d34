"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from ims.infrastructure.config import Settings, get_settings
from ims.infrastructure.persistence.database import create_db_engine, create_session_factory
from ims.infrastructure.persistence.unit_of_work import SqlAlchemyUnitOfWork


def settings() -> Settings:
    return get_settings()


@lru_cache
def engine() -> Engine:
    cfg = settings()
    return create_db_engine(
        cfg.DATABASE_URL, echo=cfg.DB_ECHO, lock_timeout_seconds=cfg.LOCK_TIMEOUT_SECONDS
    )


@lru_cache
def session_factory() -> sessionmaker[Session]:
    return create_session_factory(engine())


def unit_of_work() -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(session_factory())
