"""SQLAlchemy Unit of Work: one session, one database transaction.

Entering opens a session and builds the repositories on it.  ``commit()``
makes the work durable; leaving the block without it rolls back.  Lock
timeouts, serialization failures and concurrent duplicate inserts surface
as ConcurrencyConflictError so callers can retry the whole operation.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from ims.domain.exceptions import ConcurrencyConflictError
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.infrastructure.persistence.sql_allocation_repository import SqlAllocationRepository
from ims.infrastructure.persistence.sql_ledger_repository import SqlLedgerRepository
from ims.infrastructure.persistence.sql_location_repository import SqlLocationRepository
from ims.infrastructure.persistence.sql_material_repository import SqlMaterialRepository
from ims.infrastructure.persistence.sql_order_repository import SqlOrderRepository
from ims.infrastructure.persistence.sql_product_repository import SqlProductRepository
from ims.infrastructure.persistence.sql_reservation_repository import SqlReservationRepository

logger = logging.getLogger(__name__)

_CONFLICTS = (OperationalError, IntegrityError)


class SqlAlchemyUnitOfWork(UnitOfWork):

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        self.products = SqlProductRepository(self._session)
        self.locations = SqlLocationRepository(self._session)
        self.allocations = SqlAllocationRepository(self._session)
        self.reservations = SqlReservationRepository(self._session)
        self.ledger = SqlLedgerRepository(self._session)
        self.orders = SqlOrderRepository(self._session)
        self.materials = SqlMaterialRepository(self._session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            super().__exit__(exc_type, exc, tb)
        finally:
            self._session.close()
            self._session = None
        if isinstance(exc, _CONFLICTS):
            logger.warning("transaction aborted by the store: %s", exc)
            raise ConcurrencyConflictError(
                "The stock changed concurrently or the store is busy; please retry"
            ) from exc

    def commit(self) -> None:
        try:
            self._session.commit()
        except _CONFLICTS as exc:
            self._session.rollback()
            logger.warning("commit rejected by the store: %s", exc)
            raise ConcurrencyConflictError(
                "The stock changed concurrently or the store is busy; please retry"
            ) from exc

    def rollback(self) -> None:
        if self._session is not None:
            self._session.rollback()
