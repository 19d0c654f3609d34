"""Unit of Work — one atomic transaction spanning every repository.

Handlers use it as a context manager and must call ``commit()`` before
leaving the block; leaving it any other way (including by an exception)
rolls everything back, so a failed operation never partially applies.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.repository.allocation_repository import AllocationRepository
from ims.domain.repository.ledger_repository import LedgerRepository
from ims.domain.repository.location_repository import LocationRepository
from ims.domain.repository.material_repository import MaterialRepository
from ims.domain.repository.order_repository import OrderRepository
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.repository.reservation_repository import ReservationRepository


class UnitOfWork(ABC):

    products: ProductRepository
    locations: LocationRepository
    allocations: AllocationRepository
    reservations: ReservationRepository
    ledger: LedgerRepository
    orders: OrderRepository
    materials: MaterialRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every change since the block started durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every uncommitted change. Safe to call after ``commit()``."""
