"""Abstract repository for stock reservations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ims.domain.model.reservation import Reservation, ReservationStatus


class ReservationRepository(ABC):

    @abstractmethod
    def get_for_update(self, reservation_id: str) -> Reservation | None:
        """Return a reservation by ID, locking it until the unit of work ends."""

    @abstractmethod
    def list_for_order(
        self, order_id: int, status: ReservationStatus | None = None
    ) -> list[Reservation]:
        """Return the reservations of an order, optionally filtered by status."""

    @abstractmethod
    def list_expired_ids(self, now: datetime) -> list[str]:
        """Return IDs of active reservations whose expiry date is before ``now``."""

    @abstractmethod
    def active_quantity(self, product_id: str) -> int:
        """Sum of active reserved quantities for a product."""

    @abstractmethod
    def save(self, reservation: Reservation) -> None:
        """Persist a new or updated reservation."""
