"""Reservation — a time-boxed hold on Pool stock for one order item.

Lifecycle: ``active`` moves to exactly one of ``released``, ``fulfilled``
or ``expired`` and never comes back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from ims.domain.exceptions import InvalidTransitionError

DEFAULT_TTL_HOURS = 24
CONFIRMED_TTL_HOURS = 48


class ReservationStatus(Enum):
    ACTIVE = "active"
    RELEASED = "released"
    FULFILLED = "fulfilled"
    EXPIRED = "expired"


def expiry_from(now: datetime, hours: int) -> datetime:
    return now + timedelta(hours=hours)


@dataclass
class Reservation:

    id: str
    order_id: int
    product_id: str
    quantity_reserved: int
    status: ReservationStatus = ReservationStatus.ACTIVE
    reservation_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    expiry_date: datetime = field(
        default_factory=lambda: expiry_from(datetime.now(timezone.utc), DEFAULT_TTL_HOURS)
    )

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE

    def is_expired(self, now: datetime) -> bool:
        return self.is_active and self.expiry_date < now

    def release(self) -> None:
        self._close(ReservationStatus.RELEASED)

    def fulfill(self) -> None:
        self._close(ReservationStatus.FULFILLED)

    def expire(self) -> None:
        self._close(ReservationStatus.EXPIRED)

    def extend_until(self, expiry_date: datetime) -> None:
        if not self.is_active:
            raise InvalidTransitionError(self.status.value, "active", [])
        self.expiry_date = expiry_date

    def _close(self, target: ReservationStatus) -> None:
        if not self.is_active:
            raise InvalidTransitionError(self.status.value, target.value, [])
        self.status = target
