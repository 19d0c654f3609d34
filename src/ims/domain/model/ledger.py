"""Append-only inventory transactions.

``previous_stock``/``new_stock`` always describe the product's Pool, so the
entries of one product form a chain that reconciliation can replay.
Movements that do not touch the Pool (location to location, sales from a
shop) carry ``previous_stock == new_stock``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ims.domain.model.value_objects import LocationRef


class LedgerEntryType(Enum):
    ASSIGN = "assign"
    TRANSFER = "transfer"
    REASSIGN = "reassign"
    RESERVATION = "reservation"
    RELEASE = "release"
    SALE = "sale"
    ADJUSTMENT = "adjustment"
    EXPIRY = "expiry"
    PRODUCTION = "production"


@dataclass(frozen=True)
class LedgerEntry:
    """``id`` is assigned by the store and orders entries by commit."""

    product_id: str
    entry_type: LedgerEntryType
    quantity: int
    previous_stock: int
    new_stock: int
    reference_id: str | None = None
    location: LocationRef | None = None
    notes: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: int | None = None

    @property
    def pool_delta(self) -> int:
        return self.new_stock - self.previous_stock
