"""LocationAllocation — the units of one product held at one location.

One row exists per (location kind, location id, product).  It is created on
the first assignment and deleted when the assignment is removed, at which
point its quantity goes back to the Pool.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from ims.domain.exceptions import InsufficientShopStockError, InsufficientStockError, ValidationError
from ims.domain.model.value_objects import LocationKind, LocationRef


@dataclass
class LocationAllocation:
    """Invariant: ``quantity`` is always >= 0."""

    location: LocationRef
    product_id: str
    quantity: int = 0
    min_stock_level: int = 0
    max_stock_level: int = 0
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_stock_level

    def receive(self, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Receive quantity must be positive")
        self.quantity += quantity
        self._touch()

    def dispatch(self, quantity: int) -> None:
        """Remove units from this location.

        Raises InsufficientShopStockError for shops, InsufficientStockError
        for warehouses.
        """
        if quantity <= 0:
            raise ValidationError("Dispatch quantity must be positive")
        if quantity > self.quantity:
            error = (
                InsufficientShopStockError
                if self.location.kind == LocationKind.SHOP
                else InsufficientStockError
            )
            raise error(
                f"Insufficient stock at {self.location}. "
                f"Available: {self.quantity}, Requested: {quantity}",
                product_id=self.product_id,
                requested=quantity,
                available=self.quantity,
                endpoint=str(self.location),
            )
        self.quantity -= quantity
        self._touch()

    def set_thresholds(self, min_stock_level: int, max_stock_level: int) -> None:
        if min_stock_level < 0 or max_stock_level < 0:
            raise ValidationError("Stock levels must be non-negative")
        self.min_stock_level = min_stock_level
        self.max_stock_level = max_stock_level
        self._touch()

    def _touch(self) -> None:
        self.last_updated = datetime.now(timezone.utc)
