"""Product aggregate.

A product owns the Pool: the quantity of units that exist but are not
assigned to any location.  Reservations hold part of the Pool without
removing it, so what can be withdrawn is ``pool_quantity - reserved_quantity``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from ims.domain.exceptions import InsufficientStockError, ValidationError
from ims.domain.model.value_objects import Money

_SIZE_ML = re.compile(r"(\d+)\s*ml", re.IGNORECASE)


class ProductKind(Enum):
    GENERAL = "general"
    PERFUME = "perfume"
    SERVICE = "service"
    MATERIAL_WRAPPER = "atelier_material"  # catalog stand-in for a raw material, no stock


@dataclass
class Product:
    """Aggregate root for catalog items and their unassigned stock.

    Invariants:
    - ``pool_quantity`` is never negative
    - ``reserved_quantity`` never exceeds ``pool_quantity``
    """

    id: str
    name: str
    sku: str
    kind: ProductKind = ProductKind.GENERAL
    pool_quantity: int = 0
    reserved_quantity: int = 0
    units_sold: int = 0
    min_stock_level: int = 0
    size_spec: str | None = None
    bulk_material_id: str | None = None
    price: Money = field(default_factory=Money.zero)

    @property
    def available_quantity(self) -> int:
        return self.pool_quantity - self.reserved_quantity

    @property
    def bottle_size_ml(self) -> int | None:
        """Volume per unit parsed from the free-text size, e.g. '30ml' -> 30."""
        if not self.size_spec:
            return None
        match = _SIZE_ML.search(self.size_spec)
        return int(match.group(1)) if match else None

    @property
    def is_low_stock(self) -> bool:
        return self.available_quantity <= self.min_stock_level

    # --- Pool movements -------------------------------------------------------

    def withdraw(self, quantity: int) -> None:
        """Take unreserved units out of the Pool."""
        _require_positive(quantity, "Withdraw")
        if quantity > self.available_quantity:
            raise InsufficientStockError(
                f"Insufficient stock for {self.name} "
                f"(need {quantity}, have {self.available_quantity} available)",
                product_id=self.id,
                requested=quantity,
                available=self.available_quantity,
                endpoint="pool",
            )
        self.pool_quantity -= quantity

    def deposit(self, quantity: int) -> None:
        _require_positive(quantity, "Deposit")
        self.pool_quantity += quantity

    def set_pool(self, quantity: int) -> None:
        if quantity < self.reserved_quantity:
            raise ValidationError(
                f"Cannot set stock of {self.name} to {quantity} "
                f"— {self.reserved_quantity} units are reserved"
            )
        self.pool_quantity = quantity

    # --- Reservations ---------------------------------------------------------

    def reserve(self, quantity: int) -> None:
        _require_positive(quantity, "Reservation")
        if quantity > self.available_quantity:
            raise InsufficientStockError(
                f"Insufficient stock for {self.name} "
                f"(need {quantity}, have {self.available_quantity} available)",
                product_id=self.id,
                requested=quantity,
                available=self.available_quantity,
                endpoint="pool",
            )
        self.reserved_quantity += quantity

    def release(self, quantity: int) -> None:
        _require_positive(quantity, "Release")
        if quantity > self.reserved_quantity:
            raise ValidationError(
                f"Cannot release {quantity} of {self.name} "
                f"— only {self.reserved_quantity} currently reserved"
            )
        self.reserved_quantity -= quantity

    def fulfill(self, quantity: int) -> None:
        """Turn reserved units into a sale: both counters drop together."""
        _require_positive(quantity, "Fulfill")
        if quantity > self.reserved_quantity:
            raise ValidationError(
                f"Cannot fulfill {quantity} of {self.name} "
                f"— only {self.reserved_quantity} currently reserved"
            )
        if quantity > self.pool_quantity:
            raise InsufficientStockError(
                f"Insufficient stock for {self.name} "
                f"(need {quantity}, have {self.pool_quantity} in stock)",
                product_id=self.id,
                requested=quantity,
                available=self.pool_quantity,
                endpoint="pool",
            )
        self.reserved_quantity -= quantity
        self.pool_quantity -= quantity

    def record_sale(self, quantity: int) -> None:
        self.units_sold += quantity


def _require_positive(quantity: int, what: str) -> None:
    if quantity <= 0:
        raise ValidationError(f"{what} quantity must be positive")
