"""Production inputs: perfume bulk, bottles, and atelier raw materials.

Each keeps its own balance, which never goes negative.
"""

from __future__ import annotations

from dataclasses import dataclass

from ims.domain.exceptions import (
    InsufficientBulkMaterialError,
    InsufficientPackagingError,
    InsufficientStockError,
    ValidationError,
)


@dataclass
class BulkMaterial:
    """Perfume held in bulk, measured in millilitres."""

    id: str
    name: str
    quantity_ml: int

    def draw(self, ml: int) -> None:
        if ml <= 0:
            raise ValidationError("Bulk draw must be positive")
        if ml > self.quantity_ml:
            raise InsufficientBulkMaterialError(
                f"Insufficient bulk perfume '{self.name}'. "
                f"Available: {self.quantity_ml}ML, Required: {ml}ML",
                required=ml,
                available=self.quantity_ml,
            )
        self.quantity_ml -= ml


@dataclass
class PackagingStock:
    """Empty bottles (with label/packaging) of one size."""

    id: str
    size_ml: int
    units: int

    def draw(self, units: int) -> None:
        if units <= 0:
            raise ValidationError("Packaging draw must be positive")
        if units > self.units:
            raise InsufficientPackagingError(
                f"Insufficient bottles of {self.size_ml}ML. "
                f"Available: {self.units}, Required: {units}",
                required=units,
                available=self.units,
            )
        self.units -= units


@dataclass
class RawMaterial:
    """Atelier material (fabric, thread...) consumed directly by orders."""

    id: str
    name: str
    unit: str
    current_stock: int

    def consume(self, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Consumption quantity must be positive")
        if quantity > self.current_stock:
            raise InsufficientStockError(
                f"Insufficient stock for material {self.name}. "
                f"Available: {self.current_stock}, Requested: {quantity}",
                product_id=self.id,
                requested=quantity,
                available=self.current_stock,
                endpoint="raw_material",
            )
        self.current_stock -= quantity
