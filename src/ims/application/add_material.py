"""Application services: register production inputs and atelier materials."""

from __future__ import annotations

from ims.application.authorization import STOCK_ADMINS, Actor, require_role
from ims.domain.exceptions import ValidationError
from ims.domain.model.materials import BulkMaterial, PackagingStock, RawMaterial
from ims.domain.repository.unit_of_work import UnitOfWork


def _require_non_negative(value: int, what: str) -> None:
    if value < 0:
        raise ValidationError(f"{what} must be non-negative")


class AddBulkMaterialHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, bulk_id: str, name: str, quantity_ml: int, actor: Actor | None = None) -> str:
        require_role(actor, STOCK_ADMINS, "register bulk materials")
        _require_non_negative(quantity_ml, "Bulk quantity")

        with self._uow:
            if self._uow.materials.get_bulk_for_update(bulk_id) is not None:
                raise ValidationError(f"Bulk material '{bulk_id}' already exists")
            self._uow.materials.save_bulk(BulkMaterial(bulk_id, name, quantity_ml))
            self._uow.commit()
        return bulk_id


class AddPackagingHandler:
    """One packaging stock per bottle size; registering a size again adds units."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, size_ml: int, units: int, actor: Actor | None = None) -> int:
        require_role(actor, STOCK_ADMINS, "register packaging")
        if size_ml <= 0:
            raise ValidationError("Bottle size must be positive")
        _require_non_negative(units, "Packaging units")

        with self._uow:
            packaging = self._uow.materials.get_packaging_for_update(size_ml)
            if packaging is None:
                packaging = PackagingStock(id=f"bottle-{size_ml}ml", size_ml=size_ml, units=0)
            packaging.units += units
            self._uow.materials.save_packaging(packaging)
            self._uow.commit()
        return packaging.units


class AddRawMaterialHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self, material_id: str, name: str, unit: str, current_stock: int, actor: Actor | None = None
    ) -> str:
        require_role(actor, STOCK_ADMINS, "register raw materials")
        _require_non_negative(current_stock, "Material stock")

        with self._uow:
            if self._uow.materials.get_raw_for_update(material_id) is not None:
                raise ValidationError(f"Raw material '{material_id}' already exists")
            self._uow.materials.save_raw(RawMaterial(material_id, name, unit, current_stock))
            self._uow.commit()
        return material_id
