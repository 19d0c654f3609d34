"""Application service: register a product in the catalog.

Catalog fields are read-only to the rest of the engine.  Initial stock is
not written onto the product directly; it enters the Pool through an
``adjustment`` entry so the ledger accounts for every unit.
"""

from __future__ import annotations

from ims.application.authorization import STOCK_ADMINS, Actor, require_role
from ims.domain.exceptions import ValidationError
from ims.domain.model.product import Product, ProductKind
from ims.domain.model.value_objects import Money
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.transfer_service import AdjustmentMode, TransferService


class AddProductHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        product_id: str,
        name: str,
        sku: str,
        kind: str = "general",
        price: str = "0",
        initial_stock: int = 0,
        min_stock_level: int = 0,
        size_spec: str | None = None,
        bulk_material_id: str | None = None,
        actor: Actor | None = None,
    ) -> str:
        require_role(actor, STOCK_ADMINS, "register products")

        if not product_id or not name or not name.strip():
            raise ValidationError("Product id and name are required")
        try:
            product_kind = ProductKind(kind.lower())
        except ValueError as exc:
            raise ValidationError(
                f"Product kind must be one of {', '.join(k.value for k in ProductKind)}, got {kind!r}"
            ) from exc
        if initial_stock < 0 or min_stock_level < 0:
            raise ValidationError("Stock levels must be non-negative")

        with self._uow:
            if self._uow.products.get_by_id(product_id) is not None:
                raise ValidationError(f"Product '{product_id}' already exists")
            if sku and self._uow.products.get_by_sku(sku) is not None:
                raise ValidationError(f"SKU '{sku}' is already in use")

            product = Product(
                id=product_id,
                name=name.strip(),
                sku=sku,
                kind=product_kind,
                min_stock_level=min_stock_level,
                size_spec=size_spec,
                bulk_material_id=bulk_material_id,
                price=Money.of(price),
            )
            self._uow.products.save(product)

            if initial_stock:
                TransferService(self._uow).adjust_pool(
                    product_id, AdjustmentMode.ADD, initial_stock, notes="initial stock"
                )
            self._uow.commit()

        return product_id
