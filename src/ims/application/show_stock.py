"""Application services: read-only stock queries.

``global_stock`` is everything the system holds (Pool plus every
allocation).  ``available_for_assignment`` is what can still leave the
Pool, i.e. the Pool minus its reserved units.
"""

from __future__ import annotations

from ims.application.dto import InventoryRowDTO, LowStockDTO, StockInfoDTO
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.value_objects import LocationKind, LocationRef
from ims.domain.repository.unit_of_work import UnitOfWork


class StockInfoHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        product_id: str,
        location_kind: str | None = None,
        location_id: str | None = None,
    ) -> StockInfoDTO:
        with self._uow:
            product = self._uow.products.get_by_id(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product '{product_id}' not found")

            total_assigned = sum(
                a.quantity for a in self._uow.allocations.list_for_product(product_id)
            )
            info = dict(
                product_id=product.id,
                product_name=product.name,
                pool_quantity=product.pool_quantity,
                reserved_quantity=product.reserved_quantity,
                total_assigned=total_assigned,
                global_stock=product.pool_quantity + total_assigned,
                available_for_assignment=product.available_quantity,
            )
            if location_kind is None or location_id is None:
                return StockInfoDTO(**info)

            location = LocationRef.parse(location_kind, location_id)
            allocation = self._uow.allocations.get(location, product_id)
            quantity = allocation.quantity if allocation else 0

            if location.kind == LocationKind.SHOP:
                sold = self._uow.orders.sold_quantity(location_id, product_id)
                remaining = max(quantity - sold, 0)
                can_decrease = remaining < quantity
                message = (
                    f"Can be reduced down to {remaining} units"
                    if can_decrease
                    else f"Shop must sell its current stock ({remaining} units remaining) "
                    f"before reducing. Replenishment is allowed."
                )
            else:
                sold, remaining, can_decrease, message = 0, quantity, True, ""

            return StockInfoDTO(
                **info,
                location=str(location),
                location_quantity=quantity,
                sold_quantity=sold,
                remaining_quantity=remaining,
                can_decrease=can_decrease,
                message=message,
            )


class InventoryListHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[InventoryRowDTO]:
        with self._uow:
            rows = []
            for product in sorted(self._uow.products.list_all(), key=lambda p: p.name.lower()):
                assigned = sum(
                    a.quantity for a in self._uow.allocations.list_for_product(product.id)
                )
                rows.append(
                    InventoryRowDTO(
                        product_id=product.id,
                        name=product.name,
                        sku=product.sku,
                        kind=product.kind.value,
                        pool_quantity=product.pool_quantity,
                        reserved_quantity=product.reserved_quantity,
                        available_quantity=product.available_quantity,
                        total_assigned=assigned,
                        units_sold=product.units_sold,
                    )
                )
            return rows


class LowStockHandler:
    """Pool stock and allocations at or below their minimum level."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[LowStockDTO]:
        with self._uow:
            products = {p.id: p for p in self._uow.products.list_all()}
            alerts = [
                LowStockDTO(p.id, p.name, "pool", p.available_quantity, p.min_stock_level)
                for p in products.values()
                if p.is_low_stock
            ]
            for allocation in self._uow.allocations.list_all():
                if not allocation.is_low_stock:
                    continue
                product = products.get(allocation.product_id)
                alerts.append(
                    LowStockDTO(
                        allocation.product_id,
                        product.name if product else allocation.product_id,
                        str(allocation.location),
                        allocation.quantity,
                        allocation.min_stock_level,
                    )
                )
            return alerts
