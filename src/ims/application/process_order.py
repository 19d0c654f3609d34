"""Application service: Process Order use case.

Moves a confirmed order into processing and returns its picking list.
"""

from __future__ import annotations

from ims.application.dto import PickingLineDTO
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.order import ConsumptionStrategy, Order
from ims.domain.repository.unit_of_work import UnitOfWork


class ProcessOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int) -> list[PickingLineDTO]:
        with self._uow:
            order = self._uow.orders.get_for_update(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            order.start_processing()
            self._uow.orders.save(order)
            self._uow.commit()

        return picking_list(order)


def picking_list(order: Order) -> list[PickingLineDTO]:
    """Where each line's units physically come from."""
    lines = []
    for item in order.items:
        if item.strategy == ConsumptionStrategy.MATERIAL:
            source = "raw materials"
        elif item.strategy == ConsumptionStrategy.SERVICE:
            source = "service, no stock"
        elif item.strategy == ConsumptionStrategy.EAGER and order.shop_id:
            source = f"shop '{order.shop_id}'"
        else:
            source = "pool"
        lines.append(
            PickingLineDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                sku=item.sku,
                quantity=item.quantity.value,
                source=source,
            )
        )
    return lines
