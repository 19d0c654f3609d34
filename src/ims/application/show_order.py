"""Application services: read-only order queries."""

from __future__ import annotations

from ims.application.dto import OrderDTO, order_to_dto
from ims.domain.exceptions import EntityNotFoundError, ValidationError
from ims.domain.model.order import OrderStatus
from ims.domain.repository.unit_of_work import UnitOfWork


class ShowOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            return order_to_dto(order)


class ListOrdersHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, status: str | None = None) -> list[OrderDTO]:
        try:
            wanted = OrderStatus(status.lower()) if status else None
        except ValueError as exc:
            raise ValidationError(f"Unknown order status {status!r}") from exc

        with self._uow:
            return [order_to_dto(o) for o in self._uow.orders.list_all(wanted)]
