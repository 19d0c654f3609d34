"""Application services: Cancel and Delete Order use cases.

Cancelling releases the order's active reservations.  Stock taken eagerly
at creation (shop sales, raw materials) is not given back; restoring it
is a separate assignment or adjustment the caller must make.
"""

from __future__ import annotations

import logging

from ims.application.authorization import Actor, Role, require_role
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.reservation_ledger import ReservationLedger

logger = logging.getLogger(__name__)


class CancelOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int) -> int:
        """Cancel the order and return how many reservations were released."""
        with self._uow:
            order = self._uow.orders.get_for_update(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            order.cancel()
            released = ReservationLedger(self._uow).release(order_id)

            consumed = order.consumed_items()
            if consumed:
                logger.warning(
                    "order #%s cancelled with %d eagerly consumed item(s); stock not restored",
                    order_id, len(consumed),
                )

            self._uow.orders.save(order)
            self._uow.commit()

        return len(released)


class DeleteOrderHandler:
    """Hard delete, admin only, while the order is still pending or confirmed."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int, actor: Actor | None = None) -> None:
        require_role(actor, (Role.ADMIN,), "delete orders")

        with self._uow:
            order = self._uow.orders.get_for_update(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            order.ensure_deletable()
            ReservationLedger(self._uow).release(order_id)
            self._uow.orders.delete(order)
            self._uow.commit()

        logger.info("order #%s deleted", order_id)
