"""Application service: Complete Fulfillment use case.

Converts the order's reservations into real Pool deductions (``sale``
entries) and marks it fulfilled.  Lapsed holds are reserved again first;
if the Pool can no longer cover them the whole call fails.
"""

from __future__ import annotations

from ims.application.dto import OrderDTO, order_to_dto
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.reservation import CONFIRMED_TTL_HOURS, DEFAULT_TTL_HOURS
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.reservation_ledger import ReservationLedger


class FulfillOrderHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        reservation_ttl_hours: int = DEFAULT_TTL_HOURS,
        confirmed_ttl_hours: int = CONFIRMED_TTL_HOURS,
    ) -> None:
        self._uow = uow
        self._ttl_hours = reservation_ttl_hours
        self._confirmed_ttl_hours = confirmed_ttl_hours

    def handle(self, order_id: int, tracking_number: str | None = None) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_for_update(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            order.mark_fulfilled(tracking_number)

            ledger = ReservationLedger(self._uow, self._ttl_hours, self._confirmed_ttl_hours)
            ledger.recover_lapsed(order)
            ledger.fulfill(order_id)

            self._uow.orders.save(order)
            self._uow.commit()

        return order_to_dto(order)


class CompleteOrderHandler:
    """``fulfilled -> completed``; stock was already settled on fulfillment."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_for_update(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            order.complete()
            self._uow.orders.save(order)
            self._uow.commit()

        return order_to_dto(order)
