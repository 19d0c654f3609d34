"""Application service: Confirm Order use case.

Confirmation re-checks that the order's reservations are still backed by
the Pool and extends them to the confirmed TTL.  Items whose hold lapsed
in the meantime are reserved again first, or the confirmation fails.
"""

from __future__ import annotations

from ims.application.dto import OrderDTO, order_to_dto
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.reservation import CONFIRMED_TTL_HOURS, DEFAULT_TTL_HOURS
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.reservation_ledger import ReservationLedger


class ConfirmOrderHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        reservation_ttl_hours: int = DEFAULT_TTL_HOURS,
        confirmed_ttl_hours: int = CONFIRMED_TTL_HOURS,
    ) -> None:
        self._uow = uow
        self._ttl_hours = reservation_ttl_hours
        self._confirmed_ttl_hours = confirmed_ttl_hours

    def handle(self, order_id: int) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_for_update(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            order.confirm()

            ledger = ReservationLedger(self._uow, self._ttl_hours, self._confirmed_ttl_hours)
            ledger.recover_lapsed(order)
            ledger.revalidate(order_id)
            ledger.extend(order_id)

            self._uow.orders.save(order)
            self._uow.commit()

        return order_to_dto(order)
