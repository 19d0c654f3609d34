"""Application service: record a payment on an order.

Only the payment fields change.  Items reserved while the order was unpaid
stay on the reservation path and are settled on fulfillment.
"""

from __future__ import annotations

from ims.application.create_order import parse_payment_status
from ims.application.dto import OrderDTO, order_to_dto
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.order import PaymentStatus
from ims.domain.model.value_objects import Money
from ims.domain.repository.unit_of_work import UnitOfWork


class UpdatePaymentHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int, payment_status: str, amount_paid: str | None = None) -> OrderDTO:
        payment = parse_payment_status(payment_status)

        with self._uow:
            order = self._uow.orders.get_for_update(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            if amount_paid is not None:
                paid = Money.of(amount_paid)
            elif payment == PaymentStatus.COMPLETED:
                paid = order.total
            else:
                paid = order.amount_paid
            order.record_payment(payment, paid)

            self._uow.orders.save(order)
            self._uow.commit()

        return order_to_dto(order)
