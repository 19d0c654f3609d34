"""Application service: Create Order use case.

Each item's consumption strategy is fixed when the order is created:

- retail, payment pending: reserved on the Pool
- retail, payment made: sold at once out of the order's shop (or the Pool
  for orders without a shop)
- atelier material: consumed from raw materials at once
- service product: priced like retail, no stock taken

The order row and every item's stock effect share one unit of work, so a
single failing item leaves no trace.
"""

from __future__ import annotations

import logging

from ims.application.authorization import Actor, Role, require_own_shop
from ims.application.dto import OrderDTO, OrderItemSpec, order_to_dto
from ims.domain.exceptions import DomainException, EntityNotFoundError, ValidationError
from ims.domain.model.order import (
    ConsumptionStrategy,
    ItemKind,
    Order,
    OrderItem,
    PaymentStatus,
)
from ims.domain.model.product import ProductKind
from ims.domain.model.reservation import DEFAULT_TTL_HOURS
from ims.domain.model.value_objects import LocationKind, LocationRef, Money, Quantity
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.reservation_ledger import ReservationLedger
from ims.domain.service.sales_service import SalesConsumptionService

logger = logging.getLogger(__name__)

_ORDERABLE_KINDS = (ItemKind.RETAIL, ItemKind.MATERIAL)


def parse_payment_status(value: str) -> PaymentStatus:
    try:
        return PaymentStatus(value.lower())
    except ValueError as exc:
        raise ValidationError(
            f"Payment status must be one of {', '.join(p.value for p in PaymentStatus)}, "
            f"got {value!r}"
        ) from exc


class CreateOrderHandler:

    def __init__(self, uow: UnitOfWork, reservation_ttl_hours: int = DEFAULT_TTL_HOURS) -> None:
        self._uow = uow
        self._ttl_hours = reservation_ttl_hours

    def handle(
        self,
        customer_name: str,
        item_specs: list[OrderItemSpec],
        shop_id: str | None = None,
        payment_status: str = "pending",
        amount_paid: str | None = None,
        notes: str = "",
        actor: Actor | None = None,
    ) -> OrderDTO:
        """Create an order and apply every item's stock effect.

        Steps:
        1. Resolve each spec to a product or raw material (price snapshot).
        2. Let the Order aggregate validate and pick item strategies.
        3. Persist the order to obtain its id.
        4. Reserve, sell or consume each item.
        """
        if actor is not None and actor.role == Role.CASHIER:
            shop_id = shop_id or actor.shop_id
            require_own_shop(actor, LocationRef.shop(shop_id or ""), "sell from")
        payment = parse_payment_status(payment_status)

        try:
            with self._uow:
                if shop_id is not None:
                    self._require_shop(shop_id)
                items = [self._build_item(spec) for spec in item_specs]

                order = Order.create(
                    customer_name=customer_name,
                    items=items,
                    shop_id=shop_id,
                    payment_status=payment,
                    amount_paid=Money.of(amount_paid) if amount_paid is not None else None,
                    notes=notes,
                )
                if payment == PaymentStatus.COMPLETED and amount_paid is None:
                    order.amount_paid = order.total
                self._uow.orders.save(order)

                self._apply_stock_effects(order)
                self._uow.commit()
        except DomainException as exc:
            logger.warning("order for %r rejected: %s", customer_name, exc)
            raise

        logger.info(
            "order #%s created (%s, %d item(s), payment %s)",
            order.id, order.status.value, len(order.items), payment.value,
        )
        return order_to_dto(order)

    # --- Internal helpers -----------------------------------------------------

    def _build_item(self, spec: OrderItemSpec) -> OrderItem:
        try:
            kind = ItemKind(spec.kind.lower())
        except ValueError:
            kind = None
        if kind not in _ORDERABLE_KINDS:
            raise ValidationError(f"Item kind must be retail or material, got {spec.kind!r}")

        if kind == ItemKind.MATERIAL:
            material = self._uow.materials.get_raw_for_update(spec.product_id)
            if material is None:
                raise EntityNotFoundError(f"Raw material not found: '{spec.product_id}'")
            return OrderItem(
                product_id=material.id,
                product_name=material.name,
                quantity=Quantity(spec.quantity),
                unit_price=Money.of(spec.unit_price or "0"),
                kind=kind,
            )

        product = self._uow.products.get_for_update(spec.product_id)
        if product is None:
            raise EntityNotFoundError(f"Product not found: '{spec.product_id}'")
        if product.kind == ProductKind.MATERIAL_WRAPPER:
            raise ValidationError(
                f"'{product.id}' stands in for an atelier material; order the raw material "
                f"with kind 'material'"
            )
        if product.kind == ProductKind.SERVICE:
            kind = ItemKind.SERVICE
        return OrderItem(
            product_id=product.id,
            product_name=product.name,
            quantity=Quantity(spec.quantity),
            unit_price=Money.of(spec.unit_price) if spec.unit_price else product.price,
            kind=kind,
            sku=product.sku,
        )

    def _apply_stock_effects(self, order: Order) -> None:
        reference = str(order.id)
        reserved = [
            (item.product_id, item.quantity.value) for item in order.reservation_items()
        ]
        if reserved:
            ReservationLedger(self._uow, ttl_hours=self._ttl_hours).reserve(order.id, reserved)

        sales = SalesConsumptionService(self._uow)
        for item in order.consumed_items():
            qty = item.quantity.value
            if item.strategy == ConsumptionStrategy.MATERIAL:
                sales.consume_raw_material(item.product_id, qty, reference_id=reference)
            elif order.shop_id is not None:
                sales.consume_at_location(
                    LocationRef.shop(order.shop_id), item.product_id, qty, reference_id=reference
                )
            else:
                sales.consume_from_pool(item.product_id, qty, reference_id=reference)

    def _require_shop(self, shop_id: str) -> None:
        location = self._uow.locations.get_by_id(shop_id)
        if location is None or location.kind != LocationKind.SHOP:
            raise EntityNotFoundError(f"Shop '{shop_id}' not found")
