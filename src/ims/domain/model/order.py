"""Order aggregate — drives an order through its fulfillment lifecycle.

The Order is an aggregate root that owns its items.  Each item records,
at creation time, which consumption strategy took its stock, so later
transitions know which ledger call applies to it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ims.domain.exceptions import InvalidTransitionError, ValidationError
from ims.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    FULFILLED = "fulfilled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"


class ItemKind(Enum):
    RETAIL = "retail"
    MATERIAL = "material"
    SERVICE = "service"


class ConsumptionStrategy(Enum):
    RESERVED = "reserved"   # held on the Pool until fulfillment
    EAGER = "eager"         # deducted when the order was created
    MATERIAL = "material"   # deducted from raw materials when the order was created
    SERVICE = "service"     # no stock behind it


ALLOWED_TRANSITIONS: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    OrderStatus.PENDING: (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
    OrderStatus.CONFIRMED: (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    OrderStatus.PROCESSING: (OrderStatus.FULFILLED, OrderStatus.CANCELLED),
    OrderStatus.FULFILLED: (OrderStatus.COMPLETED, OrderStatus.CANCELLED),
    OrderStatus.COMPLETED: (),
    OrderStatus.CANCELLED: (),
}

DELETABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED)
_CONSUMED_AT_CREATION = (ConsumptionStrategy.EAGER, ConsumptionStrategy.MATERIAL)
MAX_LINE_ITEMS = 50


@dataclass
class OrderItem:
    """Captures the price snapshot and the consumption strategy of one line."""

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money
    kind: ItemKind = ItemKind.RETAIL
    strategy: ConsumptionStrategy = ConsumptionStrategy.RESERVED
    sku: str = ""
    id: int | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value

    @property
    def is_reservation_item(self) -> bool:
        return self.strategy == ConsumptionStrategy.RESERVED

    @property
    def is_direct_consumption_item(self) -> bool:
        return self.strategy == ConsumptionStrategy.MATERIAL


def choose_strategy(kind: ItemKind, payment_status: PaymentStatus) -> ConsumptionStrategy:
    if kind == ItemKind.SERVICE:
        return ConsumptionStrategy.SERVICE
    if kind == ItemKind.MATERIAL:
        return ConsumptionStrategy.MATERIAL
    if payment_status == PaymentStatus.PENDING:
        return ConsumptionStrategy.RESERVED
    return ConsumptionStrategy.EAGER


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders — it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    customer_name: str
    items: list[OrderItem]
    shop_id: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    amount_paid: Money = field(default_factory=Money.zero)
    tracking_number: str | None = None
    notes: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer_name: str,
        items: list[OrderItem],
        shop_id: str | None = None,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        amount_paid: Money | None = None,
        notes: str = "",
    ) -> Order:
        """Create a new order and fix each item's consumption strategy.

        A paid (or partially paid) order is a final sale and starts in
        COMPLETED; an unpaid one starts in PENDING.
        """
        if not customer_name or not customer_name.strip():
            raise ValidationError("Customer name is required")

        if not items:
            raise ValidationError("Order must contain at least one item")

        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        for item in items:
            item.strategy = choose_strategy(item.kind, payment_status)

        status = (
            OrderStatus.PENDING
            if payment_status == PaymentStatus.PENDING
            else OrderStatus.COMPLETED
        )
        return Order(
            id=None,
            customer_name=customer_name.strip(),
            items=list(items),
            shop_id=shop_id,
            status=status,
            payment_status=payment_status,
            amount_paid=amount_paid or Money.zero(),
            notes=notes,
        )

    # --- State transitions ----------------------------------------------------

    def transition_to(self, target: OrderStatus) -> None:
        allowed = ALLOWED_TRANSITIONS[self.status]
        if target not in allowed:
            raise InvalidTransitionError(
                self.status.value, target.value, [s.value for s in allowed]
            )
        self.status = target
        self.updated_at = datetime.now(timezone.utc)

    def confirm(self) -> None:
        self.transition_to(OrderStatus.CONFIRMED)

    def start_processing(self) -> None:
        self.transition_to(OrderStatus.PROCESSING)

    def mark_fulfilled(self, tracking_number: str | None = None) -> None:
        self.transition_to(OrderStatus.FULFILLED)
        self.tracking_number = tracking_number

    def complete(self) -> None:
        self.transition_to(OrderStatus.COMPLETED)

    def cancel(self) -> None:
        self.transition_to(OrderStatus.CANCELLED)

    def ensure_deletable(self) -> None:
        if self.status not in DELETABLE_STATUSES:
            raise ValidationError(
                f"Only pending or confirmed orders can be deleted "
                f"(order #{self.id} is {self.status.value})"
            )

    def record_payment(self, payment_status: PaymentStatus, amount_paid: Money) -> None:
        """Update payment fields only; item strategies stay as created."""
        if self.status == OrderStatus.CANCELLED:
            raise ValidationError(f"Order #{self.id} is cancelled")
        self.payment_status = payment_status
        self.amount_paid = amount_paid
        self.updated_at = datetime.now(timezone.utc)

    # --- Computed properties --------------------------------------------------

    @property
    def total(self) -> Money:
        result = Money.zero()
        for item in self.items:
            result = result + item.line_total
        return result

    @property
    def remaining_amount(self) -> Money:
        total = self.total
        if total <= self.amount_paid:
            return Money.zero(total.currency)
        return total - self.amount_paid

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.status]

    def reservation_items(self) -> list[OrderItem]:
        return [item for item in self.items if item.is_reservation_item]

    def consumed_items(self) -> list[OrderItem]:
        """Items whose stock was taken at creation and is not given back on cancel."""
        return [item for item in self.items if item.strategy in _CONSUMED_AT_CREATION]
