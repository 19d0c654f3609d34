"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ims.domain.model.ledger import LedgerEntry
from ims.domain.model.order import Order
from ims.domain.model.transfer import AssignmentResult, TransferResult

_TIME_FORMAT = "%Y-%m-%d %H:%M UTC"


# --- Inputs -------------------------------------------------------------------


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: a product (or raw material) id and quantity.

    ``kind`` is ``retail`` or ``material``; ``unit_price`` overrides the
    catalog price when given.
    """

    product_id: str
    quantity: int
    kind: str = "retail"
    unit_price: str | None = None


# --- Stock movements ----------------------------------------------------------


@dataclass(frozen=True)
class LedgerEntryDTO:
    id: int | None
    product_id: str
    type: str
    quantity: int
    previous_stock: int
    new_stock: int
    reference_id: str | None
    location: str | None
    notes: str
    created_at: str


@dataclass(frozen=True)
class TransferDTO:
    product_id: str
    quantity: int
    source: str
    source_before: int
    source_after: int
    destination: str
    destination_before: int
    destination_after: int
    entries: list[LedgerEntryDTO] = field(default_factory=list)


@dataclass(frozen=True)
class AssignmentDTO:
    location: str
    product_id: str
    previous_quantity: int
    quantity: int
    pool_before: int
    pool_after: int
    created: bool
    topped_up: int
    produced_units: int
    entries: list[LedgerEntryDTO] = field(default_factory=list)


# --- Orders -------------------------------------------------------------------


@dataclass(frozen=True)
class OrderItemDTO:
    product_id: str
    product_name: str
    quantity: int
    unit_price: str
    line_total: str
    kind: str
    strategy: str


@dataclass(frozen=True)
class OrderDTO:
    id: int
    customer_name: str
    status: str
    payment_status: str
    shop_id: str | None
    items: list[OrderItemDTO]
    total: str
    amount_paid: str
    remaining: str
    tracking_number: str | None
    created_at: str


@dataclass(frozen=True)
class PickingLineDTO:
    product_id: str
    product_name: str
    sku: str
    quantity: int
    source: str


# --- Queries ------------------------------------------------------------------


@dataclass(frozen=True)
class StockInfoDTO:
    product_id: str
    product_name: str
    pool_quantity: int
    reserved_quantity: int
    total_assigned: int
    global_stock: int
    available_for_assignment: int
    location: str | None = None
    location_quantity: int = 0
    sold_quantity: int = 0
    remaining_quantity: int = 0
    can_decrease: bool = True
    message: str = ""


@dataclass(frozen=True)
class InventoryRowDTO:
    product_id: str
    name: str
    sku: str
    kind: str
    pool_quantity: int
    reserved_quantity: int
    available_quantity: int
    total_assigned: int
    units_sold: int


@dataclass(frozen=True)
class LowStockDTO:
    product_id: str
    product_name: str
    where: str
    quantity: int
    min_stock_level: int


@dataclass(frozen=True)
class SweepReportDTO:
    checked: int
    expired: int
    failed: list[str] = field(default_factory=list)


# --- Mapping ------------------------------------------------------------------


def ledger_entry_to_dto(entry: LedgerEntry) -> LedgerEntryDTO:
    return LedgerEntryDTO(
        id=entry.id,
        product_id=entry.product_id,
        type=entry.entry_type.value,
        quantity=entry.quantity,
        previous_stock=entry.previous_stock,
        new_stock=entry.new_stock,
        reference_id=entry.reference_id,
        location=str(entry.location) if entry.location else None,
        notes=entry.notes,
        created_at=entry.created_at.strftime(_TIME_FORMAT),
    )


def transfer_to_dto(result: TransferResult) -> TransferDTO:
    return TransferDTO(
        product_id=result.product_id,
        quantity=result.quantity,
        source=str(result.source.endpoint),
        source_before=result.source.before,
        source_after=result.source.after,
        destination=str(result.destination.endpoint),
        destination_before=result.destination.before,
        destination_after=result.destination.after,
        entries=[ledger_entry_to_dto(e) for e in result.entries],
    )


def assignment_to_dto(result: AssignmentResult) -> AssignmentDTO:
    return AssignmentDTO(
        location=str(result.location),
        product_id=result.product_id,
        previous_quantity=result.previous_quantity,
        quantity=result.quantity,
        pool_before=result.pool_before,
        pool_after=result.pool_after,
        created=result.created,
        topped_up=result.topped_up,
        produced_units=result.produced_units,
        entries=[ledger_entry_to_dto(e) for e in result.entries],
    )


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        customer_name=order.customer_name,
        status=order.status.value,
        payment_status=order.payment_status.value,
        shop_id=order.shop_id,
        items=[
            OrderItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
                kind=item.kind.value,
                strategy=item.strategy.value,
            )
            for item in order.items
        ],
        total=str(order.total),
        amount_paid=str(order.amount_paid),
        remaining=str(order.remaining_amount),
        tracking_number=order.tracking_number,
        created_at=order.created_at.strftime(_TIME_FORMAT),
    )
