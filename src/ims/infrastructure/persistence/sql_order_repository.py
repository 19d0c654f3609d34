"""SQLAlchemy implementation of OrderRepository."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ims.domain.model.order import (
    ConsumptionStrategy,
    ItemKind,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from ims.domain.model.value_objects import Money, Quantity
from ims.domain.repository.order_repository import OrderRepository
from ims.infrastructure.persistence.database import as_utc, refresh_tracked
from ims.infrastructure.persistence.orm import OrderItemRow, OrderRow


class SqlOrderRepository(OrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session
        self._seen: dict[int, Order] = {}

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        if order_id in self._seen:
            return self._seen[order_id]
        row = self._session.get(OrderRow, order_id, options=[selectinload(OrderRow.items)])
        return self._track(row) if row is not None else None

    def get_for_update(self, order_id: int) -> Order | None:
        row = self._session.execute(
            select(OrderRow)
            .where(OrderRow.id == order_id)
            .options(selectinload(OrderRow.items))
            .with_for_update(of=OrderRow)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._track(row, refresh=True) if row is not None else None

    def save(self, order: Order) -> None:
        row = self._session.get(OrderRow, order.id) if order.id is not None else None
        if row is None:
            row = OrderRow(
                items=[
                    OrderItemRow(
                        product_id=item.product_id,
                        product_name=item.product_name,
                        sku=item.sku,
                        quantity=item.quantity.value,
                        unit_price=item.unit_price.amount,
                        currency=item.unit_price.currency,
                        kind=item.kind.value,
                        strategy=item.strategy.value,
                    )
                    for item in order.items
                ]
            )
            self._session.add(row)

        # Items are fixed at creation; only order-level fields change afterwards
        row.customer_name = order.customer_name
        row.shop_id = order.shop_id
        row.status = order.status.value
        row.payment_status = order.payment_status.value
        row.amount_paid = order.amount_paid.amount
        row.currency = order.amount_paid.currency
        row.tracking_number = order.tracking_number
        row.notes = order.notes
        row.created_at = order.created_at
        row.updated_at = order.updated_at
        self._session.flush()

        if order.id is None:
            order.id = row.id
            for item, item_row in zip(order.items, row.items):
                item.id = item_row.id
        self._seen[order.id] = order

    def list_all(self, status: OrderStatus | None = None) -> list[Order]:
        stmt = select(OrderRow).options(selectinload(OrderRow.items))
        if status is not None:
            stmt = stmt.where(OrderRow.status == status.value)
        rows = self._session.execute(stmt.order_by(OrderRow.id.desc())).scalars()
        return [self._track(row) for row in rows]

    def delete(self, order: Order) -> None:
        row = self._session.get(OrderRow, order.id)
        if row is not None:
            self._session.delete(row)
            self._session.flush()
        self._seen.pop(order.id, None)

    def sold_quantity(self, shop_id: str, product_id: str) -> int:
        total = self._session.execute(
            select(func.coalesce(func.sum(OrderItemRow.quantity), 0))
            .join(OrderRow, OrderItemRow.order_id == OrderRow.id)
            .where(
                OrderRow.shop_id == shop_id,
                OrderRow.status == OrderStatus.COMPLETED.value,
                OrderItemRow.product_id == product_id,
                OrderItemRow.kind == ItemKind.RETAIL.value,
            )
        ).scalar_one()
        return int(total)

    # --- Mapping --------------------------------------------------------------

    def _track(self, row: OrderRow, refresh: bool = False) -> Order:
        if refresh:
            return refresh_tracked(self._seen, row.id, self._to_domain(row))
        if row.id not in self._seen:
            self._seen[row.id] = self._to_domain(row)
        return self._seen[row.id]

    @staticmethod
    def _to_domain(row: OrderRow) -> Order:
        return Order(
            id=row.id,
            customer_name=row.customer_name,
            items=[
                OrderItem(
                    product_id=i.product_id,
                    product_name=i.product_name,
                    quantity=Quantity(i.quantity),
                    unit_price=Money(i.unit_price, i.currency),
                    kind=ItemKind(i.kind),
                    strategy=ConsumptionStrategy(i.strategy),
                    sku=i.sku,
                    id=i.id,
                )
                for i in row.items
            ],
            shop_id=row.shop_id,
            status=OrderStatus(row.status),
            payment_status=PaymentStatus(row.payment_status),
            amount_paid=Money(row.amount_paid, row.currency),
            tracking_number=row.tracking_number,
            notes=row.notes,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )
