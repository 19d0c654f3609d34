"""Tests for the SQLAlchemy repositories and unit of work against in-memory SQLite."""

from datetime import datetime, timedelta, timezone

import pytest

from ims.application.add_location import AddLocationHandler
from ims.application.add_product import AddProductHandler
from ims.application.assign_stock import AssignStockHandler
from ims.application.confirm_order import ConfirmOrderHandler
from ims.application.create_order import CreateOrderHandler
from ims.application.dto import OrderItemSpec
from ims.application.fulfill_order import FulfillOrderHandler
from ims.application.process_order import ProcessOrderHandler
from ims.application.show_ledger import ReconcileLedgerHandler
from ims.domain.exceptions import ConcurrencyConflictError
from ims.domain.model.allocation import LocationAllocation
from ims.domain.model.ledger import LedgerEntry, LedgerEntryType
from ims.domain.model.location import Location
from ims.domain.model.order import ConsumptionStrategy, Order, OrderItem, OrderStatus
from ims.domain.model.product import Product
from ims.domain.model.reservation import Reservation, ReservationStatus
from ims.domain.model.value_objects import LocationKind, LocationRef, Money, Quantity
from ims.infrastructure.persistence.database import create_db_engine, create_session_factory, init_schema
from ims.infrastructure.persistence.unit_of_work import SqlAlchemyUnitOfWork

SHOP = LocationRef.shop("s1")
NOW = datetime(2026, 2, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def uow():
    engine = create_db_engine("sqlite://")
    init_schema(engine)
    yield SqlAlchemyUnitOfWork(create_session_factory(engine))
    engine.dispose()


def _seed(uow: SqlAlchemyUnitOfWork, pool: int = 50) -> None:
    with uow:
        uow.products.save(
            Product(id="p1", name="Soap", sku="SOAP", pool_quantity=pool, price=Money.of("1500"))
        )
        uow.locations.save(Location("s1", "Kigali shop", LocationKind.SHOP))
        uow.commit()


def _order(shop_id: str | None, status: OrderStatus, qty: int, product_id: str = "p1") -> Order:
    return Order(
        id=None,
        customer_name="Alice",
        items=[
            OrderItem(
                product_id=product_id,
                product_name="Soap",
                quantity=Quantity(qty),
                unit_price=Money.of("1500"),
                strategy=ConsumptionStrategy.EAGER,
                sku="SOAP",
            )
        ],
        shop_id=shop_id,
        status=status,
    )


class TestUnitOfWork:

    def test_round_trip(self, uow):
        _seed(uow)
        with uow:
            product = uow.products.get_by_id("p1")
            assert (product.name, product.sku, product.pool_quantity) == ("Soap", "SOAP", 50)
            assert product.price == Money.of("1500")
            assert uow.locations.get_by_id("s1").kind == LocationKind.SHOP

    def test_leaving_without_commit_rolls_back(self, uow):
        _seed(uow)
        with uow:
            product = uow.products.get_for_update("p1")
            product.withdraw(10)
            uow.products.save(product)

        with uow:
            assert uow.products.get_by_id("p1").pool_quantity == 50

    def test_exception_rolls_back(self, uow):
        _seed(uow)
        with pytest.raises(RuntimeError):
            with uow:
                product = uow.products.get_for_update("p1")
                product.deposit(5)
                uow.products.save(product)
                raise RuntimeError("boom")

        with uow:
            assert uow.products.get_by_id("p1").pool_quantity == 50

    def test_identity_map(self, uow):
        _seed(uow)
        with uow:
            first = uow.products.get_by_id("p1")
            assert uow.products.get_for_update("p1") is first
            assert uow.products.get_by_sku("SOAP") is first

    def test_check_constraint_surfaces_as_conflict(self, uow):
        _seed(uow, pool=5)
        with pytest.raises(ConcurrencyConflictError):
            with uow:
                product = uow.products.get_for_update("p1")
                product.reserved_quantity = 6
                uow.products.save(product)
                uow.commit()


class TestAllocations:

    def test_save_get_delete(self, uow):
        _seed(uow)
        with uow:
            uow.allocations.save(LocationAllocation(SHOP, "p1", quantity=12, min_stock_level=2))
            uow.commit()

        with uow:
            allocation = uow.allocations.get_for_update(SHOP, "p1")
            assert (allocation.quantity, allocation.min_stock_level) == (12, 2)
            assert allocation.last_updated.tzinfo is not None
            assert uow.allocations.list_for_location(SHOP) == [allocation]
            uow.allocations.delete(allocation)
            uow.commit()

        with uow:
            assert uow.allocations.get(SHOP, "p1") is None
            assert uow.allocations.list_all() == []


class TestLedger:

    def test_append_assigns_increasing_ids(self, uow):
        _seed(uow)
        with uow:
            first = uow.ledger.append(LedgerEntry("p1", LedgerEntryType.ADJUSTMENT, 50, 0, 50))
            second = uow.ledger.append(
                LedgerEntry("p1", LedgerEntryType.ASSIGN, 10, 50, 40, location=SHOP)
            )
            uow.ledger.append(LedgerEntry("p2", LedgerEntryType.ADJUSTMENT, 1, 0, 1))
            uow.commit()
        assert second.id > first.id

        with uow:
            oldest_first = uow.ledger.list_for_product("p1")
            assert [e.entry_type for e in oldest_first] == [
                LedgerEntryType.ADJUSTMENT, LedgerEntryType.ASSIGN,
            ]
            assert oldest_first[1].location == SHOP
            assert oldest_first[0].created_at.tzinfo is not None

            newest = uow.ledger.list_recent(limit=2)
            assert [e.product_id for e in newest] == ["p2", "p1"]


class TestOrders:

    def test_save_assigns_ids(self, uow):
        _seed(uow)
        with uow:
            order = _order("s1", OrderStatus.COMPLETED, 3)
            uow.orders.save(order)
            uow.commit()
        assert order.id is not None
        assert order.items[0].id is not None

        with uow:
            loaded = uow.orders.get_by_id(order.id)
            assert loaded.items[0].strategy == ConsumptionStrategy.EAGER
            assert loaded.total == Money.of("4500")
            assert loaded.created_at.tzinfo is not None

    def test_sold_quantity_counts_completed_shop_orders(self, uow):
        _seed(uow)
        with uow:
            uow.orders.save(_order("s1", OrderStatus.COMPLETED, 10))
            uow.orders.save(_order("s1", OrderStatus.COMPLETED, 5))
            uow.orders.save(_order("s1", OrderStatus.PENDING, 7))
            uow.orders.save(_order(None, OrderStatus.COMPLETED, 9))
            uow.orders.save(_order("s1", OrderStatus.COMPLETED, 4, product_id="p2"))
            uow.commit()

        with uow:
            assert uow.orders.sold_quantity("s1", "p1") == 15
            assert uow.orders.sold_quantity("s2", "p1") == 0

    def test_list_and_delete(self, uow):
        _seed(uow)
        with uow:
            first = _order("s1", OrderStatus.PENDING, 1)
            second = _order("s1", OrderStatus.COMPLETED, 1)
            uow.orders.save(first)
            uow.orders.save(second)
            uow.commit()

        with uow:
            assert [o.id for o in uow.orders.list_all()] == [second.id, first.id]
            assert [o.id for o in uow.orders.list_all(OrderStatus.PENDING)] == [first.id]
            uow.orders.delete(uow.orders.get_for_update(first.id))
            uow.commit()

        with uow:
            assert uow.orders.get_by_id(first.id) is None


class TestReservations:

    def test_expired_and_active_quantity(self, uow):
        _seed(uow)
        with uow:
            for rid, qty, hours, status in [
                ("old", 2, -1, ReservationStatus.ACTIVE),
                ("live", 3, 5, ReservationStatus.ACTIVE),
                ("gone", 4, -3, ReservationStatus.RELEASED),
            ]:
                uow.reservations.save(
                    Reservation(
                        id=rid,
                        order_id=1,
                        product_id="p1",
                        quantity_reserved=qty,
                        status=status,
                        reservation_date=NOW - timedelta(hours=24),
                        expiry_date=NOW + timedelta(hours=hours),
                    )
                )
            uow.commit()

        with uow:
            assert uow.reservations.list_expired_ids(NOW) == ["old"]
            assert uow.reservations.active_quantity("p1") == 5
            active = uow.reservations.list_for_order(1, ReservationStatus.ACTIVE)
            assert sorted(r.id for r in active) == ["live", "old"]
            assert active[0].expiry_date.tzinfo is not None


class TestOrderLifecycleOnSql:

    def test_reserved_order_flows_to_fulfilment(self, uow):
        AddLocationHandler(uow).handle("s1", "Kigali shop", "shop")
        AddProductHandler(uow).handle("p1", "Soap", "SOAP", price="1500", initial_stock=100)
        AssignStockHandler(uow).handle("shop", "s1", "p1", 40)

        order = CreateOrderHandler(uow).handle("Alice", [OrderItemSpec("p1", 5)])
        ConfirmOrderHandler(uow).handle(order.id)
        ProcessOrderHandler(uow).handle(order.id)
        fulfilled = FulfillOrderHandler(uow).handle(order.id, tracking_number="TRK-1")

        assert fulfilled.status == "fulfilled"
        with uow:
            product = uow.products.get_by_id("p1")
            assert (product.pool_quantity, product.reserved_quantity) == (55, 0)
            assert uow.reservations.list_for_order(order.id, ReservationStatus.ACTIVE) == []
            sale = uow.ledger.list_recent("p1", limit=1)[0]
            assert sale.entry_type == LedgerEntryType.SALE
            assert (sale.previous_stock, sale.new_stock) == (60, 55)

        assert ReconcileLedgerHandler(uow).handle() == []
