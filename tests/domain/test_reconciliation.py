"""Tests for ledger reconciliation: the chain, the Pool, reservations and
stock conservation must all agree after any sequence of operations.
"""

from datetime import datetime, timedelta, timezone

from ims.domain.model.ledger import LedgerEntry, LedgerEntryType
from ims.domain.model.location import Location
from ims.domain.model.product import Product
from ims.domain.model.value_objects import POOL, SINK, LocationKind, LocationRef
from ims.domain.service.allocation_service import AllocationService
from ims.domain.service.reconciliation import LedgerReconciler, expected_holdings
from ims.domain.service.reservation_ledger import ReservationLedger
from ims.domain.service.sales_service import SalesConsumptionService
from ims.domain.service.transfer_service import AdjustmentMode, TransferService
from tests.fakes import FakeUnitOfWork

SHOP = LocationRef.shop("s1")
WAREHOUSE = LocationRef.warehouse("w1")
NOW = datetime(2026, 5, 1, tzinfo=timezone.utc)


def _setup() -> FakeUnitOfWork:
    uow = FakeUnitOfWork(
        products=[Product(id="p1", name="Soap", sku="SOAP")],
        locations=[
            Location("s1", "Shop", LocationKind.SHOP),
            Location("w1", "Warehouse", LocationKind.WAREHOUSE),
        ],
    )
    TransferService(uow).adjust_pool("p1", AdjustmentMode.ADD, 100, notes="initial stock")
    return uow


class TestReconcileClean:

    def test_fresh_product(self):
        assert LedgerReconciler(_setup()).reconcile() == []

    def test_after_mixed_operations(self):
        uow = _setup()
        AllocationService(uow).assign(SHOP, "p1", 40)
        AllocationService(uow).assign(WAREHOUSE, "p1", 10)
        TransferService(uow).transfer(WAREHOUSE, SHOP, "p1", 5)
        SalesConsumptionService(uow).consume_at_location(SHOP, "p1", 7)
        SalesConsumptionService(uow).consume_from_pool("p1", 3)

        ledger = ReservationLedger(uow)
        ledger.reserve(1, [("p1", 6)], now=NOW)
        ledger.fulfill(1)
        [lapsed] = ledger.reserve(2, [("p1", 2)], now=NOW)
        ledger.expire(lapsed.id, NOW + timedelta(days=2))
        ledger.reserve(3, [("p1", 4)], now=NOW)

        AllocationService(uow).assign(SHOP, "p1", 60)
        AllocationService(uow).unassign(WAREHOUSE, "p1")

        assert LedgerReconciler(uow).reconcile() == []

    def test_expected_holdings(self):
        uow = _setup()
        AllocationService(uow).assign(SHOP, "p1", 40)
        SalesConsumptionService(uow).consume_at_location(SHOP, "p1", 7)
        assert expected_holdings(uow.ledger.list_for_product("p1")) == 93


class TestReconcileIssues:

    def test_pool_changed_outside_ledger(self):
        uow = _setup()
        uow.products.get_by_id("p1").pool_quantity = 90

        issues = LedgerReconciler(uow).reconcile()
        kinds = {i.kind for i in issues}
        assert kinds == {"pool_mismatch", "conservation"}
        mismatch = next(i for i in issues if i.kind == "pool_mismatch")
        assert (mismatch.expected, mismatch.actual) == (100, 90)

    def test_allocation_changed_outside_ledger(self):
        uow = _setup()
        AllocationService(uow).assign(SHOP, "p1", 40)
        uow.allocations.get(SHOP, "p1").quantity = 45

        [issue] = LedgerReconciler(uow).reconcile()
        assert issue.kind == "conservation"
        assert (issue.expected, issue.actual) == (100, 105)

    def test_reserved_counter_drift(self):
        uow = _setup()
        ReservationLedger(uow).reserve(1, [("p1", 5)], now=NOW)
        uow.products.get_by_id("p1").reserved_quantity = 3

        [issue] = LedgerReconciler(uow).reconcile()
        assert issue.kind == "reserved_mismatch"
        assert "expected 5, got 3" in issue.describe()

    def test_chain_break(self):
        uow = _setup()
        uow.ledger.append(
            LedgerEntry(
                product_id="p1",
                entry_type=LedgerEntryType.TRANSFER,
                quantity=1,
                previous_stock=80,
                new_stock=100,
            )
        )

        issues = LedgerReconciler(uow).reconcile()
        [chain] = [i for i in issues if i.kind == "chain_break"]
        assert chain.entry_id == 2
        assert "at entry #2" in chain.describe()

    def test_sink_is_not_holdings(self):
        uow = _setup()
        TransferService(uow).transfer(POOL, SINK, "p1", 10)
        assert LedgerReconciler(uow).reconcile() == []
