"""Integration tests for the assign, transfer and adjust use cases, including
the role gate in front of them.
"""

import pytest

from ims.application.adjust_stock import AdjustStockHandler
from ims.application.assign_stock import AssignStockHandler, UnassignStockHandler
from ims.application.authorization import Actor, Role
from ims.application.transfer_stock import TransferStockHandler
from ims.domain.exceptions import (
    InsufficientStockError,
    PermissionDeniedError,
    UnsoldStockRemainingError,
    ValidationError,
)
from ims.domain.model.allocation import LocationAllocation
from ims.domain.model.location import Location
from ims.domain.model.product import Product
from ims.domain.model.value_objects import LocationKind, LocationRef
from tests.fakes import FakeUnitOfWork

ADMIN = Actor("root", Role.ADMIN)
MANAGER = Actor("mgr", Role.MANAGER)
CASHIER = Actor("cash", Role.CASHIER, shop_id="s1")


def _setup(pool: int = 100) -> FakeUnitOfWork:
    return FakeUnitOfWork(
        products=[Product(id="p1", name="Soap", sku="SOAP", pool_quantity=pool)],
        locations=[
            Location("s1", "Shop one", LocationKind.SHOP),
            Location("s2", "Shop two", LocationKind.SHOP),
            Location("w1", "Warehouse", LocationKind.WAREHOUSE),
        ],
    )


class TestAssignStock:

    def test_assign_and_commit(self):
        uow = _setup()
        dto = AssignStockHandler(uow).handle("shop", "s1", "p1", 40, actor=ADMIN)

        assert dto.created
        assert dto.location == "shop 's1'"
        assert (dto.pool_before, dto.pool_after) == (100, 60)
        assert dto.entries[0].type == "assign"
        assert uow.commits == 1

    def test_reassign_reports_previous_quantity(self):
        uow = _setup()
        handler = AssignStockHandler(uow)
        handler.handle("shop", "s1", "p1", 40)
        dto = handler.handle("shop", "s1", "p1", 50, min_stock_level=5)

        assert (dto.previous_quantity, dto.quantity) == (40, 50)
        assert dto.entries[-1].type == "reassign"
        assert uow.products.get_by_id("p1").pool_quantity == 50

    def test_rejection_rolls_back(self):
        uow = _setup(pool=10)
        with pytest.raises(InsufficientStockError):
            AssignStockHandler(uow).handle("warehouse", "w1", "p1", 11)
        assert uow.allocations.list_all() == []
        assert uow.ledger.entries == []

    def test_unsold_guard_error_carries_remaining(self):
        uow = _setup()
        AssignStockHandler(uow).handle("shop", "s1", "p1", 40)
        with pytest.raises(UnsoldStockRemainingError) as exc_info:
            AssignStockHandler(uow).handle("shop", "s1", "p1", 10)
        assert exc_info.value.to_dict()["remaining"] == 40

    def test_bad_location_kind(self):
        with pytest.raises(ValidationError, match="shop or warehouse"):
            AssignStockHandler(_setup()).handle("van", "v1", "p1", 1)

    def test_manager_may_assign(self):
        uow = _setup()
        AssignStockHandler(uow).handle("shop", "s1", "p1", 5, actor=MANAGER)
        assert uow.allocations.get(LocationRef.shop("s1"), "p1").quantity == 5

    def test_cashier_may_not_assign(self):
        uow = _setup()
        with pytest.raises(PermissionDeniedError, match="cashier"):
            AssignStockHandler(uow).handle("shop", "s1", "p1", 5, actor=CASHIER)
        assert uow.commits == 0


class TestUnassignStock:

    def test_returns_to_pool(self):
        uow = _setup()
        AssignStockHandler(uow).handle("shop", "s1", "p1", 40)
        dto = UnassignStockHandler(uow).handle("shop", "s1", "p1", actor=ADMIN)

        assert dto.previous_quantity == 40
        assert dto.pool_after == 100
        assert uow.allocations.get(LocationRef.shop("s1"), "p1") is None

    def test_cashier_may_unassign_own_shop(self):
        uow = _setup()
        AssignStockHandler(uow).handle("shop", "s1", "p1", 40)
        dto = UnassignStockHandler(uow).handle("shop", "s1", "p1", actor=CASHIER)
        assert dto.pool_after == 100

    def test_cashier_denied_on_other_shop(self):
        uow = _setup()
        AssignStockHandler(uow).handle("shop", "s2", "p1", 40)
        with pytest.raises(PermissionDeniedError, match="own shop"):
            UnassignStockHandler(uow).handle("shop", "s2", "p1", actor=CASHIER)
        assert uow.allocations.get(LocationRef.shop("s2"), "p1").quantity == 40


class TestTransferStock:

    def _with_shop_stock(self) -> FakeUnitOfWork:
        uow = _setup(pool=50)
        uow.allocations.save(LocationAllocation(LocationRef.shop("s1"), "p1", quantity=10))
        return uow

    def test_shop_to_shop(self):
        uow = self._with_shop_stock()
        dto = TransferStockHandler(uow).handle("shop:s1", "shop:s2", "p1", 4, notes="rebalance")

        assert (dto.source_before, dto.source_after) == (10, 6)
        assert (dto.destination_before, dto.destination_after) == (0, 4)
        assert dto.entries[0].type == "transfer"
        assert dto.entries[0].notes == "rebalance"

    def test_pool_to_warehouse(self):
        uow = self._with_shop_stock()
        dto = TransferStockHandler(uow).handle("pool", "warehouse:w1", "p1", 20)
        assert dto.source == "pool"
        assert (dto.source_before, dto.source_after) == (50, 30)

    def test_cashier_from_own_shop_to_warehouse(self):
        uow = self._with_shop_stock()
        TransferStockHandler(uow).handle("shop:s1", "warehouse:w1", "p1", 2, actor=CASHIER)
        assert uow.allocations.get(LocationRef.warehouse("w1"), "p1").quantity == 2

    def test_cashier_from_warehouse_to_own_shop(self):
        uow = self._with_shop_stock()
        uow.allocations.save(LocationAllocation(LocationRef.warehouse("w1"), "p1", quantity=8))
        TransferStockHandler(uow).handle("warehouse:w1", "shop:s1", "p1", 3, actor=CASHIER)
        assert uow.allocations.get(LocationRef.shop("s1"), "p1").quantity == 13

    def test_cashier_to_other_shop_denied(self):
        uow = self._with_shop_stock()
        with pytest.raises(PermissionDeniedError, match="own shop"):
            TransferStockHandler(uow).handle("shop:s1", "shop:s2", "p1", 2, actor=CASHIER)
        assert uow.allocations.get(LocationRef.shop("s1"), "p1").quantity == 10
        assert uow.allocations.get(LocationRef.shop("s2"), "p1") is None

    def test_cashier_from_other_shop_denied(self):
        uow = self._with_shop_stock()
        with pytest.raises(PermissionDeniedError, match="own shop"):
            TransferStockHandler(uow).handle("shop:s2", "shop:s1", "p1", 1, actor=CASHIER)

    def test_cashier_cannot_return_to_pool(self):
        uow = self._with_shop_stock()
        with pytest.raises(PermissionDeniedError, match="between locations"):
            TransferStockHandler(uow).handle("shop:s1", "pool", "p1", 1, actor=CASHIER)

    def test_cashier_cannot_draw_from_pool(self):
        uow = self._with_shop_stock()
        with pytest.raises(PermissionDeniedError):
            TransferStockHandler(uow).handle("pool", "shop:s1", "p1", 1, actor=CASHIER)

    def test_bad_endpoint(self):
        with pytest.raises(ValidationError, match="Invalid endpoint"):
            TransferStockHandler(_setup()).handle("s1", "pool", "p1", 1)


class TestAdjustStock:

    def test_add(self):
        uow = _setup(pool=10)
        dto = AdjustStockHandler(uow).handle("p1", "add", 5, reason="delivery", actor=ADMIN)
        assert (dto.previous_stock, dto.new_stock) == (10, 15)
        assert dto.type == "adjustment"
        assert dto.notes == "delivery"

    def test_set(self):
        uow = _setup(pool=10)
        dto = AdjustStockHandler(uow).handle("p1", "SET", 3)
        assert dto.new_stock == 3
        assert dto.notes == "manual set"

    def test_unknown_mode(self):
        with pytest.raises(ValidationError, match="add, subtract or set"):
            AdjustStockHandler(_setup()).handle("p1", "double", 2)

    def test_cashier_denied(self):
        with pytest.raises(PermissionDeniedError):
            AdjustStockHandler(_setup()).handle("p1", "add", 2, actor=CASHIER)
