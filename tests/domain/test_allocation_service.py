"""Tests for set-quantity assignment: first assignment, replenishment, reduction
and removal of location allocations.
"""

import pytest

from ims.domain.exceptions import (
    InsufficientBulkMaterialError,
    InsufficientStockError,
    NotAssignedToLocationError,
    UnsoldStockRemainingError,
    ValidationError,
)
from ims.domain.model.allocation import LocationAllocation
from ims.domain.model.ledger import LedgerEntryType
from ims.domain.model.location import Location
from ims.domain.model.materials import BulkMaterial, PackagingStock
from ims.domain.model.order import ConsumptionStrategy, Order, OrderItem, OrderStatus
from ims.domain.model.product import Product, ProductKind
from ims.domain.model.value_objects import LocationKind, LocationRef, Money, Quantity
from ims.domain.service.allocation_service import AllocationService
from tests.fakes import FakeMaterialRepository, FakeUnitOfWork

SHOP_A = LocationRef.shop("shop-a")
WAREHOUSE = LocationRef.warehouse("wh")


def _setup(
    pool: int = 100,
    shop_qty: int | None = None,
    product: Product | None = None,
    materials: FakeMaterialRepository | None = None,
) -> FakeUnitOfWork:
    product = product or Product(id="p1", name="Soap", sku="SOAP", pool_quantity=pool)
    allocations = []
    if shop_qty is not None:
        allocations.append(LocationAllocation(SHOP_A, product.id, quantity=shop_qty))
    return FakeUnitOfWork(
        products=[product],
        locations=[
            Location("shop-a", "Shop A", LocationKind.SHOP),
            Location("wh", "Warehouse", LocationKind.WAREHOUSE),
        ],
        allocations=allocations,
        materials=materials,
    )


def _record_shop_sale(uow: FakeUnitOfWork, product_id: str, qty: int,
                      status: OrderStatus = OrderStatus.COMPLETED) -> None:
    """Seed an order sold at Shop A; the allocation itself is left untouched."""
    uow.orders.save(
        Order(
            id=None,
            customer_name="Walk-in",
            items=[
                OrderItem(
                    product_id=product_id,
                    product_name="Soap",
                    quantity=Quantity(qty),
                    unit_price=Money.of("1"),
                    strategy=ConsumptionStrategy.EAGER,
                )
            ],
            shop_id="shop-a",
            status=status,
        )
    )


class TestFirstAssignment:

    def test_pool_100_assign_40(self):
        uow = _setup(pool=100)
        result = AllocationService(uow).assign(SHOP_A, "p1", 40)

        assert uow.products.get_by_id("p1").pool_quantity == 60
        assert uow.allocations.get(SHOP_A, "p1").quantity == 40
        assert result.created
        assert (result.pool_before, result.pool_after) == (100, 60)
        assert [e.entry_type for e in result.entries] == [LedgerEntryType.ASSIGN]

    def test_more_than_pool_rejected(self):
        uow = _setup(pool=10)
        with pytest.raises(InsufficientStockError):
            AllocationService(uow).assign(SHOP_A, "p1", 11)

    def test_zero_rejected_for_new_allocation(self):
        with pytest.raises(ValidationError, match="positive"):
            AllocationService(_setup()).assign(SHOP_A, "p1", 0)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError, match="non-negative"):
            AllocationService(_setup()).assign(SHOP_A, "p1", -5)

    def test_warehouse_assignment(self):
        uow = _setup(pool=100)
        AllocationService(uow).assign(WAREHOUSE, "p1", 25, min_stock_level=5)
        allocation = uow.allocations.get(WAREHOUSE, "p1")
        assert allocation.quantity == 25
        assert allocation.min_stock_level == 5


class TestReassignShop:

    def test_reduce_below_unsold_rejected(self):
        uow = _setup(pool=60, shop_qty=40)
        _record_shop_sale(uow, "p1", 15)

        with pytest.raises(UnsoldStockRemainingError) as exc_info:
            AllocationService(uow).assign(SHOP_A, "p1", 20)
        assert exc_info.value.remaining == 25
        assert exc_info.value.requested == 20
        assert uow.allocations.get(SHOP_A, "p1").quantity == 40

    def test_reduce_to_unsold_remainder_allowed(self):
        uow = _setup(pool=60, shop_qty=40)
        _record_shop_sale(uow, "p1", 15)

        result = AllocationService(uow).assign(SHOP_A, "p1", 25)
        assert uow.allocations.get(SHOP_A, "p1").quantity == 25
        assert uow.products.get_by_id("p1").pool_quantity == 75
        assert [e.entry_type for e in result.entries] == [LedgerEntryType.REASSIGN]

    def test_only_completed_orders_count_as_sold(self):
        uow = _setup(pool=60, shop_qty=40)
        _record_shop_sale(uow, "p1", 15, status=OrderStatus.PENDING)

        with pytest.raises(UnsoldStockRemainingError) as exc_info:
            AllocationService(uow).assign(SHOP_A, "p1", 20)
        assert exc_info.value.remaining == 40

    def test_replenish_from_pool(self):
        uow = _setup(pool=60, shop_qty=40)
        _record_shop_sale(uow, "p1", 15)

        result = AllocationService(uow).assign(SHOP_A, "p1", 60)
        assert uow.allocations.get(SHOP_A, "p1").quantity == 60
        assert uow.products.get_by_id("p1").pool_quantity == 40
        assert result.topped_up == 0
        assert not result.created

    def test_replenish_tops_up_short_pool(self):
        uow = _setup(pool=5, shop_qty=40)

        result = AllocationService(uow).assign(SHOP_A, "p1", 60)
        assert result.topped_up == 15
        assert uow.allocations.get(SHOP_A, "p1").quantity == 60
        assert uow.products.get_by_id("p1").pool_quantity == 0
        assert [e.entry_type for e in result.entries] == [
            LedgerEntryType.ADJUSTMENT, LedgerEntryType.REASSIGN,
        ]

    def test_same_quantity_only_updates_thresholds(self):
        uow = _setup(pool=60, shop_qty=40)
        result = AllocationService(uow).assign(SHOP_A, "p1", 40, min_stock_level=3, max_stock_level=80)

        allocation = uow.allocations.get(SHOP_A, "p1")
        assert (allocation.quantity, allocation.min_stock_level, allocation.max_stock_level) == (40, 3, 80)
        assert result.entries == []
        assert uow.ledger.entries == []


class TestReassignWarehouse:

    def test_warehouse_reduction_has_no_sold_guard(self):
        uow = _setup(pool=0)
        uow.allocations.save(LocationAllocation(WAREHOUSE, "p1", quantity=30))
        AllocationService(uow).assign(WAREHOUSE, "p1", 10)
        assert uow.allocations.get(WAREHOUSE, "p1").quantity == 10
        assert uow.products.get_by_id("p1").pool_quantity == 20

    def test_warehouse_increase_is_not_topped_up(self):
        uow = _setup(pool=5)
        uow.allocations.save(LocationAllocation(WAREHOUSE, "p1", quantity=30))
        with pytest.raises(InsufficientStockError):
            AllocationService(uow).assign(WAREHOUSE, "p1", 40)


def _perfume(pool: int = 0) -> Product:
    return Product(
        id="oud", name="Oud 30ml", sku="OUD30", kind=ProductKind.PERFUME,
        pool_quantity=pool, size_spec="30ml", bulk_material_id="bulk-oud",
    )


class TestPerfumeReplenishment:

    def test_replenish_bottles_from_bulk(self):
        materials = FakeMaterialRepository(
            bulk=[BulkMaterial("bulk-oud", "Oud bulk", 900)],
            packaging=[PackagingStock("bottle-30ml", 30, 25)],
        )
        uow = _setup(product=_perfume(), shop_qty=5, materials=materials)

        result = AllocationService(uow).assign(SHOP_A, "oud", 15)

        assert materials.get_bulk_for_update("bulk-oud").quantity_ml == 600
        assert materials.get_packaging_for_update(30).units == 15
        production = [e for e in uow.ledger.entries if e.entry_type == LedgerEntryType.PRODUCTION]
        assert len(production) == 10
        assert result.produced_units == 10
        assert uow.allocations.get(SHOP_A, "oud").quantity == 15
        assert uow.products.get_by_id("oud").pool_quantity == 0

    def test_short_bulk_rejects_replenishment(self):
        materials = FakeMaterialRepository(
            bulk=[BulkMaterial("bulk-oud", "Oud bulk", 200)],
            packaging=[PackagingStock("bottle-30ml", 30, 25)],
        )
        uow = _setup(product=_perfume(), shop_qty=5, materials=materials)

        with pytest.raises(InsufficientBulkMaterialError):
            AllocationService(uow).assign(SHOP_A, "oud", 15)
        assert uow.allocations.get(SHOP_A, "oud").quantity == 5

    def test_first_perfume_assignment_uses_pool(self):
        uow = _setup(product=_perfume(pool=8))
        AllocationService(uow).assign(SHOP_A, "oud", 8)
        assert uow.products.get_by_id("oud").pool_quantity == 0
        assert not [e for e in uow.ledger.entries if e.entry_type == LedgerEntryType.PRODUCTION]


class TestUnassign:

    def test_returns_everything_to_pool(self):
        uow = _setup(pool=60, shop_qty=40)
        result = AllocationService(uow).unassign(SHOP_A, "p1")

        assert uow.allocations.get(SHOP_A, "p1") is None
        assert uow.products.get_by_id("p1").pool_quantity == 100
        assert result.previous_quantity == 40
        assert result.pool_after == 100

    def test_empty_allocation_removed_without_entry(self):
        uow = _setup(pool=60, shop_qty=0)
        AllocationService(uow).unassign(SHOP_A, "p1")
        assert uow.allocations.get(SHOP_A, "p1") is None
        assert uow.ledger.entries == []

    def test_not_assigned(self):
        with pytest.raises(NotAssignedToLocationError):
            AllocationService(_setup()).unassign(SHOP_A, "p1")
