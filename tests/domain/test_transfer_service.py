"""Tests for the Transfer Primitive, Pool adjustments and perfume production."""

import pytest

from ims.domain.exceptions import (
    EntityNotFoundError,
    InsufficientBulkMaterialError,
    InsufficientPackagingError,
    InsufficientShopStockError,
    InsufficientStockError,
    NotAssignedToLocationError,
    ValidationError,
)
from ims.domain.model.allocation import LocationAllocation
from ims.domain.model.ledger import LedgerEntryType
from ims.domain.model.location import Location
from ims.domain.model.materials import BulkMaterial, PackagingStock
from ims.domain.model.product import Product, ProductKind
from ims.domain.model.value_objects import POOL, SINK, LocationKind, LocationRef
from ims.domain.service.transfer_service import AdjustmentMode, TransferService
from tests.fakes import FakeMaterialRepository, FakeUnitOfWork

SHOP = LocationRef.shop("s1")
WAREHOUSE = LocationRef.warehouse("w1")


def _setup(pool: int = 100, reserved: int = 0, shop_qty: int | None = None) -> FakeUnitOfWork:
    allocations = []
    if shop_qty is not None:
        allocations.append(LocationAllocation(SHOP, "p1", quantity=shop_qty))
    return FakeUnitOfWork(
        products=[
            Product(id="p1", name="Soap", sku="SOAP", pool_quantity=pool, reserved_quantity=reserved)
        ],
        locations=[
            Location("s1", "Kigali shop", LocationKind.SHOP),
            Location("w1", "Main warehouse", LocationKind.WAREHOUSE),
            Location("old", "Closed shop", LocationKind.SHOP, is_active=False),
        ],
        allocations=allocations,
    )


class TestTransferFromPool:

    def test_pool_to_shop_creates_allocation(self):
        uow = _setup(pool=100)
        result = TransferService(uow).transfer(POOL, SHOP, "p1", 30)

        assert uow.products.get_by_id("p1").pool_quantity == 70
        assert uow.allocations.get(SHOP, "p1").quantity == 30
        assert (result.source.before, result.source.after) == (100, 70)
        assert (result.destination.before, result.destination.after) == (0, 30)

    def test_writes_one_assign_entry(self):
        uow = _setup(pool=100)
        TransferService(uow).transfer(POOL, SHOP, "p1", 30, reference_id="ref-1")

        [entry] = uow.ledger.entries
        assert entry.entry_type == LedgerEntryType.ASSIGN
        assert (entry.previous_stock, entry.new_stock) == (100, 70)
        assert entry.location == SHOP
        assert entry.reference_id == "ref-1"

    def test_reserved_units_cannot_leave_pool(self):
        uow = _setup(pool=10, reserved=8)
        with pytest.raises(InsufficientStockError) as exc_info:
            TransferService(uow).transfer(POOL, SHOP, "p1", 3)
        assert exc_info.value.available == 2
        assert uow.allocations.get(SHOP, "p1") is None
        assert uow.ledger.entries == []

    def test_thresholds_applied_to_new_allocation(self):
        uow = _setup()
        TransferService(uow).transfer(POOL, SHOP, "p1", 5, min_stock_level=2, max_stock_level=20)
        allocation = uow.allocations.get(SHOP, "p1")
        assert (allocation.min_stock_level, allocation.max_stock_level) == (2, 20)


class TestTransferBetweenLocations:

    def test_shop_to_warehouse_leaves_pool_alone(self):
        uow = _setup(pool=50, shop_qty=10)
        TransferService(uow).transfer(SHOP, WAREHOUSE, "p1", 4)

        assert uow.allocations.get(SHOP, "p1").quantity == 6
        assert uow.allocations.get(WAREHOUSE, "p1").quantity == 4
        [entry] = uow.ledger.entries
        assert entry.entry_type == LedgerEntryType.TRANSFER
        assert entry.previous_stock == entry.new_stock == 50
        assert entry.notes == "from shop 's1'"

    def test_source_without_allocation(self):
        uow = _setup()
        with pytest.raises(NotAssignedToLocationError):
            TransferService(uow).transfer(WAREHOUSE, SHOP, "p1", 1)

    def test_shop_shortfall(self):
        uow = _setup(shop_qty=2)
        with pytest.raises(InsufficientShopStockError):
            TransferService(uow).transfer(SHOP, WAREHOUSE, "p1", 3)
        assert uow.allocations.get(WAREHOUSE, "p1") is None

    def test_return_to_pool(self):
        uow = _setup(pool=50, shop_qty=10)
        TransferService(uow).transfer(SHOP, POOL, "p1", 10)
        assert uow.products.get_by_id("p1").pool_quantity == 60
        assert uow.allocations.get(SHOP, "p1").quantity == 0


class TestTransferValidation:

    @pytest.mark.parametrize("qty", [0, -1, 1.5, True])
    def test_quantity_must_be_positive_int(self, qty):
        with pytest.raises(ValidationError, match="positive integer"):
            TransferService(_setup()).transfer(POOL, SHOP, "p1", qty)

    def test_same_endpoint(self):
        with pytest.raises(ValidationError, match="must differ"):
            TransferService(_setup(shop_qty=5)).transfer(SHOP, SHOP, "p1", 1)

    def test_sink_is_not_a_source(self):
        with pytest.raises(ValidationError, match="sink"):
            TransferService(_setup()).transfer(SINK, POOL, "p1", 1)

    def test_unknown_product(self):
        with pytest.raises(EntityNotFoundError):
            TransferService(_setup()).transfer(POOL, SHOP, "nope", 1)

    def test_unknown_location(self):
        with pytest.raises(EntityNotFoundError):
            TransferService(_setup()).transfer(POOL, LocationRef.shop("ghost"), "p1", 1)

    def test_kind_must_match_location(self):
        with pytest.raises(EntityNotFoundError):
            TransferService(_setup()).transfer(POOL, LocationRef.warehouse("s1"), "p1", 1)

    def test_inactive_location(self):
        with pytest.raises(ValidationError, match="inactive"):
            TransferService(_setup()).transfer(POOL, LocationRef.shop("old"), "p1", 1)


class TestSaleToSink:

    def test_shop_sale_counts_units_sold(self):
        uow = _setup(pool=50, shop_qty=10)
        result = TransferService(uow).transfer(SHOP, SINK, "p1", 3)

        product = uow.products.get_by_id("p1")
        assert product.units_sold == 3
        assert product.pool_quantity == 50
        assert uow.allocations.get(SHOP, "p1").quantity == 7
        assert uow.ledger.entries[0].entry_type == LedgerEntryType.SALE
        assert (result.destination.before, result.destination.after) == (0, 3)


class TestAdjustPool:

    @pytest.mark.parametrize("mode, qty, expected", [
        (AdjustmentMode.ADD, 5, 25),
        (AdjustmentMode.SUBTRACT, 5, 15),
        (AdjustmentMode.SET, 7, 7),
    ])
    def test_modes(self, mode, qty, expected):
        uow = _setup(pool=20)
        entry = TransferService(uow).adjust_pool("p1", mode, qty)
        assert uow.products.get_by_id("p1").pool_quantity == expected
        assert entry.entry_type == LedgerEntryType.ADJUSTMENT
        assert entry.quantity == abs(expected - 20)

    def test_subtract_cannot_take_reserved(self):
        uow = _setup(pool=20, reserved=18)
        with pytest.raises(InsufficientStockError):
            TransferService(uow).adjust_pool("p1", AdjustmentMode.SUBTRACT, 3)

    def test_set_below_reserved(self):
        uow = _setup(pool=20, reserved=10)
        with pytest.raises(ValidationError, match="reserved"):
            TransferService(uow).adjust_pool("p1", AdjustmentMode.SET, 9)

    def test_zero_add_rejected(self):
        with pytest.raises(ValidationError, match="positive"):
            TransferService(_setup()).adjust_pool("p1", AdjustmentMode.ADD, 0)


def _perfume_uow(bulk_ml: int = 900, bottles: int = 50) -> FakeUnitOfWork:
    return FakeUnitOfWork(
        products=[
            Product(
                id="oud", name="Oud 30ml", sku="OUD30", kind=ProductKind.PERFUME,
                size_spec="30ml", bulk_material_id="bulk-oud",
            )
        ],
        materials=FakeMaterialRepository(
            bulk=[BulkMaterial("bulk-oud", "Oud bulk", bulk_ml)],
            packaging=[PackagingStock("bottle-30ml", 30, bottles)],
        ),
    )


class TestProduceUnits:

    def test_bottles_from_bulk(self):
        uow = _perfume_uow()
        service = TransferService(uow)
        entries = service.produce_units(service.load_product("oud"), 10)

        assert uow.materials.get_bulk_for_update("bulk-oud").quantity_ml == 600
        assert uow.materials.get_packaging_for_update(30).units == 40
        assert uow.products.get_by_id("oud").pool_quantity == 10
        assert len(entries) == 10
        assert all(e.entry_type == LedgerEntryType.PRODUCTION and e.quantity == 1 for e in entries)
        assert [e.new_stock for e in entries] == list(range(1, 11))

    def test_insufficient_bulk_touches_nothing(self):
        uow = _perfume_uow(bulk_ml=100)
        service = TransferService(uow)
        with pytest.raises(InsufficientBulkMaterialError) as exc_info:
            service.produce_units(service.load_product("oud"), 4)
        assert (exc_info.value.required, exc_info.value.available) == (120, 100)
        assert uow.materials.get_packaging_for_update(30).units == 50

    def test_insufficient_packaging_touches_nothing(self):
        uow = _perfume_uow(bottles=3)
        service = TransferService(uow)
        with pytest.raises(InsufficientPackagingError):
            service.produce_units(service.load_product("oud"), 4)
        assert uow.materials.get_bulk_for_update("bulk-oud").quantity_ml == 900

    def test_missing_packaging_size(self):
        uow = _perfume_uow()
        uow.materials._packaging.clear()
        service = TransferService(uow)
        with pytest.raises(InsufficientPackagingError) as exc_info:
            service.produce_units(service.load_product("oud"), 1)
        assert exc_info.value.available == 0

    def test_only_perfume(self):
        uow = _setup()
        service = TransferService(uow)
        with pytest.raises(ValidationError, match="not a perfume"):
            service.produce_units(service.load_product("p1"), 1)
