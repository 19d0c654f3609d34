"""Domain service: the Transfer Primitive.

Every change to a Pool quantity or a location allocation goes through this
service (reservations excepted, see ``ReservationLedger``).  It re-reads the
rows it touches with ``get_for_update`` inside the caller's unit of work,
validates the source, mutates both endpoints and appends one ledger entry.

The service never commits; the application handler that owns the unit of
work decides when the whole operation is durable.
"""

from __future__ import annotations

import logging
from enum import Enum

from ims.domain.exceptions import (
    EntityNotFoundError,
    InsufficientBulkMaterialError,
    InsufficientPackagingError,
    NotAssignedToLocationError,
    ValidationError,
)
from ims.domain.model.allocation import LocationAllocation
from ims.domain.model.ledger import LedgerEntry, LedgerEntryType
from ims.domain.model.product import Product, ProductKind
from ims.domain.model.transfer import EndpointBalance, TransferResult
from ims.domain.model.value_objects import (
    Endpoint,
    LocationRef,
    PoolEndpoint,
    SinkEndpoint,
)
from ims.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class AdjustmentMode(Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"


class TransferService:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    # --- Transfer primitive ---------------------------------------------------

    def transfer(
        self,
        source: Endpoint,
        destination: Endpoint,
        product_id: str,
        quantity: int,
        *,
        entry_type: LedgerEntryType | None = None,
        reference_id: str | None = None,
        notes: str = "",
        min_stock_level: int = 0,
        max_stock_level: int = 0,
    ) -> TransferResult:
        """Move ``quantity`` units of a product from ``source`` to ``destination``.

        The Pool gives only its unreserved units.  A location gives its whole
        allocation and must already hold the product.  A missing destination
        allocation is created with the supplied thresholds.  The sink takes
        units out of the system and counts them as sold.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Transfer quantity must be a positive integer")
        if isinstance(source, SinkEndpoint):
            raise ValidationError("Cannot transfer out of the sink")
        if source == destination:
            raise ValidationError("Source and destination must differ")

        product = self.load_product(product_id)
        pool_before = product.pool_quantity

        # Phase 1: load and validate both endpoints
        source_alloc: LocationAllocation | None = None
        if isinstance(source, LocationRef):
            self.require_location(source)
            source_alloc = self._uow.allocations.get_for_update(source, product_id)
            if source_alloc is None:
                raise NotAssignedToLocationError(product_id, str(source))

        dest_alloc: LocationAllocation | None = None
        if isinstance(destination, LocationRef):
            self.require_location(destination)
            dest_alloc = self._uow.allocations.get_for_update(destination, product_id)
            if dest_alloc is None:
                dest_alloc = LocationAllocation(
                    location=destination,
                    product_id=product_id,
                    min_stock_level=min_stock_level,
                    max_stock_level=max_stock_level,
                )

        # Phase 2: mutate (each withdrawal re-checks its own balance)
        if source_alloc is not None:
            src_before = source_alloc.quantity
            source_alloc.dispatch(quantity)
            self._uow.allocations.save(source_alloc)
            source_balance = EndpointBalance(source, src_before, source_alloc.quantity)
        else:
            product.withdraw(quantity)
            source_balance = EndpointBalance(source, pool_before, product.pool_quantity)

        if dest_alloc is not None:
            dest_before = dest_alloc.quantity
            dest_alloc.receive(quantity)
            self._uow.allocations.save(dest_alloc)
            dest_balance = EndpointBalance(destination, dest_before, dest_alloc.quantity)
        elif isinstance(destination, PoolEndpoint):
            before = product.pool_quantity
            product.deposit(quantity)
            dest_balance = EndpointBalance(destination, before, product.pool_quantity)
        else:
            sold_before = product.units_sold
            product.record_sale(quantity)
            dest_balance = EndpointBalance(destination, sold_before, product.units_sold)

        self._uow.products.save(product)

        location = dest_alloc.location if dest_alloc is not None else (
            source_alloc.location if source_alloc is not None else None
        )
        if source_alloc is not None and dest_alloc is not None and not notes:
            notes = f"from {source_alloc.location}"

        entry = self._uow.ledger.append(
            LedgerEntry(
                product_id=product_id,
                entry_type=entry_type or _default_entry_type(source, destination),
                quantity=quantity,
                previous_stock=pool_before,
                new_stock=product.pool_quantity,
                reference_id=reference_id,
                location=location,
                notes=notes,
            )
        )
        logger.info(
            "%s %s x%d: %s -> %s (pool %d -> %d)",
            entry.entry_type.value, product_id, quantity,
            source, destination, pool_before, product.pool_quantity,
        )
        return TransferResult(
            product_id=product_id,
            quantity=quantity,
            source=source_balance,
            destination=dest_balance,
            entries=[entry],
        )

    # --- New stock entering the Pool ------------------------------------------

    def top_up_pool(
        self, product: Product, quantity: int, *, reference_id: str | None = None, notes: str = ""
    ) -> LedgerEntry:
        """Add externally restocked units to the Pool as an ``adjustment``."""
        before = product.pool_quantity
        product.deposit(quantity)
        self._uow.products.save(product)
        entry = self._uow.ledger.append(
            LedgerEntry(
                product_id=product.id,
                entry_type=LedgerEntryType.ADJUSTMENT,
                quantity=quantity,
                previous_stock=before,
                new_stock=product.pool_quantity,
                reference_id=reference_id,
                notes=notes or "pool top-up for shop replenishment",
            )
        )
        logger.info(
            "adjustment %s +%d (pool %d -> %d)", product.id, quantity, before, product.pool_quantity
        )
        return entry

    def adjust_pool(
        self, product_id: str, mode: AdjustmentMode, quantity: int, *, notes: str = ""
    ) -> LedgerEntry:
        """Manually correct the Pool.

        ``subtract`` may only take unreserved units and ``set`` may not go
        below the reserved quantity.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise ValidationError("Adjustment quantity must be a non-negative integer")
        if quantity == 0 and mode != AdjustmentMode.SET:
            raise ValidationError("Adjustment quantity must be positive")

        product = self.load_product(product_id)
        before = product.pool_quantity
        if mode == AdjustmentMode.ADD:
            product.deposit(quantity)
        elif mode == AdjustmentMode.SUBTRACT:
            product.withdraw(quantity)
        else:
            product.set_pool(quantity)
        self._uow.products.save(product)

        entry = self._uow.ledger.append(
            LedgerEntry(
                product_id=product_id,
                entry_type=LedgerEntryType.ADJUSTMENT,
                quantity=abs(product.pool_quantity - before),
                previous_stock=before,
                new_stock=product.pool_quantity,
                notes=notes or f"manual {mode.value}",
            )
        )
        logger.info(
            "adjustment %s %s %d (pool %d -> %d)",
            product_id, mode.value, quantity, before, product.pool_quantity,
        )
        return entry

    def produce_units(
        self, product: Product, units: int, *, reference_id: str | None = None
    ) -> list[LedgerEntry]:
        """Bottle ``units`` perfume units from bulk into the Pool.

        Draws ``bottle_size_ml * units`` from the linked bulk material and one
        packaging unit per bottle, then records one ``production`` entry per
        unit.  Both inputs are checked before either is touched.
        """
        if units <= 0:
            raise ValidationError("Production quantity must be positive")
        if product.kind != ProductKind.PERFUME:
            raise ValidationError(f"{product.name} is not a perfume product")
        size_ml = product.bottle_size_ml
        if not size_ml:
            raise ValidationError(
                f"Cannot determine bottle size for {product.name} (size: {product.size_spec!r})"
            )
        if not product.bulk_material_id:
            raise ValidationError(f"{product.name} has no linked bulk material")

        bulk = self._uow.materials.get_bulk_for_update(product.bulk_material_id)
        if bulk is None:
            raise EntityNotFoundError(f"Bulk material '{product.bulk_material_id}' not found")
        packaging = self._uow.materials.get_packaging_for_update(size_ml)
        if packaging is None:
            raise InsufficientPackagingError(
                f"No packaging stock for {size_ml}ML bottles",
                required=units,
                available=0,
            )

        required_ml = size_ml * units
        if required_ml > bulk.quantity_ml:
            raise InsufficientBulkMaterialError(
                f"Insufficient bulk perfume '{bulk.name}'. "
                f"Available: {bulk.quantity_ml}ML, Required: {required_ml}ML",
                required=required_ml,
                available=bulk.quantity_ml,
            )
        if units > packaging.units:
            raise InsufficientPackagingError(
                f"Insufficient bottles of {size_ml}ML. "
                f"Available: {packaging.units}, Required: {units}",
                required=units,
                available=packaging.units,
            )

        bulk.draw(required_ml)
        packaging.draw(units)
        self._uow.materials.save_bulk(bulk)
        self._uow.materials.save_packaging(packaging)

        entries: list[LedgerEntry] = []
        for _ in range(units):
            before = product.pool_quantity
            product.deposit(1)
            entries.append(
                self._uow.ledger.append(
                    LedgerEntry(
                        product_id=product.id,
                        entry_type=LedgerEntryType.PRODUCTION,
                        quantity=1,
                        previous_stock=before,
                        new_stock=product.pool_quantity,
                        reference_id=reference_id,
                        notes=f"bottled {size_ml}ML from {bulk.name}",
                    )
                )
            )
        self._uow.products.save(product)
        logger.info(
            "production %s: %d units, %dML drawn from %s", product.id, units, required_ml, bulk.id
        )
        return entries

    # --- Lookups --------------------------------------------------------------

    def load_product(self, product_id: str) -> Product:
        product = self._uow.products.get_for_update(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product '{product_id}' not found")
        return product

    def require_location(self, ref: LocationRef) -> None:
        location = self._uow.locations.get_by_id(ref.location_id)
        if location is None or location.kind != ref.kind:
            raise EntityNotFoundError(f"Location {ref} not found")
        if not location.is_active:
            raise ValidationError(f"Location {ref} is inactive")


def _default_entry_type(source: Endpoint, destination: Endpoint) -> LedgerEntryType:
    if isinstance(destination, SinkEndpoint):
        return LedgerEntryType.SALE
    if isinstance(source, PoolEndpoint) or isinstance(destination, PoolEndpoint):
        return LedgerEntryType.ASSIGN
    return LedgerEntryType.TRANSFER
