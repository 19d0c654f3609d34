"""Domain service: set-quantity assignment of stock to locations.

Admins state the quantity a location should hold; the service works out
the direction and routes the difference through the Transfer Primitive:

- no allocation yet: ``assign`` from the Pool
- higher target: ``reassign`` from the Pool, replenishing shops when the
  Pool is short (top-up adjustment, or bottling for perfume)
- lower target: ``reassign`` back to the Pool, guarded for shops by the
  units they have not sold yet
"""

from __future__ import annotations

import logging

from ims.domain.exceptions import NotAssignedToLocationError, UnsoldStockRemainingError, ValidationError
from ims.domain.model.ledger import LedgerEntry, LedgerEntryType
from ims.domain.model.product import ProductKind
from ims.domain.model.transfer import AssignmentResult
from ims.domain.model.value_objects import POOL, LocationKind, LocationRef
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.transfer_service import TransferService

logger = logging.getLogger(__name__)


class AllocationService:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow
        self._transfers = TransferService(uow)

    def assign(
        self,
        location: LocationRef,
        product_id: str,
        quantity: int,
        *,
        min_stock_level: int = 0,
        max_stock_level: int = 0,
    ) -> AssignmentResult:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise ValidationError("Assigned quantity must be a non-negative integer")

        product = self._transfers.load_product(product_id)
        self._transfers.require_location(location)
        pool_before = product.pool_quantity
        allocation = self._uow.allocations.get_for_update(location, product_id)

        if allocation is None:
            if quantity == 0:
                raise ValidationError("Assigned quantity must be positive")
            result = self._transfers.transfer(
                POOL, location, product_id, quantity,
                entry_type=LedgerEntryType.ASSIGN,
                min_stock_level=min_stock_level,
                max_stock_level=max_stock_level,
            )
            return AssignmentResult(
                location=location,
                product_id=product_id,
                previous_quantity=0,
                quantity=quantity,
                pool_before=pool_before,
                pool_after=product.pool_quantity,
                created=True,
                entries=result.entries,
            )

        current = allocation.quantity
        allocation.set_thresholds(min_stock_level, max_stock_level)
        self._uow.allocations.save(allocation)

        entries: list[LedgerEntry] = []
        topped_up = 0
        produced = 0

        if quantity > current:
            delta = quantity - current
            if location.kind == LocationKind.SHOP and product.kind == ProductKind.PERFUME:
                entries.extend(self._transfers.produce_units(product, delta))
                produced = delta
            elif location.kind == LocationKind.SHOP and delta > product.available_quantity:
                topped_up = delta - product.available_quantity
                entries.append(self._transfers.top_up_pool(product, topped_up))
            result = self._transfers.transfer(
                POOL, location, product_id, delta, entry_type=LedgerEntryType.REASSIGN
            )
            entries.extend(result.entries)
        elif quantity < current:
            if location.kind == LocationKind.SHOP:
                sold = self._uow.orders.sold_quantity(location.location_id, product_id)
                remaining = current - sold
                if quantity < remaining:
                    raise UnsoldStockRemainingError(remaining, quantity)
            result = self._transfers.transfer(
                location, POOL, product_id, current - quantity,
                entry_type=LedgerEntryType.REASSIGN,
            )
            entries.extend(result.entries)

        return AssignmentResult(
            location=location,
            product_id=product_id,
            previous_quantity=current,
            quantity=quantity,
            pool_before=pool_before,
            pool_after=product.pool_quantity,
            topped_up=topped_up,
            produced_units=produced,
            entries=entries,
        )

    def unassign(self, location: LocationRef, product_id: str) -> AssignmentResult:
        """Remove an allocation and return its whole quantity to the Pool."""
        product = self._transfers.load_product(product_id)
        pool_before = product.pool_quantity
        allocation = self._uow.allocations.get_for_update(location, product_id)
        if allocation is None:
            raise NotAssignedToLocationError(product_id, str(location))

        current = allocation.quantity
        entries: list[LedgerEntry] = []
        if current > 0:
            result = self._transfers.transfer(
                location, POOL, product_id, current,
                entry_type=LedgerEntryType.ASSIGN,
                notes=f"assignment removed from {location}",
            )
            entries.extend(result.entries)
        self._uow.allocations.delete(allocation)
        logger.info("unassigned %s from %s (%d units returned)", product_id, location, current)

        return AssignmentResult(
            location=location,
            product_id=product_id,
            previous_quantity=current,
            quantity=0,
            pool_before=pool_before,
            pool_after=product.pool_quantity,
            entries=entries,
        )
