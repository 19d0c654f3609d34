"""Domain service: eager sales consumption.

Used for retail items of orders that are already (partially) paid and for
atelier materials, which are always consumed when the order is taken.
Nothing here goes through the Reservation Ledger.
"""

from __future__ import annotations

import logging

from ims.domain.exceptions import EntityNotFoundError, ValidationError
from ims.domain.model.ledger import LedgerEntry, LedgerEntryType
from ims.domain.model.transfer import TransferResult
from ims.domain.model.value_objects import POOL, SINK, LocationRef
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.transfer_service import TransferService

logger = logging.getLogger(__name__)


class SalesConsumptionService:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow
        self._transfers = TransferService(uow)

    def consume_at_location(
        self,
        location: LocationRef,
        product_id: str,
        quantity: int,
        *,
        reference_id: str | None = None,
    ) -> TransferResult:
        """Sell units straight out of a location's allocation.

        Raises NotAssignedToLocationError when the location does not hold the
        product and InsufficientShopStockError when it holds too few.
        """
        return self._transfers.transfer(
            location, SINK, product_id, quantity,
            entry_type=LedgerEntryType.SALE,
            reference_id=reference_id,
        )

    def consume_from_pool(
        self, product_id: str, quantity: int, *, reference_id: str | None = None
    ) -> TransferResult:
        """Sell unreserved Pool units (orders placed without a shop)."""
        return self._transfers.transfer(
            POOL, SINK, product_id, quantity,
            entry_type=LedgerEntryType.SALE,
            reference_id=reference_id,
        )

    def consume_raw_material(
        self, material_id: str, quantity: int, *, reference_id: str | None = None
    ) -> LedgerEntry:
        if quantity <= 0:
            raise ValidationError("Consumption quantity must be positive")
        material = self._uow.materials.get_raw_for_update(material_id)
        if material is None:
            raise EntityNotFoundError(f"Raw material '{material_id}' not found")

        before = material.current_stock
        material.consume(quantity)
        self._uow.materials.save_raw(material)

        logger.info(
            "material %s consumed x%d (%d -> %d)",
            material_id, quantity, before, material.current_stock,
        )
        return self._uow.ledger.append(
            LedgerEntry(
                product_id=material_id,
                entry_type=LedgerEntryType.SALE,
                quantity=quantity,
                previous_stock=before,
                new_stock=material.current_stock,
                reference_id=reference_id,
                notes=f"raw material consumed ({material.unit})",
            )
        )
