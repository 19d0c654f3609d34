"""Application service: Assign / Reassign / Unassign stock use cases.

``assign`` takes the quantity the location should end up holding.  The
first assignment moves units out of the Pool; later ones move only the
difference, in whichever direction it points.
"""

from __future__ import annotations

import logging

from ims.application.authorization import STOCK_ADMINS, Actor, require_own_shop, require_role
from ims.application.dto import AssignmentDTO, assignment_to_dto
from ims.domain.exceptions import DomainException
from ims.domain.model.value_objects import LocationRef
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.allocation_service import AllocationService

logger = logging.getLogger(__name__)


class AssignStockHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        location_kind: str,
        location_id: str,
        product_id: str,
        quantity: int,
        min_stock_level: int = 0,
        max_stock_level: int = 0,
        actor: Actor | None = None,
    ) -> AssignmentDTO:
        require_role(actor, STOCK_ADMINS, "assign stock")
        location = LocationRef.parse(location_kind, location_id)

        try:
            with self._uow:
                result = AllocationService(self._uow).assign(
                    location,
                    product_id,
                    quantity,
                    min_stock_level=min_stock_level,
                    max_stock_level=max_stock_level,
                )
                self._uow.commit()
        except DomainException as exc:
            logger.warning("assign %s to %s rejected: %s", product_id, location, exc)
            raise

        return assignment_to_dto(result)


class UnassignStockHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        location_kind: str,
        location_id: str,
        product_id: str,
        actor: Actor | None = None,
    ) -> AssignmentDTO:
        location = LocationRef.parse(location_kind, location_id)
        require_own_shop(actor, location, "remove stock assignments at")

        with self._uow:
            result = AllocationService(self._uow).unassign(location, product_id)
            self._uow.commit()

        return assignment_to_dto(result)
