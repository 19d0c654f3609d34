"""Application service: Transfer Stock use case.

Moves units between any two endpoints (``pool``, ``shop:<id>``,
``warehouse:<id>``).  Cashiers may only move stock between locations, and
any shop on either end must be their own.
"""

from __future__ import annotations

import logging

from ims.application.authorization import Actor, Role, require_own_shop
from ims.application.dto import TransferDTO, transfer_to_dto
from ims.domain.exceptions import DomainException, PermissionDeniedError
from ims.domain.model.value_objects import Endpoint, LocationKind, LocationRef, parse_endpoint
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.transfer_service import TransferService

logger = logging.getLogger(__name__)


def _check_cashier_endpoints(actor: Actor, *endpoints: Endpoint) -> None:
    for endpoint in endpoints:
        if not isinstance(endpoint, LocationRef):
            raise PermissionDeniedError("Cashiers may only transfer stock between locations")
        if endpoint.kind == LocationKind.SHOP:
            require_own_shop(actor, endpoint, "transfer stock to or from")


class TransferStockHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        source: str,
        destination: str,
        product_id: str,
        quantity: int,
        notes: str = "",
        actor: Actor | None = None,
    ) -> TransferDTO:
        src = parse_endpoint(source)
        dest = parse_endpoint(destination)

        if actor is not None and actor.role == Role.CASHIER:
            _check_cashier_endpoints(actor, src, dest)

        try:
            with self._uow:
                result = TransferService(self._uow).transfer(
                    src, dest, product_id, quantity, notes=notes
                )
                self._uow.commit()
        except DomainException as exc:
            logger.warning(
                "transfer %s x%s %s -> %s rejected: %s", product_id, quantity, src, dest, exc
            )
            raise

        return transfer_to_dto(result)
