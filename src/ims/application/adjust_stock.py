"""Application service: manual Pool adjustment (add / subtract / set)."""

from __future__ import annotations

from ims.application.authorization import STOCK_ADMINS, Actor, require_role
from ims.application.dto import LedgerEntryDTO, ledger_entry_to_dto
from ims.domain.exceptions import ValidationError
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.transfer_service import AdjustmentMode, TransferService


class AdjustStockHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        product_id: str,
        mode: str,
        quantity: int,
        reason: str = "",
        actor: Actor | None = None,
    ) -> LedgerEntryDTO:
        require_role(actor, STOCK_ADMINS, "adjust stock")
        try:
            adjustment = AdjustmentMode(mode.lower())
        except ValueError as exc:
            raise ValidationError(
                f"Adjustment mode must be add, subtract or set, got {mode!r}"
            ) from exc

        with self._uow:
            entry = TransferService(self._uow).adjust_pool(
                product_id, adjustment, quantity, notes=reason
            )
            self._uow.commit()

        return ledger_entry_to_dto(entry)
