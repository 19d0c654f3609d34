"""Application services: transaction history and reconciliation."""

from __future__ import annotations

from ims.application.dto import LedgerEntryDTO, ledger_entry_to_dto
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.reconciliation import LedgerReconciler, ReconciliationIssue


class ShowLedgerHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, product_id: str | None = None, limit: int = 50) -> list[LedgerEntryDTO]:
        with self._uow:
            entries = self._uow.ledger.list_recent(product_id, limit)
            return [ledger_entry_to_dto(e) for e in entries]


class ReconcileLedgerHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[ReconciliationIssue]:
        with self._uow:
            return LedgerReconciler(self._uow).reconcile()
