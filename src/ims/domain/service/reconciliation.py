"""Domain service: ledger reconciliation.

Replays each product's ledger in commit order.  The ``previous_stock`` of
every entry must equal the ``new_stock`` of the one before it, the last
``new_stock`` must equal the current Pool, the reserved counter must match
the active reservations, and the stock a product holds
(Pool plus allocations) must equal what its ledger says entered minus
what it says was sold.
"""

from __future__ import annotations

from dataclasses import dataclass

from ims.domain.model.ledger import LedgerEntry, LedgerEntryType
from ims.domain.model.product import Product
from ims.domain.repository.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class ReconciliationIssue:
    product_id: str
    kind: str  # chain_break, pool_mismatch, reserved_mismatch or conservation
    expected: int
    actual: int
    entry_id: int | None = None

    def describe(self) -> str:
        where = f" at entry #{self.entry_id}" if self.entry_id is not None else ""
        return f"{self.product_id}: {self.kind}{where} (expected {self.expected}, got {self.actual})"


def expected_holdings(entries: list[LedgerEntry]) -> int:
    """Units that entered the system minus units that left it."""
    total = 0
    for entry in entries:
        if entry.entry_type in (LedgerEntryType.ADJUSTMENT, LedgerEntryType.PRODUCTION):
            total += entry.pool_delta
        elif entry.entry_type == LedgerEntryType.SALE:
            total -= entry.quantity
    return total


class LedgerReconciler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def reconcile(self) -> list[ReconciliationIssue]:
        issues: list[ReconciliationIssue] = []
        for product in self._uow.products.list_all():
            issues.extend(self.check_product(product))
        return issues

    def check_product(self, product: Product) -> list[ReconciliationIssue]:
        entries = self._uow.ledger.list_for_product(product.id)
        issues: list[ReconciliationIssue] = []

        running: int | None = None
        for entry in entries:
            if running is not None and entry.previous_stock != running:
                issues.append(
                    ReconciliationIssue(
                        product.id, "chain_break", running, entry.previous_stock, entry.id
                    )
                )
            running = entry.new_stock

        last = running if running is not None else 0
        if last != product.pool_quantity:
            issues.append(
                ReconciliationIssue(product.id, "pool_mismatch", last, product.pool_quantity)
            )

        reserved = self._uow.reservations.active_quantity(product.id)
        if reserved != product.reserved_quantity:
            issues.append(
                ReconciliationIssue(
                    product.id, "reserved_mismatch", reserved, product.reserved_quantity
                )
            )

        held = product.pool_quantity + sum(
            a.quantity for a in self._uow.allocations.list_for_product(product.id)
        )
        expected = expected_holdings(entries)
        if held != expected:
            issues.append(ReconciliationIssue(product.id, "conservation", expected, held))
        return issues
