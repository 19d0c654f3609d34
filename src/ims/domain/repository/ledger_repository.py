"""Abstract repository for the append-only inventory ledger."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.ledger import LedgerEntry


class LedgerRepository(ABC):

    @abstractmethod
    def append(self, entry: LedgerEntry) -> LedgerEntry:
        """Store a new entry and return it with its sequence ``id`` set.

        Entries are never updated or deleted.
        """

    @abstractmethod
    def list_for_product(self, product_id: str) -> list[LedgerEntry]:
        """Return a product's entries in commit order (oldest first)."""

    @abstractmethod
    def list_recent(self, product_id: str | None = None, limit: int = 100) -> list[LedgerEntry]:
        """Return the newest entries first, optionally for one product."""
