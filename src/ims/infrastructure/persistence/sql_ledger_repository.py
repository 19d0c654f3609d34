"""SQLAlchemy implementation of LedgerRepository (insert and read only)."""

from __future__ import annotations

import dataclasses

from sqlalchemy import select
from sqlalchemy.orm import Session

from ims.domain.model.ledger import LedgerEntry, LedgerEntryType
from ims.domain.model.value_objects import LocationKind, LocationRef
from ims.domain.repository.ledger_repository import LedgerRepository
from ims.infrastructure.persistence.database import as_utc
from ims.infrastructure.persistence.orm import LedgerRow


class SqlLedgerRepository(LedgerRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def append(self, entry: LedgerEntry) -> LedgerEntry:
        row = LedgerRow(
            product_id=entry.product_id,
            entry_type=entry.entry_type.value,
            quantity=entry.quantity,
            previous_stock=entry.previous_stock,
            new_stock=entry.new_stock,
            reference_id=entry.reference_id,
            location_kind=entry.location.kind.value if entry.location else None,
            location_id=entry.location.location_id if entry.location else None,
            notes=entry.notes,
            created_at=entry.created_at,
        )
        self._session.add(row)
        self._session.flush()
        return dataclasses.replace(entry, id=row.id)

    def list_for_product(self, product_id: str) -> list[LedgerEntry]:
        rows = self._session.execute(
            select(LedgerRow).where(LedgerRow.product_id == product_id).order_by(LedgerRow.id)
        ).scalars()
        return [self._to_domain(row) for row in rows]

    def list_recent(self, product_id: str | None = None, limit: int = 100) -> list[LedgerEntry]:
        stmt = select(LedgerRow)
        if product_id is not None:
            stmt = stmt.where(LedgerRow.product_id == product_id)
        rows = self._session.execute(stmt.order_by(LedgerRow.id.desc()).limit(limit)).scalars()
        return [self._to_domain(row) for row in rows]

    @staticmethod
    def _to_domain(row: LedgerRow) -> LedgerEntry:
        location = None
        if row.location_kind and row.location_id:
            location = LocationRef(LocationKind(row.location_kind), row.location_id)
        return LedgerEntry(
            product_id=row.product_id,
            entry_type=LedgerEntryType(row.entry_type),
            quantity=row.quantity,
            previous_stock=row.previous_stock,
            new_stock=row.new_stock,
            reference_id=row.reference_id,
            location=location,
            notes=row.notes,
            created_at=as_utc(row.created_at),
            id=row.id,
        )
