"""SQLAlchemy implementation of AllocationRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ims.domain.model.allocation import LocationAllocation
from ims.domain.model.value_objects import LocationKind, LocationRef
from ims.domain.repository.allocation_repository import AllocationRepository
from ims.infrastructure.persistence.database import as_utc, refresh_tracked
from ims.infrastructure.persistence.orm import AllocationRow

_Key = tuple[str, str, str]


def _key(location: LocationRef, product_id: str) -> _Key:
    return (location.kind.value, location.location_id, product_id)


class SqlAllocationRepository(AllocationRepository):

    def __init__(self, session: Session) -> None:
        self._session = session
        self._seen: dict[_Key, LocationAllocation] = {}

    # --- AllocationRepository interface ---------------------------------------

    def get(self, location: LocationRef, product_id: str) -> LocationAllocation | None:
        key = _key(location, product_id)
        if key in self._seen:
            return self._seen[key]
        row = self._session.execute(self._select(location, product_id)).scalar_one_or_none()
        return self._track(row) if row is not None else None

    def get_for_update(self, location: LocationRef, product_id: str) -> LocationAllocation | None:
        row = self._session.execute(
            self._select(location, product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._track(row, refresh=True) if row is not None else None

    def list_for_product(self, product_id: str) -> list[LocationAllocation]:
        rows = self._session.execute(
            select(AllocationRow)
            .where(AllocationRow.product_id == product_id)
            .order_by(AllocationRow.location_kind, AllocationRow.location_id)
        ).scalars()
        return [self._track(row) for row in rows]

    def list_for_location(self, location: LocationRef) -> list[LocationAllocation]:
        rows = self._session.execute(
            select(AllocationRow)
            .where(
                AllocationRow.location_kind == location.kind.value,
                AllocationRow.location_id == location.location_id,
            )
            .order_by(AllocationRow.product_id)
        ).scalars()
        return [self._track(row) for row in rows]

    def list_all(self) -> list[LocationAllocation]:
        rows = self._session.execute(
            select(AllocationRow).order_by(
                AllocationRow.location_kind, AllocationRow.location_id, AllocationRow.product_id
            )
        ).scalars()
        return [self._track(row) for row in rows]

    def save(self, allocation: LocationAllocation) -> None:
        row = self._session.execute(
            self._select(allocation.location, allocation.product_id)
        ).scalar_one_or_none()
        if row is None:
            row = AllocationRow(
                location_kind=allocation.location.kind.value,
                location_id=allocation.location.location_id,
                product_id=allocation.product_id,
            )
            self._session.add(row)
        row.quantity = allocation.quantity
        row.min_stock_level = allocation.min_stock_level
        row.max_stock_level = allocation.max_stock_level
        row.last_updated = allocation.last_updated
        self._seen[_key(allocation.location, allocation.product_id)] = allocation

    def delete(self, allocation: LocationAllocation) -> None:
        row = self._session.execute(
            self._select(allocation.location, allocation.product_id)
        ).scalar_one_or_none()
        if row is not None:
            self._session.delete(row)
        self._seen.pop(_key(allocation.location, allocation.product_id), None)

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _select(location: LocationRef, product_id: str):
        return select(AllocationRow).where(
            AllocationRow.location_kind == location.kind.value,
            AllocationRow.location_id == location.location_id,
            AllocationRow.product_id == product_id,
        )

    def _track(self, row: AllocationRow, refresh: bool = False) -> LocationAllocation:
        key = (row.location_kind, row.location_id, row.product_id)
        if refresh:
            return refresh_tracked(self._seen, key, self._to_domain(row))
        if key not in self._seen:
            self._seen[key] = self._to_domain(row)
        return self._seen[key]

    @staticmethod
    def _to_domain(row: AllocationRow) -> LocationAllocation:
        return LocationAllocation(
            location=LocationRef(LocationKind(row.location_kind), row.location_id),
            product_id=row.product_id,
            quantity=row.quantity,
            min_stock_level=row.min_stock_level,
            max_stock_level=row.max_stock_level,
            last_updated=as_utc(row.last_updated),
        )
