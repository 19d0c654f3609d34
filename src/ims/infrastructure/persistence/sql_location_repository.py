"""SQLAlchemy implementation of LocationRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ims.domain.model.location import Location
from ims.domain.model.value_objects import LocationKind
from ims.domain.repository.location_repository import LocationRepository
from ims.infrastructure.persistence.orm import LocationRow


class SqlLocationRepository(LocationRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, location_id: str) -> Location | None:
        row = self._session.get(LocationRow, location_id)
        return self._to_domain(row) if row is not None else None

    def list_all(self) -> list[Location]:
        rows = self._session.execute(select(LocationRow).order_by(LocationRow.id)).scalars()
        return [self._to_domain(row) for row in rows]

    def save(self, location: Location) -> None:
        row = self._session.get(LocationRow, location.id)
        if row is None:
            row = LocationRow(id=location.id)
            self._session.add(row)
        row.name = location.name
        row.kind = location.kind.value
        row.is_active = location.is_active

    @staticmethod
    def _to_domain(row: LocationRow) -> Location:
        return Location(
            id=row.id, name=row.name, kind=LocationKind(row.kind), is_active=row.is_active
        )
