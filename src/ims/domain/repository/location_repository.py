"""Abstract repository for shops and warehouses."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.location import Location


class LocationRepository(ABC):

    @abstractmethod
    def get_by_id(self, location_id: str) -> Location | None:
        """Return a location by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Location]:
        """Return every location."""

    @abstractmethod
    def save(self, location: Location) -> None:
        """Persist a new or updated location."""
