"""Abstract repository for LocationAllocation rows."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.allocation import LocationAllocation
from ims.domain.model.value_objects import LocationRef


class AllocationRepository(ABC):

    @abstractmethod
    def get(self, location: LocationRef, product_id: str) -> LocationAllocation | None:
        """Return the allocation of a product at a location, or None."""

    @abstractmethod
    def get_for_update(self, location: LocationRef, product_id: str) -> LocationAllocation | None:
        """Like ``get`` but locks the row until the unit of work ends."""

    @abstractmethod
    def list_for_product(self, product_id: str) -> list[LocationAllocation]:
        """Return every allocation of a product, across all locations."""

    @abstractmethod
    def list_for_location(self, location: LocationRef) -> list[LocationAllocation]:
        """Return every allocation held at a location."""

    @abstractmethod
    def list_all(self) -> list[LocationAllocation]:
        """Return every allocation."""

    @abstractmethod
    def save(self, allocation: LocationAllocation) -> None:
        """Persist a new or updated allocation."""

    @abstractmethod
    def delete(self, allocation: LocationAllocation) -> None:
        """Remove an allocation row."""
