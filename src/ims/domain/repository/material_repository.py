"""Abstract repository for production inputs and atelier materials."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.materials import BulkMaterial, PackagingStock, RawMaterial


class MaterialRepository(ABC):

    @abstractmethod
    def get_bulk_for_update(self, bulk_id: str) -> BulkMaterial | None:
        """Return a bulk material, locked until the unit of work ends."""

    @abstractmethod
    def get_packaging_for_update(self, size_ml: int) -> PackagingStock | None:
        """Return the packaging stock for a bottle size, locked."""

    @abstractmethod
    def get_raw_for_update(self, material_id: str) -> RawMaterial | None:
        """Return a raw material, locked."""

    @abstractmethod
    def list_bulk(self) -> list[BulkMaterial]: ...

    @abstractmethod
    def list_packaging(self) -> list[PackagingStock]: ...

    @abstractmethod
    def list_raw(self) -> list[RawMaterial]: ...

    @abstractmethod
    def save_bulk(self, bulk: BulkMaterial) -> None: ...

    @abstractmethod
    def save_packaging(self, packaging: PackagingStock) -> None: ...

    @abstractmethod
    def save_raw(self, material: RawMaterial) -> None: ...
