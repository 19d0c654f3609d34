"""SQLAlchemy implementation of MaterialRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ims.domain.model.materials import BulkMaterial, PackagingStock, RawMaterial
from ims.domain.repository.material_repository import MaterialRepository
from ims.infrastructure.persistence.database import refresh_tracked
from ims.infrastructure.persistence.orm import BulkMaterialRow, PackagingStockRow, RawMaterialRow


class SqlMaterialRepository(MaterialRepository):

    def __init__(self, session: Session) -> None:
        self._session = session
        self._bulk: dict[str, BulkMaterial] = {}
        self._packaging: dict[int, PackagingStock] = {}
        self._raw: dict[str, RawMaterial] = {}

    # --- Bulk perfume ---------------------------------------------------------

    def get_bulk_for_update(self, bulk_id: str) -> BulkMaterial | None:
        row = self._session.execute(
            select(BulkMaterialRow).where(BulkMaterialRow.id == bulk_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._track_bulk(row, refresh=True) if row is not None else None

    def list_bulk(self) -> list[BulkMaterial]:
        rows = self._session.execute(select(BulkMaterialRow).order_by(BulkMaterialRow.id)).scalars()
        return [self._track_bulk(row) for row in rows]

    def save_bulk(self, bulk: BulkMaterial) -> None:
        row = self._session.get(BulkMaterialRow, bulk.id)
        if row is None:
            row = BulkMaterialRow(id=bulk.id)
            self._session.add(row)
        row.name = bulk.name
        row.quantity_ml = bulk.quantity_ml
        self._bulk[bulk.id] = bulk

    def _track_bulk(self, row: BulkMaterialRow, refresh: bool = False) -> BulkMaterial:
        fresh = BulkMaterial(row.id, row.name, row.quantity_ml)
        if refresh:
            return refresh_tracked(self._bulk, row.id, fresh)
        return self._bulk.setdefault(row.id, fresh)

    # --- Packaging ------------------------------------------------------------

    def get_packaging_for_update(self, size_ml: int) -> PackagingStock | None:
        row = self._session.execute(
            select(PackagingStockRow).where(PackagingStockRow.size_ml == size_ml)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._track_packaging(row, refresh=True) if row is not None else None

    def list_packaging(self) -> list[PackagingStock]:
        rows = self._session.execute(
            select(PackagingStockRow).order_by(PackagingStockRow.size_ml)
        ).scalars()
        return [self._track_packaging(row) for row in rows]

    def save_packaging(self, packaging: PackagingStock) -> None:
        row = self._session.get(PackagingStockRow, packaging.id)
        if row is None:
            row = PackagingStockRow(id=packaging.id)
            self._session.add(row)
        row.size_ml = packaging.size_ml
        row.units = packaging.units
        self._packaging[packaging.size_ml] = packaging

    def _track_packaging(self, row: PackagingStockRow, refresh: bool = False) -> PackagingStock:
        fresh = PackagingStock(row.id, row.size_ml, row.units)
        if refresh:
            return refresh_tracked(self._packaging, row.size_ml, fresh)
        return self._packaging.setdefault(row.size_ml, fresh)

    # --- Raw materials --------------------------------------------------------

    def get_raw_for_update(self, material_id: str) -> RawMaterial | None:
        row = self._session.execute(
            select(RawMaterialRow).where(RawMaterialRow.id == material_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._track_raw(row, refresh=True) if row is not None else None

    def list_raw(self) -> list[RawMaterial]:
        rows = self._session.execute(select(RawMaterialRow).order_by(RawMaterialRow.id)).scalars()
        return [self._track_raw(row) for row in rows]

    def save_raw(self, material: RawMaterial) -> None:
        row = self._session.get(RawMaterialRow, material.id)
        if row is None:
            row = RawMaterialRow(id=material.id)
            self._session.add(row)
        row.name = material.name
        row.unit = material.unit
        row.current_stock = material.current_stock
        self._raw[material.id] = material

    def _track_raw(self, row: RawMaterialRow, refresh: bool = False) -> RawMaterial:
        fresh = RawMaterial(row.id, row.name, row.unit, row.current_stock)
        if refresh:
            return refresh_tracked(self._raw, row.id, fresh)
        return self._raw.setdefault(row.id, fresh)
