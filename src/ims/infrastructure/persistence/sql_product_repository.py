"""SQLAlchemy implementation of ProductRepository.

Each repository keeps its own identity map for the life of the unit of
work, so loading the same product twice returns the same object and a
later ``save`` can never overwrite changes made through an earlier copy.
``get_for_update`` re-reads the row under lock and refreshes the tracked
object in place.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ims.domain.model.product import Product, ProductKind
from ims.domain.model.value_objects import Money
from ims.domain.repository.product_repository import ProductRepository
from ims.infrastructure.persistence.database import refresh_tracked
from ims.infrastructure.persistence.orm import ProductRow


class SqlProductRepository(ProductRepository):

    def __init__(self, session: Session) -> None:
        self._session = session
        self._seen: dict[str, Product] = {}

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        if product_id in self._seen:
            return self._seen[product_id]
        row = self._session.get(ProductRow, product_id)
        return self._track(row) if row is not None else None

    def get_for_update(self, product_id: str) -> Product | None:
        row = self._session.execute(
            select(ProductRow)
            .where(ProductRow.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._track(row, refresh=True) if row is not None else None

    def get_by_sku(self, sku: str) -> Product | None:
        row = self._session.execute(
            select(ProductRow).where(ProductRow.sku == sku)
        ).scalars().first()
        return self._track(row) if row is not None else None

    def list_all(self) -> list[Product]:
        rows = self._session.execute(select(ProductRow).order_by(ProductRow.id)).scalars()
        return [self._track(row) for row in rows]

    def save(self, product: Product) -> None:
        row = self._session.get(ProductRow, product.id)
        if row is None:
            row = ProductRow(id=product.id)
            self._session.add(row)
        row.name = product.name
        row.sku = product.sku
        row.kind = product.kind.value
        row.pool_quantity = product.pool_quantity
        row.reserved_quantity = product.reserved_quantity
        row.units_sold = product.units_sold
        row.min_stock_level = product.min_stock_level
        row.size_spec = product.size_spec
        row.bulk_material_id = product.bulk_material_id
        row.price = product.price.amount
        row.currency = product.price.currency
        self._seen[product.id] = product

    # --- Mapping --------------------------------------------------------------

    def _track(self, row: ProductRow, refresh: bool = False) -> Product:
        if refresh:
            return refresh_tracked(self._seen, row.id, self._to_domain(row))
        if row.id not in self._seen:
            self._seen[row.id] = self._to_domain(row)
        return self._seen[row.id]

    @staticmethod
    def _to_domain(row: ProductRow) -> Product:
        return Product(
            id=row.id,
            name=row.name,
            sku=row.sku,
            kind=ProductKind(row.kind),
            pool_quantity=row.pool_quantity,
            reserved_quantity=row.reserved_quantity,
            units_sold=row.units_sold,
            min_stock_level=row.min_stock_level,
            size_spec=row.size_spec,
            bulk_material_id=row.bulk_material_id,
            price=Money(row.price, row.currency),
        )
