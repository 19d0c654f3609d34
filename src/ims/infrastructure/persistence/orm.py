"""Table mappings.

Rows are persistence shapes only; repositories translate them to and from
the domain model.  The non-negative balance rules are also enforced as
CHECK constraints so no write path can store a negative quantity.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ims.infrastructure.persistence.database import Base


class ProductRow(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("pool_quantity >= 0", name="ck_products_pool_non_negative"),
        CheckConstraint("reserved_quantity >= 0", name="ck_products_reserved_non_negative"),
        CheckConstraint("reserved_quantity <= pool_quantity", name="ck_products_reserved_within_pool"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    sku: Mapped[str] = mapped_column(String(64), nullable=False, default="", index=True)
    kind: Mapped[str] = mapped_column(String(32), nullable=False, default="general")
    pool_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reserved_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    units_sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_stock_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    size_spec: Mapped[str | None] = mapped_column(String(64))
    bulk_material_id: Mapped[str | None] = mapped_column(String(64))
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="RWF")


class LocationRow(Base):
    __tablename__ = "locations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class AllocationRow(Base):
    __tablename__ = "location_allocations"
    __table_args__ = (
        UniqueConstraint("location_kind", "location_id", "product_id", name="uq_allocation"),
        CheckConstraint("quantity >= 0", name="ck_allocation_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location_kind: Mapped[str] = mapped_column(String(16), nullable=False)
    location_id: Mapped[str] = mapped_column(ForeignKey("locations.id"), nullable=False)
    product_id: Mapped[str] = mapped_column(ForeignKey("products.id"), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_stock_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_stock_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ReservationRow(Base):
    __tablename__ = "stock_reservations"
    __table_args__ = (
        Index("ix_reservations_order_status", "order_id", "status"),
        Index("ix_reservations_status_expiry", "status", "expiry_date"),
        CheckConstraint("quantity_reserved > 0", name="ck_reservation_positive"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    # No foreign key: reservation history outlives hard-deleted orders
    order_id: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity_reserved: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    reservation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expiry_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class LedgerRow(Base):
    """Append-only; the autoincrement id is the commit order."""

    __tablename__ = "inventory_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    entry_type: Mapped[str] = mapped_column(String(16), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    new_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    reference_id: Mapped[str | None] = mapped_column(String(64))
    location_kind: Mapped[str | None] = mapped_column(String(16))
    location_id: Mapped[str | None] = mapped_column(String(64))
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class OrderRow(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    shop_id: Mapped[str | None] = mapped_column(String(64), index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="RWF")
    tracking_number: Mapped[str | None] = mapped_column(String(64))
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    items: Mapped[list[OrderItemRow]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemRow.id",
    )


class OrderItemRow(Base):
    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_item_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    sku: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="RWF")
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    strategy: Mapped[str] = mapped_column(String(16), nullable=False)

    order: Mapped[OrderRow] = relationship(back_populates="items")


class BulkMaterialRow(Base):
    __tablename__ = "bulk_materials"
    __table_args__ = (CheckConstraint("quantity_ml >= 0", name="ck_bulk_non_negative"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity_ml: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class PackagingStockRow(Base):
    __tablename__ = "packaging_stocks"
    __table_args__ = (CheckConstraint("units >= 0", name="ck_packaging_non_negative"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    size_ml: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class RawMaterialRow(Base):
    __tablename__ = "raw_materials"
    __table_args__ = (CheckConstraint("current_stock >= 0", name="ck_raw_material_non_negative"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default="unit")
    current_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
