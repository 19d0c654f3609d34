"""Domain service: Reservation Ledger.

Time-boxed holds on Pool stock for unpaid orders.  A hold raises the
product's reserved counter without moving units; fulfilling it takes the
units out of the Pool, releasing or expiring it gives the hold back.

Reservations reach exactly one terminal state.  Every transition re-reads
the reservation under lock and touches it only while it is still active,
which keeps ``expire`` idempotent and safe next to a concurrent release.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterable

from ims.domain.exceptions import EntityNotFoundError, InsufficientStockError
from ims.domain.model.ledger import LedgerEntry, LedgerEntryType
from ims.domain.model.order import Order
from ims.domain.model.product import Product
from ims.domain.model.reservation import (
    CONFIRMED_TTL_HOURS,
    DEFAULT_TTL_HOURS,
    Reservation,
    ReservationStatus,
    expiry_from,
)
from ims.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class ReservationLedger:

    def __init__(
        self,
        uow: UnitOfWork,
        ttl_hours: int = DEFAULT_TTL_HOURS,
        confirmed_ttl_hours: int = CONFIRMED_TTL_HOURS,
    ) -> None:
        self._uow = uow
        self._ttl_hours = ttl_hours
        self._confirmed_ttl_hours = confirmed_ttl_hours

    def reserve(
        self,
        order_id: int,
        items: Iterable[tuple[str, int]],
        now: datetime | None = None,
    ) -> list[Reservation]:
        """Hold stock for every ``(product_id, quantity)`` pair, or for none.

        Phase 1 totals the request per product and checks it against the
        unreserved Pool; every shortfall is reported in one
        InsufficientStockError.  Phase 2 creates one active reservation per
        pair.
        """
        now = now or datetime.now(timezone.utc)
        items = list(items)

        # Phase 1: validate the whole batch
        requested: dict[str, int] = defaultdict(int)
        for product_id, quantity in items:
            requested[product_id] += quantity

        products: dict[str, Product] = {}
        shortfalls: list[dict] = []
        # Products are always locked in id order
        for product_id in sorted(requested):
            quantity = requested[product_id]
            product = self._uow.products.get_for_update(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product '{product_id}' not found")
            products[product_id] = product
            if quantity > product.available_quantity:
                shortfalls.append(
                    {
                        "product_id": product_id,
                        "product_name": product.name,
                        "requested": quantity,
                        "available": product.available_quantity,
                    }
                )

        if shortfalls:
            details = ", ".join(
                f"{s['product_name']} (need {s['requested']}, have {s['available']} available)"
                for s in shortfalls
            )
            first = shortfalls[0]
            raise InsufficientStockError(
                f"Insufficient stock for {details}",
                product_id=first["product_id"],
                requested=first["requested"],
                available=first["available"],
                endpoint="pool",
                shortfalls=shortfalls,
            )

        # Phase 2: hold and record
        reservations: list[Reservation] = []
        for product_id, quantity in items:
            product = products[product_id]
            available_before = product.available_quantity
            product.reserve(quantity)
            self._uow.products.save(product)

            reservation = Reservation(
                id=uuid.uuid4().hex,
                order_id=order_id,
                product_id=product_id,
                quantity_reserved=quantity,
                reservation_date=now,
                expiry_date=expiry_from(now, self._ttl_hours),
            )
            self._uow.reservations.save(reservation)
            self._record(
                product, LedgerEntryType.RESERVATION, quantity, order_id,
                notes=f"available {available_before} -> {product.available_quantity}",
            )
            reservations.append(reservation)

        logger.info("order #%s: reserved %d item(s)", order_id, len(reservations))
        return reservations

    def release(self, order_id: int) -> list[Reservation]:
        """Give back every active hold of an order.  No holds is not an error."""
        released = []
        for reservation in self._uow.reservations.list_for_order(order_id, ReservationStatus.ACTIVE):
            reservation = self._lock(reservation.id)
            if not reservation.is_active:
                continue
            product = self._product(reservation.product_id)
            product.release(reservation.quantity_reserved)
            reservation.release()
            self._uow.products.save(product)
            self._uow.reservations.save(reservation)
            self._record(product, LedgerEntryType.RELEASE, reservation.quantity_reserved, order_id)
            released.append(reservation)

        if released:
            logger.info("order #%s: released %d reservation(s)", order_id, len(released))
        return released

    def fulfill(self, order_id: int) -> list[Reservation]:
        """Turn every active hold of an order into a sale out of the Pool."""
        fulfilled = []
        for reservation in self._uow.reservations.list_for_order(order_id, ReservationStatus.ACTIVE):
            reservation = self._lock(reservation.id)
            if not reservation.is_active:
                continue
            product = self._product(reservation.product_id)
            before = product.pool_quantity
            product.fulfill(reservation.quantity_reserved)
            product.record_sale(reservation.quantity_reserved)
            reservation.fulfill()
            self._uow.products.save(product)
            self._uow.reservations.save(reservation)
            self._record(
                product, LedgerEntryType.SALE, reservation.quantity_reserved, order_id,
                previous_stock=before,
            )
            fulfilled.append(reservation)

        logger.info("order #%s: fulfilled %d reservation(s)", order_id, len(fulfilled))
        return fulfilled

    def expire(self, reservation_id: str, now: datetime | None = None) -> bool:
        """Expire one reservation if it is still active and past its expiry.

        Returns False, changing nothing, when another transition got there
        first or the expiry date has moved on.
        """
        now = now or datetime.now(timezone.utc)
        reservation = self._uow.reservations.get_for_update(reservation_id)
        if reservation is None:
            raise EntityNotFoundError(f"Reservation '{reservation_id}' not found")
        if not reservation.is_expired(now):
            return False

        product = self._product(reservation.product_id)
        product.release(reservation.quantity_reserved)
        reservation.expire()
        self._uow.products.save(product)
        self._uow.reservations.save(reservation)
        self._record(
            product, LedgerEntryType.EXPIRY, reservation.quantity_reserved, reservation.order_id,
            notes=f"reservation {reservation.id} expired",
        )
        logger.info(
            "reservation %s of order #%s expired (%s x%d)",
            reservation.id, reservation.order_id, product.id, reservation.quantity_reserved,
        )
        return True

    def extend(self, order_id: int, now: datetime | None = None) -> list[Reservation]:
        """Push the expiry of every active hold to the confirmed TTL."""
        now = now or datetime.now(timezone.utc)
        expiry = expiry_from(now, self._confirmed_ttl_hours)
        extended = []
        for reservation in self._uow.reservations.list_for_order(order_id, ReservationStatus.ACTIVE):
            reservation = self._lock(reservation.id)
            if not reservation.is_active:
                continue
            reservation.extend_until(expiry)
            self._uow.reservations.save(reservation)
            extended.append(reservation)
        return extended

    def revalidate(self, order_id: int) -> None:
        """Check that the Pool still backs every active hold of an order."""
        for reservation in self._uow.reservations.list_for_order(order_id, ReservationStatus.ACTIVE):
            product = self._product(reservation.product_id)
            if (
                product.reserved_quantity < reservation.quantity_reserved
                or product.pool_quantity < product.reserved_quantity
            ):
                raise InsufficientStockError(
                    f"Reserved stock for {product.name} is no longer backed "
                    f"(pool {product.pool_quantity}, reserved {product.reserved_quantity})",
                    product_id=product.id,
                    requested=reservation.quantity_reserved,
                    available=min(product.pool_quantity, product.reserved_quantity),
                    endpoint="pool",
                )

    def recover_lapsed(self, order: Order, now: datetime | None = None) -> list[Reservation]:
        """Re-hold reservation items whose hold expired, all or nothing."""
        needed: dict[str, int] = defaultdict(int)
        for item in order.reservation_items():
            needed[item.product_id] += item.quantity.value
        for reservation in self._uow.reservations.list_for_order(order.id, ReservationStatus.ACTIVE):
            needed[reservation.product_id] -= reservation.quantity_reserved

        missing = [(pid, qty) for pid, qty in needed.items() if qty > 0]
        if not missing:
            return []
        logger.warning("order #%s: re-reserving lapsed items %s", order.id, missing)
        return self.reserve(order.id, missing, now=now)

    # --- Internal helpers -----------------------------------------------------

    def _lock(self, reservation_id: str) -> Reservation:
        reservation = self._uow.reservations.get_for_update(reservation_id)
        if reservation is None:
            raise EntityNotFoundError(f"Reservation '{reservation_id}' not found")
        return reservation

    def _product(self, product_id: str) -> Product:
        product = self._uow.products.get_for_update(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product '{product_id}' not found")
        return product

    def _record(
        self,
        product: Product,
        entry_type: LedgerEntryType,
        quantity: int,
        order_id: int | None,
        *,
        previous_stock: int | None = None,
        notes: str = "",
    ) -> LedgerEntry:
        return self._uow.ledger.append(
            LedgerEntry(
                product_id=product.id,
                entry_type=entry_type,
                quantity=quantity,
                previous_stock=product.pool_quantity if previous_stock is None else previous_stock,
                new_stock=product.pool_quantity,
                reference_id=None if order_id is None else str(order_id),
                notes=notes,
            )
        )
