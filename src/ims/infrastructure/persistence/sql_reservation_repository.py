"""SQLAlchemy implementation of ReservationRepository."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ims.domain.model.reservation import Reservation, ReservationStatus
from ims.domain.repository.reservation_repository import ReservationRepository
from ims.infrastructure.persistence.database import as_utc, refresh_tracked
from ims.infrastructure.persistence.orm import ReservationRow


class SqlReservationRepository(ReservationRepository):

    def __init__(self, session: Session) -> None:
        self._session = session
        self._seen: dict[str, Reservation] = {}

    def get_for_update(self, reservation_id: str) -> Reservation | None:
        row = self._session.execute(
            select(ReservationRow)
            .where(ReservationRow.id == reservation_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._track(row, refresh=True) if row is not None else None

    def list_for_order(
        self, order_id: int, status: ReservationStatus | None = None
    ) -> list[Reservation]:
        stmt = select(ReservationRow).where(ReservationRow.order_id == order_id)
        if status is not None:
            stmt = stmt.where(ReservationRow.status == status.value)
        rows = self._session.execute(stmt.order_by(ReservationRow.reservation_date)).scalars()
        return [self._track(row) for row in rows]

    def list_expired_ids(self, now: datetime) -> list[str]:
        stmt = (
            select(ReservationRow.id)
            .where(
                ReservationRow.status == ReservationStatus.ACTIVE.value,
                ReservationRow.expiry_date < now.astimezone(timezone.utc),
            )
            .order_by(ReservationRow.expiry_date)
        )
        return list(self._session.execute(stmt).scalars())

    def active_quantity(self, product_id: str) -> int:
        total = self._session.execute(
            select(func.coalesce(func.sum(ReservationRow.quantity_reserved), 0)).where(
                ReservationRow.product_id == product_id,
                ReservationRow.status == ReservationStatus.ACTIVE.value,
            )
        ).scalar_one()
        return int(total)

    def save(self, reservation: Reservation) -> None:
        row = self._session.get(ReservationRow, reservation.id)
        if row is None:
            row = ReservationRow(id=reservation.id)
            self._session.add(row)
        row.order_id = reservation.order_id
        row.product_id = reservation.product_id
        row.quantity_reserved = reservation.quantity_reserved
        row.status = reservation.status.value
        row.reservation_date = reservation.reservation_date
        row.expiry_date = reservation.expiry_date
        self._seen[reservation.id] = reservation

    def _track(self, row: ReservationRow, refresh: bool = False) -> Reservation:
        if refresh:
            return refresh_tracked(self._seen, row.id, self._to_domain(row))
        if row.id not in self._seen:
            self._seen[row.id] = self._to_domain(row)
        return self._seen[row.id]

    @staticmethod
    def _to_domain(row: ReservationRow) -> Reservation:
        return Reservation(
            id=row.id,
            order_id=row.order_id,
            product_id=row.product_id,
            quantity_reserved=row.quantity_reserved,
            status=ReservationStatus(row.status),
            reservation_date=as_utc(row.reservation_date),
            expiry_date=as_utc(row.expiry_date),
        )
