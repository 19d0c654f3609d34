"""Application service: reservation expiry sweep.

Each expired reservation is handled in its own unit of work.  A failure on
one is logged and the sweep moves on, so a single bad row cannot hold back
the others.  Running the sweep again finds nothing left to do.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from ims.application.dto import SweepReportDTO
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.reservation_ledger import ReservationLedger

logger = logging.getLogger(__name__)


class ExpireReservationsHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, now: datetime | None = None) -> SweepReportDTO:
        now = now or datetime.now(timezone.utc)

        with self._uow_factory() as uow:
            candidates = uow.reservations.list_expired_ids(now)

        expired = 0
        failed: list[str] = []
        for reservation_id in candidates:
            try:
                with self._uow_factory() as uow:
                    if ReservationLedger(uow).expire(reservation_id, now):
                        expired += 1
                    uow.commit()
            except Exception:
                logger.exception("failed to expire reservation %s", reservation_id)
                failed.append(reservation_id)

        if candidates:
            logger.info(
                "expiry sweep: %d candidate(s), %d expired, %d failed",
                len(candidates), expired, len(failed),
            )
        return SweepReportDTO(checked=len(candidates), expired=expired, failed=failed)
