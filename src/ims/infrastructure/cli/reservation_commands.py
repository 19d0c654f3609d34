"""CLI commands for reservation housekeeping."""

from __future__ import annotations

import logging
import time

import click

from ims.application.expire_reservations import ExpireReservationsHandler
from ims.infrastructure.bootstrap import settings, unit_of_work

logger = logging.getLogger(__name__)


@click.command("sweep")
@click.option("--watch", is_flag=True, default=False, help="Keep sweeping until interrupted.")
@click.option("--interval", type=int, default=None, help="Seconds between sweeps (with --watch).")
def reservations_sweep(watch: bool, interval: int | None) -> None:
    """Expire active reservations that are past their expiry date."""
    handler = ExpireReservationsHandler(unit_of_work)
    period = interval or settings().SWEEP_INTERVAL_SECONDS

    while True:
        report = handler.handle()
        click.echo(
            f"Checked {report.checked}, expired {report.expired}, failed {len(report.failed)}."
        )
        if not watch:
            break
        try:
            time.sleep(period)
        except KeyboardInterrupt:
            logger.info("expiry sweep stopped")
            break
