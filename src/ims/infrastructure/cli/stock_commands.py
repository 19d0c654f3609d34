"""CLI commands for stock allocation, transfers and stock queries."""

from __future__ import annotations

import click

from ims.application.adjust_stock import AdjustStockHandler
from ims.application.assign_stock import AssignStockHandler, UnassignStockHandler
from ims.application.show_ledger import ReconcileLedgerHandler, ShowLedgerHandler
from ims.application.show_stock import InventoryListHandler, LowStockHandler, StockInfoHandler
from ims.application.transfer_stock import TransferStockHandler
from ims.infrastructure.bootstrap import unit_of_work
from ims.infrastructure.cli.support import execute

_LOCATION_KINDS = click.Choice(["shop", "warehouse"], case_sensitive=False)


def _show_entries(entries) -> None:
    for e in entries:
        where = f" @ {e.location}" if e.location else ""
        click.echo(
            f"  #{e.id} {e.type:<11} {e.quantity:>5}  pool {e.previous_stock} -> {e.new_stock}{where}"
        )


@click.command("assign")
@click.option("--kind", "location_kind", required=True, type=_LOCATION_KINDS, help="Location type.")
@click.option("--location", "location_id", required=True, help="Shop or warehouse ID.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Quantity the location should hold.")
@click.option("--min", "min_stock_level", default=0, type=int, show_default=True)
@click.option("--max", "max_stock_level", default=0, type=int, show_default=True)
@click.pass_obj
def stock_assign(obj, location_kind, location_id, product_id, quantity, min_stock_level, max_stock_level) -> None:
    """Set the quantity of a product held at a location."""
    handler = AssignStockHandler(unit_of_work())
    dto = execute(
        lambda: handler.handle(
            location_kind, location_id, product_id, quantity,
            min_stock_level, max_stock_level, actor=obj.get("actor"),
        )
    )

    verb = "Assigned" if dto.created else "Reassigned"
    click.echo(
        f"{verb} {dto.product_id} at {dto.location}: {dto.previous_quantity} -> {dto.quantity}"
    )
    click.echo(f"Pool: {dto.pool_before} -> {dto.pool_after}")
    if dto.topped_up:
        click.echo(f"Pool topped up by {dto.topped_up} unit(s) for replenishment")
    if dto.produced_units:
        click.echo(f"Bottled {dto.produced_units} unit(s) from bulk")
    _show_entries(dto.entries)


@click.command("unassign")
@click.option("--kind", "location_kind", required=True, type=_LOCATION_KINDS, help="Location type.")
@click.option("--location", "location_id", required=True, help="Shop or warehouse ID.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.pass_obj
def stock_unassign(obj, location_kind, location_id, product_id) -> None:
    """Remove an assignment, returning its stock to the pool."""
    handler = UnassignStockHandler(unit_of_work())
    dto = execute(
        lambda: handler.handle(location_kind, location_id, product_id, actor=obj.get("actor"))
    )
    click.echo(
        f"Removed {dto.product_id} from {dto.location}; "
        f"{dto.previous_quantity} unit(s) returned (pool {dto.pool_before} -> {dto.pool_after})"
    )


@click.command("transfer")
@click.option("--from", "source", required=True, help="'pool', 'shop:<id>' or 'warehouse:<id>'.")
@click.option("--to", "destination", required=True, help="'pool', 'shop:<id>' or 'warehouse:<id>'.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Units to move.")
@click.option("--notes", default="", help="Free-text note stored on the ledger entry.")
@click.pass_obj
def stock_transfer(obj, source, destination, product_id, quantity, notes) -> None:
    """Move units between the pool and locations."""
    handler = TransferStockHandler(unit_of_work())
    dto = execute(
        lambda: handler.handle(
            source, destination, product_id, quantity, notes=notes, actor=obj.get("actor")
        )
    )
    click.echo(f"Moved {dto.quantity} x {dto.product_id}")
    click.echo(f"  {dto.source:<24} {dto.source_before:>6} -> {dto.source_after}")
    click.echo(f"  {dto.destination:<24} {dto.destination_before:>6} -> {dto.destination_after}")


@click.command("adjust")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--mode", required=True, type=click.Choice(["add", "subtract", "set"]))
@click.option("--quantity", required=True, type=int)
@click.option("--reason", default="", help="Why the pool is being corrected.")
@click.pass_obj
def stock_adjust(obj, product_id, mode, quantity, reason) -> None:
    """Correct the pool quantity of a product."""
    handler = AdjustStockHandler(unit_of_work())
    dto = execute(
        lambda: handler.handle(product_id, mode, quantity, reason, actor=obj.get("actor"))
    )
    click.echo(f"Pool of {dto.product_id}: {dto.previous_stock} -> {dto.new_stock}")


@click.command("info")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--kind", "location_kind", type=_LOCATION_KINDS, default=None)
@click.option("--location", "location_id", default=None)
def stock_info(product_id, location_kind, location_id) -> None:
    """Show pool, assigned and per-location figures for a product."""
    handler = StockInfoHandler(unit_of_work())
    dto = execute(lambda: handler.handle(product_id, location_kind, location_id))

    click.echo(f"{dto.product_name} ({dto.product_id})")
    click.echo(f"  Pool:                     {dto.pool_quantity}")
    click.echo(f"  Reserved:                 {dto.reserved_quantity}")
    click.echo(f"  Assigned to locations:    {dto.total_assigned}")
    click.echo(f"  Global stock:             {dto.global_stock}")
    click.echo(f"  Available for assignment: {dto.available_for_assignment}")
    if dto.location:
        click.echo(f"  At {dto.location}: {dto.location_quantity} "
                   f"(sold {dto.sold_quantity}, remaining {dto.remaining_quantity})")
        if dto.message:
            click.echo(f"  {dto.message}")


@click.command("list")
def stock_list() -> None:
    """List every product with its pool and assigned totals."""
    rows = execute(lambda: InventoryListHandler(unit_of_work()).handle())
    if not rows:
        click.echo("No products found.")
        return

    click.echo(
        f"  {'ID':<12} {'Name':<24} {'Pool':>6} {'Rsvd':>6} {'Avail':>6} {'Assigned':>9} {'Sold':>6}"
    )
    click.echo(f"  {'-'*75}")
    for r in rows:
        click.echo(
            f"  {r.product_id:<12} {r.name:<24} {r.pool_quantity:>6} {r.reserved_quantity:>6} "
            f"{r.available_quantity:>6} {r.total_assigned:>9} {r.units_sold:>6}"
        )


@click.command("ledger")
@click.option("--product", "product_id", default=None, help="Only this product.")
@click.option("--limit", default=50, type=int, show_default=True)
def stock_ledger(product_id, limit) -> None:
    """Show the latest inventory transactions."""
    entries = execute(lambda: ShowLedgerHandler(unit_of_work()).handle(product_id, limit))
    if not entries:
        click.echo("No transactions recorded.")
        return
    for e in entries:
        ref = f" ref={e.reference_id}" if e.reference_id else ""
        where = f" @ {e.location}" if e.location else ""
        click.echo(
            f"#{e.id:<5} {e.created_at}  {e.product_id:<12} {e.type:<11} {e.quantity:>5}  "
            f"{e.previous_stock} -> {e.new_stock}{where}{ref}"
        )


@click.command("low")
def stock_low() -> None:
    """List pool stock and allocations at or below their minimum level."""
    alerts = execute(lambda: LowStockHandler(unit_of_work()).handle())
    if not alerts:
        click.echo("No low stock.")
        return
    for a in alerts:
        click.echo(f"  {a.product_name:<24} {a.where:<24} {a.quantity:>5} (min {a.min_stock_level})")


@click.command("reconcile")
def stock_reconcile() -> None:
    """Replay the ledger and report inconsistencies."""
    issues = execute(lambda: ReconcileLedgerHandler(unit_of_work()).handle())
    if not issues:
        click.echo("Ledger is consistent.")
        return
    for issue in issues:
        click.echo(f"  {issue.describe()}")
    raise click.ClickException(f"{len(issues)} inconsistency(ies) found")
