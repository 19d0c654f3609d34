import click

from ims.application.authorization import Actor
from ims.infrastructure.bootstrap import engine, settings
from ims.infrastructure.cli.catalog_commands import (
    catalog_add_bulk,
    catalog_add_location,
    catalog_add_material,
    catalog_add_packaging,
    catalog_add_product,
    catalog_materials,
)
from ims.infrastructure.cli.order_commands import (
    order_cancel,
    order_complete,
    order_confirm,
    order_create,
    order_delete,
    order_fulfill,
    order_list,
    order_pay,
    order_process,
    order_show,
)
from ims.infrastructure.cli.reservation_commands import reservations_sweep
from ims.infrastructure.cli.stock_commands import (
    stock_adjust,
    stock_assign,
    stock_info,
    stock_ledger,
    stock_list,
    stock_low,
    stock_reconcile,
    stock_transfer,
    stock_unassign,
)
from ims.infrastructure.logging_setup import setup_logging
from ims.infrastructure.persistence.database import init_schema


@click.group()
@click.option("--user", "user_id", default=None, help="Acting user ID.")
@click.option("--role", type=click.Choice(["admin", "manager", "cashier"]), default=None,
              help="Role of the acting user; omit when the caller enforces access.")
@click.option("--shop", "shop_id", default=None, help="Shop the acting user works at.")
@click.pass_context
def cli(ctx: click.Context, user_id: str | None, role: str | None, shop_id: str | None) -> None:
    """IMS — Inventory allocation and order fulfillment"""
    setup_logging(settings().LOG_LEVEL)
    actor = Actor.of(user_id or "cli", role, shop_id) if role else None
    ctx.obj = {"actor": actor}


@cli.group()
def db() -> None:
    """Manage the database."""


@db.command("init")
def db_init() -> None:
    """Create the database schema."""
    init_schema(engine())
    click.echo("Database schema ready.")


@cli.group()
def catalog() -> None:
    """Register products, locations and materials."""


@cli.group()
def stock() -> None:
    """Assign, transfer and inspect stock."""


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def reservations() -> None:
    """Reservation housekeeping."""


# Register subcommands
catalog.add_command(catalog_add_product)
catalog.add_command(catalog_add_location)
catalog.add_command(catalog_add_bulk)
catalog.add_command(catalog_add_packaging)
catalog.add_command(catalog_add_material)
catalog.add_command(catalog_materials)
stock.add_command(stock_assign)
stock.add_command(stock_unassign)
stock.add_command(stock_transfer)
stock.add_command(stock_adjust)
stock.add_command(stock_info)
stock.add_command(stock_list)
stock.add_command(stock_ledger)
stock.add_command(stock_low)
stock.add_command(stock_reconcile)
order.add_command(order_create)
order.add_command(order_show)
order.add_command(order_list)
order.add_command(order_confirm)
order.add_command(order_process)
order.add_command(order_fulfill)
order.add_command(order_complete)
order.add_command(order_cancel)
order.add_command(order_delete)
order.add_command(order_pay)
reservations.add_command(reservations_sweep)
