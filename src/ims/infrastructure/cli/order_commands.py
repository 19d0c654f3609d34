"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from ims.application.cancel_order import CancelOrderHandler, DeleteOrderHandler
from ims.application.confirm_order import ConfirmOrderHandler
from ims.application.create_order import CreateOrderHandler
from ims.application.dto import OrderItemSpec
from ims.application.fulfill_order import CompleteOrderHandler, FulfillOrderHandler
from ims.application.process_order import ProcessOrderHandler
from ims.application.show_order import ListOrdersHandler, ShowOrderHandler
from ims.application.update_payment import UpdatePaymentHandler
from ims.infrastructure.bootstrap import settings, unit_of_work
from ims.infrastructure.cli.support import execute

_PAYMENT = click.Choice(["pending", "partial", "completed"], case_sensitive=False)


def _parse_items(raw: str, kind: str) -> list[OrderItemSpec]:
    """Parse 'P1:3,P2:5' (optionally 'P1:3@1500') into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    if not raw:
        return specs
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:Quantity[@Price]'."
            )
        product_id, rest = pair.rsplit(":", 1)
        qty_str, _, price = rest.partition("@")
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(
            OrderItemSpec(
                product_id=product_id.strip(), quantity=qty, kind=kind, unit_price=price or None
            )
        )
    return specs


def _display_order(dto) -> None:
    """Shared formatting for displaying an order."""
    shop = dto.shop_id or "global"
    click.echo(f"Order #{dto.id}  (status={dto.status}, payment={dto.payment_status}, shop={shop})")
    click.echo(f"Customer: {dto.customer_name}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.tracking_number:
        click.echo(f"Tracking: {dto.tracking_number}")
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>14} {'Total':>14} {'Stock':>9}")
    click.echo(f"  {'-'*66}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<20} {item.quantity:>5} {item.unit_price:>14} "
            f"{item.line_total:>14} {item.strategy:>9}"
        )
    click.echo(f"  {'-'*66}")
    click.echo(f"  {'Order Total':<27} {dto.total:>28}")
    click.echo(f"  {'Paid':<27} {dto.amount_paid:>28}")
    click.echo(f"  {'Remaining':<27} {dto.remaining:>28}")


@click.command("create")
@click.option("--customer", required=True, help="Customer name.")
@click.option("--items", default="", help="Retail items as 'ProductId:Qty[@Price],...'.")
@click.option("--materials", default="", help="Atelier materials as 'MaterialId:Qty[@Price],...'.")
@click.option("--shop", "shop_id", default=None, help="Selling shop; omit for a global order.")
@click.option("--payment", "payment_status", default="pending", type=_PAYMENT, show_default=True)
@click.option("--paid", "amount_paid", default=None, help="Amount paid so far.")
@click.option("--notes", default="")
@click.pass_obj
def order_create(obj, customer, items, materials, shop_id, payment_status, amount_paid, notes) -> None:
    """Create an order, reserving or consuming its stock."""
    specs = _parse_items(items, "retail") + _parse_items(materials, "material")
    cfg = settings()
    handler = CreateOrderHandler(unit_of_work(), cfg.RESERVATION_TTL_HOURS)

    dto = execute(
        lambda: handler.handle(
            customer_name=customer,
            item_specs=specs,
            shop_id=shop_id,
            payment_status=payment_status,
            amount_paid=amount_paid,
            notes=notes,
            actor=obj.get("actor"),
        )
    )
    click.echo(f"Order #{dto.id} created  (status={dto.status})")
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    dto = execute(lambda: ShowOrderHandler(unit_of_work()).handle(order_id))
    _display_order(dto)


@click.command("list")
@click.option("--status", default=None, help="Only orders in this status.")
def order_list(status: str | None) -> None:
    """List orders, newest first."""
    orders = execute(lambda: ListOrdersHandler(unit_of_work()).handle(status))
    if not orders:
        click.echo("No orders found.")
        return
    for dto in orders:
        click.echo(
            f"  #{dto.id:<6} {dto.customer_name:<20} {dto.status:<11} "
            f"{dto.payment_status:<10} {dto.total:>16}"
        )


@click.command("confirm")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to confirm.")
def order_confirm(order_id: int) -> None:
    """Confirm a pending order (re-checks and extends its reservations)."""
    cfg = settings()
    handler = ConfirmOrderHandler(
        unit_of_work(), cfg.RESERVATION_TTL_HOURS, cfg.CONFIRMED_RESERVATION_TTL_HOURS
    )
    execute(lambda: handler.handle(order_id))
    click.echo(f"Order #{order_id} confirmed; reservations extended.")


@click.command("process")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to process.")
def order_process(order_id: int) -> None:
    """Start processing a confirmed order and print its picking list."""
    lines = execute(lambda: ProcessOrderHandler(unit_of_work()).handle(order_id))
    click.echo(f"Order #{order_id} is processing. Picking list:")
    for line in lines:
        click.echo(f"  {line.product_name:<24} {line.sku:<12} {line.quantity:>5}  from {line.source}")


@click.command("fulfill")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to fulfill.")
@click.option("--tracking", "tracking_number", default=None, help="Shipment tracking number.")
def order_fulfill(order_id: int, tracking_number: str | None) -> None:
    """Fulfill a processing order (reserved stock leaves the pool)."""
    cfg = settings()
    handler = FulfillOrderHandler(
        unit_of_work(), cfg.RESERVATION_TTL_HOURS, cfg.CONFIRMED_RESERVATION_TTL_HOURS
    )
    execute(lambda: handler.handle(order_id, tracking_number))
    click.echo(f"Order #{order_id} fulfilled.")


@click.command("complete")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to complete.")
def order_complete(order_id: int) -> None:
    """Mark a fulfilled order as completed."""
    execute(lambda: CompleteOrderHandler(unit_of_work()).handle(order_id))
    click.echo(f"Order #{order_id} completed.")


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
def order_cancel(order_id: int) -> None:
    """Cancel an order (releases its reservations)."""
    released = execute(lambda: CancelOrderHandler(unit_of_work()).handle(order_id))
    click.echo(f"Order #{order_id} cancelled; {released} reservation(s) released.")


@click.command("delete")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to delete.")
@click.pass_obj
def order_delete(obj, order_id: int) -> None:
    """Permanently delete a pending or confirmed order (admin only)."""
    execute(lambda: DeleteOrderHandler(unit_of_work()).handle(order_id, actor=obj.get("actor")))
    click.echo(f"Order #{order_id} deleted.")


@click.command("pay")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--status", "payment_status", required=True, type=_PAYMENT)
@click.option("--amount", "amount_paid", default=None, help="Total amount paid so far.")
def order_pay(order_id: int, payment_status: str, amount_paid: str | None) -> None:
    """Record a payment on an order."""
    dto = execute(
        lambda: UpdatePaymentHandler(unit_of_work()).handle(order_id, payment_status, amount_paid)
    )
    click.echo(f"Order #{dto.id}: payment {dto.payment_status}, paid {dto.amount_paid}")
