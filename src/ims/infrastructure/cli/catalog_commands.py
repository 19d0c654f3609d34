"""CLI commands for registering products, locations and materials."""

from __future__ import annotations

import click

from ims.application.add_location import AddLocationHandler
from ims.application.add_material import (
    AddBulkMaterialHandler,
    AddPackagingHandler,
    AddRawMaterialHandler,
)
from ims.application.add_product import AddProductHandler
from ims.domain.model.product import ProductKind
from ims.infrastructure.bootstrap import unit_of_work
from ims.infrastructure.cli.support import execute


@click.command("add-product")
@click.option("--id", "product_id", required=True)
@click.option("--name", required=True)
@click.option("--sku", default="")
@click.option("--kind", default="general", type=click.Choice([k.value for k in ProductKind]))
@click.option("--price", default="0", help="Unit price.")
@click.option("--stock", "initial_stock", default=0, type=int, help="Initial pool quantity.")
@click.option("--min", "min_stock_level", default=0, type=int)
@click.option("--size", "size_spec", default=None, help="Size, e.g. '30ml' for perfume.")
@click.option("--bulk", "bulk_material_id", default=None, help="Bulk material bottled into this product.")
@click.pass_obj
def catalog_add_product(obj, product_id, name, sku, kind, price, initial_stock, min_stock_level, size_spec, bulk_material_id) -> None:
    """Register a product."""
    handler = AddProductHandler(unit_of_work())
    execute(
        lambda: handler.handle(
            product_id, name, sku, kind, price, initial_stock, min_stock_level,
            size_spec, bulk_material_id, actor=obj.get("actor"),
        )
    )
    click.echo(f"Product '{product_id}' registered (pool {initial_stock}).")


@click.command("add-location")
@click.option("--id", "location_id", required=True)
@click.option("--name", required=True)
@click.option("--kind", required=True, type=click.Choice(["shop", "warehouse"]))
@click.pass_obj
def catalog_add_location(obj, location_id, name, kind) -> None:
    """Register a shop or warehouse."""
    execute(lambda: AddLocationHandler(unit_of_work()).handle(location_id, name, kind, actor=obj.get("actor")))
    click.echo(f"{kind.capitalize()} '{location_id}' registered.")


@click.command("add-bulk")
@click.option("--id", "bulk_id", required=True)
@click.option("--name", required=True)
@click.option("--ml", "quantity_ml", required=True, type=int)
@click.pass_obj
def catalog_add_bulk(obj, bulk_id, name, quantity_ml) -> None:
    """Register a bulk perfume (in ml)."""
    execute(lambda: AddBulkMaterialHandler(unit_of_work()).handle(bulk_id, name, quantity_ml, actor=obj.get("actor")))
    click.echo(f"Bulk material '{bulk_id}' registered ({quantity_ml}ML).")


@click.command("add-packaging")
@click.option("--size", "size_ml", required=True, type=int, help="Bottle size in ml.")
@click.option("--units", required=True, type=int)
@click.pass_obj
def catalog_add_packaging(obj, size_ml, units) -> None:
    """Add empty bottles of one size."""
    total = execute(lambda: AddPackagingHandler(unit_of_work()).handle(size_ml, units, actor=obj.get("actor")))
    click.echo(f"{size_ml}ML bottles in stock: {total}.")


@click.command("add-material")
@click.option("--id", "material_id", required=True)
@click.option("--name", required=True)
@click.option("--unit", default="unit")
@click.option("--stock", "current_stock", default=0, type=int)
@click.pass_obj
def catalog_add_material(obj, material_id, name, unit, current_stock) -> None:
    """Register an atelier raw material."""
    execute(
        lambda: AddRawMaterialHandler(unit_of_work()).handle(
            material_id, name, unit, current_stock, actor=obj.get("actor")
        )
    )
    click.echo(f"Raw material '{material_id}' registered ({current_stock} {unit}).")


@click.command("materials")
def catalog_materials() -> None:
    """Show bulk perfume, packaging and raw material balances."""
    uow = unit_of_work()
    with uow:
        bulk = uow.materials.list_bulk()
        packaging = uow.materials.list_packaging()
        raw = uow.materials.list_raw()

    click.echo("Bulk perfume:")
    for b in bulk:
        click.echo(f"  {b.id:<12} {b.name:<24} {b.quantity_ml:>8}ML")
    click.echo("Packaging:")
    for p in packaging:
        click.echo(f"  {p.size_ml:>4}ML bottles {p.units:>8}")
    click.echo("Raw materials:")
    for r in raw:
        click.echo(f"  {r.id:<12} {r.name:<24} {r.current_stock:>8} {r.unit}")
