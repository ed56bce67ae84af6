# Overview: Flask CLI command groups for bootstrap, catalog seeding, and stock maintenance.

# backend/pos_api/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to pos_api (PowerShell: $env:FLASK_APP="pos_api").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog seeding:
# - python -m flask catalog add-category --name "Beverages" --tax 5
#   Create a category with the next CAT code.
# - python -m flask catalog add-item --name "Cola 330ml" --price 1.50 --tax 5 --stock --quantity 48
#   Create an item with the next ITM code (stock items get an inventory record).
# - python -m flask catalog deactivate-item 7
#   Mark an item inactive (its inventory record is removed).
#
# Inventory maintenance:
# - python -m flask inventory set ITM00001 25 [--reorder-level 5]
#   Overwrite the counted quantity (stock take).
# - python -m flask inventory adjust ITM00001 -- -3
#   Apply a relative correction (never below zero).
# - python -m flask inventory low-stock
#   List items at or below their reorder level.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import catalog_service, inventory_service
from .services.catalog_service import CatalogError
from .services.code_service import CodeGenerationError
from .services.concurrency import unit_of_work
from .services.inventory_service import InventoryError, InsufficientStockError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Database tables ready")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete")


@click.group('catalog')
def catalog_group():
    """Item and category seeding."""


@catalog_group.command('add-category')
@click.option('--name', required=True, help='Category name')
@click.option('--description', default=None)
@click.option('--discount', default='0', help='Default discount percent')
@click.option('--tax', default='0', help='Default tax percent')
@with_appcontext
def add_category(name, description, discount, tax):
    """Create a category with the next category code."""
    try:
        category = catalog_service.create_category(
            name,
            description=description,
            default_discount=discount,
            default_tax=tax,
        )
    except (CatalogError, CodeGenerationError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created category {category.category_code}: {category.category_name} (ID: {category.id})")


@catalog_group.command('add-item')
@click.option('--name', required=True, help='Item name')
@click.option('--price', required=True, help='Unit selling price')
@click.option('--cost', default='0', help='Unit cost price')
@click.option('--discount', default='0', help='Default discount percent')
@click.option('--tax', default='0', help='Tax percent')
@click.option('--barcode', default=None)
@click.option('--category-id', type=int, default=None)
@click.option('--stock/--no-stock', default=False, help='Track inventory for this item')
@click.option('--quantity', type=int, default=0, help='Initial on-hand quantity (stock items)')
@click.option('--reorder-level', type=int, default=None)
@with_appcontext
def add_item(name, price, cost, discount, tax, barcode, category_id, stock, quantity, reorder_level):
    """Create an item with the next item code."""
    try:
        item = catalog_service.create_item(
            name,
            selling_price=price,
            cost_price=cost,
            default_discount=discount,
            tax=tax,
            barcode=barcode,
            category_id=category_id,
            is_stock_item=stock,
            initial_quantity=quantity,
            reorder_level=reorder_level,
        )
    except (CatalogError, CodeGenerationError, InventoryError) as e:
        raise click.ClickException(str(e))
    stock_note = f", stock {quantity}" if stock else ""
    click.echo(f"PASS Created item {item.item_code}: {item.item_name} (ID: {item.id}{stock_note})")


@catalog_group.command('deactivate-item')
@click.argument('item_id', type=int)
@with_appcontext
def deactivate_item(item_id):
    """Mark an item inactive so it can no longer be sold."""
    try:
        item = catalog_service.set_item_status(item_id, active=False)
    except CatalogError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Item {item.item_code} is now {item.status}")


@click.group('inventory')
def inventory_group():
    """Stock maintenance commands."""


@inventory_group.command('set')
@click.argument('item_code')
@click.argument('quantity', type=int)
@click.option('--reorder-level', type=int, default=None)
@with_appcontext
def set_stock(item_code, quantity, reorder_level):
    """Overwrite the on-hand quantity of ITEM_CODE."""
    try:
        with unit_of_work():
            record = inventory_service.set_quantity(item_code, quantity, reorder_level=reorder_level)
            summary = f"{record.item_code}: quantity={record.quantity} reorder_level={record.reorder_level}"
    except InventoryError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS {summary}")


@inventory_group.command('adjust')
@click.argument('item_code')
@click.argument('delta', type=int)
@with_appcontext
def adjust_stock(item_code, delta):
    """Add DELTA units (negative to remove) to ITEM_CODE."""
    try:
        with unit_of_work():
            record = inventory_service.adjust_quantity(item_code, delta)
            summary = f"{record.item_code}: quantity={record.quantity}"
    except InsufficientStockError as e:
        raise click.ClickException(f"{e} (available {e.available})")
    except InventoryError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS {summary}")


@inventory_group.command('low-stock')
@with_appcontext
def low_stock():
    """List items at or below their reorder level."""
    records = inventory_service.low_stock_records()
    if not records:
        click.echo("PASS No items at or below reorder level")
        return
    click.echo(f"{'Item Code':<12} {'Qty':>6} {'Reorder':>8}")
    click.echo("-" * 28)
    for record in records:
        click.echo(f"{record.item_code:<12} {record.quantity:>6} {record.reorder_level:>8}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(inventory_group)
