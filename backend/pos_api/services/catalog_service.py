# Overview: Record-access operations for items and categories used by the sale workflow and CLI.

"""
Catalog Service

Plain record access for the item master: look up items, create items and
categories with generated codes, and keep InventoryRecord rows in step with
the is_stock_item flag and the active/inactive status.

INVENTORY SYNC RULES:
- Creating a stock item creates its inventory record (quantity 0).
- Flagging an item as stock-tracked creates the record if missing.
- Un-flagging or deactivating a stock item deletes the record.
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Category, Item
from . import inventory_service
from .code_service import allocate_code
from .concurrency import lock_for_update, run_with_retry, unit_of_work


ITEM_SEQUENCE = "ITEM"
CATEGORY_SEQUENCE = "CATEGORY"


class CatalogError(ValueError):
    """Raised for invalid catalog operations."""


def get_item(item_id: int) -> Item | None:
    return db.session.get(Item, item_id)


def get_item_by_code(item_code: str) -> Item | None:
    return db.session.query(Item).filter_by(item_code=item_code).first()


def _last_item_code() -> str | None:
    return db.session.query(Item.item_code).order_by(Item.id.desc()).limit(1).scalar()


def _last_category_code() -> str | None:
    return db.session.query(Category.category_code).order_by(Category.id.desc()).limit(1).scalar()


def _percent(value, field: str) -> Decimal:
    pct = Decimal(str(value or 0))
    if pct < 0 or pct > 100:
        raise CatalogError(f"{field} must be between 0 and 100")
    return pct


def create_category(
    category_name: str,
    *,
    description: str | None = None,
    default_discount=0,
    default_tax=0,
) -> Category:
    if not category_name or not category_name.strip():
        raise CatalogError("Category name is required")

    def _op() -> Category:
        with unit_of_work():
            code = allocate_code(
                sequence_name=CATEGORY_SEQUENCE,
                prefix=current_app.config["CATEGORY_CODE_PREFIX"],
                width=current_app.config["CATEGORY_CODE_WIDTH"],
                last_issued=_last_category_code,
            )
            category = Category(
                category_code=code,
                category_name=category_name.strip(),
                description=description,
                default_discount=_percent(default_discount, "default_discount"),
                default_tax=_percent(default_tax, "default_tax"),
                is_active=True,
            )
            db.session.add(category)
        return category

    return run_with_retry(_op)


def create_item(
    item_name: str,
    *,
    selling_price,
    category_id: int | None = None,
    barcode: str | None = None,
    cost_price=0,
    default_discount=0,
    tax=0,
    is_stock_item: bool = False,
    initial_quantity: int = 0,
    reorder_level: int | None = None,
) -> Item:
    """Create an active item with the next item code; stock items get an inventory record."""
    if not item_name or not item_name.strip():
        raise CatalogError("Item name is required")
    price = Decimal(str(selling_price))
    if price < 0:
        raise CatalogError("selling_price must be >= 0")
    if reorder_level is None:
        reorder_level = current_app.config["DEFAULT_REORDER_LEVEL"]

    def _op() -> Item:
        with unit_of_work():
            if category_id is not None and db.session.get(Category, category_id) is None:
                raise CatalogError("Category not found")

            code = allocate_code(
                sequence_name=ITEM_SEQUENCE,
                prefix=current_app.config["ITEM_CODE_PREFIX"],
                width=current_app.config["ITEM_CODE_WIDTH"],
                last_issued=_last_item_code,
            )
            item = Item(
                item_code=code,
                item_name=item_name.strip(),
                category_id=category_id,
                barcode=barcode,
                cost_price=Decimal(str(cost_price or 0)),
                selling_price=price,
                default_discount=_percent(default_discount, "default_discount"),
                tax=_percent(tax, "tax"),
                is_stock_item=bool(is_stock_item),
                status="active",
            )
            db.session.add(item)
            db.session.flush()

            if item.is_stock_item:
                inventory_service.create_record(
                    code,
                    quantity=initial_quantity,
                    reorder_level=reorder_level,
                )
        return item

    return run_with_retry(_op)


def set_stock_tracking(item_id: int, is_stock_item: bool) -> Item:
    with unit_of_work():
        item = lock_for_update(db.session.query(Item).filter_by(id=item_id)).first()
        if item is None:
            raise CatalogError("Item not found")

        has_record = inventory_service.get_record(item.item_code) is not None
        item.is_stock_item = bool(is_stock_item)
        if item.is_stock_item and not has_record:
            inventory_service.create_record(
                item.item_code,
                reorder_level=current_app.config["DEFAULT_REORDER_LEVEL"],
            )
        elif not item.is_stock_item and has_record:
            inventory_service.delete_record(item.item_code)
    return item


def set_item_status(item_id: int, active: bool) -> Item:
    """Activate or deactivate an item. Deactivating a stock item drops its inventory."""
    with unit_of_work():
        item = lock_for_update(db.session.query(Item).filter_by(id=item_id)).first()
        if item is None:
            raise CatalogError("Item not found")

        item.status = "active" if active else "inactive"
        if not active and item.is_stock_item:
            inventory_service.delete_record(item.item_code)
        elif active and item.is_stock_item and inventory_service.get_record(item.item_code) is None:
            inventory_service.create_record(
                item.item_code,
                reorder_level=current_app.config["DEFAULT_REORDER_LEVEL"],
            )
    return item


def update_item_pricing(item_id: int, *, selling_price=None, default_discount=None, tax=None) -> Item:
    """Change live pricing. Already committed invoice lines keep their snapshot."""
    with unit_of_work():
        item = lock_for_update(db.session.query(Item).filter_by(id=item_id)).first()
        if item is None:
            raise CatalogError("Item not found")
        if selling_price is not None:
            price = Decimal(str(selling_price))
            if price < 0:
                raise CatalogError("selling_price must be >= 0")
            item.selling_price = price
        if default_discount is not None:
            item.default_discount = _percent(default_discount, "default_discount")
        if tax is not None:
            item.tax = _percent(tax, "tax")
    return item
