# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/pos_api/services/inventory_service.py

from sqlalchemy import update

from ..extensions import db
from ..models import InventoryRecord
from pos_api.time_utils import utcnow
"""
Inventory Invariants (authoritative)

Inventory model:
- One InventoryRecord per stock-tracked item, keyed by item_code.
- quantity is a stored counter and may never go negative.

Concurrency:
- Every decrement is a single conditional UPDATE
  (quantity = quantity - :n WHERE quantity >= :n). The database evaluates
  the comparison and the write together under its own row locking, so two
  concurrent sales can never both take the last unit.
- Never read quantity, compare in Python, then write it back.

Transactions:
- Functions here never commit. They run inside the caller's unit of work so
  a failed sale rolls back every reservation it already made.
"""


class InsufficientStockError(Exception):
    """Raised when a conditional decrement affects no rows."""
    def __init__(self, item_code: str, requested: int, available: int | None, item_name: str | None = None):
        label = item_name or item_code
        super().__init__(f"Insufficient stock for item: {label}")
        self.item_code = item_code
        self.item_name = item_name
        self.requested = requested
        self.available = available
        self.details = {
            "item_code": item_code,
            "item_name": item_name,
            "requested": requested,
            "available": available,
        }


class InventoryError(ValueError):
    """Raised for invalid inventory record operations."""


def get_record(item_code: str) -> InventoryRecord | None:
    return db.session.query(InventoryRecord).filter_by(item_code=item_code).first()


def get_available_quantity(item_code: str) -> int | None:
    """Current on-hand quantity, or None when the item is not stock-tracked."""
    return (
        db.session.query(InventoryRecord.quantity)
        .filter_by(item_code=item_code)
        .scalar()
    )


def reserve(item_code: str, quantity: int, *, item_name: str | None = None) -> None:
    """
    Atomically take quantity units of stock for a sale.

    Raises InsufficientStockError (no partial decrement) when the record is
    missing or holds fewer than quantity units.
    """
    if quantity <= 0:
        raise InventoryError("quantity must be > 0")

    stmt = (
        update(InventoryRecord)
        .where(
            InventoryRecord.item_code == item_code,
            InventoryRecord.quantity >= quantity,
        )
        .values(
            quantity=InventoryRecord.quantity - quantity,
            last_updated=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    if result.rowcount == 0:
        raise InsufficientStockError(
            item_code=item_code,
            requested=quantity,
            available=get_available_quantity(item_code),
            item_name=item_name,
        )


def adjust_quantity(item_code: str, delta: int) -> InventoryRecord:
    """
    Apply a manual stock correction (positive receives, negative shrinkage).

    Uses the same conditional UPDATE as reserve so a negative delta can never
    take the record below zero.
    """
    if delta == 0:
        raise InventoryError("delta must be non-zero")

    conditions = [InventoryRecord.item_code == item_code]
    if delta < 0:
        conditions.append(InventoryRecord.quantity + delta >= 0)

    stmt = (
        update(InventoryRecord)
        .where(*conditions)
        .values(quantity=InventoryRecord.quantity + delta, last_updated=utcnow())
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount == 0:
        record = get_record(item_code)
        if record is None:
            raise InventoryError(f"No inventory record for item {item_code}")
        raise InsufficientStockError(item_code=item_code, requested=-delta, available=record.quantity)

    record = get_record(item_code)
    db.session.refresh(record)
    return record


def set_quantity(item_code: str, quantity: int, *, reorder_level: int | None = None) -> InventoryRecord:
    """Overwrite the counted quantity (stock take). Not used by sales."""
    if quantity < 0:
        raise InventoryError("quantity must be >= 0")
    record = get_record(item_code)
    if record is None:
        raise InventoryError(f"No inventory record for item {item_code}")
    record.quantity = quantity
    record.last_updated = utcnow()
    if reorder_level is not None:
        return set_reorder_level(item_code, reorder_level)
    db.session.flush()
    return record


def set_reorder_level(item_code: str, reorder_level: int) -> InventoryRecord:
    if reorder_level < 0:
        raise InventoryError("reorder_level must be >= 0")
    record = get_record(item_code)
    if record is None:
        raise InventoryError(f"No inventory record for item {item_code}")
    record.reorder_level = reorder_level
    db.session.flush()
    return record


def create_record(item_code: str, *, quantity: int = 0, reorder_level: int = 10) -> InventoryRecord:
    if get_record(item_code) is not None:
        raise InventoryError("Inventory record already exists for this item")
    if quantity < 0:
        raise InventoryError("quantity must be >= 0")
    record = InventoryRecord(
        item_code=item_code,
        quantity=quantity,
        reorder_level=reorder_level,
        last_updated=utcnow(),
    )
    db.session.add(record)
    db.session.flush()
    return record


def delete_record(item_code: str) -> bool:
    deleted = db.session.query(InventoryRecord).filter_by(item_code=item_code).delete()
    return bool(deleted)


def is_low_stock(record: InventoryRecord) -> bool:
    return record.quantity <= record.reorder_level


def low_stock_records() -> list[InventoryRecord]:
    return (
        db.session.query(InventoryRecord)
        .filter(InventoryRecord.quantity <= InventoryRecord.reorder_level)
        .order_by(InventoryRecord.item_code)
        .all()
    )
