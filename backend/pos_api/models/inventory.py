from __future__ import annotations

from ..extensions import db


class InventoryRecord(db.Model):
    """
    On-hand quantity for one stock-tracked item.

    INVARIANT: quantity >= 0, enforced by the CHECK constraint and by the
    conditional UPDATE in inventory_service.reserve. Sales never read the
    quantity and write it back in separate statements.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_code = db.Column(
        db.String(32),
        db.ForeignKey("items.item_code"),
        nullable=False,
        unique=True,
    )
    quantity = db.Column(db.Integer, nullable=False, default=0)
    reorder_level = db.Column(db.Integer, nullable=False, default=10)
    last_updated = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    item = db.relationship("Item", backref=db.backref("inventory", uselist=False, lazy=True))

    def __repr__(self) -> str:
        return f"<InventoryRecord item_code={self.item_code!r} quantity={self.quantity}>"
