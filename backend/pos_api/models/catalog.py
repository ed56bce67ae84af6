from __future__ import annotations

from ..extensions import db


class Category(db.Model):
    """Item grouping. The name is copied onto invoice lines at time of sale."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    category_code = db.Column(db.String(32), nullable=False, unique=True)
    category_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Percentages suggested to new items in the category
    default_discount = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    default_tax = db.Column(db.Numeric(5, 2), nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Category id={self.id} code={self.category_code!r} name={self.category_name!r}>"


class Item(db.Model):
    """
    Sellable item master data.

    PRICING: selling_price is per unit; default_discount and tax are
    percentages applied per line by the pricing engine.

    STOCK: only items flagged is_stock_item own an InventoryRecord (joined on
    item_code). Non-stock items (services, made-to-order goods) sell without
    touching inventory.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.Index("ix_items_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_code = db.Column(db.String(32), nullable=False, unique=True)
    item_name = db.Column(db.String(255), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    barcode = db.Column(db.String(64), nullable=True, index=True)

    cost_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    selling_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    default_discount = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(5, 2), nullable=False, default=0)

    is_stock_item = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.String(16), nullable=False, default="active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("items", lazy=True))

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def __repr__(self) -> str:
        return f"<Item id={self.id} code={self.item_code!r} name={self.item_name!r}>"
