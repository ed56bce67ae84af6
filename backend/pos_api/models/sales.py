from __future__ import annotations

from ..extensions import db
from pos_api.time_utils import to_utc_z


def _money(value):
    return str(value) if value is not None else None


class Invoice(db.Model):
    """
    Committed sale document.

    APPEND-ONLY: invoices are written once by sales_service.create_sale and
    never updated. The invoice number is derived from the autoincrement id
    (sqlite_autoincrement keeps ids from being reused after deletes).

    ROUNDING: header totals are rounded once from the exact sums of the line
    amounts, while each InvoiceLine stores its own rounded amounts. The sum
    of the stored line columns can therefore differ from the header by a
    cent (three 0.05 lines at 10% discount store 0.01 discount each, the
    header stores 0.02). The header is authoritative for what was charged.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.Index("ix_invoices_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "INV-000042"); assigned in the same
    # transaction right after the row id is issued
    invoice_number = db.Column(db.String(64), nullable=True, unique=True)

    # Totals (all amounts in currency units, 2 decimal places)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    item_discount_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    flat_discount_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    # Payment tracking
    payment_method = db.Column(db.String(32), nullable=False)
    paid_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    balance_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)  # negative = change due
    payment_status = db.Column(db.String(16), nullable=False, index=True)  # PAID, PARTIAL

    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    lines = db.relationship(
        "InvoiceLine",
        backref="invoice",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="InvoiceLine.line_number",
    )

    def __repr__(self) -> str:
        return f"<Invoice id={self.id} number={self.invoice_number!r} total={self.total_amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "subtotal": _money(self.subtotal),
            "item_discount_amount": _money(self.item_discount_amount),
            "flat_discount_amount": _money(self.flat_discount_amount),
            "discount_amount": _money(self.discount_amount),
            "tax_amount": _money(self.tax_amount),
            "total_amount": _money(self.total_amount),
            "payment_method": self.payment_method,
            "paid_amount": _money(self.paid_amount),
            "balance_amount": _money(self.balance_amount),
            "payment_status": self.payment_status,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class InvoiceLine(db.Model):
    """
    Snapshot of a sold item at time of sale.

    WHY: Name, code, price, discount and tax are copied from the live Item so
    later catalog edits never change historical invoices. item_id is kept for
    traceability only.
    """
    __tablename__ = "invoice_items"
    __table_args__ = (
        db.UniqueConstraint("invoice_id", "line_number", name="uq_invoice_items_invoice_line"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(
        db.Integer,
        db.ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    line_number = db.Column(db.Integer, nullable=False)

    item_id = db.Column(db.Integer, nullable=False)
    item_name = db.Column(db.String(255), nullable=False)
    item_code = db.Column(db.String(32), nullable=False)
    barcode = db.Column(db.String(64), nullable=True)
    category_name = db.Column(db.String(255), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    discount_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    tax_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)

    # Computed by the pricing engine
    line_subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=False)
    tax_amount = db.Column(db.Numeric(12, 2), nullable=False)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "line_number": self.line_number,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "item_code": self.item_code,
            "barcode": self.barcode,
            "category_name": self.category_name,
            "quantity": self.quantity,
            "unit_price": _money(self.unit_price),
            "discount_percent": _money(self.discount_percent),
            "tax_percent": _money(self.tax_percent),
            "line_subtotal": _money(self.line_subtotal),
            "discount_amount": _money(self.discount_amount),
            "tax_amount": _money(self.tax_amount),
            "line_total": _money(self.line_total),
        }
