"""
Sales Service - sale commit workflow

WHY: A sale turns a cart of item references into a priced, persisted invoice
and takes the stock for it. Either all of that happens or none of it does.

STATES (per attempt):
    STARTED -> PRICED -> PERSISTED -> RESERVED -> COMMITTED
    FAILED is reachable from every state and means full rollback.

ORDER OF WORK (inside one unit of work):
1. Look up and price every line (pure pricing, no writes).
2. Insert the invoice header; its row id yields the invoice number.
3. Insert each line snapshot, then reserve stock for stock-tracked items.
4. Commit.

Failures unwind to the unit of work, which rolls back header, lines and any
reservations already taken. Nothing is retried automatically: re-submitting
a sale is the client's decision.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Invoice, InvoiceLine, Item
from ..validation import (
    ValidationError,
    coerce_amount,
    coerce_optional_text,
    coerce_payment_method,
    coerce_positive_int,
)
from . import inventory_service
from .code_service import invoice_number_for
from .concurrency import unit_of_work
from .pricing_service import LinePricing, price_line, summarize_invoice


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ItemNotFoundError(SaleError):
    """Cart references an item that does not exist or cannot be sold."""


class ItemInactiveError(ItemNotFoundError):
    """Cart references an item whose status is inactive."""


class StorageError(SaleError):
    """Database failure while committing a sale; nothing was persisted."""


class SaleState(str, Enum):
    STARTED = "STARTED"
    PRICED = "PRICED"
    PERSISTED = "PERSISTED"
    RESERVED = "RESERVED"
    COMMITTED = "COMMITTED"
    FAILED = "FAILED"


@dataclass
class CartLine:
    item_id: int
    quantity: int


@dataclass
class PricedLine:
    item: Item
    pricing: LinePricing


@dataclass
class SaleAttempt:
    """Tracks one pass through the workflow for logging and error reports."""
    cart: list[CartLine]
    state: SaleState = SaleState.STARTED
    history: list[SaleState] = field(default_factory=lambda: [SaleState.STARTED])

    def advance(self, state: SaleState) -> None:
        self.state = state
        self.history.append(state)
        current_app.logger.debug("Sale attempt -> %s (%d cart lines)", state.value, len(self.cart))


@dataclass(frozen=True)
class SaleResult:
    invoice_id: int
    invoice_number: str
    total_amount: Decimal
    balance_amount: Decimal
    payment_status: str

    def to_dict(self) -> dict:
        return {
            "invoice_id": self.invoice_id,
            "invoice_number": self.invoice_number,
            "total_amount": str(self.total_amount),
            "balance_amount": str(self.balance_amount),
            "payment_status": self.payment_status,
        }


def parse_cart(items) -> list[CartLine]:
    """Validate the raw cart. Raises ValidationError before any database work."""
    if not items:
        raise ValidationError("No items in the sale.")
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    cart = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"Invalid item data at position {index}", details={"index": index})
        try:
            item_id = coerce_positive_int(raw.get("item_id"), "item_id")
            quantity = coerce_positive_int(raw.get("quantity"), "quantity")
        except ValidationError as exc:
            raise ValidationError(
                f"Invalid item data at position {index}: {exc}",
                details={"index": index, "item_id": raw.get("item_id")},
            ) from exc
        cart.append(CartLine(item_id=item_id, quantity=quantity))
    return cart


def _load_sellable_item(item_id: int) -> Item:
    item = db.session.get(Item, item_id)
    if item is None:
        raise ItemNotFoundError(f"Item with ID {item_id} not found.", details={"item_id": item_id})
    if not item.is_active:
        raise ItemInactiveError(
            f"Item with ID {item_id} is inactive.",
            details={"item_id": item_id, "item_code": item.item_code},
        )
    return item


def _price_cart(cart: list[CartLine]) -> list[PricedLine]:
    priced = []
    for line in cart:
        item = _load_sellable_item(line.item_id)
        pricing = price_line(
            unit_price=item.selling_price,
            quantity=line.quantity,
            discount_percent=item.default_discount or 0,
            tax_percent=item.tax or 0,
        )
        priced.append(PricedLine(item=item, pricing=pricing))
    return priced


def _line_snapshot(invoice: Invoice, line_number: int, priced: PricedLine) -> InvoiceLine:
    item = priced.item
    pricing = priced.pricing.rounded()
    return InvoiceLine(
        invoice_id=invoice.id,
        line_number=line_number,
        item_id=item.id,
        item_name=item.item_name,
        item_code=item.item_code,
        barcode=item.barcode,
        category_name=item.category.category_name if item.category else None,
        quantity=pricing.quantity,
        unit_price=pricing.unit_price,
        discount_percent=pricing.discount_percent,
        tax_percent=pricing.tax_percent,
        line_subtotal=pricing.line_subtotal,
        discount_amount=pricing.discount_amount,
        tax_amount=pricing.tax_amount,
        line_total=pricing.line_total,
    )


def create_sale(
    items,
    payment_method,
    *,
    paid_amount=None,
    flat_discount=None,
    notes=None,
    created_by=None,
) -> SaleResult:
    """
    Price, persist and commit a sale in one atomic unit.

    Raises:
        ValidationError: malformed cart or payment fields (nothing touched)
        ItemNotFoundError / ItemInactiveError: unknown or unsellable item
        InsufficientStockError: a stock-tracked line cannot be reserved
        CodeGenerationError: invoice number could not be derived
        StorageError: database failure (rolled back)
    """
    cart = parse_cart(items)
    method = coerce_payment_method(payment_method)
    paid = coerce_amount(paid_amount, "paid_amount")
    flat = coerce_amount(flat_discount, "flat_discount")
    notes = coerce_optional_text(notes, "notes")
    created_by = coerce_optional_text(created_by, "created_by", max_length=64)

    attempt = SaleAttempt(cart=cart)
    config = current_app.config

    try:
        with unit_of_work():
            priced = _price_cart(cart)
            totals = summarize_invoice(
                (p.pricing for p in priced),
                flat_discount=flat,
                paid_amount=paid,
            )
            attempt.advance(SaleState.PRICED)

            invoice = Invoice(
                subtotal=totals.subtotal,
                item_discount_amount=totals.item_discount,
                flat_discount_amount=totals.flat_discount,
                discount_amount=totals.total_discount,
                tax_amount=totals.tax,
                total_amount=totals.grand_total,
                payment_method=method,
                paid_amount=totals.paid_amount,
                balance_amount=totals.balance,
                payment_status=totals.payment_status,
                notes=notes or "",
                created_by=created_by,
            )
            db.session.add(invoice)
            db.session.flush()

            invoice.invoice_number = invoice_number_for(
                invoice.id,
                prefix=config["INVOICE_PREFIX"],
                width=config["INVOICE_NUMBER_WIDTH"],
            )
            db.session.flush()
            attempt.advance(SaleState.PERSISTED)

            for line_number, p in enumerate(priced, start=1):
                db.session.add(_line_snapshot(invoice, line_number, p))
                db.session.flush()
                if p.item.is_stock_item:
                    inventory_service.reserve(
                        p.item.item_code,
                        p.pricing.quantity,
                        item_name=p.item.item_name,
                    )
            attempt.advance(SaleState.RESERVED)

            result = SaleResult(
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                total_amount=totals.grand_total,
                balance_amount=totals.balance,
                payment_status=totals.payment_status,
            )
    except SQLAlchemyError as exc:
        attempt.advance(SaleState.FAILED)
        raise StorageError("Could not save the sale. No changes were made.") from exc
    except Exception:
        attempt.advance(SaleState.FAILED)
        raise

    attempt.advance(SaleState.COMMITTED)
    return result


def get_invoice(invoice_id: int) -> Invoice | None:
    """Invoice with its line snapshots (ordered by line_number) or None."""
    return db.session.get(Invoice, invoice_id)
