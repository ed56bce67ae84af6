# Overview: Pure pricing computations for sale lines and invoice totals.

"""
Pricing Engine

LINE FORMULA (per line, exact Decimal arithmetic):
- line_subtotal   = unit_price * quantity
- discount_amount = line_subtotal * discount_percent / 100
- tax_amount      = (line_subtotal - discount_amount) * tax_percent / 100
- line_total      = line_subtotal - discount_amount + tax_amount

INVOICE FORMULA:
- grand_total = max(0, subtotal - item_discount - flat_discount + tax)
- payment_status = PAID if paid >= grand_total else PARTIAL
- balance = grand_total - paid (negative means change due)

ROUNDING: Nothing is rounded mid-computation. Values are quantized to the
currency's minor unit (2 places, half-up) only when they leave the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable


CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")

PAYMENT_STATUS_PAID = "PAID"
PAYMENT_STATUS_PARTIAL = "PARTIAL"


def to_money(value: Decimal) -> Decimal:
    """Round to the minor currency unit."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _dec(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class LinePricing:
    unit_price: Decimal
    quantity: int
    discount_percent: Decimal
    tax_percent: Decimal
    line_subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    line_total: Decimal

    def rounded(self) -> "LinePricing":
        return LinePricing(
            unit_price=self.unit_price,
            quantity=self.quantity,
            discount_percent=self.discount_percent,
            tax_percent=self.tax_percent,
            line_subtotal=to_money(self.line_subtotal),
            discount_amount=to_money(self.discount_amount),
            tax_amount=to_money(self.tax_amount),
            line_total=to_money(self.line_total),
        )


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    item_discount: Decimal
    flat_discount: Decimal
    tax: Decimal
    grand_total: Decimal
    paid_amount: Decimal
    balance: Decimal
    payment_status: str

    @property
    def total_discount(self) -> Decimal:
        return self.item_discount + self.flat_discount


def price_line(unit_price, quantity: int, discount_percent=0, tax_percent=0) -> LinePricing:
    """
    Price one line. Inputs are pre-validated non-negative numbers.

    Returns unrounded amounts; call .rounded() for display/storage values.
    """
    unit_price = _dec(unit_price)
    discount_percent = _dec(discount_percent)
    tax_percent = _dec(tax_percent)

    line_subtotal = unit_price * quantity
    discount_amount = line_subtotal * discount_percent / HUNDRED
    tax_amount = (line_subtotal - discount_amount) * tax_percent / HUNDRED
    line_total = line_subtotal - discount_amount + tax_amount

    return LinePricing(
        unit_price=unit_price,
        quantity=quantity,
        discount_percent=discount_percent,
        tax_percent=tax_percent,
        line_subtotal=line_subtotal,
        discount_amount=discount_amount,
        tax_amount=tax_amount,
        line_total=line_total,
    )


def summarize_invoice(lines: Iterable[LinePricing], flat_discount=0, paid_amount=0) -> InvoiceTotals:
    """Aggregate priced lines into invoice totals (rounded at output)."""
    subtotal = ZERO
    item_discount = ZERO
    tax = ZERO
    for line in lines:
        subtotal += line.line_subtotal
        item_discount += line.discount_amount
        tax += line.tax_amount

    flat_discount = _dec(flat_discount)
    paid_amount = _dec(paid_amount)

    # Clamp so a large flat discount can never produce a negative invoice
    grand_total = to_money(max(ZERO, subtotal - item_discount - flat_discount + tax))
    paid_amount = to_money(paid_amount)

    if paid_amount >= grand_total:
        payment_status = PAYMENT_STATUS_PAID
    else:
        payment_status = PAYMENT_STATUS_PARTIAL

    return InvoiceTotals(
        subtotal=to_money(subtotal),
        item_discount=to_money(item_discount),
        flat_discount=to_money(flat_discount),
        tax=to_money(tax),
        grand_total=grand_total,
        paid_amount=paid_amount,
        balance=grand_total - paid_amount,
        payment_status=payment_status,
    )
