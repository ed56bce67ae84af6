from decimal import Decimal

import pytest

from pos_api.services.pricing_service import (
    PAYMENT_STATUS_PAID,
    PAYMENT_STATUS_PARTIAL,
    price_line,
    summarize_invoice,
    to_money,
)


class TestPriceLine:
    def test_discount_then_tax(self):
        line = price_line(Decimal("100"), 2, Decimal("10"), Decimal("5"))

        assert line.line_subtotal == Decimal("200")
        assert line.discount_amount == Decimal("20")
        assert line.tax_amount == Decimal("9")
        assert line.line_total == Decimal("189")

    def test_same_inputs_same_outputs(self):
        first = price_line(Decimal("19.99"), 7, Decimal("12.5"), Decimal("7.25"))
        second = price_line(Decimal("19.99"), 7, Decimal("12.5"), Decimal("7.25"))
        assert first == second

    def test_no_rounding_until_output(self):
        line = price_line(Decimal("1.99"), 3, Decimal("12.5"), Decimal("7.25"))

        # 5.97 * 12.5% = 0.74625 kept exact
        assert line.discount_amount == Decimal("0.74625")
        assert line.tax_amount == Decimal("0.378721875")

        rounded = line.rounded()
        assert rounded.line_subtotal == Decimal("5.97")
        assert rounded.discount_amount == Decimal("0.75")
        assert rounded.tax_amount == Decimal("0.38")
        assert rounded.line_total == Decimal("5.60")

    def test_zero_percentages(self):
        line = price_line(Decimal("3.50"), 4)
        assert line.discount_amount == 0
        assert line.tax_amount == 0
        assert line.line_total == Decimal("14.00")

    def test_accepts_plain_numbers(self):
        line = price_line(100, 2, 10, 5)
        assert line.line_total == Decimal("189")


class TestSummarizeInvoice:
    def test_totals_match_formula(self):
        lines = [
            price_line(Decimal("100"), 2, Decimal("10"), Decimal("5")),
            price_line(Decimal("40"), 1, Decimal("0"), Decimal("10")),
        ]
        totals = summarize_invoice(lines, flat_discount=Decimal("15"), paid_amount=Decimal("300"))

        assert totals.subtotal == Decimal("240.00")
        assert totals.item_discount == Decimal("20.00")
        assert totals.tax == Decimal("13.00")
        # 240 - 20 - 15 + 13
        assert totals.grand_total == Decimal("218.00")
        assert totals.total_discount == Decimal("35.00")
        assert totals.payment_status == PAYMENT_STATUS_PAID
        assert totals.balance == Decimal("-82.00")

    def test_flat_discount_larger_than_invoice_clamps_to_zero(self):
        lines = [price_line(Decimal("10"), 1, 0, Decimal("5"))]
        totals = summarize_invoice(lines, flat_discount=Decimal("50"))

        assert totals.grand_total == Decimal("0.00")
        assert totals.payment_status == PAYMENT_STATUS_PAID
        assert totals.balance == Decimal("0.00")

    def test_underpayment_is_partial(self):
        lines = [price_line(Decimal("100"), 2, Decimal("10"), Decimal("5"))]
        totals = summarize_invoice(lines, paid_amount=Decimal("100"))

        assert totals.grand_total == Decimal("189.00")
        assert totals.payment_status == PAYMENT_STATUS_PARTIAL
        assert totals.balance == Decimal("89.00")

    def test_exact_payment_is_paid(self):
        lines = [price_line(Decimal("100"), 2, Decimal("10"), Decimal("5"))]
        totals = summarize_invoice(lines, paid_amount=Decimal("189"))

        assert totals.payment_status == PAYMENT_STATUS_PAID
        assert totals.balance == Decimal("0.00")

    def test_sums_unrounded_amounts_before_rounding(self):
        # Three lines of 0.333... tax each: rounding per line would give 0.99
        lines = [price_line(Decimal("10"), 1, 0, Decimal("3.3333")) for _ in range(3)]
        totals = summarize_invoice(lines)
        assert totals.tax == Decimal("1.00")

    @pytest.mark.parametrize("flat", ["0", "5", "188.99", "189", "1000"])
    def test_grand_total_never_negative(self, flat):
        lines = [price_line(Decimal("100"), 2, Decimal("10"), Decimal("5"))]
        totals = summarize_invoice(lines, flat_discount=Decimal(flat))

        expected = Decimal("189") - Decimal(flat)
        assert totals.grand_total >= 0
        assert totals.grand_total == to_money(max(expected, Decimal("0")))
