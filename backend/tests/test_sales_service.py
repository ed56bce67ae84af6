from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from pos_api.models import Invoice, InvoiceLine
from pos_api.services import catalog_service, inventory_service, sales_service
from pos_api.services.inventory_service import InsufficientStockError
from pos_api.services.sales_service import (
    ItemInactiveError,
    ItemNotFoundError,
    StorageError,
)
from pos_api.validation import ValidationError


def _sale(*lines, **kwargs):
    items = [{"item_id": item.id, "quantity": qty} for item, qty in lines]
    kwargs.setdefault("payment_method", "cash")
    return sales_service.create_sale(items, kwargs.pop("payment_method"), **kwargs)


class TestCommit:
    def test_prices_and_persists_invoice(self, db_session, make_item, stock_of):
        item = make_item(name="Item A", price="100", discount="10", tax="5", stock=10)

        result = _sale((item, 2), paid_amount="200")

        assert result.invoice_number == "INV-000001"
        assert result.total_amount == Decimal("189.00")
        assert result.balance_amount == Decimal("-11.00")
        assert result.payment_status == "PAID"
        assert stock_of(item.item_code) == 8

        invoice = db_session.get(Invoice, result.invoice_id)
        assert invoice.subtotal == Decimal("200.00")
        assert invoice.item_discount_amount == Decimal("20.00")
        assert invoice.tax_amount == Decimal("9.00")
        assert invoice.payment_method == "CASH"
        assert invoice.paid_amount == Decimal("200.00")

        [line] = invoice.lines
        assert line.item_name == "Item A"
        assert line.item_code == item.item_code
        assert line.quantity == 2
        assert line.unit_price == Decimal("100.00")
        assert line.discount_amount == Decimal("20.00")
        assert line.tax_amount == Decimal("9.00")
        assert line.line_total == Decimal("189.00")

    def test_sequential_invoice_numbers_have_no_gaps(self, db_session, make_item):
        item = make_item(stock=10)

        first = _sale((item, 1))
        second = _sale((item, 1))
        third = _sale((item, 1))

        assert [first.invoice_number, second.invoice_number, third.invoice_number] == [
            "INV-000001", "INV-000002", "INV-000003",
        ]

    def test_failed_sale_does_not_consume_a_number(self, db_session, make_item):
        item = make_item(stock=1)

        assert _sale((item, 1)).invoice_number == "INV-000001"
        with pytest.raises(InsufficientStockError):
            _sale((item, 1))

        inventory_service.adjust_quantity(item.item_code, 5)
        db_session.commit()
        assert _sale((item, 1)).invoice_number == "INV-000002"

    def test_partial_payment(self, db_session, make_item):
        item = make_item(price="50", stock=10)

        result = _sale((item, 2), paid_amount="30")

        assert result.payment_status == "PARTIAL"
        assert result.balance_amount == Decimal("70.00")

    def test_flat_discount_is_clamped(self, db_session, make_item):
        item = make_item(price="20", tax="10", stock=10)

        result = _sale((item, 1), flat_discount="500")

        assert result.total_amount == Decimal("0.00")
        assert result.payment_status == "PAID"
        invoice = db_session.get(Invoice, result.invoice_id)
        assert invoice.flat_discount_amount == Decimal("500.00")
        assert invoice.discount_amount == Decimal("500.00")

    def test_non_stock_item_sells_without_inventory(self, db_session, make_item, stock_of):
        service = make_item(name="Gift wrap", price="3")

        result = _sale((service, 4))

        assert result.total_amount == Decimal("12.00")
        assert stock_of(service.item_code) is None

    def test_repeated_item_lines_share_the_stock(self, db_session, make_item, stock_of):
        item = make_item(stock=5)

        _sale((item, 2), (item, 3))
        assert stock_of(item.item_code) == 0

        with pytest.raises(InsufficientStockError):
            _sale((item, 1), (item, 1))

    def test_lines_are_snapshots(self, db_session, make_item, make_category):
        category = make_category("Snacks")
        item = make_item(name="Crisps", price="2.00", barcode="5000001", category_id=category.id, stock=10)
        result = _sale((item, 1))

        catalog_service.update_item_pricing(item.id, selling_price="9.99", tax="20")

        invoice = sales_service.get_invoice(result.invoice_id)
        [line] = invoice.lines
        assert line.unit_price == Decimal("2.00")
        assert line.tax_percent == Decimal("0.00")
        assert line.barcode == "5000001"
        assert line.category_name == "Snacks"

    def test_lines_keep_cart_order(self, db_session, make_item):
        a = make_item(name="A", stock=5)
        b = make_item(name="B")
        c = make_item(name="C", stock=5)

        result = _sale((c, 1), (a, 2), (b, 3))

        invoice = sales_service.get_invoice(result.invoice_id)
        assert [(l.line_number, l.item_name) for l in invoice.lines] == [(1, "C"), (2, "A"), (3, "B")]

    def test_header_is_rounded_from_exact_line_sums(self, db_session, make_item):
        item = make_item(price="0.05", discount="10")

        result = _sale((item, 1), (item, 1), (item, 1))

        invoice = db_session.get(Invoice, result.invoice_id)
        assert [line.discount_amount for line in invoice.lines] == [Decimal("0.01")] * 3
        assert [line.line_total for line in invoice.lines] == [Decimal("0.05")] * 3
        # 3 x 0.005 = 0.015 and 3 x 0.045 = 0.135, rounded once
        assert invoice.item_discount_amount == Decimal("0.02")
        assert invoice.total_amount == Decimal("0.14")
        assert result.total_amount == Decimal("0.14")

    def test_notes_and_created_by_are_stored(self, db_session, make_item):
        item = make_item()

        result = _sale((item, 1), notes="  table 4 ", created_by="cashier-1")

        invoice = db_session.get(Invoice, result.invoice_id)
        assert invoice.notes == "table 4"
        assert invoice.created_by == "cashier-1"


class TestRejection:
    def test_out_of_stock(self, db_session, make_item, stock_of):
        item = make_item(stock=3)

        with pytest.raises(InsufficientStockError) as exc_info:
            _sale((item, 5))

        assert exc_info.value.requested == 5
        assert exc_info.value.available == 3
        assert stock_of(item.item_code) == 3
        assert db_session.query(Invoice).count() == 0

    def test_later_line_failure_rolls_back_everything(self, db_session, make_item, stock_of):
        plenty = make_item(name="Plenty", stock=10)
        non_stock = make_item(name="Service")
        scarce = make_item(name="Scarce", stock=1)

        with pytest.raises(InsufficientStockError) as exc_info:
            _sale((plenty, 4), (non_stock, 1), (scarce, 2))

        assert exc_info.value.item_code == scarce.item_code
        assert stock_of(plenty.item_code) == 10
        assert stock_of(scarce.item_code) == 1
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(InvoiceLine).count() == 0

    def test_unknown_item(self, db_session):
        with pytest.raises(ItemNotFoundError) as exc_info:
            sales_service.create_sale([{"item_id": 404, "quantity": 1}], "CASH")
        assert exc_info.value.details["item_id"] == 404
        assert db_session.query(Invoice).count() == 0

    def test_inactive_item(self, db_session, make_item, stock_of):
        item = make_item(stock=5)
        catalog_service.set_item_status(item.id, active=False)

        with pytest.raises(ItemInactiveError):
            _sale((item, 1))
        assert db_session.query(Invoice).count() == 0

    def test_inactive_item_is_also_not_found(self, db_session, make_item):
        item = make_item()
        catalog_service.set_item_status(item.id, active=False)

        with pytest.raises(ItemNotFoundError):
            _sale((item, 1))

    @pytest.mark.parametrize("items", [None, [], "nope", [{"item_id": 1}], [{"quantity": 1}]])
    def test_malformed_cart(self, db_session, items):
        with pytest.raises(ValidationError):
            sales_service.create_sale(items, "CASH")

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2.0", True, "1e2"])
    def test_quantity_must_be_positive_integer(self, db_session, make_item, quantity):
        item = make_item(stock=10)
        with pytest.raises(ValidationError):
            sales_service.create_sale([{"item_id": item.id, "quantity": quantity}], "CASH")

    @pytest.mark.parametrize("field", ["item_id", "quantity"])
    @pytest.mark.parametrize("value", [2**31, 10**30, str(10**30)])
    def test_integers_beyond_column_range_are_rejected(self, db_session, make_item, stock_of, field, value):
        item = make_item(stock=10)
        line = {"item_id": item.id, "quantity": 1, field: value}

        with pytest.raises(ValidationError) as exc_info:
            sales_service.create_sale([line], "CASH")

        assert exc_info.value.details["index"] == 0
        assert stock_of(item.item_code) == 10
        assert db_session.query(Invoice).count() == 0

    def test_largest_column_integer_is_accepted_as_input(self, db_session):
        # Passes validation and fails on lookup instead
        with pytest.raises(ItemNotFoundError):
            sales_service.create_sale([{"item_id": 2**31 - 1, "quantity": 1}], "CASH")

    def test_numeric_string_quantity_is_accepted(self, db_session, make_item, stock_of):
        item = make_item(stock=10)
        sales_service.create_sale([{"item_id": str(item.id), "quantity": "3"}], "CASH")
        assert stock_of(item.item_code) == 7

    def test_payment_method_required(self, db_session, make_item):
        item = make_item()
        with pytest.raises(ValidationError):
            _sale((item, 1), payment_method="  ")

    @pytest.mark.parametrize("field", ["paid_amount", "flat_discount"])
    @pytest.mark.parametrize("value", ["-1", "abc", "NaN", True])
    def test_money_fields_validated(self, db_session, make_item, field, value):
        item = make_item()
        with pytest.raises(ValidationError):
            _sale((item, 1), **{field: value})

    def test_storage_failure_is_wrapped_and_rolled_back(self, db_session, make_item, stock_of, monkeypatch):
        item = make_item(stock=5)

        def broken_reserve(*args, **kwargs):
            raise OperationalError("UPDATE inventory", {}, Exception("disk I/O error"))

        monkeypatch.setattr(inventory_service, "reserve", broken_reserve)

        with pytest.raises(StorageError):
            _sale((item, 1))

        assert stock_of(item.item_code) == 5
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(InvoiceLine).count() == 0


def test_get_invoice_missing(db_session):
    assert sales_service.get_invoice(12345) is None
