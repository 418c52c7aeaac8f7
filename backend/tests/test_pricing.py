"""
Cart pricing tests.

Verifies:
- Subtotal, discount, tax and total arithmetic in Decimal
- Discount clamping to [0, subtotal]
- Cash change and insufficient tender
- Input rejection (empty cart, bad quantities, bad discounts)
"""

from decimal import Decimal

import pytest

from retailpos.services.pricing_service import (
    CartLine,
    Discount,
    InsufficientPaymentError,
    compute_totals,
    parse_discount,
)
from retailpos.validation import ValidationError

TAX = Decimal("0.10")


def line(price, qty, product_id=1):
    return CartLine(product_id=product_id, unit_price=Decimal(price), quantity=qty)


@pytest.fixture
def example_cart():
    return [line("100.00", 2, product_id=1), line("50.00", 1, product_id=2)]


class TestTotals:
    def test_percentage_discount_example(self, example_cart):
        totals = compute_totals(example_cart, Discount("percentage", Decimal("10")), tax_rate=TAX)

        assert totals.subtotal == Decimal("250.00")
        assert totals.discount_amount == Decimal("25.00")
        assert totals.taxable_amount == Decimal("225.00")
        assert totals.tax == Decimal("22.50")
        assert totals.total == Decimal("247.50")

    def test_total_law_holds_after_rounding(self):
        # 3 x 0.33 = 0.99, 15% off = 0.1485 -> 0.15, tax on 0.84 = 0.084 -> 0.08
        totals = compute_totals(
            [line("0.33", 3)],
            Discount("percentage", Decimal("15")),
            tax_rate=TAX,
        )
        assert totals.discount_amount == Decimal("0.15")
        assert totals.tax == Decimal("0.08")
        assert totals.total == totals.subtotal - totals.discount_amount + totals.tax

    def test_tax_is_rounded_half_up(self):
        # 0.05 * 0.10 = 0.005 -> 0.01
        totals = compute_totals([line("0.05", 1)], tax_rate=TAX)
        assert totals.tax == Decimal("0.01")
        assert totals.total == Decimal("0.06")

    def test_no_discount(self, example_cart):
        totals = compute_totals(example_cart, tax_rate=TAX)
        assert totals.discount_amount == Decimal("0.00")
        assert totals.total == Decimal("275.00")

    def test_idempotent(self, example_cart):
        discount = Discount("amount", Decimal("12.34"))
        first = compute_totals(example_cart, discount, tax_rate=TAX, amount_tendered="300")
        second = compute_totals(example_cart, discount, tax_rate=TAX, amount_tendered="300")
        assert first == second

    def test_to_dict_serializes_strings(self, example_cart):
        data = compute_totals(example_cart, tax_rate=TAX).to_dict()
        assert data["subtotal"] == "250.00"
        assert data["discount"] == "0.00"
        assert data["total"] == "275.00"


class TestDiscountClamping:
    def test_amount_larger_than_subtotal_is_clamped(self, example_cart):
        totals = compute_totals(example_cart, Discount("amount", Decimal("999")), tax_rate=TAX)
        assert totals.discount_amount == Decimal("250.00")
        assert totals.tax == Decimal("0.00")
        assert totals.total == Decimal("0.00")

    def test_percentage_above_100_is_clamped(self, example_cart):
        totals = compute_totals(example_cart, Discount("percentage", Decimal("150")), tax_rate=TAX)
        assert totals.discount_amount == totals.subtotal

    def test_negative_discount_becomes_zero(self, example_cart):
        totals = compute_totals(example_cart, Discount("amount", Decimal("-5")), tax_rate=TAX)
        assert totals.discount_amount == Decimal("0.00")


class TestParseDiscount:
    def test_plain_amount(self):
        assert parse_discount("25.00") == Discount("amount", Decimal("25.00"))

    def test_typed_percentage(self):
        assert parse_discount({"type": "percentage", "value": 10}) == Discount("percentage", Decimal("10"))

    def test_missing_means_none(self):
        assert parse_discount(None).value == Decimal("0.00")
        assert parse_discount("").value == Decimal("0.00")

    def test_non_numeric_rejected(self):
        with pytest.raises(ValidationError):
            parse_discount("ten")

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_discount({"type": "bogo", "value": 1})

    @pytest.mark.parametrize("raw", ["1e30", {"type": "percentage", "value": "1e999999"}])
    def test_out_of_range_rejected(self, raw):
        with pytest.raises(ValidationError, match="cannot exceed"):
            parse_discount(raw)


class TestCashPayment:
    def test_change_returned(self, example_cart):
        totals = compute_totals(
            example_cart,
            Discount("percentage", Decimal("10")),
            tax_rate=TAX,
            payment_method="cash",
            amount_tendered="250.00",
        )
        assert totals.change == Decimal("2.50")

    def test_insufficient_tender_rejected(self, example_cart):
        with pytest.raises(InsufficientPaymentError) as exc:
            compute_totals(
                example_cart,
                Discount("percentage", Decimal("10")),
                tax_rate=TAX,
                payment_method="cash",
                amount_tendered="200.00",
            )
        assert exc.value.details["total"] == "247.50"

    def test_missing_tender_is_exact(self, example_cart):
        totals = compute_totals(example_cart, tax_rate=TAX, payment_method="cash")
        assert totals.change == Decimal("0.00")

    def test_card_never_gives_change(self, example_cart):
        totals = compute_totals(example_cart, tax_rate=TAX, payment_method="card", amount_tendered="1000")
        assert totals.change == Decimal("0.00")

    def test_unknown_payment_method(self, example_cart):
        with pytest.raises(ValidationError):
            compute_totals(example_cart, tax_rate=TAX, payment_method="cheque")


class TestCartValidation:
    def test_empty_cart(self):
        with pytest.raises(ValidationError, match="Cart is empty"):
            compute_totals([], tax_rate=TAX)

    @pytest.mark.parametrize("qty", [0, -1, True])
    def test_bad_quantity(self, qty):
        with pytest.raises(ValidationError):
            compute_totals([line("1.00", qty)], tax_rate=TAX)

    def test_negative_price(self):
        with pytest.raises(ValidationError):
            compute_totals([line("-1.00", 1)], tax_rate=TAX)


class TestAmountBounds:
    def test_huge_tender_rejected(self, example_cart):
        with pytest.raises(ValidationError, match="amount_tendered cannot exceed"):
            compute_totals(example_cart, tax_rate=TAX, payment_method="cash", amount_tendered="1e30")

    @pytest.mark.parametrize("discount", [
        Discount("percentage", Decimal("1e999999")),
        Discount("amount", Decimal("1e30")),
    ])
    def test_huge_discount_rejected(self, example_cart, discount):
        with pytest.raises(ValidationError, match="discount cannot exceed"):
            compute_totals(example_cart, discount, tax_rate=TAX)

    def test_huge_quantity_rejected(self):
        with pytest.raises(ValidationError, match="subtotal cannot exceed"):
            compute_totals([line("9999999.99", 10**30)], tax_rate=TAX)

    def test_total_above_limit_after_tax_rejected(self):
        with pytest.raises(ValidationError, match="total cannot exceed"):
            compute_totals([line("9999999.99", 1)], tax_rate=TAX)

    def test_largest_tender_accepted(self):
        totals = compute_totals([line("1.00", 1)], tax_rate=TAX, amount_tendered="9999999.99")
        assert totals.change == Decimal("9999998.89")
