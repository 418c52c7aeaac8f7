# Overview: Pure cart pricing; no database or request state.

"""
Sale computation.

Turns a cart into subtotal / discount / tax / total / change using Decimal
arithmetic only. Nothing here touches the session, so pricing a cart twice
always yields the same SaleTotals, and /api/sales/quote can reuse it.

ROUNDING:
- subtotal is exact (cent prices times integer quantities)
- discount_amount and tax are rounded half-up to cents as they are computed
- total = taxable_amount + tax, so subtotal - discount + tax == total exactly
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from flask import current_app

from ..models.sales import PAYMENT_METHODS
from ..money import MAX_AMOUNT, MoneyError, ZERO, quantize, to_amount, to_decimal
from ..validation import ValidationError

DISCOUNT_TYPES = ("percentage", "amount")
HUNDRED = Decimal(100)


class InsufficientPaymentError(ValidationError):
    """Cash tendered does not cover the sale total."""


@dataclass(frozen=True)
class CartLine:
    product_id: int
    unit_price: Decimal
    quantity: int

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Discount:
    type: str = "amount"
    value: Decimal = ZERO


NO_DISCOUNT = Discount()


@dataclass(frozen=True)
class SaleTotals:
    subtotal: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax: Decimal
    total: Decimal
    change: Decimal

    def to_dict(self) -> dict:
        return {
            "subtotal": str(self.subtotal),
            "discount": str(self.discount_amount),
            "taxable_amount": str(self.taxable_amount),
            "tax": str(self.tax),
            "total": str(self.total),
            "change": str(self.change),
        }


def configured_tax_rate() -> Decimal:
    """Tax rate from app config (TAX_RATE)."""
    try:
        return to_decimal(current_app.config["TAX_RATE"], "TAX_RATE")
    except MoneyError as e:
        raise RuntimeError(f"Invalid TAX_RATE configuration: {e}")


def parse_discount(raw: Any) -> Discount:
    """
    Accepts the discount shapes clients send:
    - None / "" -> no discount
    - "25.00" / 25 -> fixed amount
    - {"type": "percentage"|"amount", "value": ...}
    """
    if raw is None or raw == "":
        return NO_DISCOUNT

    if isinstance(raw, dict):
        dtype = raw.get("type", "amount")
        if dtype not in DISCOUNT_TYPES:
            raise ValidationError(f"discount type must be one of: {', '.join(DISCOUNT_TYPES)}")
        value = raw.get("value")
        if value is None or value == "":
            return NO_DISCOUNT
    else:
        dtype, value = "amount", raw

    try:
        return Discount(type=dtype, value=to_amount(value, "discount"))
    except MoneyError as e:
        raise ValidationError(str(e))


def _validate_lines(lines: Iterable[CartLine]) -> list[CartLine]:
    lines = list(lines)
    if not lines:
        raise ValidationError("Cart is empty")
    for index, line in enumerate(lines):
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity <= 0:
            raise ValidationError(
                "quantity must be a positive integer",
                details={"line": index, "product_id": line.product_id},
            )
        if line.unit_price < 0:
            raise ValidationError(
                "unit_price must be >= 0",
                details={"line": index, "product_id": line.product_id},
            )
    return lines


def compute_subtotal(lines: Iterable[CartLine]) -> Decimal:
    subtotal = sum((line.total for line in _validate_lines(lines)), ZERO)
    if subtotal > MAX_AMOUNT:
        raise ValidationError(f"Cart subtotal cannot exceed {MAX_AMOUNT}", details={"subtotal": str(subtotal)})
    return subtotal


def compute_discount(subtotal: Decimal, discount: Discount) -> Decimal:
    """Discount amount, clamped to [0, subtotal]."""
    if abs(discount.value) > MAX_AMOUNT:
        raise ValidationError(f"discount cannot exceed {MAX_AMOUNT}")
    if discount.type == "percentage":
        raw = subtotal * discount.value / HUNDRED
    else:
        raw = discount.value
    clamped = min(max(raw, ZERO), subtotal)
    return quantize(clamped)


def compute_totals(
    lines: Iterable[CartLine],
    discount: Discount | None = None,
    *,
    tax_rate: Decimal,
    payment_method: str = "cash",
    amount_tendered: Any = None,
) -> SaleTotals:
    """
    Price a cart.

    For cash, amount_tendered must cover the total (None means exact
    change). Card and UPI payments never produce change.
    """
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    subtotal = compute_subtotal(lines)
    discount_amount = compute_discount(subtotal, discount or NO_DISCOUNT)
    taxable_amount = subtotal - discount_amount
    tax = quantize(taxable_amount * tax_rate)
    total = taxable_amount + tax
    if total > MAX_AMOUNT:
        raise ValidationError(f"Sale total cannot exceed {MAX_AMOUNT}")

    change = ZERO
    if payment_method == "cash" and amount_tendered is not None:
        try:
            tendered = to_amount(amount_tendered, "amount_tendered")
        except MoneyError as e:
            raise ValidationError(str(e))
        if tendered < total:
            raise InsufficientPaymentError(
                "Amount tendered is less than the sale total",
                details={"total": str(quantize(total)), "amount_tendered": str(quantize(tendered))},
            )
        change = tendered - total

    return SaleTotals(
        subtotal=quantize(subtotal),
        discount_amount=discount_amount,
        taxable_amount=quantize(taxable_amount),
        tax=tax,
        total=quantize(total),
        change=quantize(change),
    )
