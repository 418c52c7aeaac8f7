# Overview: Decimal money helpers shared by models, validation and services.

"""
Money handling.

All monetary amounts are decimal.Decimal with two fractional digits at rest
(Numeric(10, 2) columns) and are serialized as strings ("247.50") so that
clients never see binary floating point values.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Maximum price: 9,999,999.99 (fits Numeric(10, 2))
MAX_AMOUNT = Decimal("9999999.99")


class MoneyError(ValueError):
    """Raised when a value cannot be interpreted as a money amount."""


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Convert user/DB input into an exact Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1") rather than its
    binary expansion. Booleans are rejected even though they are ints.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise MoneyError(f"{field} must be a decimal amount")
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise MoneyError(f"{field} must be a decimal amount")
        try:
            result = Decimal(stripped)
        except InvalidOperation:
            raise MoneyError(f"{field} must be a decimal amount")
    else:
        raise MoneyError(f"{field} must be a decimal amount")

    if not result.is_finite():
        raise MoneyError(f"{field} must be a finite amount")
    return result


def quantize(value: Decimal) -> Decimal:
    """Round half-up to whole cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: Any) -> Decimal:
    """DB aggregate / column value -> Decimal rounded to cents (None -> 0.00)."""
    if value is None:
        return ZERO
    return quantize(to_decimal(value))


def money_str(value: Any) -> str | None:
    """Serialize an amount for JSON output."""
    if value is None:
        return None
    return str(to_money(value))


def to_amount(value: Any, field: str = "amount") -> Decimal:
    """
    to_decimal limited to +/- MAX_AMOUNT.

    Anything larger cannot be stored in Numeric(10, 2) and would overflow the
    decimal context when quantized.
    """
    result = to_decimal(value, field)
    if abs(result) > MAX_AMOUNT:
        raise MoneyError(f"{field} cannot exceed {MAX_AMOUNT}")
    return result
