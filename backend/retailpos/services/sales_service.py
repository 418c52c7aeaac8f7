"""
Sales Service - checkout and sale lifecycle

WHY: A checkout touches four tables (sales, sale_items, products,
stock_movements). They are written in one DB transaction so a sale either
exists with all of its items and stock movements, or not at all.

FLOW:
1. Parse + validate the cart payload (no DB writes)
2. Resolve products, snapshot prices, price the cart (pricing_service)
3. Pre-check stock for a complete error report
4. Insert Sale, SaleItems; conditionally decrement stock per line
5. Commit, or roll back everything on the first failure
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Customer, Product, Sale, SaleItem, User
from ..models.sales import SALE_STATUSES
from ..money import MoneyError, quantize, to_amount, to_decimal
from ..time_utils import utcnow
from ..validation import NotFoundError, ValidationError, parse_optional_id, parse_positive_int
from .inventory_service import InsufficientStockError, remove_stock, restore_stock
from .pricing_service import CartLine, SaleTotals, compute_totals, configured_tax_rate, parse_discount

# completed sales may be cancelled or refunded; nothing else moves
STATUS_TRANSITIONS = {
    "completed": {"cancelled", "refunded"},
}

MAX_SALES_LIMIT = 200


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class SaleStateError(SaleError):
    """Requested status transition is not allowed (409)."""


class PersistenceError(SaleError):
    """The database rejected the checkout; nothing was written."""


@dataclass(frozen=True)
class CheckoutItem:
    """A cart line as sent by the client (unit_price is optional)."""
    product_id: int
    quantity: int
    unit_price: Decimal | None = None


@dataclass(frozen=True)
class PricedCart:
    lines: list[CartLine]
    products: dict[int, Product]
    totals: SaleTotals


def parse_checkout_items(items: Any) -> list[CheckoutItem]:
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    parsed = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError("Each item must be an object", details={"line": index})
        try:
            product_id = parse_positive_int(raw.get("product_id"), "product_id")
            quantity = parse_positive_int(raw.get("quantity"), "quantity")
        except ValidationError as e:
            raise ValidationError(str(e), details={"line": index})

        unit_price = None
        if raw.get("unit_price") is not None:
            try:
                unit_price = to_amount(raw["unit_price"], "unit_price")
            except MoneyError as e:
                raise ValidationError(str(e), details={"line": index})

        parsed.append(CheckoutItem(product_id=product_id, quantity=quantity, unit_price=unit_price))
    return parsed


def _load_products(items: list[CheckoutItem]) -> dict[int, Product]:
    ids = {item.product_id for item in items}
    products = {
        p.id: p
        for p in db.session.query(Product).filter(Product.id.in_(ids)).all()
    }

    missing = sorted(ids - products.keys())
    if missing:
        raise NotFoundError("Product not found", details={"product_ids": missing})

    inactive = sorted(pid for pid, p in products.items() if not p.is_active)
    if inactive:
        raise NotFoundError("Product is inactive", details={"product_ids": inactive})

    return products


def price_cart(
    items: list[CheckoutItem],
    *,
    payment_method: str,
    discount: Any = None,
    amount_tendered: Any = None,
) -> PricedCart:
    """
    Resolve products and price the cart at current product prices.

    Unit prices are always snapshotted from the product row; a client-sent
    unit_price that disagrees means the cashier saw a stale price.
    """
    discount_terms = parse_discount(discount)
    products = _load_products(items)

    lines = []
    changed = []
    for item in items:
        product = products[item.product_id]
        price = quantize(to_decimal(product.price, "price"))
        if item.unit_price is not None and item.unit_price != price:
            changed.append({
                "product_id": product.id,
                "unit_price": str(item.unit_price),
                "current_price": str(price),
            })
        lines.append(CartLine(product_id=product.id, unit_price=price, quantity=item.quantity))

    if changed:
        raise ValidationError("Product price has changed", details={"items": changed})

    totals = compute_totals(
        lines,
        discount_terms,
        tax_rate=configured_tax_rate(),
        payment_method=payment_method,
        amount_tendered=amount_tendered,
    )
    return PricedCart(lines=lines, products=products, totals=totals)


def _check_available(priced: PricedCart) -> None:
    requested: dict[int, int] = {}
    for line in priced.lines:
        requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

    insufficient = []
    for product_id, qty in requested.items():
        available = priced.products[product_id].stock
        if available < qty:
            insufficient.append({
                "product_id": product_id,
                "requested_quantity": qty,
                "available": available,
            })

    if insufficient:
        raise InsufficientStockError("Insufficient stock", details={"items": insufficient})


def _verify_expected_totals(totals: SaleTotals, expected: dict | None) -> None:
    """Client-computed totals, when sent, must agree with the server."""
    if not expected:
        return

    actual = {"subtotal": totals.subtotal, "tax": totals.tax, "total": totals.total}
    mismatches = {}
    for field, server_value in actual.items():
        client_value = expected.get(field)
        if client_value is None:
            continue
        try:
            client_amount = to_amount(client_value, field)
        except MoneyError as e:
            raise ValidationError(str(e))
        if quantize(client_amount) != server_value:
            mismatches[field] = {"sent": str(client_value), "calculated": str(server_value)}

    if mismatches:
        raise ValidationError("Sale totals do not match server calculation", details=mismatches)


def generate_transaction_id() -> str:
    return f"TXN-{utcnow():%Y%m%d%H%M%S}-{secrets.token_hex(4).upper()}"


def quote(
    items: Any,
    *,
    payment_method: str = "cash",
    discount: Any = None,
    amount_tendered: Any = None,
) -> PricedCart:
    """Price a cart without persisting anything."""
    return price_cart(
        parse_checkout_items(items),
        payment_method=payment_method,
        discount=discount,
        amount_tendered=amount_tendered,
    )


def checkout(
    items: Any,
    *,
    user_id: int,
    payment_method: str,
    customer_id: Any = None,
    discount: Any = None,
    amount_tendered: Any = None,
    expected: dict | None = None,
) -> Sale:
    """
    Price the cart and record it as a completed Sale.

    Raises:
        ValidationError: malformed cart, bad payment, totals/price mismatch
        NotFoundError: unknown/inactive product, unknown customer or user
        InsufficientStockError: a line exceeds stock (checked again at write)
        PersistenceError: database failure; the transaction is rolled back
    """
    cart_items = parse_checkout_items(items)
    customer_id = parse_optional_id(customer_id, "customer_id")

    if db.session.get(User, user_id) is None:
        raise NotFoundError("User not found", details={"user_id": user_id})
    if customer_id is not None and db.session.get(Customer, customer_id) is None:
        raise NotFoundError("Customer not found", details={"customer_id": customer_id})

    priced = price_cart(
        cart_items,
        payment_method=payment_method,
        discount=discount,
        amount_tendered=amount_tendered,
    )
    _verify_expected_totals(priced.totals, expected)
    _check_available(priced)

    totals = priced.totals
    tendered = None
    if payment_method == "cash":
        tendered = totals.total + totals.change

    try:
        sale = Sale(
            transaction_id=generate_transaction_id(),
            customer_id=customer_id,
            user_id=user_id,
            subtotal=totals.subtotal,
            discount=totals.discount_amount,
            tax=totals.tax,
            total=totals.total,
            payment_method=payment_method,
            amount_tendered=tendered,
            change_due=totals.change,
            status="completed",
            created_at=utcnow(),
        )
        db.session.add(sale)
        db.session.flush()

        for line in priced.lines:
            sale.items.append(SaleItem(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total=quantize(line.total),
            ))
        db.session.flush()

        # Conditional decrement: loses cleanly to a concurrent checkout that
        # took the stock after the pre-check above.
        for line in priced.lines:
            remove_stock(
                product_id=line.product_id,
                quantity=line.quantity,
                reason="sale",
                user_id=user_id,
                sale_id=sale.id,
            )

        db.session.commit()
    except InsufficientStockError as e:
        db.session.rollback()
        current_app.logger.warning("Checkout rejected, insufficient stock: %s", e.details)
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("Checkout failed to persist")
        raise PersistenceError("Failed to record sale") from e
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Checkout %s completed: total=%s items=%d payment=%s user=%s",
        sale.transaction_id, sale.total, len(priced.lines), payment_method, user_id,
    )
    return sale


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found", details={"sale_id": sale_id})
    return sale


def list_sales(limit: int | None = None) -> list[Sale]:
    """Most recent sales first."""
    if limit is None:
        limit = current_app.config.get("SALES_LIST_DEFAULT_LIMIT", 50)
    limit = max(1, min(limit, MAX_SALES_LIMIT))
    return (
        db.session.query(Sale)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .all()
    )


def get_sales_by_date_range(start: datetime, end: datetime) -> list[Sale]:
    """Sales with start <= created_at <= end (UTC-naive bounds), newest first."""
    if start > end:
        raise ValidationError("start must be before end")
    return (
        db.session.query(Sale)
        .filter(Sale.created_at >= start, Sale.created_at <= end)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )


def update_sale_status(sale_id: int, status: str, user_id: int, reason: str | None = None) -> Sale:
    """
    Move a completed sale to cancelled/refunded and put its stock back.

    Each item gets an 'in' StockMovement linked to the sale; the status
    change and the stock returns commit together.
    """
    if status not in SALE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(SALE_STATUSES)}")

    sale = get_sale(sale_id)
    if status not in STATUS_TRANSITIONS.get(sale.status, set()):
        raise SaleStateError(
            f"Cannot change sale from {sale.status} to {status}",
            details={"sale_id": sale.id, "status": sale.status},
        )

    note = f"sale {status}"
    if reason:
        note = f"{note}: {reason.strip()}"[:255]

    try:
        for item in sale.items:
            restore_stock(
                product_id=item.product_id,
                quantity=item.quantity,
                reason=note,
                user_id=user_id,
                sale_id=sale.id,
            )
        sale.status = status
        db.session.commit()
    except StaleDataError as e:
        db.session.rollback()
        raise SaleStateError("Sale was modified by another request", details={"sale_id": sale_id}) from e
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("Failed to update sale %s status", sale_id)
        raise PersistenceError("Failed to update sale") from e
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Sale %s marked %s by user %s", sale.transaction_id, status, user_id)
    return sale
