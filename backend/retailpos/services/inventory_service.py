# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/retailpos/services/inventory_service.py

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import Product, StockMovement
from ..models.inventory import MOVEMENT_TYPES
from ..time_utils import utcnow
from ..validation import NotFoundError, ValidationError
"""
Stock Invariants (authoritative)

Stock model:
- Product.stock is the on-hand quantity and is never negative.
- Every change to Product.stock is mirrored by exactly one StockMovement row
  written in the same DB transaction.

Decrements:
- Decrements are conditional UPDATEs (... WHERE stock >= :qty). The database
  evaluates the guard and the write atomically, so two sessions racing for the
  last unit cannot both succeed; the loser sees rowcount == 0.
- No read-then-write on stock anywhere in the codebase.

Transactions:
- Helpers here flush but never commit; the caller owns the transaction
  (checkout, sale cancellation, manual adjustment route).
"""


class InsufficientStockError(ValueError):
    """Requested quantity exceeds available stock."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def get_product(product_id: int, *, require_active: bool = False) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    if require_active and not product.is_active:
        raise NotFoundError("Product is inactive", details={"product_id": product_id})
    return product


def _expire_cached_product(product_id: int) -> None:
    # Bulk UPDATEs bypass the identity map; drop any stale copy so the next
    # attribute access reloads stock from the row.
    product = db.session.identity_map.get(db.session.identity_key(Product, product_id))
    if product is not None:
        db.session.expire(product, ["stock", "updated_at"])


def decrement_stock(product_id: int, quantity: int) -> bool:
    """
    Atomically remove quantity from an active product's stock.

    Returns False (and changes nothing) when stock < quantity.
    """
    result = db.session.execute(
        update(Product)
        .where(
            Product.id == product_id,
            Product.is_active.is_(True),
            Product.stock >= quantity,
        )
        .values(stock=Product.stock - quantity, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    _expire_cached_product(product_id)
    return result.rowcount == 1


def increment_stock(product_id: int, quantity: int) -> bool:
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock + quantity, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    _expire_cached_product(product_id)
    return result.rowcount == 1


def record_movement(
    *,
    product_id: int,
    movement_type: str,
    quantity: int,
    reason: str,
    user_id: int,
    sale_id: int | None = None,
) -> StockMovement:
    if movement_type not in MOVEMENT_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(MOVEMENT_TYPES)}")

    movement = StockMovement(
        product_id=product_id,
        type=movement_type,
        quantity=quantity,
        reason=reason,
        user_id=user_id,
        sale_id=sale_id,
        created_at=utcnow(),
    )
    db.session.add(movement)
    db.session.flush()
    return movement


def remove_stock(
    *,
    product_id: int,
    quantity: int,
    reason: str,
    user_id: int,
    sale_id: int | None = None,
) -> StockMovement:
    """Conditional decrement + 'out' movement. Caller commits."""
    if not decrement_stock(product_id, quantity):
        product = db.session.get(Product, product_id)
        available = product.stock if product is not None else 0
        raise InsufficientStockError(
            "Insufficient stock",
            details={"items": [{
                "product_id": product_id,
                "requested_quantity": quantity,
                "available": available,
            }]},
        )
    return record_movement(
        product_id=product_id,
        movement_type="out",
        quantity=quantity,
        reason=reason,
        user_id=user_id,
        sale_id=sale_id,
    )


def restore_stock(
    *,
    product_id: int,
    quantity: int,
    reason: str,
    user_id: int,
    sale_id: int | None = None,
) -> StockMovement:
    """Increment + 'in' movement. Caller commits."""
    if not increment_stock(product_id, quantity):
        raise NotFoundError("Product not found", details={"product_id": product_id})
    return record_movement(
        product_id=product_id,
        movement_type="in",
        quantity=quantity,
        reason=reason,
        user_id=user_id,
        sale_id=sale_id,
    )


def adjust_stock(
    *,
    product_id: int,
    movement_type: str,
    quantity: int,
    reason: str,
    user_id: int,
) -> StockMovement:
    """
    Manual stock change.

    - in: add quantity (receiving)
    - out: remove quantity (damage, shrinkage); fails if short
    - adjustment: set stock to quantity (physical count); the movement records
      the size of the correction
    """
    if movement_type not in MOVEMENT_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(MOVEMENT_TYPES)}")
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be an integer")
    if movement_type == "adjustment":
        if quantity < 0:
            raise ValidationError("quantity must be >= 0 for adjustment")
    elif quantity <= 0:
        raise ValidationError("quantity must be > 0")
    if not reason or not reason.strip():
        raise ValidationError("reason is required")
    reason = reason.strip()

    product = get_product(product_id)
    db.session.refresh(product)

    try:
        if movement_type == "in":
            movement = restore_stock(product_id=product_id, quantity=quantity, reason=reason, user_id=user_id)
        elif movement_type == "out":
            movement = remove_stock(product_id=product_id, quantity=quantity, reason=reason, user_id=user_id)
        else:
            # Compare-and-set on the count we read, so a concurrent sale
            # between read and write is not silently overwritten.
            previous = product.stock
            result = db.session.execute(
                update(Product)
                .where(Product.id == product_id, Product.stock == previous)
                .values(stock=quantity, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            _expire_cached_product(product_id)
            if result.rowcount != 1:
                raise ValidationError("Stock changed during adjustment; reload and retry")
            movement = record_movement(
                product_id=product_id,
                movement_type="adjustment",
                quantity=abs(quantity - previous),
                reason=f"{reason} ({previous} -> {quantity})",
                user_id=user_id,
            )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Stock %s for product %s: quantity=%s reason=%r user=%s",
        movement_type, product_id, quantity, reason, user_id,
    )
    return movement


def list_stock_movements(*, product_id: int | None = None, limit: int = 100) -> list[StockMovement]:
    q = db.session.query(StockMovement)
    if product_id is not None:
        q = q.filter(StockMovement.product_id == product_id)
    q = q.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    return q.limit(limit).all()


def get_low_stock_products() -> list[Product]:
    """Active products at or below their min_stock threshold, lowest stock first."""
    return (
        db.session.query(Product)
        .filter(Product.is_active.is_(True), Product.stock <= Product.min_stock)
        .order_by(Product.stock.asc(), Product.name.asc(), Product.id.asc())
        .all()
    )
