# backend/retailpos/services/products_service.py
"""
Products Service

Catalog CRUD. Stock is set once at creation (recorded as an 'in' movement)
and afterwards only changes through inventory_service, so every stock change
has an audit row.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Category, Product, SaleItem, StockMovement
from ..validation import ConflictError, NotFoundError
from .inventory_service import record_movement

PRODUCT_MUTABLE_FIELDS = {"name", "description", "barcode", "price", "cost", "min_stock", "category_id", "is_active"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _ensure_barcode_free(barcode: str | None, product_id: int | None = None) -> None:
    if not barcode:
        return
    q = db.session.query(Product).filter(Product.barcode == barcode)
    if product_id is not None:
        q = q.filter(Product.id != product_id)
    if q.first() is not None:
        raise ConflictError("Barcode already exists.")


def _ensure_category_exists(category_id: int | None) -> None:
    if category_id is not None and db.session.get(Category, category_id) is None:
        raise NotFoundError("Category not found", details={"category_id": category_id})


def _commit_catalog_change() -> None:
    # Barcode uniqueness is checked up front; the constraint still catches a
    # concurrent insert of the same code.
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Barcode already exists.")


def list_products(
    category_id: int | None = None,
    active: bool | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing ordered by name, with optional pagination.

    Args:
        category_id: Only products in this category
        active: True/False to filter on is_active; None for all
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product)
    if category_id is not None:
        base_query = base_query.filter(Product.category_id == category_id)
    if active is not None:
        base_query = base_query.filter(Product.is_active.is_(active))
    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def get_product_by_barcode(barcode: str) -> Product | None:
    barcode = (barcode or "").strip()
    if not barcode:
        return None
    return db.session.query(Product).filter(Product.barcode == barcode).first()


def create_product(*, patch: dict, user_id: int) -> dict:
    """
    Create product using a validated patch dict.

    Initial stock (if any) is logged as an 'in' movement attributed to the
    creating user.

    Raises:
        ConflictError: If barcode already exists
        NotFoundError: If category_id does not exist
    """
    _ensure_barcode_free(patch.get("barcode"))
    _ensure_category_exists(patch.get("category_id"))

    initial_stock = patch.get("stock") or 0

    p = Product(stock=initial_stock)
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.flush()  # ensure p.id exists before the movement row

    if initial_stock > 0:
        record_movement(
            product_id=p.id,
            movement_type="in",
            quantity=initial_stock,
            reason="initial stock",
            user_id=user_id,
        )

    _commit_catalog_change()
    current_app.logger.info("Created product %s (%s) stock=%s", p.id, p.name, p.stock)
    return p.to_dict()


def update_product(*, product_id: int, patch: dict) -> dict | None:
    """
    Update a product.

    Returns:
        Updated product dict, or None if not found

    Raises:
        ConflictError: If new barcode already exists
        NotFoundError: If category_id does not exist
    """
    p = db.session.get(Product, product_id)
    if not p:
        return None

    if "barcode" in patch and patch["barcode"] != p.barcode:
        _ensure_barcode_free(patch["barcode"], product_id=p.id)
    if "category_id" in patch:
        _ensure_category_exists(patch["category_id"])

    apply_product_patch(p, patch)
    _commit_catalog_change()
    return p.to_dict()


def delete_product(*, product_id: int) -> str | None:
    """
    Delete a product.

    Products that appear on any sale are only deactivated (is_active=False)
    so sale history keeps its references. Products never sold are removed
    together with their stock movements.

    Returns:
        "deleted", "deactivated", or None if not found
    """
    p = db.session.get(Product, product_id)
    if not p:
        return None

    sold = db.session.query(SaleItem.id).filter(SaleItem.product_id == p.id).first() is not None
    if sold:
        p.is_active = False
        db.session.commit()
        current_app.logger.info("Deactivated product %s (has sales history)", product_id)
        return "deactivated"

    db.session.query(StockMovement).filter(StockMovement.product_id == p.id).delete(synchronize_session=False)
    db.session.delete(p)
    db.session.commit()
    current_app.logger.info("Deleted product %s", product_id)
    return "deleted"
