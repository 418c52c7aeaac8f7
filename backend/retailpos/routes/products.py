# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/retailpos/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication.
- Read operations are open to every signed-in user (cashiers scan and search)
- Write operations require the admin role

Stock is not writable here after creation; use /api/inventory/adjust.
"""
from flask import Blueprint, request, g
from ..services.products_service import (
    list_products as list_products_service,
    get_product as get_product_service,
    get_product_by_barcode,
    create_product,
    update_product,
    delete_product,
)
from ..services.inventory_service import get_low_stock_products
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth, require_role
from .errors import json_error

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "barcode", "price", "cost", "stock", "min_stock", "category_id", "is_active"},
    required_on_create={"name", "price", "cost"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "barcode", "price", "cost", "min_stock", "category_id", "is_active"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _parse_bool_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return raw.lower() in ("1", "true", "yes")


@products_bp.get("")
@require_auth
def list_products():
    """
    List products with optional filters and pagination.

    Query params:
    - category_id: int (optional)
    - active: true/false (optional)
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    return list_products_service(
        category_id=request.args.get("category_id", type=int),
        active=_parse_bool_arg("active"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.get("/low-stock")
@require_auth
def low_stock_products():
    """Active products at or below min_stock, lowest stock first."""
    products = get_low_stock_products()
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/barcode/<string:barcode>")
@require_auth
def product_by_barcode(barcode: str):
    product = get_product_by_barcode(barcode)
    if product is None:
        return json_error("No product found with this barcode", 404)
    return product.to_dict()


@products_bp.get("/<int:product_id>")
@require_auth
def get_product(product_id: int):
    product = get_product_service(product_id)
    if product is None:
        return json_error("Product not found", 404)
    return product.to_dict()


@products_bp.post("")
@require_auth
@require_role("admin")
def create_product_route():
    """Create a new product. Initial stock is recorded as a stock movement."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return json_error(str(e), 400)

    try:
        created = create_product(patch=patch, user_id=g.current_user.id)
    except ConflictError as e:
        return json_error(str(e), 409)
    except NotFoundError as e:
        return json_error(str(e), 404, e.details)

    return created, 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_role("admin")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return json_error(str(e), 400)

    try:
        updated = update_product(product_id=product_id, patch=patch)
    except ConflictError as e:
        return json_error(str(e), 409)
    except NotFoundError as e:
        return json_error(str(e), 404, e.details)

    if not updated:
        return json_error("Product not found", 404)

    return updated, 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role("admin")
def delete_product_route(product_id: int):
    """
    Delete a product.

    Products with sales history are deactivated instead of removed; the
    response's "result" says which happened.
    """
    result = delete_product(product_id=product_id)
    if result is None:
        return json_error("Product not found", 404)
    return {"ok": True, "result": result}, 200
