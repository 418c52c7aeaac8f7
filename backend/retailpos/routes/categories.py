# Overview: Flask API routes for category operations; parses input and returns JSON responses.

from flask import Blueprint, request

from ..decorators import require_auth, require_role
from .errors import json_error
from ..models import Category
from ..services import categories_service
from ..validation import ModelValidationPolicy, ValidationError, validate_payload

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories():
    categories = categories_service.list_categories()
    return {"items": [c.to_dict() for c in categories], "count": len(categories)}


@categories_bp.get("/<int:category_id>")
@require_auth
def get_category(category_id: int):
    category = categories_service.get_category(category_id)
    if category is None:
        return json_error("Category not found", 404)
    return category.to_dict()


@categories_bp.post("")
@require_auth
@require_role("admin")
def create_category():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    except ValidationError as e:
        return json_error(str(e), 400)

    category = categories_service.create_category(patch=patch)
    return category.to_dict(), 201


@categories_bp.put("/<int:category_id>")
@require_auth
@require_role("admin")
def update_category(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    except ValidationError as e:
        return json_error(str(e), 400)

    category = categories_service.update_category(category_id=category_id, patch=patch)
    if category is None:
        return json_error("Category not found", 404)
    return category.to_dict(), 200


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_role("admin")
def delete_category(category_id: int):
    """Delete a category; its products become uncategorized."""
    if not categories_service.delete_category(category_id=category_id):
        return json_error("Category not found", 404)
    return {"ok": True}, 200
