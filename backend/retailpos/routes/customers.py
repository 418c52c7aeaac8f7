# Overview: Flask API routes for customer operations; parses input and returns JSON responses.

from flask import Blueprint, request

from ..decorators import require_auth
from .errors import json_error
from ..models import Customer
from ..services import customers_service
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_customer,
    validate_payload,
)

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "address"},
    required_on_create={"name"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers():
    customers = customers_service.list_customers(search=request.args.get("q"))
    return {"items": [c.to_dict() for c in customers], "count": len(customers)}


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer(customer_id: int):
    customer = customers_service.get_customer(customer_id)
    if customer is None:
        return json_error("Customer not found", 404)
    return customer.to_dict()


@customers_bp.post("")
@require_auth
def create_customer():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
        enforce_rules_customer(patch)
    except ValidationError as e:
        return json_error(str(e), 400)

    customer = customers_service.create_customer(patch=patch)
    return customer.to_dict(), 201


@customers_bp.put("/<int:customer_id>")
@require_auth
def update_customer(customer_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
        enforce_rules_customer(patch)
    except ValidationError as e:
        return json_error(str(e), 400)

    customer = customers_service.update_customer(customer_id=customer_id, patch=patch)
    if customer is None:
        return json_error("Customer not found", 404)
    return customer.to_dict(), 200


@customers_bp.delete("/<int:customer_id>")
@require_auth
def delete_customer(customer_id: int):
    try:
        deleted = customers_service.delete_customer(customer_id=customer_id)
    except ConflictError as e:
        return json_error(str(e), 409)
    if not deleted:
        return json_error("Customer not found", 404)
    return {"ok": True}, 200
