# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role
from .errors import json_error
from ..services import inventory_service
from ..services.inventory_service import InsufficientStockError
from ..validation import NotFoundError, ValidationError, parse_positive_int

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/movements")
@require_auth
def list_movements():
    """
    Stock movement audit log, newest first.

    Query params:
    - product_id: int (optional)
    - limit: int (default 100, max 500)
    """
    product_id = request.args.get("product_id", type=int)
    limit = request.args.get("limit", 100, type=int)
    limit = max(1, min(limit, 500))

    movements = inventory_service.list_stock_movements(product_id=product_id, limit=limit)
    return jsonify({"items": [m.to_dict() for m in movements], "count": len(movements)}), 200


@inventory_bp.post("/adjust")
@require_auth
@require_role("admin")
def adjust_stock_route():
    """
    Manual stock change.

    Body: {product_id, type: in|out|adjustment, quantity, reason}
    For "adjustment", quantity is the counted stock level.
    """
    data = request.get_json(silent=True) or {}

    try:
        product_id = parse_positive_int(data.get("product_id"), "product_id")
        quantity = data.get("quantity")
        if isinstance(quantity, str) and quantity.strip().isascii() and quantity.strip().isdigit():
            quantity = int(quantity.strip())

        movement = inventory_service.adjust_stock(
            product_id=product_id,
            movement_type=data.get("type"),
            quantity=quantity,
            reason=data.get("reason") or "",
            user_id=g.current_user.id,
        )
    except ValidationError as e:
        return json_error(str(e), 400, e.details)
    except NotFoundError as e:
        return json_error(str(e), 404)
    except InsufficientStockError as e:
        return json_error(str(e), 409, e.details)
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return json_error("Internal server error", 500)

    product = inventory_service.get_product(product_id)
    return jsonify({"movement": movement.to_dict(), "product": product.to_dict()}), 201
