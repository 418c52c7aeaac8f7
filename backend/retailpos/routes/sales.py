# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/retailpos/routes/sales.py
"""Sales API routes: checkout, quotes, history and status changes."""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import sales_service
from ..services.sales_service import PersistenceError, SaleError, SaleStateError
from ..services.inventory_service import InsufficientStockError
from ..validation import NotFoundError, ValidationError
from ..time_utils import parse_iso_datetime
from ..decorators import require_auth, require_role
from .errors import json_error


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

EXPECTED_TOTAL_FIELDS = ("subtotal", "tax", "total")


def _sale_payload(sale) -> dict:
    return {
        "sale": sale.to_dict(),
        "items": [item.to_dict() for item in sale.items],
    }


@sales_bp.post("")
@require_auth
def checkout_route():
    """
    Checkout: price the cart, record the sale, decrement stock.

    Body:
    - items: [{product_id, quantity, unit_price?}] (required)
    - payment_method: cash | card | upi (required)
    - customer_id: int (optional, omit for walk-in)
    - discount: amount, or {type: percentage|amount, value} (optional)
    - amount_tendered: cash handed over (optional, cash only)
    - subtotal, tax, total: client-side totals to cross-check (optional)
    """
    try:
        data = request.get_json(silent=True) or {}
        payment_method = data.get("payment_method")

        if not payment_method:
            return json_error("payment_method required", 400)

        expected = {k: data[k] for k in EXPECTED_TOTAL_FIELDS if data.get(k) is not None}

        sale = sales_service.checkout(
            data.get("items"),
            user_id=g.current_user.id,
            payment_method=payment_method,
            customer_id=data.get("customer_id"),
            discount=data.get("discount"),
            amount_tendered=data.get("amount_tendered"),
            expected=expected,
        )

        return jsonify(_sale_payload(sale)), 201

    except ValidationError as e:
        return json_error(str(e), 400, e.details)
    except NotFoundError as e:
        return json_error(str(e), 404, e.details)
    except InsufficientStockError as e:
        return json_error(str(e), 409, e.details)
    except PersistenceError as e:
        return json_error(str(e), 500)
    except Exception:
        current_app.logger.exception("Failed to checkout sale")
        return json_error("Internal server error", 500)


@sales_bp.post("/quote")
@require_auth
def quote_route():
    """Price a cart without recording anything (same body as checkout)."""
    try:
        data = request.get_json(silent=True) or {}
        priced = sales_service.quote(
            data.get("items"),
            payment_method=data.get("payment_method") or "cash",
            discount=data.get("discount"),
            amount_tendered=data.get("amount_tendered"),
        )
        return jsonify({
            "totals": priced.totals.to_dict(),
            "lines": [
                {
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "unit_price": str(line.unit_price),
                    "total": str(line.total),
                }
                for line in priced.lines
            ],
        }), 200

    except ValidationError as e:
        return json_error(str(e), 400, e.details)
    except NotFoundError as e:
        return json_error(str(e), 404, e.details)
    except Exception:
        current_app.logger.exception("Failed to quote sale")
        return json_error("Internal server error", 500)


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Recent sales, newest first.

    Query params:
    - limit: int (default 50, max 200)
    - start, end: ISO-8601 datetimes; when both are given, returns every sale
      in [start, end] instead of the most recent ones
    """
    start_raw = request.args.get("start")
    end_raw = request.args.get("end")

    if start_raw or end_raw:
        try:
            start = parse_iso_datetime(start_raw)
            end = parse_iso_datetime(end_raw)
        except ValueError:
            return json_error("start and end must be ISO-8601 datetimes", 400)
        if start is None or end is None:
            return json_error("start and end are both required", 400)
        try:
            sales = sales_service.get_sales_by_date_range(start, end)
        except ValidationError as e:
            return json_error(str(e), 400)
    else:
        sales = sales_service.list_sales(limit=request.args.get("limit", type=int))

    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
    except NotFoundError:
        return json_error("Sale not found", 404)
    return jsonify(_sale_payload(sale)), 200


@sales_bp.patch("/<int:sale_id>/status")
@require_auth
@require_role("admin")
def update_sale_status_route(sale_id: int):
    """
    Cancel or refund a completed sale; stock is returned to inventory.

    Body: {status: cancelled|refunded, reason?}
    """
    try:
        data = request.get_json(silent=True) or {}
        status = data.get("status")
        if not status:
            return json_error("status required", 400)

        sale = sales_service.update_sale_status(
            sale_id,
            status,
            user_id=g.current_user.id,
            reason=data.get("reason"),
        )
        return jsonify(_sale_payload(sale)), 200

    except ValidationError as e:
        return json_error(str(e), 400, e.details)
    except NotFoundError as e:
        return json_error(str(e), 404)
    except SaleStateError as e:
        return json_error(str(e), 409, e.details)
    except SaleError as e:
        return json_error(str(e), 500)
    except Exception:
        current_app.logger.exception("Failed to update sale status")
        return json_error("Internal server error", 500)
