# Overview: Flask API routes for analytics; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth
from .errors import json_error
from ..services import reporting_service
from ..services.reporting_service import ReportError
from ..time_utils import parse_iso_date


analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


@analytics_bp.get("/daily-stats")
@require_auth
def daily_stats_route():
    """
    Sales totals for one local calendar day (default: today).

    Query params:
    - date: YYYY-MM-DD (optional)
    """
    try:
        day = parse_iso_date(request.args.get("date"))
    except ValueError:
        return json_error("date must be YYYY-MM-DD", 400)

    try:
        return jsonify(reporting_service.get_daily_sales_stats(day))
    except ReportError as e:
        return json_error(str(e), 400)
