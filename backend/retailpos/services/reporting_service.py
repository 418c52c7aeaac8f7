# Overview: Service-layer operations for reporting; read-only aggregate queries.

from __future__ import annotations

from datetime import date

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Sale, SaleItem
from ..money import to_money
from ..time_utils import local_day_bounds, local_today


class ReportError(Exception):
    """Raised for invalid report parameters."""
    pass


def get_daily_sales_stats(day: date | None = None, tz_name: str | None = None) -> dict:
    """
    Totals for completed sales on one local calendar day.

    - total_sales: SUM(sales.total)
    - total_transactions: COUNT(sales)
    - total_products_sold: SUM(sale_items.quantity) over those sales

    Cancelled and refunded sales are excluded. Empty days report zeros.
    """
    tz_name = tz_name or current_app.config.get("STORE_TIMEZONE", "UTC")
    try:
        if day is None:
            day = local_today(tz_name)
        start, end = local_day_bounds(day, tz_name)
    except (KeyError, ValueError) as e:
        raise ReportError(f"Unknown timezone: {tz_name}") from e

    in_day = (
        Sale.status == "completed",
        Sale.created_at >= start,
        Sale.created_at < end,
    )

    total_sales, total_transactions = (
        db.session.query(
            func.coalesce(func.sum(Sale.total), 0),
            func.count(Sale.id),
        )
        .filter(*in_day)
        .one()
    )

    total_products_sold = (
        db.session.query(func.coalesce(func.sum(SaleItem.quantity), 0))
        .join(Sale, SaleItem.sale_id == Sale.id)
        .filter(*in_day)
        .scalar()
    )

    return {
        "date": day.isoformat(),
        "timezone": tz_name,
        "total_sales": str(to_money(total_sales)),
        "total_transactions": int(total_transactions or 0),
        "total_products_sold": int(total_products_sold or 0),
    }
