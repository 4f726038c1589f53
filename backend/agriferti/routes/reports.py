# Overview: Flask API routes for reports; read-only views derived from the caller's data.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth
from ..errors import ValidationError
from ..services import customers_service, products_service, sales_service
from ..services import reporting_service
from ..services.ownership import current_owner_id
from ..services.reporting_service import ReportError
from agriferti.time_utils import parse_iso_date, utcnow


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_auth
def dashboard_route():
    owner_id = current_owner_id()
    summary = reporting_service.dashboard(
        products_service.list_products(owner_id),
        customers_service.list_customers(owner_id),
        sales_service.list_sales(owner_id),
    )
    return jsonify(summary), 200


@reports_bp.get("/sales")
@require_auth
def sales_report_route():
    """
    Sales filtered to one calendar day, month or year.

    Query params:
    - period: day | month | year (optional; all sales when omitted)
    - date: YYYY-MM-DD reference date (default: today)
    - group_by: day | month | year for the revenue series (default: month)
    """
    period = request.args.get("period")
    group_by = request.args.get("group_by", "month")

    try:
        on = parse_iso_date(request.args.get("date")) or utcnow().date()
    except ValueError:
        raise ValidationError("date must be a YYYY-MM-DD date")

    sales = sales_service.list_sales(current_owner_id())
    try:
        if period:
            sales = reporting_service.filter_sales_by_period(sales, period, on)
        series = reporting_service.revenue_by_period(sales, group_by)
    except ReportError as e:
        return jsonify({"error": str(e), "kind": "validation_error"}), 400

    return jsonify({
        "period": period,
        "date": on.isoformat() if period else None,
        "summary": reporting_service.summarize_sales(sales),
        "series": series,
        "sales": sales,
    }), 200


@reports_bp.get("/stock")
@require_auth
def stock_report_route():
    threshold = request.args.get("threshold", type=int)
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]

    products = products_service.list_products(current_owner_id())
    return jsonify({
        "threshold": threshold,
        "total_stock_value": reporting_service.stock_value(products),
        "items": reporting_service.stock_report(products, threshold),
    }), 200
