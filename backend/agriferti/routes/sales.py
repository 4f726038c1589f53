# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""Sales API routes"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth
from ..errors import ValidationError
from ..services import sales_service
from ..services.ownership import current_owner_id


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
def list_sales_route():
    return jsonify(sales_service.list_sales(current_owner_id())), 200


@sales_bp.post("")
@require_auth
def record_sale_route():
    """
    Record a sale: creates the customer, debits stock and writes the sale
    in one transaction.

    Body:
        product_id, quantity,
        customer_name, customer_city, customer_address,
        customer_phone (optional)

    Returns 201 with the sale, the new customer and the updated product.
    Errors: 400 bad input, 404 unknown product, 409 insufficient stock,
    503 store failure. Nothing is written on error.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")

    product_id = data.get("product_id")
    if product_id is None or str(product_id).strip() == "":
        raise ValidationError("product_id is required")

    receipt = sales_service.record_sale_receipt(
        current_owner_id(),
        str(product_id).strip(),
        data.get("quantity"),
        {
            "name": data.get("customer_name"),
            "city": data.get("customer_city"),
            "address": data.get("customer_address"),
            "phone_number": data.get("customer_phone"),
        },
    )

    return jsonify({"success": True, **receipt}), 201
