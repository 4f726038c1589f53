# Overview: Flask API routes for customer records.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth
from ..services import customers_service
from ..services.ownership import current_owner_id


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    return jsonify(customers_service.list_customers(current_owner_id())), 200


@customers_bp.post("")
@require_auth
def create_customer_route():
    """
    Add a customer record by hand.

    Body: name, city, address, purchased_product, quantity, and optionally
    phone_number and purchase_date (YYYY-MM-DD, defaults to today).
    """
    payload = request.get_json(silent=True)
    created = customers_service.create_customer(current_owner_id(), payload)
    return jsonify(created), 201
