# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes.

MULTI-TENANT: All product operations are scoped to the caller's owner id,
derived from the session by @require_auth. Products of other owners
answer 404, exactly like missing ones.
"""
from flask import Blueprint, request, jsonify

from ..decorators import require_auth
from ..services import products_service
from ..services.ownership import current_owner_id


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route():
    """List the caller's products, oldest first."""
    products = products_service.list_products(current_owner_id())
    return jsonify(products), 200


@products_bp.post("")
@require_auth
def create_product_route():
    """
    Create a new product.

    Body: name, category, unit (kg|bag|litre), purchase_price,
    selling_price, stock. id/owner_id in the body are ignored.
    """
    payload = request.get_json(silent=True)
    created = products_service.create_product(current_owner_id(), payload)
    return jsonify(created), 201


@products_bp.get("/<product_id>")
@require_auth
def get_product_route(product_id: str):
    product = products_service.get_product(current_owner_id(), product_id)
    return jsonify(product), 200


@products_bp.put("/<product_id>")
@require_auth
def update_product_route(product_id: str):
    """Update any subset of the writable product fields."""
    payload = request.get_json(silent=True)
    updated = products_service.update_product(current_owner_id(), product_id, payload)
    return jsonify(updated), 200


@products_bp.delete("/<product_id>")
@require_auth
def delete_product_route(product_id: str):
    products_service.delete_product(current_owner_id(), product_id)
    return jsonify({"ok": True}), 200
