# Overview: Service-layer operations for products; owner-scoped CRUD over the entity store.

from __future__ import annotations

import logging

from ..errors import ValidationError
from ..models import Product
from ..validation import PRODUCT_POLICY, enforce_rules_product, validate_payload
from .entity_store import PRODUCTS, get_store
from .ownership import require_owner_id, strip_owner_fields


logger = logging.getLogger(__name__)


def list_products(owner_id: str) -> list[dict]:
    """All products of the owner, oldest first."""
    require_owner_id(owner_id)
    return get_store().list(PRODUCTS, owner_id)


def get_product(owner_id: str, product_id: str) -> dict:
    require_owner_id(owner_id)
    return get_store().get(PRODUCTS, product_id, owner_id)


def create_product(owner_id: str, fields: dict) -> dict:
    """
    Create a product in the owner's partition.

    Every field is required: name, category, unit (kg/bag/litre),
    purchase_price, selling_price, stock.
    """
    require_owner_id(owner_id)
    patch = validate_payload(
        model=Product,
        payload=strip_owner_fields(fields),
        policy=PRODUCT_POLICY,
        partial=False,
    )
    enforce_rules_product(patch)

    product = get_store().insert(PRODUCTS, owner_id, patch)
    logger.info("Product %s (%s) created for owner %s", product["id"], product["name"], owner_id)
    return product


def update_product(owner_id: str, product_id: str, fields: dict) -> dict:
    """
    Patch a product. Only the provided fields change; stock may be set
    directly here (restocking), never below zero.
    """
    require_owner_id(owner_id)
    patch = validate_payload(
        model=Product,
        payload=strip_owner_fields(fields),
        policy=PRODUCT_POLICY,
        partial=True,
    )
    if not patch:
        raise ValidationError("No fields to update")
    enforce_rules_product(patch)

    product = get_store().update(PRODUCTS, product_id, owner_id, patch)
    logger.info("Product %s updated for owner %s: %s", product_id, owner_id, ", ".join(sorted(patch)))
    return product


def delete_product(owner_id: str, product_id: str) -> None:
    """Delete a product. Past sales keep their product_id reference."""
    require_owner_id(owner_id)
    get_store().delete(PRODUCTS, product_id, owner_id)
    logger.info("Product %s deleted for owner %s", product_id, owner_id)
