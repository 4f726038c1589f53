# Overview: Service-layer operations for customers.

from __future__ import annotations

import logging

from ..models import Customer
from ..time_utils import today_iso
from ..validation import CUSTOMER_POLICY, enforce_rules_customer, validate_payload
from .entity_store import CUSTOMERS, get_store
from .ownership import require_owner_id, strip_owner_fields


logger = logging.getLogger(__name__)


def list_customers(owner_id: str) -> list[dict]:
    require_owner_id(owner_id)
    return get_store().list(CUSTOMERS, owner_id)


def create_customer(owner_id: str, fields: dict) -> dict:
    """
    Record a customer purchase entered by hand (outside a sale).

    purchase_date defaults to today. No stock is moved and no sale is
    created; use sales_service.record_sale for that.
    """
    require_owner_id(owner_id)
    patch = validate_payload(
        model=Customer,
        payload=strip_owner_fields(fields),
        policy=CUSTOMER_POLICY,
        partial=False,
    )
    enforce_rules_customer(patch)
    if not patch.get("purchase_date"):
        patch["purchase_date"] = today_iso()

    customer = get_store().insert(CUSTOMERS, owner_id, patch)
    logger.info("Customer %s created for owner %s", customer["id"], owner_id)
    return customer
