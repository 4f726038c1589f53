"""
Sales Service - the sale transaction.

record_sale turns one request into three writes that commit together:

    1. a Customer row (contact details + product name snapshot + quantity)
    2. the product's stock decrement
    3. a Sale row with revenue and profit frozen at today's prices

WHY atomic: stock and sale/customer records must never diverge. A half
applied sale would either oversell inventory or leave orphan records.

Concurrency is the store's job: the product is read with a write lock inside
the same unit of work that debits it, so two sales racing for the last units
cannot both pass the stock check.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from ..errors import InsufficientStockError
from ..time_utils import today_iso
from ..validation import CENTS, validate_customer_details, validate_sale_quantity
from .entity_store import CUSTOMERS, PRODUCTS, SALES, UnitOfWork, get_store
from .ownership import require_owner_id


logger = logging.getLogger(__name__)


def compute_totals(product: dict, quantity: int) -> tuple[Decimal, Decimal]:
    """(total_revenue, total_profit) for quantity units at the product's current prices."""
    selling = Decimal(product["selling_price"])
    purchase = Decimal(product["purchase_price"])
    revenue = (selling * quantity).quantize(CENTS)
    profit = ((selling - purchase) * quantity).quantize(CENTS)
    return revenue, profit


def list_sales(owner_id: str) -> list[dict]:
    require_owner_id(owner_id)
    return get_store().list(SALES, owner_id)


def record_sale(owner_id: str, product_id: str, quantity, customer_details: dict) -> dict:
    """Record a sale and return the created Sale record (see record_sale_receipt)."""
    return record_sale_receipt(owner_id, product_id, quantity, customer_details)["sale"]


def record_sale_receipt(owner_id: str, product_id: str, quantity, customer_details: dict) -> dict:
    """
    Record a sale of `quantity` units of a product to a new customer.

    Returns {"sale", "customer", "product"} as committed by the transaction;
    product carries the debited stock.

    Raises:
        UnauthorizedError: no owner
        ValidationError: bad quantity or missing customer name/city/address
            (nothing is read or written)
        NotFoundError: product missing or owned by someone else
        InsufficientStockError: stock < quantity (nothing is written)
        TransactionFailedError: the store could not commit (nothing is written)
    """
    require_owner_id(owner_id)
    quantity = validate_sale_quantity(quantity)
    contact = validate_customer_details(customer_details)

    def _op(unit: UnitOfWork) -> dict:
        return _apply_sale(unit, owner_id, product_id, quantity, contact)

    receipt = get_store().run_in_transaction(_op)
    sale = receipt["sale"]

    logger.info(
        "Sale %s recorded for owner %s: product=%s quantity=%s revenue=%s profit=%s",
        sale["id"],
        owner_id,
        product_id,
        quantity,
        sale["total_revenue"],
        sale["total_profit"],
    )
    return receipt


def _apply_sale(unit: UnitOfWork, owner_id: str, product_id: str, quantity: int, contact: dict) -> dict:
    product = unit.get(PRODUCTS, product_id, owner_id, lock=True)

    if product["stock"] < quantity:
        raise InsufficientStockError(
            "Insufficient stock available",
            details={
                "product_id": product["id"],
                "requested_quantity": quantity,
                "available": product["stock"],
            },
        )

    today = today_iso()
    revenue, profit = compute_totals(product, quantity)

    customer = unit.insert(CUSTOMERS, owner_id, {
        "name": contact["name"],
        "city": contact["city"],
        "address": contact["address"],
        "phone_number": contact["phone_number"],
        "purchase_date": today,
        "purchased_product": product["name"],
        "quantity": quantity,
    })

    product = unit.update(PRODUCTS, product["id"], owner_id, {"stock": product["stock"] - quantity})

    sale = unit.insert(SALES, owner_id, {
        "product_id": product["id"],
        "customer_id": customer["id"],
        "quantity": quantity,
        "date": today,
        "total_revenue": revenue,
        "total_profit": profit,
    })

    return {"sale": sale, "customer": customer, "product": product}
