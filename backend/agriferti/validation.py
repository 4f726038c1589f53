from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from agriferti.errors import ValidationError
from agriferti.models.customers import Customer
from agriferti.models.inventory import PRODUCT_UNITS
from agriferti.time_utils import parse_iso_date


# Maximum price: 9,999,999.99
# This prevents database overflow issues and nonsensical prices
MAX_PRICE = Decimal("9999999.99")
CENTS = Decimal("0.01")

# Stock and quantities fit a 32-bit INTEGER column on every backend
MAX_QUANTITY = 1_000_000_000


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "unit", "purchase_price", "selling_price", "stock"},
    required_on_create={"name", "category", "unit", "purchase_price", "selling_price", "stock"},
)

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "city", "address", "phone_number",
        "purchase_date", "purchased_product", "quantity",
    },
    required_on_create={"name", "city", "address", "purchased_product", "quantity"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    """Strict integer coercion - rejects bools, floats and scientific notation."""
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Floats are only accepted when integral (JSON clients send 5.0)
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_money(key: str, value: Any) -> Decimal:
    """Monetary amounts are Decimals quantized to cents."""
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, float):
        # Go through str() so 1150.1 does not become 1150.0999999...
        value = str(value)
    try:
        amount = Decimal(str(value).strip()) if isinstance(value, str) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{key} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a number")
    # quantize() overflows the decimal context long before this bound
    if abs(amount) > MAX_PRICE:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE:,}")
    return amount.quantize(CENTS)


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Numeric):
        return coerce_money(col.key, value)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    The column metadata is used as a schema even when the memory store
    backend is active.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "unit" in patch and patch["unit"] not in PRODUCT_UNITS:
        raise ValidationError(f"unit must be one of: {', '.join(PRODUCT_UNITS)}")

    for key in ("purchase_price", "selling_price"):
        if key in patch:
            price = patch[key]
            if price < 0:
                raise ValidationError(f"{key} must be >= 0")
            if price > MAX_PRICE:
                raise ValidationError(f"{key} cannot exceed {MAX_PRICE:,}")

    if "stock" in patch:
        if patch["stock"] < 0:
            raise ValidationError("stock must be >= 0")
        if patch["stock"] > MAX_QUANTITY:
            raise ValidationError(f"stock cannot exceed {MAX_QUANTITY:,}")


def enforce_rules_customer(patch: dict) -> None:
    if "quantity" in patch:
        if patch["quantity"] < 0:
            raise ValidationError("quantity must be >= 0")
        if patch["quantity"] > MAX_QUANTITY:
            raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY:,}")

    if patch.get("purchase_date"):
        try:
            parsed = parse_iso_date(patch["purchase_date"])
        except ValueError:
            raise ValidationError("purchase_date must be a YYYY-MM-DD date")
        patch["purchase_date"] = parsed.isoformat()


def validate_sale_quantity(value: Any) -> int:
    """A sale quantity is a strictly positive integer."""
    if value is None:
        raise ValidationError("quantity is required")
    quantity = coerce_int("quantity", value)
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY:,}")
    return quantity


def validate_customer_details(details: Any) -> dict:
    """
    Contact fields captured with a sale: name, city and address are
    required, phone_number is optional.
    """
    if not isinstance(details, dict):
        raise ValidationError("customer details are required")

    cols = _columns_by_key(Customer)
    cleaned: dict = {}
    for key in ("name", "city", "address", "phone_number"):
        raw = details.get(key)
        if raw is not None and not isinstance(raw, str):
            raise ValidationError(f"customer {key} must be a string")
        value = "" if raw is None else raw.strip()
        if key != "phone_number" and not value:
            raise ValidationError(f"customer {key} is required")
        length = cols[key].type.length
        if length and len(value) > length:
            raise ValidationError(f"customer {key} exceeds max length {length}")
        cleaned[key] = value or None
    return cleaned
