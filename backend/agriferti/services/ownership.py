"""
Ownership Guard: owner resolution and per-record ownership checks.

SECURITY INVARIANTS:
1. The owner id comes only from a verified session (g.owner_id, set by
   @require_auth). Request bodies never choose the owner.
2. Every record fetched by id is checked against the caller's owner id
   before it is returned, changed or deleted.
3. A record owned by someone else is reported exactly like a missing one
   (NotFoundError), so ids cannot be probed across owners.

USAGE:
    from agriferti.services.ownership import current_owner_id, ensure_owned

    owner_id = current_owner_id()
    ensure_owned(row.owner_id, owner_id, "Product")
"""

from __future__ import annotations

import logging

from flask import g, has_request_context, request

from ..errors import NotFoundError, UnauthorizedError


logger = logging.getLogger(__name__)

# Fields the server assigns; silently dropped from client payloads
SERVER_MANAGED_FIELDS = ("id", "owner_id", "created_at", "updated_at")


def current_owner_id() -> str:
    """
    Owner id of the authenticated caller.

    Raises UnauthorizedError if no verified identity is attached to the
    request. This should never happen after @require_auth.
    """
    owner_id = getattr(g, "owner_id", None)
    if not owner_id:
        raise UnauthorizedError("Authentication required")
    return owner_id


def require_owner_id(owner_id: str | None) -> str:
    """Reject operations invoked without an owner."""
    if not owner_id or not isinstance(owner_id, str) or not owner_id.strip():
        raise UnauthorizedError("Authentication required")
    return owner_id


def ensure_owned(record_owner_id: str | None, owner_id: str, label: str) -> None:
    """
    Verify a fetched record belongs to owner_id.

    Missing records (record_owner_id is None) and foreign records raise the
    same NotFoundError. Foreign access is logged for monitoring.
    """
    if record_owner_id is None:
        raise NotFoundError(f"{label} not found")

    if record_owner_id != owner_id:
        logger.warning(
            "Cross-owner access denied: %s owned by %s requested by %s%s",
            label,
            record_owner_id,
            owner_id,
            f" ({request.method} {request.path})" if has_request_context() else "",
        )
        raise NotFoundError(f"{label} not found")


def strip_owner_fields(payload: dict | None) -> dict:
    """
    Drop server-managed fields (id, owner_id, timestamps) from a client
    payload. A client-supplied owner_id is never honored.
    """
    if not isinstance(payload, dict):
        return payload
    if "owner_id" in payload:
        logger.info("Ignoring client-supplied owner_id in payload")
    return {k: v for k, v in payload.items() if k not in SERVER_MANAGED_FIELDS}
