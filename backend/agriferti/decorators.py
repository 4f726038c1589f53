# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require authentication and establish the owner context.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.owner_id: The owner id (User.public_id) scoping all data access
    - g.session_context: The full SessionContext object

    SECURITY: The owner id is taken from the verified session only. Any
    owner_id in the request body is ignored downstream.

    Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required", "kind": "unauthorized"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token", "kind": "unauthorized"}), 401

        g.current_user = context.user
        g.owner_id = context.owner_id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function
