# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

WHY: The owner id of every request comes from here. Tokens are
cryptographically secure, hashed in the database and time-limited.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout (SESSION_TTL_HOURS, 30 days by default)
- Revocable on logout
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from agriferti.time_utils import utcnow


@dataclass
class SessionContext:
    """
    Session context returned by validate_session.

    owner_id is the user's public id: the partition key for all business
    data the request may touch.
    """
    user: User
    session: SessionToken
    owner_id: str


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)  # 32 bytes = 64 hex characters


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(user_id: int) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        raise ValueError("User not found")

    plaintext_token = generate_token()
    now = utcnow()
    ttl = timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24 * 30))

    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + ttl,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if:
    - Token is unknown, expired, or revoked
    - User account is deactivated (is_active=False)

    Updates last_used_at on successful validation (activity tracking).
    """
    if not token:
        return None

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()

    if not session or session.is_revoked or session.expires_at <= now:
        return None

    user = session.user
    if not user or not user.is_active:
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(user=user, session=session, owner_id=user.public_id)


def revoke_session(token: str) -> bool:
    """Revoke a session (logout). Returns False if the token is unknown."""
    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if not session:
        return False

    session.is_revoked = True
    session.revoked_at = utcnow()
    db.session.commit()
    return True
