# Overview: One-time password login codes for phone numbers.

"""
OTP Service

Codes are six random digits, stored only as SHA-256 hashes, valid for
OTP_TTL_SECONDS and invalidated after OTP_MAX_ATTEMPTS wrong guesses.
Issuing a new code for a phone number invalidates the previous ones.

SMS delivery is out of scope: deliver_otp() logs that a code was issued.
With OTP_ECHO_ENABLED (development only) the route echoes the code back.
"""

import hmac
import logging
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import OtpCode
from .auth_service import normalize_phone
from .session_service import hash_token
from agriferti.errors import ValidationError
from agriferti.time_utils import utcnow


logger = logging.getLogger(__name__)


def generate_code() -> str:
    return f"{secrets.randbelow(900000) + 100000}"


def deliver_otp(phone_number: str, code: str) -> None:
    logger.info("OTP issued for phone ending %s", phone_number[-4:])


def issue_otp(phone_number: str) -> str:
    """Create a fresh code for the phone number and hand it to delivery."""
    phone_number = normalize_phone(phone_number)
    if not phone_number:
        raise ValidationError("Phone number is required")

    now = utcnow()
    db.session.query(OtpCode).filter(
        OtpCode.phone_number == phone_number,
        OtpCode.consumed_at.is_(None),
    ).update({"consumed_at": now}, synchronize_session=False)

    code = generate_code()
    otp = OtpCode(
        phone_number=phone_number,
        code_hash=hash_token(code),
        attempts=0,
        created_at=now,
        expires_at=now + timedelta(seconds=current_app.config.get("OTP_TTL_SECONDS", 300)),
    )
    db.session.add(otp)
    db.session.commit()

    deliver_otp(phone_number, code)
    return code


def verify_otp(phone_number: str, code: str) -> bool:
    """
    Check a code for the phone number. A matching code is consumed; a wrong
    guess counts against the latest live code.
    """
    phone_number = normalize_phone(phone_number)
    if not phone_number or not code:
        return False

    now = utcnow()
    otp = (
        db.session.query(OtpCode)
        .filter(
            OtpCode.phone_number == phone_number,
            OtpCode.consumed_at.is_(None),
            OtpCode.expires_at > now,
        )
        .order_by(OtpCode.id.desc())
        .first()
    )
    if not otp:
        return False

    max_attempts = current_app.config.get("OTP_MAX_ATTEMPTS", 5)
    if hmac.compare_digest(otp.code_hash, hash_token(str(code).strip())):
        otp.consumed_at = now
        db.session.commit()
        return True

    otp.attempts += 1
    if otp.attempts >= max_attempts:
        otp.consumed_at = now
        logger.warning("OTP for phone ending %s locked after %s attempts", phone_number[-4:], otp.attempts)
    db.session.commit()
    return False
