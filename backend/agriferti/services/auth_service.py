# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every product, customer and sale belongs to the user who created it.
The identity established here (User.public_id) is the owner id for all of
that data, so it must come from a verified credential.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, upper/lower/digit/special required
- Login failures use one message for unknown user and wrong password
- Session tokens managed separately (see session_service.py)
- There is no bypass code: phone login requires a real OTP (otp_service.py)
"""

import logging
import re
import uuid

import bcrypt

from ..errors import UnauthorizedError, ValidationError
from ..extensions import db
from ..models import User


logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for users without a password (phone OTP accounts) and for
    malformed hashes.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str | None:
    if email is None:
        return None
    email = str(email).strip().lower()
    if not email:
        return None
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email address")
    return email


def normalize_phone(phone_number: str | None) -> str | None:
    """Keep digits only; at least 10 digits are required."""
    if phone_number is None:
        return None
    digits = re.sub(r"\D", "", str(phone_number))
    if not digits:
        return None
    if len(digits) < 10:
        raise ValidationError("Invalid phone number")
    return digits


def find_user(email: str | None = None, phone_number: str | None = None) -> User | None:
    """Look up a user by email or phone number (already normalized)."""
    clauses = []
    if email:
        clauses.append(User.email == email)
    if phone_number:
        clauses.append(User.phone_number == phone_number)
    if not clauses:
        return None
    return db.session.query(User).filter(db.or_(*clauses)).first()


def create_user(
    email: str | None = None,
    phone_number: str | None = None,
    password: str | None = None,
) -> User:
    """
    Create a user. Each user gets a fresh public_id that becomes the owner
    id of everything they create.

    Raises ValidationError if neither email nor phone is given, if either is
    already registered, or if the password is too weak.
    """
    email = normalize_email(email)
    phone_number = normalize_phone(phone_number)

    if not email and not phone_number:
        raise ValidationError("Email or phone number is required")

    if find_user(email=email, phone_number=phone_number):
        raise ValidationError("User already exists. Please login.")

    user = User(
        public_id=uuid.uuid4().hex,
        email=email,
        phone_number=phone_number,
        password_hash=hash_password(password) if password is not None else None,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()

    logger.info("User %s created", user.public_id)
    return user


def signup(
    email: str | None,
    phone_number: str | None,
    password: str | None,
    confirm_password: str | None,
) -> User:
    if not password or password != confirm_password:
        raise ValidationError("Passwords do not match")
    return create_user(email=email, phone_number=phone_number, password=password)


def authenticate(email: str | None, phone_number: str | None, password: str | None) -> User:
    """
    Verify email/phone + password.

    Raises UnauthorizedError with the same message whether the user is
    unknown, inactive or the password is wrong.
    """
    if not password:
        raise ValidationError("Password is required")

    email = normalize_email(email)
    phone_number = normalize_phone(phone_number)
    if not email and not phone_number:
        raise ValidationError("Email or phone number is required")

    user = find_user(email=email, phone_number=phone_number)
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        logger.warning("Failed login for %s", email or phone_number)
        raise UnauthorizedError("Invalid credentials")

    return user


def user_exists(email: str | None, phone_number: str | None) -> bool:
    try:
        email = normalize_email(email)
        phone_number = normalize_phone(phone_number)
    except ValidationError:
        return False
    return find_user(email=email, phone_number=phone_number) is not None


def get_or_create_phone_user(phone_number: str) -> User:
    """Phone OTP login: the first verified login registers the phone."""
    phone_number = normalize_phone(phone_number)
    user = find_user(phone_number=phone_number)
    if user:
        return user
    return create_user(phone_number=phone_number)
