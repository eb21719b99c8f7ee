# Overview: Service-layer operations for auth; password hashing, login and user provisioning.

"""
Authentication Service

WHY: Every API call is made by a known user. Uses bcrypt for password
hashing and validates password strength on creation.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, upper, lower, digit and special char required
- Email is the login identifier and is compared lower-cased
- Session tokens managed separately (see session_service.py)
"""

from __future__ import annotations

import re

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..models.auth import VALID_ROLES
from .session_service import revoke_all_user_sessions
from orderdesk.time_utils import utcnow
from orderdesk.validation import ValidationError


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


class AuthenticationError(Exception):
    """Bad credentials or disabled account (deliberately non-specific)."""
    pass


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")
    if not re.search(r"[!@#$%^&*(),.'\":{}|<>_\-]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12)))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check; malformed hashes simply fail."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def create_user(email: str, password: str, role: str = "staff") -> User:
    """
    Create a user with a bcrypt password hash.

    Raises:
        ValidationError: bad email, unknown role, duplicate email
        PasswordValidationError: weak password
    """
    email = normalize_email(email)
    if not EMAIL_RE.match(email):
        raise ValidationError("valid email is required")
    role = (role or "").strip().lower()
    if role not in VALID_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(VALID_ROLES)}")

    if db.session.query(User).filter_by(email=email).first():
        raise ValidationError(f"User with email '{email}' already exists")

    user = User(
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
        created_at=utcnow(),
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError(f"User with email '{email}' already exists")
    return user


def authenticate(email: str, password: str) -> User:
    """
    Check credentials and stamp last_login_at.

    Raises AuthenticationError for unknown email, wrong password or
    inactive account alike.
    """
    user = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if not user or not verify_password(password or "", user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError("Invalid email or password")

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def seed_admin(email: str, password: str, role: str = "admin") -> tuple[User, bool]:
    """
    Ensure the bootstrap account exists.

    Idempotent: an existing user with that email is returned untouched.
    Returns (user, created).
    """
    existing = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if existing:
        return existing, False
    user = create_user(email, password, role)
    current_app.logger.info("Seeded %s user %s", user.role, user.email)
    return user, True


def deactivate_user(email: str) -> tuple[User, int]:
    """Disable login for a user and revoke their open sessions. Returns (user, revoked)."""
    user = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if not user:
        raise ValidationError(f"User '{email}' not found")
    user.is_active = False
    db.session.commit()
    revoked = revoke_all_user_sessions(user.id, reason="User deactivated")
    current_app.logger.info("Deactivated user %s (%s sessions revoked)", user.email, revoked)
    return user, revoked
