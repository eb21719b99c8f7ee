from __future__ import annotations

from datetime import datetime
from decimal import InvalidOperation
from typing import Any

from orderdesk.money import MAX_AMOUNT_CENTS, to_cents
from orderdesk.time_utils import parse_iso_datetime


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level lookup miss."""


class PersistenceError(RuntimeError):
    """
    Underlying storage failure during read/write/commit.

    The message is for logs only; routes answer with a generic 500.
    """


class DeadlineExceededError(PersistenceError):
    """The caller's deadline passed before the transaction committed."""


def clean_str(value: Any) -> str:
    """Trimmed string; None becomes ''."""
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return value.strip()


def parse_positive_int(value: Any, field: str, *, required: bool = True) -> int | None:
    """
    Strict positive integer coercion for ids.

    Accepts ints and digit strings; rejects bools, floats with fractions,
    and anything <= 0.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer")
        value = int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped.lstrip("-").isdigit():
            raise ValidationError(f"{field} must be an integer")
        value = int(stripped)
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if value <= 0:
        raise ValidationError(f"{field} must be positive")
    return value


def parse_amount_cents(value: Any, field: str = "amount", *, allow_zero: bool = False) -> int:
    """Decimal amount -> integer cents (rounded half away from zero)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required")
    try:
        cents = to_cents(value)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be a number")
    if allow_zero:
        if cents < 0:
            raise ValidationError(f"{field} must be zero or positive")
    elif cents <= 0:
        raise ValidationError(f"{field} must be positive")
    if cents > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} is too large")
    return cents


def parse_date_value(value: Any, field: str = "date") -> datetime | None:
    """RFC-3339 date-time or YYYY-MM-DD -> naive UTC datetime; blank -> None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if not isinstance(value, str):
        raise ValidationError(f"invalid {field}")
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"invalid {field}")
