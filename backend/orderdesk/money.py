# Overview: Currency helpers; every persisted amount is an integer number of cents.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")

# Largest accepted amount (10 trillion minus a cent); sums of many such
# values still fit a signed 64-bit column.
MAX_AMOUNT_CENTS = 10**15 - 1


def to_decimal(value) -> Decimal:
    """
    Quantize a number to the cent, rounding half away from zero.

    Floats go through str() so 10.005 is treated as written, not as its
    binary approximation.
    """
    if isinstance(value, bool):
        raise InvalidOperation("booleans are not amounts")
    if isinstance(value, Decimal):
        dec = value
    else:
        dec = Decimal(str(value).strip())
    if not dec.is_finite():
        raise InvalidOperation("amount must be finite")
    return dec.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_cents(value) -> int:
    """Convert a decimal amount (int, float, str, Decimal) to integer cents."""
    return int(to_decimal(value) * 100)


def cents_to_amount(cents: int | None) -> float | None:
    """JSON-friendly amount for a cents value."""
    if cents is None:
        return None
    return float(Decimal(cents) / 100)


def format_cents(cents: int | None) -> str:
    """Fixed two-place string, e.g. 1234 -> '12.34'."""
    if cents is None:
        return ""
    return str((Decimal(cents) / 100).quantize(TWOPLACES))
