"""Currency conversion and input parsing helpers."""

from decimal import Decimal, InvalidOperation

import pytest

from orderdesk.money import MAX_AMOUNT_CENTS, cents_to_amount, format_cents, to_cents, to_decimal
from orderdesk.validation import ValidationError, parse_amount_cents, parse_positive_int


class TestRounding:

    def test_half_rounds_away_from_zero(self):
        assert to_cents(10.005) == 1001
        assert to_cents("10.005") == 1001
        assert to_cents(-10.005) == -1001

    def test_rounding_is_idempotent(self):
        once = to_decimal("2.675")
        assert once == Decimal("2.68")
        assert to_decimal(once) == once

    def test_integer_and_decimal_inputs(self):
        assert to_cents(12) == 1200
        assert to_cents(Decimal("0.1")) == 10

    def test_rejects_non_finite_and_bool(self):
        with pytest.raises(InvalidOperation):
            to_cents("nan")
        with pytest.raises(InvalidOperation):
            to_cents(True)

    def test_output_helpers(self):
        assert format_cents(1234) == "12.34"
        assert format_cents(5) == "0.05"
        assert cents_to_amount(1001) == 10.01


class TestParsing:

    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            parse_amount_cents(0)
        with pytest.raises(ValidationError):
            parse_amount_cents("-1")
        assert parse_amount_cents(0, allow_zero=True) == 0

    def test_amount_must_be_numeric(self):
        with pytest.raises(ValidationError, match="must be a number"):
            parse_amount_cents("ten")

    def test_sub_cent_amount_rounds_to_zero_and_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_amount_cents(0.004)

    @pytest.mark.parametrize("value", ["100000000000000000000", 1e20, "10000000000000"])
    def test_amount_too_large(self, value):
        with pytest.raises(ValidationError, match="amount is too large"):
            parse_amount_cents(value)

    def test_amount_at_limit(self):
        assert parse_amount_cents("9999999999999.99") == MAX_AMOUNT_CENTS
        assert parse_amount_cents("9999999999999.99", allow_zero=True) == MAX_AMOUNT_CENTS

    @pytest.mark.parametrize("value", [0, -3, "abc", 1.5, True])
    def test_positive_int_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_positive_int(value, "id")

    def test_positive_int_optional(self):
        assert parse_positive_int(None, "id", required=False) is None
        assert parse_positive_int("42", "id") == 42
