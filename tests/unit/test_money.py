"""
Unit tests for invoicing/services/money.py

Pure functions, no database.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from invoicing.errors import InvalidLiteralError
from invoicing.services.money import (
    format_cents,
    format_ymd_display,
    from_cents,
    line_total_cents,
    parse_decimal,
    parse_ymd,
    sum_cents,
    to_cents,
    to_ymd,
)


# ---------------------------------------------------------------------------
# parse_decimal
# ---------------------------------------------------------------------------


def test_parse_decimal_float_goes_through_str():
    assert parse_decimal(10.005) == Decimal("10.005")


def test_parse_decimal_string_with_whitespace():
    assert parse_decimal(" 19.99 ") == Decimal("19.99")


@pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", None, True, [1]])
def test_parse_decimal_rejects_malformed_literals(value):
    with pytest.raises(InvalidLiteralError):
        parse_decimal(value)


# ---------------------------------------------------------------------------
# cents conversion
# ---------------------------------------------------------------------------


def test_to_cents_rounds_half_up():
    assert to_cents("0.005") == 1
    assert to_cents("10.005") == 1001
    assert to_cents("1.234") == 123
    assert to_cents(0) == 0


def test_from_cents_has_two_places():
    assert from_cents(2001) == Decimal("20.01")
    assert str(from_cents(500)) == "5.00"


def test_format_cents():
    assert format_cents(5) == "0.05"
    assert format_cents(123456) == "1234.56"
    assert format_cents(0) == "0.00"


# ---------------------------------------------------------------------------
# line totals
# ---------------------------------------------------------------------------


def test_line_total_uses_exact_product_not_float():
    # 2 * 10.005 in binary floating point is 20.009999...
    assert line_total_cents(2, 10.005) == 2001
    assert line_total_cents(2, Decimal("10.005")) == 2001
    assert format_cents(line_total_cents(2, "10.005")) == "20.01"


def test_line_total_half_up():
    assert line_total_cents(7, "1.115") == 781
    assert line_total_cents(3, "0.333") == 100


def test_repeated_summation_does_not_drift():
    # ten lines of 0.10 must total exactly 1.00
    assert sum_cents(line_total_cents(1, 0.1) for _ in range(10)) == 100


def test_line_total_rejects_bad_price():
    with pytest.raises(InvalidLiteralError):
        line_total_cents(1, "ten")


# ---------------------------------------------------------------------------
# dates
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [
        (date(2026, 1, 5), "2026-01-05"),
        (datetime(2026, 1, 5, 23, 59), "2026-01-05"),
        ("2026-01-05", "2026-01-05"),
        ("2026-01-05T10:00:00.000Z", "2026-01-05"),
        ("05/01/2026", ""),
        ("", ""),
        (None, ""),
    ],
)
def test_to_ymd(value, expected):
    assert to_ymd(value) == expected


def test_parse_ymd_valid():
    assert parse_ymd("2026-02-28T00:00:00Z") == date(2026, 2, 28)


@pytest.mark.parametrize("value", ["2026-02-30", "tomorrow", ""])
def test_parse_ymd_invalid(value):
    with pytest.raises(InvalidLiteralError):
        parse_ymd(value, "issueDate")


def test_format_ymd_display():
    assert format_ymd_display("2026-03-09") == "09/03/2026"
    assert format_ymd_display(date(2026, 12, 1)) == "01/12/2026"
    assert format_ymd_display("not a date") == "-"
    assert format_ymd_display("2026-13-01") == "-"
    assert format_ymd_display(None) == "-"
