"""
Money and date helpers.

All amounts are held as integer cents internally and exchanged as decimal
strings with exactly two fraction digits. Rounding is ROUND_HALF_UP
throughout, so create, update and display agree on every total.
"""

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

from invoicing.errors import InvalidLiteralError

Number = Union[Decimal, int, float, str]

CENTS = Decimal("100")
TWO_PLACES = Decimal("0.01")

# BIGINT ceiling for any stored amount in cents
MAX_CENTS = 2**63 - 1

_YMD_EXACT = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_YMD_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")


def parse_decimal(value: Number, field: str = "amount") -> Decimal:
    """Parse a numeric literal exactly. Floats go through str() to avoid binary noise."""
    if isinstance(value, bool):
        raise InvalidLiteralError(f"Invalid number for {field}.")
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidLiteralError(f"Invalid number for {field}: {value!r}.")
    else:
        raise InvalidLiteralError(f"Invalid number for {field}.")

    if not parsed.is_finite():
        raise InvalidLiteralError(f"Invalid number for {field}: {value!r}.")
    return parsed


def to_cents(amount: Number) -> int:
    return int((parse_decimal(amount) * CENTS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(int(cents)) / CENTS).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_cents(cents: int) -> str:
    return f"{from_cents(cents):.2f}"


def line_total_cents(quantity: int, unit_price: Number) -> int:
    """quantity x unit price in minor units, rounded once: 2 x 10.005 -> 2001."""
    exact = Decimal(int(quantity)) * parse_decimal(unit_price, "unitPrice") * CENTS
    return int(exact.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def sum_cents(values: Iterable[int]) -> int:
    return sum((int(v) for v in values), 0)


def to_ymd(value) -> str:
    """Normalize a date-ish value to YYYY-MM-DD, or "" when it has no date prefix."""
    if not value:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    s = str(value).strip()
    if _YMD_EXACT.match(s):
        return s
    m = _YMD_PREFIX.match(s)
    if m:
        return m.group(1)
    return ""


def parse_ymd(value, field: str = "date") -> date:
    ymd = to_ymd(value)
    if not ymd:
        raise InvalidLiteralError(f"Invalid {field} format (use YYYY-MM-DD).")
    try:
        return date.fromisoformat(ymd)
    except ValueError:
        raise InvalidLiteralError(f"Invalid {field} format (use YYYY-MM-DD).")


def format_ymd_display(value) -> str:
    """DD/MM/YYYY for list and detail views; "-" when the value is not a date."""
    ymd = to_ymd(value)
    if not ymd:
        return "-"
    try:
        d = date.fromisoformat(ymd)
    except ValueError:
        return "-"
    return d.strftime("%d/%m/%Y")
