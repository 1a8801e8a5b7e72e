"""Validation and parsing of free-text dialog input."""

import re
from datetime import date
from decimal import Decimal, InvalidOperation

from ..errors import InvalidInput

CENTS = Decimal("0.01")

# Plain ASCII digits with an optional "." or "," fraction; no signs, exponents
# or digit grouping.
AMOUNT_PATTERN = re.compile(r"\d+(?:[.,]\d+)?", re.ASCII)

# Accepted payment date layouts, tried in order; the first match wins.
# DD/MM need two digits, D/M accept one or two, YY is expanded like %y.
PAYMENT_DATE_LAYOUTS = (
    "DD.MM.YYYY",
    "DD.MM.YY",
    "D.M.YYYY",
    "D.M.YY",
    "DD-MM-YYYY",
    "DD-MM-YY",
    "D-M-YYYY",
    "D-M-YY",
)

_LAYOUT_TOKENS = {
    "YYYY": r"(?P<year>\d{4})",
    "YY": r"(?P<year>\d{2})",
    "DD": r"(?P<day>\d{2})",
    "D": r"(?P<day>\d{1,2})",
    "MM": r"(?P<month>\d{2})",
    "M": r"(?P<month>\d{1,2})",
}


def _compile_layout(layout: str) -> re.Pattern:
    pattern = re.sub(
        r"YYYY|YY|DD|D|MM|M|[^A-Z]",
        lambda m: _LAYOUT_TOKENS.get(m.group(0), re.escape(m.group(0))),
        layout,
    )
    return re.compile(pattern)


PAYMENT_DATE_FORMATS: tuple[tuple[str, re.Pattern], ...] = tuple(
    (layout, _compile_layout(layout)) for layout in PAYMENT_DATE_LAYOUTS
)


def _expand_year(digits: str) -> int:
    year = int(digits)
    if len(digits) == 4:
        return year
    return 1900 + year if year >= 69 else 2000 + year


def parse_amount(text: str) -> Decimal:
    """Parse a strictly positive amount with at most two decimal places.

    A comma is accepted as the decimal separator. Input is never rounded:
    ``10.005`` is rejected rather than coerced.
    """
    raw = (text or "").strip().replace(",", ".")
    if not raw:
        raise InvalidInput("amount is empty")
    if not AMOUNT_PATTERN.fullmatch(raw):
        raise InvalidInput(f"not a number: {text!r}")
    try:
        amount = Decimal(raw)
    except InvalidOperation as e:
        raise InvalidInput(f"not a number: {text!r}") from e
    if not amount.is_finite():
        raise InvalidInput(f"not a finite number: {text!r}")
    if amount <= 0:
        raise InvalidInput(f"amount must be positive: {text!r}")
    try:
        quantized = amount.quantize(CENTS)
    except InvalidOperation as e:
        raise InvalidInput(f"amount out of range: {text!r}") from e
    if quantized != amount:
        raise InvalidInput(f"too many decimal places: {text!r}")
    return quantized


def parse_text(text: str, field: str = "text") -> str:
    """Strip surrounding whitespace; empty input is invalid."""
    value = (text or "").strip()
    if not value:
        raise InvalidInput(f"{field} must not be empty")
    return value


def parse_debtor_name(text: str) -> str:
    return parse_text(text, "debtor name")


def parse_reason(text: str) -> str:
    return parse_text(text, "reason")


def parse_payment_date(text: str) -> date:
    """Parse a day-month-year date against PAYMENT_DATE_FORMATS in order."""
    raw = (text or "").strip()
    for _layout, pattern in PAYMENT_DATE_FORMATS:
        match = pattern.fullmatch(raw)
        if not match:
            continue
        try:
            return date(
                _expand_year(match.group("year")),
                int(match.group("month")),
                int(match.group("day")),
            )
        except ValueError:
            continue
    raise InvalidInput(f"unrecognized date: {text!r}")
