"""Conversion between ``HH:MM`` hour strings and decimal hours."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_HOURS_PATTERN = re.compile(r"^\s*(-)?(\d+):(\d{1,2})\s*$")

CENTS = Decimal("0.01")


def round_hours(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_hours(value: Decimal | int | float | str | None) -> Decimal:
    """Parse hours given as a number or an ``HH:MM`` string.

    ``"08:30"`` means eight and a half hours; numbers and numeric strings
    such as ``"7.5"`` are taken as decimal hours.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    match = _HOURS_PATTERN.match(value)
    if match is None:
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"Invalid hours value: {value!r}") from None

    sign, hours, minutes = match.groups()
    minutes_value = int(minutes)
    if minutes_value >= 60:
        raise ValueError(f"Invalid minutes in hours value: {value!r}")
    result = round_hours(Decimal(int(hours)) + Decimal(minutes_value) / Decimal(60))
    return -result if sign else result


def format_hours(value: Decimal | int | float) -> str:
    """Format decimal hours as ``HH:MM`` (``-`` prefix when negative)."""
    amount = Decimal(str(value)) if not isinstance(value, Decimal) else value
    sign = "-" if amount < 0 else ""
    total_minutes = int((abs(amount) * 60).to_integral_value(rounding=ROUND_HALF_UP))
    hours, minutes = divmod(total_minutes, 60)
    return f"{sign}{hours:02d}:{minutes:02d}"
