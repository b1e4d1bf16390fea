"""Rounding rules shared by the calculators.

Money:
- Whole currency units, half-up, applied after every computation step
  (never deferred to the end of a calculation).

Hours:
- Two decimal places, half-up.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

WHOLE_UNIT = Decimal("1")
HOURS_PRECISION = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    """Round amount to a whole currency unit."""
    return amount.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def floor_money(amount: Decimal) -> Decimal:
    """Truncate amount down to a whole currency unit."""
    return amount.quantize(WHOLE_UNIT, rounding=ROUND_FLOOR)


def round_hours(hours: Decimal) -> Decimal:
    """Round hours to 2 decimal places."""
    return hours.quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP)
