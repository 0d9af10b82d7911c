"""Rounding rules for currency amounts."""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal
from enum import Enum

CENT = Decimal("0.01")
ZERO = Decimal("0")


class RoundingMethod(str, Enum):
    """How a converted amount is brought to a whole currency unit."""

    UP = "up"
    DOWN = "down"
    NEAREST = "nearest"


_DECIMAL_MODES: dict[RoundingMethod, str] = {
    RoundingMethod.UP: ROUND_CEILING,
    RoundingMethod.DOWN: ROUND_FLOOR,
    RoundingMethod.NEAREST: ROUND_HALF_UP,
}


def to_decimal(value: Decimal | int | str | float) -> Decimal:
    """
    Coerce a numeric value to Decimal without binary float artifacts.

    Floats go through their shortest repr, so 10.5 becomes Decimal("10.5")
    rather than the exact binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_to_unit(amount: Decimal, method: RoundingMethod) -> Decimal:
    """Round an amount to a whole currency unit using the given method."""
    return amount.to_integral_value(rounding=_DECIMAL_MODES[method])


def round_money(amount: Decimal) -> Decimal:
    """Round a monetary amount to cents, half-up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
