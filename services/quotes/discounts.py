"""Discount application."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from services.currency.rounding import ZERO, round_money
from services.quotes.types import DiscountKind, DiscountScope

if TYPE_CHECKING:
    from collections.abc import Sequence

    from services.quotes.types import DiscountSpec

_HUNDRED = Decimal("100")


@dataclass(frozen=True, slots=True)
class AppliedDiscounts:
    """
    Discount amounts resolved for one quote.

    Attributes:
        shipping_discount: Amount taken off the shipping legs.
        order_discount: Amount taken off the rest of the order.
        codes: Codes of the discounts that reduced something.
    """

    shipping_discount: Decimal = ZERO
    order_discount: Decimal = ZERO
    codes: tuple[str, ...] = ()

    @property
    def total(self) -> Decimal:
        """Combined discount, as a positive amount."""
        return self.shipping_discount + self.order_discount


def discount_value(spec: DiscountSpec, base: Decimal) -> Decimal:
    """
    Amount a single discount takes off a base amount.

    Percentages are clamped to [0, 100] and fixed amounts to [0, base], so
    the result never exceeds the base.
    """
    if base <= ZERO:
        return ZERO
    match spec.kind:
        case DiscountKind.FREE:
            return base
        case DiscountKind.PERCENTAGE:
            percent = min(max(spec.value, ZERO), _HUNDRED)
            return round_money(base * percent / _HUNDRED)
        case _:
            return round_money(min(max(spec.value, ZERO), base))


def apply_discounts(
    discounts: Sequence[DiscountSpec],
    shipping_total: Decimal,
    pre_fee_subtotal: Decimal,
) -> AppliedDiscounts:
    """
    Resolve every discount against the quote amounts.

    Shipping discounts are applied first and reduce only the shipping legs.
    Order discounts then apply to what remains of the pre-fee subtotal.
    Discounts of the same scope stack in the given order, each on the
    amount left by the previous one.

    Args:
        discounts: Discounts requested for the quote.
        shipping_total: Gross shipping legs.
        pre_fee_subtotal: Subtotal before discounts and gateway fee.

    Returns:
        AppliedDiscounts with both amounts and the codes that took effect.
    """
    shipping_discount = ZERO
    order_discount = ZERO
    codes: list[str] = []

    for spec in (d for d in discounts if d.scope == DiscountScope.SHIPPING):
        amount = discount_value(spec, shipping_total - shipping_discount)
        shipping_discount += amount
        if amount > ZERO and spec.code:
            codes.append(spec.code)

    for spec in (d for d in discounts if d.scope == DiscountScope.ORDER):
        amount = discount_value(spec, pre_fee_subtotal - shipping_discount - order_discount)
        order_discount += amount
        if amount > ZERO and spec.code:
            codes.append(spec.code)

    return AppliedDiscounts(
        shipping_discount=shipping_discount,
        order_discount=order_discount,
        codes=tuple(codes),
    )
