"""Request-shape validation for quote calculations."""

from __future__ import annotations

import re
from decimal import Decimal
from typing import TYPE_CHECKING

from services.errors import FieldViolation
from services.quotes.types import DeliveryZone, DiscountKind, DiscountScope, ShippingMethod

if TYPE_CHECKING:
    from collections.abc import Sequence

    from services.quotes.types import DiscountSpec, RouteParams
    from services.taxes.types import LineItem

_COUNTRY_CODE = re.compile(r"^[A-Z]{2}$")


def _check_country(field: str, value: str | None, violations: list[FieldViolation]) -> None:
    if not isinstance(value, str) or not _COUNTRY_CODE.match(value):
        violations.append(FieldViolation(field, "must be a two-letter uppercase country code"))


def _is_finite(value: object) -> bool:
    return isinstance(value, Decimal) and value.is_finite()


def validate_quote_request(
    items: Sequence[LineItem],
    route: RouteParams,
    discounts: Sequence[DiscountSpec] = (),
) -> list[FieldViolation]:
    """
    Check the shape of a quote request.

    Every violation is collected; nothing stops at the first one. Price and
    quantity are domain constraints of each item and are checked by the tax
    calculator instead.

    Returns:
        All violations, in field order (empty when the request is valid).
    """
    violations: list[FieldViolation] = []

    if not items:
        violations.append(FieldViolation("items", "must contain at least one item"))

    seen_ids: set[str] = set()
    for index, item in enumerate(items):
        prefix = f"items.{index}"
        if not item.id:
            violations.append(FieldViolation(f"{prefix}.id", "cannot be empty"))
        elif item.id in seen_ids:
            violations.append(FieldViolation(f"{prefix}.id", f"duplicate item id {item.id}"))
        seen_ids.add(item.id)
        if not item.classification_code or not item.classification_code.strip():
            violations.append(FieldViolation(f"{prefix}.classification_code", "cannot be empty"))
        if not _is_finite(item.weight_kg):
            violations.append(FieldViolation(f"{prefix}.weight_kg", "must be a finite decimal"))
        elif item.weight_kg < 0:
            violations.append(
                FieldViolation(f"{prefix}.weight_kg", "must be greater than or equal to 0")
            )

    _check_country("route.origin_country", route.origin_country, violations)
    _check_country("route.destination_country", route.destination_country, violations)
    if route.display_country is not None:
        _check_country("route.display_country", route.display_country, violations)
    if not isinstance(route.shipping_method, ShippingMethod):
        violations.append(FieldViolation("route.shipping_method", "unknown shipping method"))
    if not isinstance(route.delivery_zone, DeliveryZone):
        violations.append(FieldViolation("route.delivery_zone", "unknown delivery zone"))
    if not route.payment_gateway or not route.payment_gateway.strip():
        violations.append(FieldViolation("route.payment_gateway", "cannot be empty"))

    for index, spec in enumerate(discounts):
        prefix = f"discounts.{index}"
        if not isinstance(spec.scope, DiscountScope):
            violations.append(FieldViolation(f"{prefix}.scope", "unknown discount scope"))
        if not isinstance(spec.kind, DiscountKind):
            violations.append(FieldViolation(f"{prefix}.kind", "unknown discount kind"))
        elif spec.kind == DiscountKind.FREE and spec.scope == DiscountScope.ORDER:
            violations.append(FieldViolation(f"{prefix}.kind", "free applies to shipping only"))
        if not _is_finite(spec.value):
            violations.append(FieldViolation(f"{prefix}.value", "must be a finite decimal"))

    return violations
