"""Fallback rates and administrative rate overrides."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from services.classification.types import ClassificationEntry

_HUNDRED = Decimal("100")


def _check_rate(name: str, value: Decimal | None) -> None:
    if value is not None and not Decimal("0") <= value <= _HUNDRED:
        msg = f"{name} must be between 0 and 100, got {value}"
        raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class FallbackTaxPolicy:
    """
    Named rate set applied to items whose classification code is unknown.

    The policy is meant to be temporary: `review_by` records when it should
    be revisited. Past that date the policy is expired; an expired policy
    still applies (with a warning) unless `strict_after_expiry` is set, in
    which case unknown codes become fatal again.

    Attributes:
        name: Policy name shown in warnings and logs (e.g. "vat-regime-default").
        duty_rate_percent: Duty rate applied to unclassified items.
        tax_rate_percent: VAT/GST rate applied to unclassified items.
        review_by: Date after which the policy is stale, or None for no expiry.
        strict_after_expiry: Refuse unclassified items once stale.
    """

    name: str
    duty_rate_percent: Decimal
    tax_rate_percent: Decimal
    review_by: date | None = None
    strict_after_expiry: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            msg = "Fallback policy name cannot be empty"
            raise ValueError(msg)
        _check_rate("duty_rate_percent", self.duty_rate_percent)
        _check_rate("tax_rate_percent", self.tax_rate_percent)

    def is_expired(self, today: date | None = None) -> bool:
        """Whether the review date has passed."""
        if self.review_by is None:
            return False
        return (today or date.today()) > self.review_by

    def allows_quoting(self, today: date | None = None) -> bool:
        """Whether unclassified items may still be quoted with this policy."""
        return not (self.strict_after_expiry and self.is_expired(today))


class OverrideScope(str, Enum):
    """What a rate override applies to, from most general to most specific."""

    GLOBAL = "global"
    CATEGORY = "category"
    CODE = "code"


_PRECEDENCE = {OverrideScope.GLOBAL: 0, OverrideScope.CATEGORY: 1, OverrideScope.CODE: 2}


@dataclass(frozen=True, slots=True)
class TaxRateOverride:
    """
    Administrative replacement for registry duty/tax rates.

    Attributes:
        scope: Whether the override targets all entries, a category or one code.
        identifier: Category name or classification code (empty for global).
        duty_rate_percent: Replacement duty rate, or None to keep the entry's.
        tax_rate_percent: Replacement tax rate, or None to keep the entry's.
    """

    scope: OverrideScope
    identifier: str = ""
    duty_rate_percent: Decimal | None = None
    tax_rate_percent: Decimal | None = None

    def __post_init__(self) -> None:
        if self.duty_rate_percent is None and self.tax_rate_percent is None:
            msg = "Override must replace at least one rate"
            raise ValueError(msg)
        if self.scope != OverrideScope.GLOBAL and not self.identifier:
            msg = f"{self.scope.value} override requires an identifier"
            raise ValueError(msg)
        _check_rate("duty_rate_percent", self.duty_rate_percent)
        _check_rate("tax_rate_percent", self.tax_rate_percent)

    @property
    def label(self) -> str:
        """Short description used in item records, e.g. "category:clothing"."""
        if self.scope == OverrideScope.GLOBAL:
            return OverrideScope.GLOBAL.value
        return f"{self.scope.value}:{self.identifier}"

    def matches(self, entry: ClassificationEntry) -> bool:
        """Whether this override applies to a registry entry."""
        if self.scope == OverrideScope.GLOBAL:
            return True
        if self.scope == OverrideScope.CATEGORY:
            return self.identifier.lower() == entry.category.lower()
        return self.identifier.replace(".", "").replace(" ", "").upper() == entry.code


def apply_overrides(
    entry: ClassificationEntry,
    overrides: Iterable[TaxRateOverride],
) -> tuple[Decimal, Decimal, tuple[str, ...]]:
    """
    Resolve the duty and tax rates for an entry.

    Overrides are applied from most general to most specific, so a code
    override beats a category one, which beats a global one.

    Returns:
        Tuple of (duty rate, tax rate, labels of the overrides applied).
    """
    duty = entry.duty_rate_percent
    tax = entry.tax_rate_percent
    applied: list[str] = []

    for override in sorted(overrides, key=lambda o: _PRECEDENCE[o.scope]):
        if not override.matches(entry):
            continue
        if override.duty_rate_percent is not None:
            duty = override.duty_rate_percent
        if override.tax_rate_percent is not None:
            tax = override.tax_rate_percent
        applied.append(override.label)

    return duty, tax, tuple(applied)
