"""Types for the per-item tax calculator."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from services.currency.types import Conversion


class BasisMethod(str, Enum):
    """Which figure the taxable basis was taken from."""

    ORIGINAL_PRICE = "original_price"
    MINIMUM_VALUATION = "minimum_valuation"
    HIGHER_OF_BOTH = "higher_of_both"


class ItemWarning(str, Enum):
    """Notices attached to a taxed item for the customer or an administrator."""

    MINIMUM_VALUATION_APPLIED = "minimum_valuation_applied"
    ZERO_RATED = "zero_rated"
    FALLBACK_RATES_USED = "fallback_rates_used"
    FALLBACK_POLICY_EXPIRED = "fallback_policy_expired"
    RATE_OVERRIDE_APPLIED = "rate_override_applied"


@dataclass(frozen=True, slots=True)
class LineItem:
    """
    A purchased product line, priced in the origin currency.

    Attributes:
        id: Caller identifier for the line.
        name: Product name.
        classification_code: Customs (HSN) code.
        declared_unit_price: Unit price as declared by the merchant.
        quantity: Number of units.
        weight_kg: Total weight of the line in kilograms.
    """

    id: str
    name: str
    classification_code: str
    declared_unit_price: Decimal
    quantity: int
    weight_kg: Decimal = Decimal("0")

    @property
    def declared_total(self) -> Decimal:
        """Declared unit price times quantity, unrounded."""
        return self.declared_unit_price * self.quantity


@dataclass(frozen=True, slots=True)
class ValuationOption:
    """
    Duty and tax under one candidate basis, kept for administrator review.

    Attributes:
        method: ORIGINAL_PRICE for the declared price, MINIMUM_VALUATION for
            the converted floor.
        basis: Candidate taxable basis.
        duty_amount: Duty on that basis.
        tax_amount: Tax on that basis.
    """

    method: BasisMethod
    basis: Decimal
    duty_amount: Decimal
    tax_amount: Decimal

    def to_dict(self) -> dict[str, str]:
        """Return a JSON-safe representation."""
        return {
            "method": self.method.value,
            "basis": str(self.basis),
            "duty_amount": str(self.duty_amount),
            "tax_amount": str(self.tax_amount),
        }


@dataclass(frozen=True, slots=True)
class TaxedLineItem:
    """
    A line item with its taxable basis, duty and tax.

    All amounts are in the origin currency. The basis is never rounded;
    duty and tax are rounded to cents.

    Attributes:
        item: The input line.
        declared_total: Unit price times quantity.
        taxable_basis: Amount the rates were applied to.
        basis_method: Which figure the basis came from.
        duty_rate_percent: Duty rate applied.
        tax_rate_percent: Tax rate applied.
        duty_amount: Duty, rounded half-up to cents.
        tax_amount: Tax, rounded half-up to cents.
        category: Registry category, or None for unclassified items.
        classification_missing: Whether fallback rates were used.
        conversion: Minimum valuation conversion, when one was performed.
        confidence_score: Confidence in the computed basis and rates (0..1).
        warnings: Notices for review.
        fallback_policy: Name of the fallback policy applied, if any.
        applied_overrides: Labels of the rate overrides applied.
        valuation_options: Duty and tax under the declared price and, when
            a floor was converted, under the floor.
    """

    item: LineItem
    declared_total: Decimal
    taxable_basis: Decimal
    basis_method: BasisMethod
    duty_rate_percent: Decimal
    tax_rate_percent: Decimal
    duty_amount: Decimal
    tax_amount: Decimal
    category: str | None = None
    classification_missing: bool = False
    conversion: Conversion | None = None
    confidence_score: float = 1.0
    warnings: tuple[ItemWarning, ...] = ()
    fallback_policy: str | None = None
    applied_overrides: tuple[str, ...] = ()
    valuation_options: tuple[ValuationOption, ...] = ()

    @property
    def converted_minimum(self) -> Decimal | None:
        """Minimum valuation in the origin currency, when converted."""
        return self.conversion.converted_amount if self.conversion else None

    @property
    def minimum_valuation_applied(self) -> bool:
        """Whether the minimum valuation replaced the declared price."""
        return self.basis_method == BasisMethod.MINIMUM_VALUATION

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe representation with Decimals as strings."""
        return {
            "id": self.item.id,
            "name": self.item.name,
            "classification_code": self.item.classification_code,
            "declared_unit_price": str(self.item.declared_unit_price),
            "quantity": self.item.quantity,
            "weight_kg": str(self.item.weight_kg),
            "declared_total": str(self.declared_total),
            "taxable_basis": str(self.taxable_basis),
            "basis_method": self.basis_method.value,
            "converted_minimum": (
                str(self.converted_minimum) if self.converted_minimum is not None else None
            ),
            "conversion": self.conversion.describe() if self.conversion else None,
            "duty_rate_percent": str(self.duty_rate_percent),
            "tax_rate_percent": str(self.tax_rate_percent),
            "duty_amount": str(self.duty_amount),
            "tax_amount": str(self.tax_amount),
            "category": self.category,
            "classification_missing": self.classification_missing,
            "confidence_score": self.confidence_score,
            "warnings": [w.value for w in self.warnings],
            "fallback_policy": self.fallback_policy,
            "applied_overrides": list(self.applied_overrides),
            "valuation_options": [option.to_dict() for option in self.valuation_options],
        }


@dataclass(frozen=True, slots=True)
class TaxSummary:
    """
    Aggregate view over a set of taxed items.

    Attributes:
        total_items: Number of items.
        minimum_valuation_items: Items taxed on their minimum valuation.
        conversions_applied: Items whose minimum valuation was converted.
        items_with_warnings: Items carrying at least one warning.
        missing_classifications: Items taxed with fallback rates.
        average_confidence: Mean confidence score (0 for no items).
        total_duty: Sum of duty amounts.
        total_tax: Sum of tax amounts.
    """

    total_items: int = 0
    minimum_valuation_items: int = 0
    conversions_applied: int = 0
    items_with_warnings: int = 0
    missing_classifications: int = 0
    average_confidence: float = 0.0
    total_duty: Decimal = field(default_factory=lambda: Decimal("0"))
    total_tax: Decimal = field(default_factory=lambda: Decimal("0"))

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe representation."""
        return {
            "total_items": self.total_items,
            "minimum_valuation_items": self.minimum_valuation_items,
            "conversions_applied": self.conversions_applied,
            "items_with_warnings": self.items_with_warnings,
            "missing_classifications": self.missing_classifications,
            "average_confidence": self.average_confidence,
            "total_duty": str(self.total_duty),
            "total_tax": str(self.total_tax),
        }
