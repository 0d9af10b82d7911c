"""Per-item tax calculation service package."""

from services.taxes.policy import FallbackTaxPolicy, OverrideScope, TaxRateOverride
from services.taxes.service import PerItemTaxCalculator, validate_line_item
from services.taxes.types import (
    BasisMethod,
    ItemWarning,
    LineItem,
    TaxedLineItem,
    TaxSummary,
    ValuationOption,
)

__all__ = [
    "BasisMethod",
    "FallbackTaxPolicy",
    "ItemWarning",
    "LineItem",
    "OverrideScope",
    "PerItemTaxCalculator",
    "TaxRateOverride",
    "TaxSummary",
    "TaxedLineItem",
    "ValuationOption",
    "validate_line_item",
]
