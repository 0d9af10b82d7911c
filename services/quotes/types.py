"""Types for the quote calculation engine."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from services.taxes.types import TaxedLineItem, TaxSummary


class ShippingMethod(str, Enum):
    """International shipping service level."""

    STANDARD = "standard"
    EXPRESS = "express"
    ECONOMY = "economy"


class DeliveryZone(str, Enum):
    """Destination delivery zone for the domestic leg."""

    URBAN = "urban"
    RURAL = "rural"


class DiscountScope(str, Enum):
    """What a discount reduces."""

    ORDER = "order"
    SHIPPING = "shipping"


class DiscountKind(str, Enum):
    """How a discount value is interpreted."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE = "free"


class QuoteWarning(str, Enum):
    """Quote-level notices."""

    GATEWAY_CONFIGURATION_BYPASSED = "gateway_configuration_bypassed"
    FALLBACK_RATES_USED = "fallback_rates_used"
    FALLBACK_POLICY_EXPIRED = "fallback_policy_expired"
    MINIMUM_VALUATION_APPLIED = "minimum_valuation_applied"


@dataclass(frozen=True, slots=True)
class RouteParams:
    """
    Route and payment parameters of a quote.

    Attributes:
        origin_country: Country items are bought in (its currency prices the quote).
        destination_country: Country items are delivered to.
        shipping_method: International shipping service level.
        delivery_zone: Zone of the destination address.
        payment_gateway: Gateway code the customer pays through.
        display_country: Country whose currency the total is shown in
            (defaults to the destination).
    """

    origin_country: str
    destination_country: str
    shipping_method: ShippingMethod = ShippingMethod.STANDARD
    delivery_zone: DeliveryZone = DeliveryZone.URBAN
    payment_gateway: str = "stripe"
    display_country: str | None = None

    @property
    def customer_country(self) -> str:
        """Country whose currency the customer sees."""
        return self.display_country or self.destination_country


@dataclass(frozen=True, slots=True)
class DiscountSpec:
    """
    A discount applied once per quote.

    Attributes:
        scope: Order or shipping.
        kind: Percentage, fixed amount (origin currency) or free.
        value: Percentage points or amount; ignored for free.
        code: Promotion code, if any.
    """

    scope: DiscountScope
    kind: DiscountKind
    value: Decimal = Decimal("0")
    code: str | None = None


@dataclass(frozen=True, slots=True)
class QuoteOptions:
    """
    Optional behaviour of a quote calculation.

    Attributes:
        insurance_enabled: Whether to add shipping insurance.
    """

    insurance_enabled: bool = False


@dataclass(frozen=True, slots=True)
class ShippingComponents:
    """
    Gross shipping legs in the origin currency.

    Attributes:
        merchant: Merchant to warehouse.
        international: Warehouse to destination country.
        domestic: Last-mile delivery in the destination country.
    """

    merchant: Decimal
    international: Decimal
    domestic: Decimal

    @property
    def total(self) -> Decimal:
        """Sum of all legs."""
        return self.merchant + self.international + self.domestic

    def to_dict(self) -> dict[str, str]:
        """Return a JSON-safe representation."""
        return {
            "merchant": str(self.merchant),
            "international": str(self.international),
            "domestic": str(self.domestic),
            "total": str(self.total),
        }


@dataclass(frozen=True, slots=True)
class QuoteBreakdown:
    """
    Complete priced quote.

    Amounts are in the origin currency unless named otherwise. The
    breakdown satisfies:

        subtotal == items_subtotal + total_duty + total_tax
                    + shipping.total + handling_charge + insurance_amount
        final_total == subtotal - |discount_amount| + payment_gateway_fee

    Attributes:
        items: Taxed line items in input order.
        items_subtotal: Sum of declared totals, rounded to cents.
        total_duty: Sum of item duty.
        total_tax: Sum of item tax.
        shipping: Gross shipping legs.
        handling_charge: Handling fee.
        insurance_amount: Insurance premium (0 when not enabled).
        subtotal: Pre-discount, pre-fee total.
        shipping_discount: Amount taken off shipping.
        order_discount: Amount taken off the order.
        discount_amount: Total discount, as a non-positive number.
        payment_gateway: Gateway code used.
        payment_gateway_fee: Gateway fee on the discounted subtotal.
        final_total: Amount payable in the origin currency.
        origin_currency: Currency the quote is priced in.
        customer_display_currency: Currency shown to the customer.
        exchange_rate_used: Units of display currency per origin unit.
        final_total_display: Final total in the display currency.
        final_total_usd: Final total in USD.
        total_weight_kg: Weight of all items.
        applied_discount_codes: Codes of the discounts applied.
        tax_summary: Per-item aggregate statistics.
        warnings: Quote-level notices.
        rate_snapshot_version: Exchange-rate snapshot the quote used.
        registry_snapshot_version: Registry snapshot the quote used.
    """

    items: tuple[TaxedLineItem, ...]
    items_subtotal: Decimal
    total_duty: Decimal
    total_tax: Decimal
    shipping: ShippingComponents
    handling_charge: Decimal
    insurance_amount: Decimal
    subtotal: Decimal
    shipping_discount: Decimal
    order_discount: Decimal
    discount_amount: Decimal
    payment_gateway: str
    payment_gateway_fee: Decimal
    final_total: Decimal
    origin_currency: str
    customer_display_currency: str
    exchange_rate_used: Decimal
    final_total_display: Decimal
    final_total_usd: Decimal
    total_weight_kg: Decimal
    tax_summary: TaxSummary
    applied_discount_codes: tuple[str, ...] = ()
    warnings: tuple[QuoteWarning, ...] = ()
    rate_snapshot_version: int = 0
    registry_snapshot_version: int = 0

    @property
    def has_missing_classifications(self) -> bool:
        """Whether any item was taxed with fallback rates."""
        return any(item.classification_missing for item in self.items)

    def to_dict(self) -> dict[str, Any]:
        """Return a deterministic JSON-safe representation with Decimals as strings."""
        return {
            "items": [item.to_dict() for item in self.items],
            "items_subtotal": str(self.items_subtotal),
            "total_duty": str(self.total_duty),
            "total_tax": str(self.total_tax),
            "shipping": self.shipping.to_dict(),
            "handling_charge": str(self.handling_charge),
            "insurance_amount": str(self.insurance_amount),
            "subtotal": str(self.subtotal),
            "shipping_discount": str(self.shipping_discount),
            "order_discount": str(self.order_discount),
            "discount_amount": str(self.discount_amount),
            "payment_gateway": self.payment_gateway,
            "payment_gateway_fee": str(self.payment_gateway_fee),
            "final_total": str(self.final_total),
            "origin_currency": self.origin_currency,
            "customer_display_currency": self.customer_display_currency,
            "exchange_rate_used": str(self.exchange_rate_used),
            "final_total_display": str(self.final_total_display),
            "final_total_usd": str(self.final_total_usd),
            "total_weight_kg": str(self.total_weight_kg),
            "applied_discount_codes": list(self.applied_discount_codes),
            "tax_summary": self.tax_summary.to_dict(),
            "warnings": [w.value for w in self.warnings],
            "rate_snapshot_version": self.rate_snapshot_version,
            "registry_snapshot_version": self.registry_snapshot_version,
        }
