"""Quote calculation engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.logging import get_logger
from core.result import Failure, Result, failure, success
from services.currency.rounding import ZERO, round_money
from services.errors import (
    CalculationError,
    ErrorCode,
    FieldViolation,
    QuoteError,
    SourceUnavailableError,
    ValidationError,
)
from services.quotes.discounts import apply_discounts
from services.quotes.types import (
    QuoteBreakdown,
    QuoteOptions,
    QuoteWarning,
    ShippingComponents,
)
from services.quotes.validation import validate_quote_request
from services.taxes.service import PerItemTaxCalculator
from services.taxes.types import ItemWarning

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from services.classification.registry import ClassificationRegistry
    from services.currency.service import CurrencyConversionService
    from services.quotes.tables import (
        GatewayFeeSchedule,
        GatewayFees,
        InsurancePolicy,
        ShippingRateTable,
    )
    from services.quotes.types import DiscountSpec, RouteParams
    from services.taxes.types import LineItem, TaxedLineItem

logger = get_logger(__name__)


class QuoteCalculationEngine:
    """
    Turns line items and route parameters into a priced quote.

    Every collaborator is passed in; the engine keeps no state between
    calls. One exchange-rate snapshot and one registry snapshot are pinned
    at the start of each calculation and used throughout, so the same
    inputs against the same snapshots always give an identical breakdown.

    Example:
        >>> engine = QuoteCalculationEngine(
        ...     tax_calculator=calculator,
        ...     conversion_service=conversions,
        ...     registry=registry,
        ...     shipping_rates=StaticShippingRateTable(routes),
        ...     gateway_fees=StaticGatewayFeeSchedule(),
        ...     insurance_policy=PercentageInsurancePolicy(),
        ... )
        >>> result = engine.calculate_quote(items, RouteParams("NP", "IN"))
        >>> result.unwrap().origin_currency
        'NPR'
    """

    def __init__(
        self,
        tax_calculator: PerItemTaxCalculator,
        conversion_service: CurrencyConversionService,
        registry: ClassificationRegistry,
        shipping_rates: ShippingRateTable,
        gateway_fees: GatewayFeeSchedule,
        insurance_policy: InsurancePolicy,
        gateway_bypass: Iterable[str] = (),
    ) -> None:
        """
        Initialize the engine.

        Args:
            tax_calculator: Per-item basis, duty and tax.
            conversion_service: Exchange rates for display and USD totals.
            registry: Classification registry (for snapshot pinning).
            shipping_rates: Route charges.
            gateway_fees: Payment gateway fees.
            insurance_policy: Insurance premium function.
            gateway_bypass: Gateway codes allowed to quote while unconfigured.
        """
        self._taxes = tax_calculator
        self._conversions = conversion_service
        self._registry = registry
        self._shipping = shipping_rates
        self._gateways = gateway_fees
        self._insurance = insurance_policy
        self._gateway_bypass = frozenset(code.lower() for code in gateway_bypass)

    def calculate_quote(
        self,
        items: Sequence[LineItem],
        route: RouteParams,
        discounts: Sequence[DiscountSpec] = (),
        options: QuoteOptions | None = None,
    ) -> Result[QuoteBreakdown, QuoteError]:
        """
        Calculate a complete quote.

        Any fatal condition aborts the whole calculation; no partial
        breakdown is ever returned.

        Args:
            items: Line items priced in the origin currency.
            route: Route, shipping and payment parameters.
            discounts: Order and shipping discounts.
            options: Calculation options.

        Returns:
            Result containing the QuoteBreakdown, or ValidationError,
            InvalidLineItemError, RateNotFoundError,
            ClassificationNotFoundError, SourceUnavailableError or
            CalculationError.
        """
        try:
            return self._calculate(items, route, discounts, options or QuoteOptions())
        except ArithmeticError as e:
            logger.error("Quote arithmetic failed", error=str(e), error_type=type(e).__name__)
            return failure(CalculationError("Quote arithmetic failed", details=str(e)))

    def _calculate(
        self,
        items: Sequence[LineItem],
        route: RouteParams,
        discounts: Sequence[DiscountSpec],
        options: QuoteOptions,
    ) -> Result[QuoteBreakdown, QuoteError]:
        violations = validate_quote_request(items, route, discounts)
        # An unconfigured gateway is reported with the other field violations
        gateway = self._resolve_gateway(route.payment_gateway)
        if isinstance(gateway, Failure) and gateway.error.code == ErrorCode.VALIDATION:
            violations.extend(gateway.error.violations)
        if violations:
            logger.info(
                "Quote request rejected",
                violations=[v.field for v in violations],
            )
            return failure(ValidationError(violations))

        warnings: list[QuoteWarning] = []

        if isinstance(gateway, Failure):
            return gateway
        if not gateway.value.is_configured:
            warnings.append(QuoteWarning.GATEWAY_CONFIGURATION_BYPASSED)

        rates = self._conversions.snapshot()
        if isinstance(rates, Failure):
            return rates
        rate_snapshot = rates.value

        registry_snapshot = self._registry.snapshot()
        if registry_snapshot is None:
            return failure(SourceUnavailableError("classifications", details="no snapshot loaded"))

        origin_rate = self._conversions.get_rate(route.origin_country, rate_snapshot)
        if isinstance(origin_rate, Failure):
            return origin_rate
        display_rate = self._conversions.get_rate(route.customer_country, rate_snapshot)
        if isinstance(display_rate, Failure):
            return display_rate
        cross_rate = self._conversions.rate_between(
            route.origin_country, route.customer_country, rate_snapshot
        )
        if isinstance(cross_rate, Failure):
            return cross_rate

        taxed_result = self._taxes.calculate_items(
            items, route.origin_country, rate_snapshot, registry_snapshot
        )
        if isinstance(taxed_result, Failure):
            return taxed_result
        taxed = taxed_result.value

        route_rates = self._shipping.get_route(route.origin_country, route.destination_country)
        if isinstance(route_rates, Failure):
            return route_rates
        charges = route_rates.value

        items_subtotal = round_money(sum((t.declared_total for t in taxed), ZERO))
        total_duty = sum((t.duty_amount for t in taxed), ZERO)
        total_tax = sum((t.tax_amount for t in taxed), ZERO)
        total_weight = sum((t.item.weight_kg for t in taxed), ZERO)

        shipping = ShippingComponents(
            merchant=round_money(charges.merchant_shipping),
            international=charges.international_cost(total_weight, route.shipping_method),
            domestic=charges.domestic_cost(route.delivery_zone),
        )
        handling = charges.handling_charge(items_subtotal)
        insurance = self._insurance.premium(items_subtotal) if options.insurance_enabled else ZERO

        subtotal = (
            items_subtotal + total_duty + total_tax + shipping.total + handling + insurance
        )

        applied = apply_discounts(discounts, shipping.total, subtotal)
        discounted_subtotal = subtotal - applied.total
        if discounted_subtotal < ZERO:
            return failure(
                CalculationError(
                    "Discounts exceed the quote subtotal",
                    details=f"subtotal={subtotal} discounts={applied.total}",
                )
            )

        gateway_fee = gateway.value.fee_for(discounted_subtotal)
        final_total = discounted_subtotal + gateway_fee

        warnings.extend(self._item_warnings(taxed))

        breakdown = QuoteBreakdown(
            items=tuple(taxed),
            items_subtotal=items_subtotal,
            total_duty=total_duty,
            total_tax=total_tax,
            shipping=shipping,
            handling_charge=handling,
            insurance_amount=insurance,
            subtotal=subtotal,
            shipping_discount=applied.shipping_discount,
            order_discount=applied.order_discount,
            discount_amount=-applied.total,
            payment_gateway=gateway.value.code,
            payment_gateway_fee=gateway_fee,
            final_total=final_total,
            origin_currency=origin_rate.value.currency_code,
            customer_display_currency=display_rate.value.currency_code,
            exchange_rate_used=cross_rate.value,
            final_total_display=round_money(final_total * cross_rate.value),
            final_total_usd=round_money(final_total / origin_rate.value.rate_from_usd),
            total_weight_kg=total_weight,
            tax_summary=PerItemTaxCalculator.summarize(taxed),
            applied_discount_codes=applied.codes,
            warnings=tuple(warnings),
            rate_snapshot_version=rate_snapshot.version,
            registry_snapshot_version=registry_snapshot.version,
        )

        logger.info(
            "Quote calculated",
            items=len(taxed),
            origin=route.origin_country,
            destination=route.destination_country,
            subtotal=str(subtotal),
            final_total=str(final_total),
            currency=breakdown.origin_currency,
            warnings=[w.value for w in breakdown.warnings],
        )
        return success(breakdown)

    def _resolve_gateway(self, code: str) -> Result[GatewayFees, QuoteError]:
        """Look up a gateway, refusing unconfigured ones unless explicitly bypassed."""
        result = self._gateways.get_gateway(code)
        if isinstance(result, Failure):
            return result

        gateway = result.value
        if gateway.is_configured:
            return result
        if gateway.code.lower() in self._gateway_bypass:
            logger.warning("Unconfigured gateway allowed by bypass list", gateway=gateway.code)
            return result

        logger.info("Unconfigured gateway rejected", gateway=gateway.code)
        return failure(
            ValidationError(
                [FieldViolation("route.payment_gateway", f"{gateway.code} is not configured")]
            )
        )

    @staticmethod
    def _item_warnings(taxed: Sequence[TaxedLineItem]) -> list[QuoteWarning]:
        """Lift item notices that matter at quote level, in a fixed order."""
        present = {w for t in taxed for w in t.warnings}
        mapping = (
            (ItemWarning.MINIMUM_VALUATION_APPLIED, QuoteWarning.MINIMUM_VALUATION_APPLIED),
            (ItemWarning.FALLBACK_RATES_USED, QuoteWarning.FALLBACK_RATES_USED),
            (ItemWarning.FALLBACK_POLICY_EXPIRED, QuoteWarning.FALLBACK_POLICY_EXPIRED),
        )
        return [quote for item, quote in mapping if item in present]
