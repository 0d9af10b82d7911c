"""Quote calculation engine package."""

from services.quotes.discounts import AppliedDiscounts, apply_discounts
from services.quotes.engine import QuoteCalculationEngine
from services.quotes.factory import (
    QuoteServices,
    QuoteServicesHolder,
    build_quote_engine,
    load_quote_services,
)
from services.quotes.tables import (
    DEFAULT_GATEWAY_FEES,
    DatabaseGatewayFeeSchedule,
    DatabaseShippingRateTable,
    GatewayFees,
    GatewayFeeSchedule,
    InsurancePolicy,
    PercentageInsurancePolicy,
    RouteRates,
    ShippingRateTable,
    StaticGatewayFeeSchedule,
    StaticShippingRateTable,
)
from services.quotes.types import (
    DeliveryZone,
    DiscountKind,
    DiscountScope,
    DiscountSpec,
    QuoteBreakdown,
    QuoteOptions,
    QuoteWarning,
    RouteParams,
    ShippingComponents,
    ShippingMethod,
)
from services.quotes.validation import validate_quote_request

__all__ = [
    "DEFAULT_GATEWAY_FEES",
    "AppliedDiscounts",
    "DatabaseGatewayFeeSchedule",
    "DatabaseShippingRateTable",
    "DeliveryZone",
    "DiscountKind",
    "DiscountScope",
    "DiscountSpec",
    "GatewayFeeSchedule",
    "GatewayFees",
    "InsurancePolicy",
    "PercentageInsurancePolicy",
    "QuoteBreakdown",
    "QuoteCalculationEngine",
    "QuoteOptions",
    "QuoteServices",
    "QuoteServicesHolder",
    "QuoteWarning",
    "RouteParams",
    "RouteRates",
    "ShippingComponents",
    "ShippingMethod",
    "ShippingRateTable",
    "StaticGatewayFeeSchedule",
    "StaticShippingRateTable",
    "apply_discounts",
    "build_quote_engine",
    "load_quote_services",
    "validate_quote_request",
]
