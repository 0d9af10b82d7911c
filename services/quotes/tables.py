"""Shipping, insurance and payment-gateway rate tables."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from core.logging import get_logger
from core.result import Result, failure, success
from services.currency.rounding import ZERO, round_money
from services.errors import QuoteError, RateNotFoundError, SourceUnavailableError
from services.quotes.types import DeliveryZone, ShippingMethod

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = get_logger(__name__)

_HUNDRED = Decimal("100")


@dataclass(frozen=True, slots=True)
class RouteRates:
    """
    Shipping and handling charges for one origin/destination pair.

    All amounts are in the origin currency.

    Attributes:
        origin_country: Country items ship from.
        destination_country: Country items ship to.
        merchant_shipping: Flat merchant-to-warehouse charge.
        standard_rate_per_kg: International rate for standard shipping.
        express_rate_per_kg: International rate for express shipping.
        economy_rate_per_kg: International rate for economy shipping.
        minimum_international: Minimum international charge.
        domestic_urban: Last-mile charge for urban addresses.
        domestic_rural: Last-mile charge for rural addresses.
        handling_fixed: Fixed part of the handling charge.
        handling_percent: Handling charge as a percentage of the items subtotal.
    """

    origin_country: str
    destination_country: str
    merchant_shipping: Decimal
    standard_rate_per_kg: Decimal
    express_rate_per_kg: Decimal
    economy_rate_per_kg: Decimal
    minimum_international: Decimal = ZERO
    domestic_urban: Decimal = ZERO
    domestic_rural: Decimal = ZERO
    handling_fixed: Decimal = ZERO
    handling_percent: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in (
            "merchant_shipping",
            "standard_rate_per_kg",
            "express_rate_per_kg",
            "economy_rate_per_kg",
            "minimum_international",
            "domestic_urban",
            "domestic_rural",
            "handling_fixed",
            "handling_percent",
        ):
            if getattr(self, name) < ZERO:
                msg = f"{name} cannot be negative"
                raise ValueError(msg)

    @property
    def key(self) -> str:
        """Route key, e.g. "NP-IN"."""
        return f"{self.origin_country}-{self.destination_country}"

    def rate_per_kg(self, method: ShippingMethod) -> Decimal:
        """International rate for a shipping method."""
        match method:
            case ShippingMethod.EXPRESS:
                return self.express_rate_per_kg
            case ShippingMethod.ECONOMY:
                return self.economy_rate_per_kg
            case _:
                return self.standard_rate_per_kg

    def international_cost(self, weight_kg: Decimal, method: ShippingMethod) -> Decimal:
        """Weight-based international charge, never below the route minimum."""
        return round_money(max(weight_kg * self.rate_per_kg(method), self.minimum_international))

    def domestic_cost(self, zone: DeliveryZone) -> Decimal:
        """Last-mile charge for a delivery zone."""
        cost = self.domestic_rural if zone == DeliveryZone.RURAL else self.domestic_urban
        return round_money(cost)

    def handling_charge(self, items_subtotal: Decimal) -> Decimal:
        """Fixed handling plus a percentage of the items subtotal."""
        return round_money(self.handling_fixed + items_subtotal * self.handling_percent / _HUNDRED)


@dataclass(frozen=True, slots=True)
class GatewayFees:
    """
    Fee schedule of one payment gateway.

    Attributes:
        code: Gateway code (lowercase).
        name: Display name.
        fee_percent: Percentage fee on the charged amount.
        fee_fixed: Fixed fee per payment, in the origin currency.
        is_configured: Whether the gateway's credentials and fees are complete.
    """

    code: str
    name: str
    fee_percent: Decimal
    fee_fixed: Decimal = ZERO
    is_configured: bool = True

    def __post_init__(self) -> None:
        if not self.code:
            msg = "Gateway code cannot be empty"
            raise ValueError(msg)
        if self.fee_percent < ZERO or self.fee_fixed < ZERO:
            msg = "Gateway fees cannot be negative"
            raise ValueError(msg)

    def fee_for(self, amount: Decimal) -> Decimal:
        """Fee charged on an amount, rounded to cents."""
        if amount <= ZERO:
            return ZERO
        return round_money(amount * self.fee_percent / _HUNDRED + self.fee_fixed)


DEFAULT_GATEWAY_FEES: tuple[GatewayFees, ...] = (
    GatewayFees("stripe", "Stripe", Decimal("2.9"), Decimal("0.30")),
    GatewayFees("paypal", "PayPal", Decimal("2.9"), Decimal("0.30")),
    GatewayFees("esewa", "eSewa", Decimal("2.0")),
    GatewayFees("khalti", "Khalti", Decimal("2.5")),
    GatewayFees("payu", "PayU", Decimal("2.0")),
)


@runtime_checkable
class ShippingRateTable(Protocol):
    """Read-only lookup of route charges."""

    def get_route(self, origin: str, destination: str) -> Result[RouteRates, QuoteError]:
        """Return the charges for a route."""
        ...


@runtime_checkable
class GatewayFeeSchedule(Protocol):
    """Read-only lookup of payment gateway fees."""

    def get_gateway(self, code: str) -> Result[GatewayFees, QuoteError]:
        """Return the fee schedule of a gateway."""
        ...


@runtime_checkable
class InsurancePolicy(Protocol):
    """Premium as a function of declared value."""

    def premium(self, declared_value: Decimal) -> Decimal:
        """Return the insurance premium for a declared value."""
        ...


@dataclass(frozen=True, slots=True)
class PercentageInsurancePolicy:
    """
    Insurance priced as a percentage of declared value with a minimum premium.

    Attributes:
        rate_percent: Premium rate.
        minimum: Minimum premium, in the origin currency.
    """

    rate_percent: Decimal = Decimal("1.0")
    minimum: Decimal = Decimal("5")

    def __post_init__(self) -> None:
        if self.rate_percent < ZERO or self.minimum < ZERO:
            msg = "Insurance rate and minimum cannot be negative"
            raise ValueError(msg)

    def premium(self, declared_value: Decimal) -> Decimal:
        """Percentage of declared value, never below the minimum."""
        return round_money(max(declared_value * self.rate_percent / _HUNDRED, self.minimum))


class StaticShippingRateTable:
    """In-memory route charges."""

    def __init__(self, routes: Iterable[RouteRates]) -> None:
        self._routes = {route.key: route for route in routes}

    def get_route(self, origin: str, destination: str) -> Result[RouteRates, QuoteError]:
        """Return the charges for a route or RateNotFoundError."""
        key = f"{origin.upper()}-{destination.upper()}"
        route = self._routes.get(key)
        if route is None:
            return failure(RateNotFoundError(key, source="shipping_route"))
        return success(route)


class StaticGatewayFeeSchedule:
    """In-memory gateway fees (the built-in schedule by default)."""

    def __init__(self, gateways: Iterable[GatewayFees] = DEFAULT_GATEWAY_FEES) -> None:
        self._gateways = {gateway.code.lower(): gateway for gateway in gateways}

    def get_gateway(self, code: str) -> Result[GatewayFees, QuoteError]:
        """Return the fee schedule or RateNotFoundError."""
        normalized = code.strip().lower()
        gateway = self._gateways.get(normalized)
        if gateway is None:
            return failure(RateNotFoundError(normalized, source="payment_gateway"))
        return success(gateway)


class DatabaseShippingRateTable:
    """Route charges read from the ShippingRoute table."""

    def get_route(self, origin: str, destination: str) -> Result[RouteRates, QuoteError]:
        """Read the active route row for an origin/destination pair."""
        from django.db import DatabaseError

        from apps.pricing.models import ShippingRoute

        origin, destination = origin.upper(), destination.upper()
        try:
            row = ShippingRoute.objects.filter(
                origin_country=origin,
                destination_country=destination,
                is_active=True,
            ).first()
        except DatabaseError as e:
            logger.error("Shipping route query failed", error=str(e))
            return failure(SourceUnavailableError("shipping_routes", details=str(e)))

        if row is None:
            return failure(RateNotFoundError(f"{origin}-{destination}", source="shipping_route"))
        return success(row.to_route_rates())


class DatabaseGatewayFeeSchedule:
    """Gateway fees read from the PaymentGateway table."""

    def get_gateway(self, code: str) -> Result[GatewayFees, QuoteError]:
        """Read the active gateway row for a code."""
        from django.db import DatabaseError

        from apps.pricing.models import PaymentGateway

        normalized = code.strip().lower()
        try:
            row = PaymentGateway.objects.filter(code=normalized, is_active=True).first()
        except DatabaseError as e:
            logger.error("Payment gateway query failed", error=str(e))
            return failure(SourceUnavailableError("payment_gateways", details=str(e)))

        if row is None:
            return failure(RateNotFoundError(normalized, source="payment_gateway"))
        return success(row.to_gateway_fees())
