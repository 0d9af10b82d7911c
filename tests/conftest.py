"""
Pytest configuration and fixtures for the test suite.

This module contains shared fixtures used across all tests: in-memory
reference data (exchange rates, classification rows, routes, gateways)
and the services wired on top of it.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.test import Client

from services.classification import ClassificationRegistry
from services.currency import CurrencyConversionService, RateSnapshotStore
from services.quotes import (
    PercentageInsurancePolicy,
    QuoteCalculationEngine,
    RouteRates,
    StaticGatewayFeeSchedule,
    StaticShippingRateTable,
)
from services.taxes import FallbackTaxPolicy, PerItemTaxCalculator
from tests.factories import CLASSIFICATION_ROWS, EXCHANGE_RATES, TODAY


@pytest.fixture()
def test_client() -> Client:
    """Return a Django test client."""
    return Client()


@pytest.fixture()
def rate_store() -> RateSnapshotStore:
    """Create a rate store loaded with the test exchange rates."""
    store = RateSnapshotStore()
    store.load(EXCHANGE_RATES)
    return store


@pytest.fixture()
def conversions(rate_store: RateSnapshotStore) -> CurrencyConversionService:
    """Create a conversion service over the loaded rate store."""
    return CurrencyConversionService(rate_store)


@pytest.fixture()
def registry() -> ClassificationRegistry:
    """Create a registry loaded with the test classification rows."""
    registry = ClassificationRegistry()
    registry.load(CLASSIFICATION_ROWS)
    return registry


@pytest.fixture()
def fallback_policy() -> FallbackTaxPolicy:
    """Create a non-expiring fallback policy."""
    return FallbackTaxPolicy(
        name="vat-regime-default",
        duty_rate_percent=Decimal("10"),
        tax_rate_percent=Decimal("13"),
    )


@pytest.fixture()
def calculator(
    conversions: CurrencyConversionService,
    registry: ClassificationRegistry,
    fallback_policy: FallbackTaxPolicy,
) -> PerItemTaxCalculator:
    """Create a tax calculator with the fallback policy."""
    return PerItemTaxCalculator(
        conversion_service=conversions,
        registry=registry,
        fallback_policy=fallback_policy,
        today=lambda: TODAY,
    )


@pytest.fixture()
def route_np_in() -> RouteRates:
    """Create Nepal to India route charges (NPR)."""
    return RouteRates(
        origin_country="NP",
        destination_country="IN",
        merchant_shipping=Decimal("100"),
        standard_rate_per_kg=Decimal("500"),
        express_rate_per_kg=Decimal("800"),
        economy_rate_per_kg=Decimal("300"),
        minimum_international=Decimal("400"),
        domestic_urban=Decimal("50"),
        domestic_rural=Decimal("120"),
        handling_fixed=Decimal("20"),
        handling_percent=Decimal("2"),
    )


@pytest.fixture()
def shipping_rates(route_np_in: RouteRates) -> StaticShippingRateTable:
    """Create an in-memory shipping table with the NP-IN route."""
    return StaticShippingRateTable([route_np_in])


@pytest.fixture()
def gateway_fees() -> StaticGatewayFeeSchedule:
    """Create the built-in gateway fee schedule."""
    return StaticGatewayFeeSchedule()


@pytest.fixture()
def engine(
    calculator: PerItemTaxCalculator,
    conversions: CurrencyConversionService,
    registry: ClassificationRegistry,
    shipping_rates: StaticShippingRateTable,
    gateway_fees: StaticGatewayFeeSchedule,
) -> QuoteCalculationEngine:
    """Create a quote engine over the in-memory reference data."""
    return QuoteCalculationEngine(
        tax_calculator=calculator,
        conversion_service=conversions,
        registry=registry,
        shipping_rates=shipping_rates,
        gateway_fees=gateway_fees,
        insurance_policy=PercentageInsurancePolicy(),
    )
