"""Construction of the quote engine and its collaborators."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from core.config import get_settings
from core.logging import get_logger
from core.result import Failure, Result, failure, success
from services.classification.registry import (
    ClassificationRegistry,
    DatabaseClassificationSource,
)
from services.currency.feed import HttpExchangeRateFeed
from services.currency.service import CurrencyConversionService
from services.currency.sources import DatabaseExchangeRateSource, RateSnapshotStore
from services.errors import QuoteError, SourceUnavailableError
from services.quotes.engine import QuoteCalculationEngine
from services.quotes.tables import (
    DatabaseGatewayFeeSchedule,
    DatabaseShippingRateTable,
    PercentageInsurancePolicy,
)
from services.taxes.service import PerItemTaxCalculator

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from core.config import Settings
    from services.classification.registry import ClassificationSource
    from services.currency.sources import ExchangeRateSource
    from services.currency.types import ExchangeRateSnapshot
    from services.quotes.tables import GatewayFeeSchedule, ShippingRateTable
    from services.taxes.policy import TaxRateOverride

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class QuoteServices:
    """
    A wired engine together with the services it was built from.

    Attributes:
        engine: The quote calculation engine.
        conversion_service: Conversion service sharing the engine's rate store.
        registry: Classification registry used by the engine.
        rate_store: Exchange-rate snapshot store.
    """

    engine: QuoteCalculationEngine
    conversion_service: CurrencyConversionService
    registry: ClassificationRegistry
    rate_store: RateSnapshotStore


def build_quote_engine(
    rate_store: RateSnapshotStore,
    registry: ClassificationRegistry,
    shipping_rates: ShippingRateTable,
    gateway_fees: GatewayFeeSchedule,
    settings: Settings | None = None,
    overrides: Sequence[TaxRateOverride] = (),
    today: Callable[[], date] = date.today,
) -> QuoteServices:
    """
    Wire an engine from already-populated stores and tables.

    Policy values (fallback rates, insurance, gateway bypass list) come
    from settings.

    Args:
        rate_store: Exchange-rate snapshot store.
        registry: Classification registry.
        shipping_rates: Route charges.
        gateway_fees: Payment gateway fees.
        settings: Application settings (defaults to get_settings()).
        overrides: Administrative rate overrides.
        today: Clock for the fallback policy's review date.

    Returns:
        QuoteServices holding the engine and its collaborators.
    """
    quote_settings = (settings or get_settings()).quotes
    conversions = CurrencyConversionService(rate_store)
    calculator = PerItemTaxCalculator(
        conversion_service=conversions,
        registry=registry,
        fallback_policy=quote_settings.fallback_policy(),
        overrides=overrides,
        today=today,
    )
    engine = QuoteCalculationEngine(
        tax_calculator=calculator,
        conversion_service=conversions,
        registry=registry,
        shipping_rates=shipping_rates,
        gateway_fees=gateway_fees,
        insurance_policy=PercentageInsurancePolicy(
            rate_percent=quote_settings.insurance_rate_percent,
            minimum=quote_settings.insurance_minimum,
        ),
        gateway_bypass=quote_settings.unconfigured_gateway_bypass,
    )
    return QuoteServices(
        engine=engine,
        conversion_service=conversions,
        registry=registry,
        rate_store=rate_store,
    )


def load_quote_services(
    settings: Settings | None = None,
    rate_source: ExchangeRateSource | None = None,
    classification_source: ClassificationSource | None = None,
    shipping_rates: ShippingRateTable | None = None,
    gateway_fees: GatewayFeeSchedule | None = None,
    overrides: Sequence[TaxRateOverride] | None = None,
    rate_store: RateSnapshotStore | None = None,
    registry: ClassificationRegistry | None = None,
) -> Result[QuoteServices, QuoteError]:
    """
    Load reference data and wire an engine against it.

    Without explicit sources, rates come from the live feed when one is
    configured (falling back to the CountrySetting table if the feed
    fails) and everything else, overrides included, from the database.

    Passing the stores of already loaded services refreshes them in place:
    each store swaps in its new snapshot, or keeps the previous one when
    its source fails.

    Returns:
        Result containing QuoteServices, or the error of the source that
        could not be loaded.
    """
    settings = settings or get_settings()

    if rate_store is None:
        rate_store = RateSnapshotStore()
    rates = _load_rates(rate_store, settings, rate_source)
    if isinstance(rates, Failure):
        return rates

    if registry is None:
        registry = ClassificationRegistry()
    report = registry.refresh(classification_source or DatabaseClassificationSource())
    if isinstance(report, Failure):
        return report
    if report.value.has_rejections:
        logger.warning(
            "Registry loaded with rejected rows",
            accepted=report.value.accepted,
            rejected=len(report.value.rejected),
        )

    if overrides is None:
        loaded = load_overrides()
        if isinstance(loaded, Failure):
            return loaded
        overrides = loaded.value

    return success(
        build_quote_engine(
            rate_store=rate_store,
            registry=registry,
            shipping_rates=shipping_rates or DatabaseShippingRateTable(),
            gateway_fees=gateway_fees or DatabaseGatewayFeeSchedule(),
            settings=settings,
            overrides=overrides,
        )
    )


def load_overrides() -> Result[tuple[TaxRateOverride, ...], QuoteError]:
    """Read the active rate overrides from the database."""
    from django.db import DatabaseError

    from apps.pricing.models import TaxRateOverrideRule

    try:
        rules = list(TaxRateOverrideRule.objects.filter(is_active=True).order_by("id"))
    except DatabaseError as e:
        logger.error("Rate override query failed", error=str(e))
        return failure(SourceUnavailableError("tax_rate_overrides", details=str(e)))
    return success(tuple(rule.to_override() for rule in rules))


def _load_rates(
    store: RateSnapshotStore,
    settings: Settings,
    source: ExchangeRateSource | None,
) -> Result[ExchangeRateSnapshot, QuoteError]:
    """Populate the rate store, preferring the live feed when configured."""
    if source is not None:
        return store.refresh(source)

    database = DatabaseExchangeRateSource()
    feed_settings = settings.rate_feed
    if feed_settings.is_configured and feed_settings.url:
        currencies = database.fetch_rates().map(
            lambda rates: {rate.country_code: rate.currency_code for rate in rates}
        )
        if isinstance(currencies, Failure):
            return currencies
        feed = HttpExchangeRateFeed(
            url=feed_settings.url,
            country_currencies=currencies.value,
            api_key=feed_settings.api_key.get_secret_value(),
            timeout=feed_settings.timeout_seconds,
        )
        try:
            fed = store.refresh(feed)
        finally:
            feed.close()
        if not isinstance(fed, Failure):
            return fed
        logger.warning("Rate feed unavailable, using stored rates", error=str(fed.error))

    return store.refresh(database)


class QuoteServicesHolder:
    """
    Process-wide quote services, loaded once and refreshed in place.

    The first `get()` loads every reference table. Later calls return the
    same services, so concurrent requests read the same snapshots. Once
    the refresh interval has passed, the one caller that takes the refresh
    lock reloads rates and classifications into the existing stores while
    every other caller keeps reading the current snapshots.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        loader: Callable[..., Result[QuoteServices, QuoteError]] = load_quote_services,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize an empty holder.

        Args:
            settings: Application settings (defaults to get_settings()).
            loader: Loads reference data into (new or existing) stores.
            clock: Monotonic clock used to age the loaded data.
        """
        self._settings = settings
        self._loader = loader
        self._clock = clock
        self._lock = threading.Lock()
        self._services: QuoteServices | None = None
        self._loaded_at = 0.0

    def get(self) -> Result[QuoteServices, QuoteError]:
        """
        Return the shared services, loading or refreshing them as needed.

        Returns:
            Result containing QuoteServices, or the load error when no
            services have been loaded yet.
        """
        services = self._services
        if services is None:
            with self._lock:
                if self._services is None:
                    loaded = self._loader(self._get_settings())
                    if isinstance(loaded, Failure):
                        return loaded
                    self._services = loaded.value
                    self._loaded_at = self._clock()
                return success(self._services)

        if self._is_stale() and self._lock.acquire(blocking=False):
            try:
                if self._is_stale():
                    self._refresh(services)
            finally:
                self._lock.release()
        return success(self._services or services)

    def _get_settings(self) -> Settings:
        return self._settings or get_settings()

    def _is_stale(self) -> bool:
        interval = self._get_settings().quotes.refresh_interval_seconds
        return self._clock() - self._loaded_at >= interval

    def _refresh(self, current: QuoteServices) -> None:
        """Reload reference data into the current stores."""
        self._loaded_at = self._clock()
        refreshed = self._loader(
            self._get_settings(),
            rate_store=current.rate_store,
            registry=current.registry,
        )
        if isinstance(refreshed, Failure):
            logger.error(
                "Reference data refresh failed, serving previous snapshots",
                error=str(refreshed.error),
            )
            return
        self._services = refreshed.value
        logger.info("Reference data refreshed")
