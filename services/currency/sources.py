"""Exchange-rate sources and the process-wide rate snapshot store."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from core.logging import get_logger
from core.result import Failure, Result, failure, success
from services.currency.types import ExchangeRate
from services.errors import QuoteError, SourceUnavailableError
from services.snapshots import SnapshotStore

if TYPE_CHECKING:
    from collections.abc import Iterable

    from services.currency.types import ExchangeRateSnapshot

logger = get_logger(__name__)


@runtime_checkable
class ExchangeRateSource(Protocol):
    """Read-only provider of per-country exchange rates from USD."""

    @property
    def name(self) -> str:
        """Return the source name used in logs and snapshots."""
        ...

    def fetch_rates(self) -> Result[list[ExchangeRate], QuoteError]:
        """Return every rate the source currently knows."""
        ...


class StaticExchangeRateSource:
    """
    In-memory rate table.

    Example:
        >>> source = StaticExchangeRateSource([ExchangeRate("NP", "NPR", Decimal("133.0"))])
    """

    def __init__(self, rates: Iterable[ExchangeRate], name: str = "static") -> None:
        self._rates = list(rates)
        self._name = name

    @property
    def name(self) -> str:
        """Return the source name."""
        return self._name

    def fetch_rates(self) -> Result[list[ExchangeRate], QuoteError]:
        """Return the configured rates."""
        return success(list(self._rates))


class DatabaseExchangeRateSource:
    """Rates read from the active rows of the CountrySetting table."""

    name = "database"

    def fetch_rates(self) -> Result[list[ExchangeRate], QuoteError]:
        """Read all active country rates."""
        from django.db import DatabaseError

        from apps.pricing.models import CountrySetting

        try:
            rows = list(
                CountrySetting.objects.filter(is_active=True).values(
                    "country_code", "currency_code", "rate_from_usd"
                )
            )
        except DatabaseError as e:
            logger.error("Exchange rate query failed", error=str(e))
            return failure(SourceUnavailableError(self.name, details=str(e)))

        rates: list[ExchangeRate] = []
        for row in rows:
            try:
                rates.append(
                    ExchangeRate(
                        country_code=row["country_code"].upper(),
                        currency_code=row["currency_code"].upper(),
                        rate_from_usd=Decimal(row["rate_from_usd"]),
                    )
                )
            except (ValueError, InvalidOperation) as e:
                logger.warning(
                    "Skipping malformed exchange rate row",
                    country=row.get("country_code"),
                    error=str(e),
                )
        return success(rates)


class RateSnapshotStore(SnapshotStore[ExchangeRate]):
    """Snapshot store for exchange rates, keyed by country code."""

    def __init__(self) -> None:
        super().__init__(name="exchange_rates")

    def load(self, rates: Iterable[ExchangeRate], source: str = "static") -> ExchangeRateSnapshot:
        """Publish a snapshot built from the given rates."""
        return self.publish({rate.country_code.upper(): rate for rate in rates}, source=source)

    def refresh(self, source: ExchangeRateSource) -> Result[ExchangeRateSnapshot, QuoteError]:
        """
        Reload rates from a source and swap them in.

        When the source fails, the previous snapshot keeps being served
        and the failure is returned to the caller.

        Args:
            source: Where to read rates from.

        Returns:
            Result containing the new snapshot or the source error.
        """
        result = source.fetch_rates()
        if isinstance(result, Failure):
            logger.error(
                "Exchange rate refresh failed, keeping previous snapshot",
                source=source.name,
                previous_version=self._current.version if self._current else None,
                error=str(result.error),
            )
            return result

        if not result.value:
            logger.error("Exchange rate source returned no rates", source=source.name)
            return failure(SourceUnavailableError(source.name, details="no rates returned"))

        return success(self.load(result.value, source=source.name))
