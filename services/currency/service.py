"""Currency conversion service."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from core.logging import get_logger
from core.result import Failure, Result, failure, success
from services.currency.rounding import ZERO, RoundingMethod, round_to_unit, to_decimal
from services.currency.types import Conversion, ConversionCheck
from services.errors import (
    FieldViolation,
    QuoteError,
    RateNotFoundError,
    SourceUnavailableError,
    ValidationError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from services.currency.sources import RateSnapshotStore
    from services.currency.types import (
        ConversionRequest,
        ExchangeRate,
        ExchangeRateSnapshot,
    )

logger = get_logger(__name__)

RATE_PRECISION = Decimal("0.000001")


class CurrencyConversionService:
    """
    Converts USD amounts into a country's currency.

    Rates come from a RateSnapshotStore. Every method accepts an explicit
    snapshot so that a caller running one calculation can pin all of its
    conversions to the same set of rates; without one, the store's current
    snapshot is used.
    """

    def __init__(self, store: RateSnapshotStore) -> None:
        """
        Initialize the conversion service.

        Args:
            store: Store serving the current exchange-rate snapshot.
        """
        self._store = store

    def snapshot(self) -> Result[ExchangeRateSnapshot, QuoteError]:
        """Return the current rate snapshot, failing if none was loaded yet."""
        current = self._store.current()
        if current is None:
            return failure(SourceUnavailableError("exchange_rates", details="no snapshot loaded"))
        return success(current)

    def get_rate(
        self,
        country_code: str,
        snapshot: ExchangeRateSnapshot | None = None,
    ) -> Result[ExchangeRate, QuoteError]:
        """
        Look up the exchange rate for a country.

        A missing rate is an error: it is never defaulted to 1.0.

        Args:
            country_code: ISO country code (case-insensitive).
            snapshot: Snapshot to read from (defaults to the current one).

        Returns:
            Result containing the ExchangeRate or RateNotFoundError.
        """
        resolved = self._resolve(snapshot)
        if isinstance(resolved, Failure):
            return resolved

        code = country_code.upper().strip()
        rate = resolved.value.get(code)
        if rate is None:
            logger.warning("Exchange rate not found", country=code)
            return failure(RateNotFoundError(code))
        return success(rate)

    def convert_minimum_valuation(
        self,
        amount_usd: Decimal | int | str | float,
        country_code: str,
        snapshot: ExchangeRateSnapshot | None = None,
    ) -> Result[Conversion, QuoteError]:
        """
        Convert a USD minimum valuation into the origin country's currency.

        The result is always rounded up to the next whole unit, so the
        converted floor is never below the exact USD value.
        Example: $10.5 at 133.0 → 1396.5 → 1397.

        Args:
            amount_usd: Minimum valuation in USD (>= 0).
            country_code: Origin country code.
            snapshot: Snapshot to read from (defaults to the current one).

        Returns:
            Result containing the Conversion or an error.
        """
        return self.convert_amount(amount_usd, country_code, RoundingMethod.UP, snapshot)

    def convert_amount(
        self,
        amount_usd: Decimal | int | str | float,
        country_code: str,
        rounding: RoundingMethod = RoundingMethod.NEAREST,
        snapshot: ExchangeRateSnapshot | None = None,
    ) -> Result[Conversion, QuoteError]:
        """
        Convert a USD amount into a country's currency with a rounding policy.

        Args:
            amount_usd: Amount in USD (>= 0).
            country_code: Target country code.
            rounding: How to round to a whole currency unit.
            snapshot: Snapshot to read from (defaults to the current one).

        Returns:
            Result containing the Conversion or an error.
        """
        amount = to_decimal(amount_usd)
        if amount < ZERO:
            return failure(
                ValidationError([FieldViolation("amount_usd", "must not be negative")])
            )

        resolved = self._resolve(snapshot)
        if isinstance(resolved, Failure):
            return resolved

        rate_result = self.get_rate(country_code, resolved.value)
        if isinstance(rate_result, Failure):
            return rate_result
        rate = rate_result.value

        converted = round_to_unit(amount * rate.rate_from_usd, rounding)
        logger.debug(
            "Converted USD amount",
            amount_usd=str(amount),
            country=rate.country_code,
            currency=rate.currency_code,
            converted=str(converted),
            rounding=rounding.value,
        )
        return success(
            Conversion(
                usd_amount=amount,
                origin_currency=rate.currency_code,
                converted_amount=converted,
                exchange_rate=rate.rate_from_usd,
                rounding_method=rounding,
                snapshot_version=resolved.value.version,
            )
        )

    def convert_many(
        self,
        requests: Iterable[ConversionRequest],
        snapshot: ExchangeRateSnapshot | None = None,
    ) -> list[Result[Conversion, QuoteError]]:
        """
        Convert several minimum valuations against one snapshot.

        Args:
            requests: Conversion requests.
            snapshot: Snapshot to read from (defaults to the current one).

        Returns:
            List of Results, one per request, in order.
        """
        resolved = self._resolve(snapshot)
        if isinstance(resolved, Failure):
            return [resolved for _ in requests]
        return [
            self.convert_minimum_valuation(req.usd_amount, req.country_code, resolved.value)
            for req in requests
        ]

    def rate_between(
        self,
        from_country: str,
        to_country: str,
        snapshot: ExchangeRateSnapshot | None = None,
    ) -> Result[Decimal, QuoteError]:
        """
        Cross rate from one country's currency to another's.

        Both legs are read from the same snapshot. The rate is quantized to
        six decimal places so repeated calls give identical values.

        Args:
            from_country: Country whose currency amounts are expressed in.
            to_country: Country whose currency to convert into.
            snapshot: Snapshot to read from (defaults to the current one).

        Returns:
            Result containing units of `to` currency per unit of `from` currency.
        """
        resolved = self._resolve(snapshot)
        if isinstance(resolved, Failure):
            return resolved

        source = self.get_rate(from_country, resolved.value)
        if isinstance(source, Failure):
            return source
        target = self.get_rate(to_country, resolved.value)
        if isinstance(target, Failure):
            return target

        if source.value.currency_code == target.value.currency_code:
            return success(Decimal("1"))
        cross = target.value.rate_from_usd / source.value.rate_from_usd
        return success(cross.quantize(RATE_PRECISION))

    def validate_conversion(
        self,
        usd_amount: Decimal | int | str | float,
        country_code: str,
        expected_amount: Decimal | int | str | float,
        tolerance_percent: Decimal | int | str = Decimal("1"),
    ) -> Result[ConversionCheck, QuoteError]:
        """
        Check a previously stored conversion against the current rates.

        Args:
            usd_amount: Amount in USD.
            country_code: Target country code.
            expected_amount: Amount the caller has on record.
            tolerance_percent: Accepted relative difference, in percent.

        Returns:
            Result containing the ConversionCheck.
        """
        conversion = self.convert_minimum_valuation(usd_amount, country_code)
        if isinstance(conversion, Failure):
            return conversion

        actual = conversion.value.converted_amount
        expected = to_decimal(expected_amount)
        if actual == ZERO:
            difference = ZERO if expected == ZERO else Decimal("100")
        else:
            difference = (abs(actual - expected) / actual * 100).quantize(Decimal("0.01"))

        return success(
            ConversionCheck(
                expected_amount=expected,
                actual_amount=actual,
                difference_percent=difference,
                is_accurate=difference <= to_decimal(tolerance_percent),
            )
        )

    def _resolve(
        self,
        snapshot: ExchangeRateSnapshot | None,
    ) -> Result[ExchangeRateSnapshot, QuoteError]:
        """Use the given snapshot, or fall back to the current one."""
        if snapshot is not None:
            return success(snapshot)
        return self.snapshot()
