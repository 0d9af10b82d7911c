"""Types for currency conversion service."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from services.currency.rounding import RoundingMethod
from services.snapshots import Snapshot


@dataclass(frozen=True, slots=True)
class ExchangeRate:
    """
    Exchange rate of one country's currency against USD.

    Attributes:
        country_code: ISO 3166-1 alpha-2 country code.
        currency_code: ISO 4217 currency code used in that country.
        rate_from_usd: Units of local currency per 1 USD (positive).
    """

    country_code: str
    currency_code: str
    rate_from_usd: Decimal

    def __post_init__(self) -> None:
        if not self.country_code or not self.currency_code:
            msg = "country_code and currency_code are required"
            raise ValueError(msg)
        if self.rate_from_usd <= 0:
            msg = f"rate_from_usd must be positive for {self.country_code}"
            raise ValueError(msg)


type ExchangeRateSnapshot = Snapshot[ExchangeRate]


@dataclass(frozen=True, slots=True)
class Conversion:
    """
    A USD amount converted into a country's currency.

    Attributes:
        usd_amount: Amount in USD before conversion.
        origin_currency: Currency the amount was converted into.
        converted_amount: Rounded amount in that currency.
        exchange_rate: Rate applied (units per USD).
        rounding_method: Rounding applied to the exact product.
        snapshot_version: Version of the rate snapshot used.
    """

    usd_amount: Decimal
    origin_currency: str
    converted_amount: Decimal
    exchange_rate: Decimal
    rounding_method: RoundingMethod
    snapshot_version: int

    def describe(self) -> str:
        """Return a short human-readable description, e.g. "$10 USD → 1330 NPR"."""
        return f"${self.usd_amount} USD → {self.converted_amount} {self.origin_currency}"


# Minimum valuations are always rounded up; the alias documents that intent at call sites.
MinimumValuationConversion = Conversion


@dataclass(frozen=True, slots=True)
class ConversionRequest:
    """
    One entry of a batch conversion.

    Attributes:
        usd_amount: Amount in USD.
        country_code: Country whose currency to convert into.
        reference: Caller reference echoed back (e.g. an item id).
    """

    usd_amount: Decimal
    country_code: str
    reference: str = ""


@dataclass(frozen=True, slots=True)
class ConversionCheck:
    """
    Outcome of comparing a stored conversion against the current rate.

    Attributes:
        expected_amount: Amount the caller expected.
        actual_amount: Amount computed from the current snapshot.
        difference_percent: Absolute difference relative to actual, in percent.
        is_accurate: Whether the difference is within tolerance.
    """

    expected_amount: Decimal
    actual_amount: Decimal
    difference_percent: Decimal
    is_accurate: bool
