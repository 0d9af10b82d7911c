"""Currency conversion service package."""

from services.currency.rounding import RoundingMethod, round_money
from services.currency.service import CurrencyConversionService
from services.currency.sources import (
    DatabaseExchangeRateSource,
    ExchangeRateSource,
    RateSnapshotStore,
    StaticExchangeRateSource,
)
from services.currency.types import (
    Conversion,
    ConversionCheck,
    ConversionRequest,
    ExchangeRate,
    MinimumValuationConversion,
)

__all__ = [
    "Conversion",
    "ConversionCheck",
    "ConversionRequest",
    "CurrencyConversionService",
    "DatabaseExchangeRateSource",
    "ExchangeRate",
    "ExchangeRateSource",
    "MinimumValuationConversion",
    "RateSnapshotStore",
    "RoundingMethod",
    "StaticExchangeRateSource",
    "round_money",
]
