"""HTTP client for a live exchange-rate feed."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

import httpx

from core.logging import get_logger
from core.result import Result, failure, success
from services.currency.types import ExchangeRate
from services.errors import QuoteError, SourceUnavailableError

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 5.0


class HttpExchangeRateFeed:
    """
    Exchange-rate source backed by a JSON rate feed.

    The feed is expected to answer GET requests with rates quoted from USD:
    ``{"base": "USD", "rates": {"NPR": 133.0, "INR": 83.0}}``. Rates are
    mapped onto countries through `country_currencies`, since the engine
    looks rates up by country.

    Every request carries a timeout; a timeout, transport error, HTTP
    error status or malformed body yields a SourceUnavailableError and
    never a partial rate list.

    Attributes:
        url: Feed endpoint.
        timeout: Request timeout in seconds.
    """

    name = "rate_feed"

    def __init__(
        self,
        url: str,
        country_currencies: Mapping[str, str],
        api_key: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize the feed client.

        Args:
            url: Feed endpoint.
            country_currencies: Country code → currency code mapping.
            api_key: Optional bearer token.
            timeout: Request timeout in seconds.
            client: Pre-built HTTP client (tests inject a mock transport).

        Raises:
            ValueError: If url is empty or timeout is not positive.
        """
        if not url:
            msg = "url is required"
            raise ValueError(msg)
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)

        self.url = url
        self.timeout = timeout
        self._api_key = api_key
        self._country_currencies = {k.upper(): v.upper() for k, v in country_currencies.items()}
        self._client = client

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def fetch_rates(self) -> Result[list[ExchangeRate], QuoteError]:
        """Fetch the current rates from the feed."""
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            response = self._get_client().get(self.url, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException:
            logger.error("Rate feed request timeout", url=self.url, timeout=self.timeout)
            return failure(SourceUnavailableError(self.name, details="timeout"))
        except httpx.RequestError as e:
            logger.error("Rate feed request error", url=self.url, error=str(e))
            return failure(SourceUnavailableError(self.name, details=str(e)))

        if response.status_code >= 400:
            logger.error(
                "Rate feed returned error status",
                status_code=response.status_code,
                response_text=response.text[:500],
            )
            return failure(
                SourceUnavailableError(self.name, details=f"HTTP {response.status_code}")
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("Rate feed returned invalid JSON", error=str(e))
            return failure(SourceUnavailableError(self.name, details="invalid JSON"))

        return self._parse_rates(payload)

    def _parse_rates(self, payload: Any) -> Result[list[ExchangeRate], QuoteError]:
        """Map the feed's currency rates onto configured countries."""
        if not isinstance(payload, dict) or not isinstance(payload.get("rates"), dict):
            return failure(SourceUnavailableError(self.name, details="missing 'rates' object"))

        base = str(payload.get("base", "USD")).upper()
        if base != "USD":
            return failure(SourceUnavailableError(self.name, details=f"unexpected base {base}"))

        by_currency = {str(k).upper(): v for k, v in payload["rates"].items()}
        by_currency.setdefault("USD", 1)

        rates: list[ExchangeRate] = []
        unusable: list[str] = []
        for country, currency in sorted(self._country_currencies.items()):
            raw = by_currency.get(currency)
            if raw is None:
                logger.warning("Rate feed has no rate for currency", currency=currency)
                unusable.append(currency)
                continue
            try:
                rates.append(ExchangeRate(country, currency, Decimal(str(raw))))
            except (ValueError, InvalidOperation) as e:
                logger.warning("Rate feed value rejected", currency=currency, error=str(e))
                unusable.append(currency)

        if unusable:
            details = f"missing rates for {', '.join(unusable)}"
            logger.error("Rate feed incomplete", missing=unusable)
            return failure(SourceUnavailableError(self.name, details=details))

        logger.info("Rate feed fetched", rates=len(rates))
        return success(rates)
