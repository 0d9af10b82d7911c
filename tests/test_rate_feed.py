"""Tests for the HTTP exchange-rate feed."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import httpx
import pytest

from services.currency.feed import HttpExchangeRateFeed
from services.errors import ErrorCode

if TYPE_CHECKING:
    from collections.abc import Callable

FEED_URL = "https://rates.example.com/latest"
COUNTRIES = {"NP": "NPR", "IN": "INR", "US": "USD"}


def make_feed(
    handler: Callable[[httpx.Request], httpx.Response],
    api_key: str = "",
) -> HttpExchangeRateFeed:
    """Create a feed whose requests are answered by a handler."""
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpExchangeRateFeed(FEED_URL, COUNTRIES, api_key=api_key, client=client)


class TestHttpExchangeRateFeedInit:
    """Tests for feed construction."""

    def test_requires_url(self) -> None:
        """An empty URL should be rejected."""
        with pytest.raises(ValueError, match="url is required"):
            HttpExchangeRateFeed("", COUNTRIES)

    def test_requires_positive_timeout(self) -> None:
        """A non-positive timeout should be rejected."""
        with pytest.raises(ValueError, match="timeout must be positive"):
            HttpExchangeRateFeed(FEED_URL, COUNTRIES, timeout=0)

    def test_close(self) -> None:
        """close should close and drop the client."""
        feed = make_feed(lambda request: httpx.Response(200, json={}))
        client = feed._get_client()

        feed.close()

        assert client.is_closed
        assert feed._client is None


class TestFetchRates:
    """Tests for fetch_rates."""

    def test_maps_currencies_to_countries(self) -> None:
        """Feed rates should be mapped onto the configured countries."""
        feed = make_feed(
            lambda request: httpx.Response(
                200, json={"base": "USD", "rates": {"NPR": 133.0, "INR": 83.0}}
            )
        )

        rates = feed.fetch_rates().unwrap()

        by_country = {rate.country_code: rate for rate in rates}
        assert by_country["NP"].rate_from_usd == Decimal("133.0")
        assert by_country["IN"].currency_code == "INR"
        assert by_country["US"].rate_from_usd == Decimal("1")

    def test_missing_currency_fails(self) -> None:
        """A configured currency absent from the feed fails the whole fetch."""
        feed = make_feed(
            lambda request: httpx.Response(200, json={"base": "USD", "rates": {"NPR": 133.0}})
        )

        result = feed.fetch_rates()

        assert result.is_failure()
        assert result.error.code == ErrorCode.SOURCE_UNAVAILABLE
        assert result.error.details == "missing rates for INR"

    def test_invalid_rate_fails(self) -> None:
        """A non-positive rate fails the fetch instead of being published."""
        feed = make_feed(
            lambda request: httpx.Response(
                200, json={"base": "USD", "rates": {"NPR": -1, "INR": 83.0}}
            )
        )

        result = feed.fetch_rates()

        assert result.is_failure()
        assert result.error.details == "missing rates for NPR"

    def test_sends_api_key(self) -> None:
        """The API key should be sent as a bearer token."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"base": "USD", "rates": {}})

        make_feed(handler, api_key="secret").fetch_rates()

        assert seen[0].headers["Authorization"] == "Bearer secret"

    def test_http_error_status(self) -> None:
        """An error status should report the feed as unavailable."""
        feed = make_feed(lambda request: httpx.Response(503, text="maintenance"))

        result = feed.fetch_rates()

        assert result.is_failure()
        assert result.error.code == ErrorCode.SOURCE_UNAVAILABLE
        assert result.error.details == "HTTP 503"

    def test_timeout(self) -> None:
        """A timeout should report the feed as unavailable."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = make_feed(handler).fetch_rates()

        assert result.is_failure()
        assert result.error.details == "timeout"

    def test_connection_error(self) -> None:
        """A transport error should report the feed as unavailable."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = make_feed(handler).fetch_rates()

        assert result.is_failure()
        assert "connection refused" in result.error.details

    def test_invalid_json(self) -> None:
        """A non-JSON body should report the feed as unavailable."""
        feed = make_feed(lambda request: httpx.Response(200, text="<html>"))

        result = feed.fetch_rates()

        assert result.is_failure()
        assert result.error.details == "invalid JSON"

    def test_missing_rates_object(self) -> None:
        """A body without rates should be refused."""
        feed = make_feed(lambda request: httpx.Response(200, json={"base": "USD"}))

        result = feed.fetch_rates()

        assert result.is_failure()
        assert result.error.details == "missing 'rates' object"

    def test_unexpected_base(self) -> None:
        """Rates quoted from another base currency should be refused."""
        feed = make_feed(
            lambda request: httpx.Response(200, json={"base": "EUR", "rates": {"NPR": 145.0}})
        )

        result = feed.fetch_rates()

        assert result.is_failure()
        assert result.error.details == "unexpected base EUR"
