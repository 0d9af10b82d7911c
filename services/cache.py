"""Cache service for serialized quote breakdowns."""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from django.core.cache import cache

if TYPE_CHECKING:
    from collections.abc import Sequence

    from services.quotes.types import DiscountSpec, QuoteOptions, RouteParams
    from services.taxes.types import LineItem


class CacheKeyPrefix:
    """Cache key prefixes for different data types."""

    QUOTE = "quote"


class CacheTTL:
    """Default TTL values in seconds for different data types."""

    QUOTE_BREAKDOWN = 300  # 5 minutes


class QuoteCacheService:
    """
    Caches serialized quote breakdowns using Django's cache framework.

    Keys cover every calculation input plus the content digests of the
    rate and registry snapshots, so a reference-data change never serves
    a stale breakdown.

    Example:
        >>> quote_cache = QuoteCacheService(ttl=300)
        >>> key = quote_cache.make_quote_key(items, route, (), options, "a1b2", "c3d4")
        >>> quote_cache.set(key, breakdown.to_dict())
        >>> cached = quote_cache.get(key)
    """

    def __init__(
        self,
        key_prefix: str = "crossborder",
        ttl: int = CacheTTL.QUOTE_BREAKDOWN,
    ) -> None:
        """
        Initialize the cache service.

        Args:
            key_prefix: Prefix for all cache keys (default: 'crossborder').
            ttl: Default time-to-live in seconds.
        """
        self._key_prefix = key_prefix
        self._ttl = ttl

    def _make_key(self, key: str) -> str:
        """Create a full cache key with prefix."""
        return f"{self._key_prefix}:{key}"

    def get(self, key: str) -> dict[str, Any] | None:
        """
        Get a cached breakdown.

        Args:
            key: The cache key.

        Returns:
            The cached breakdown or None if not found.
        """
        return cache.get(self._make_key(key))

    def set(self, key: str, value: dict[str, Any], ttl: int | None = None) -> bool:
        """
        Cache a breakdown.

        Args:
            key: The cache key.
            value: Serialized breakdown.
            ttl: Time-to-live in seconds (defaults to the service TTL).

        Returns:
            True if successful.
        """
        cache.set(self._make_key(key), value, self._ttl if ttl is None else ttl)
        return True

    @staticmethod
    def make_quote_key(
        items: Sequence[LineItem],
        route: RouteParams,
        discounts: Sequence[DiscountSpec],
        options: QuoteOptions,
        rate_digest: str,
        registry_digest: str,
    ) -> str:
        """
        Generate a cache key for one calculation.

        Args:
            items: Line items.
            route: Route parameters.
            discounts: Discounts.
            options: Calculation options.
            rate_digest: Content digest of the exchange-rate snapshot.
            registry_digest: Content digest of the registry snapshot.

        Returns:
            A key that changes whenever any input or snapshot changes.
        """
        payload = json.dumps(
            {
                "items": [asdict(item) for item in items],
                "route": asdict(route),
                "discounts": [asdict(spec) for spec in discounts],
                "options": asdict(options),
                "rates": rate_digest,
                "registry": registry_digest,
            },
            sort_keys=True,
            default=str,
        )
        digest = hashlib.sha256(payload.encode()).hexdigest()[:24]
        return f"{CacheKeyPrefix.QUOTE}:{digest}"
