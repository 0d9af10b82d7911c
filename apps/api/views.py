"""API views for quote calculation."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.serializers import HealthCheckSerializer, QuoteRequestSerializer
from core.config import get_settings
from core.health import check_database, check_reference_data
from core.logging import bind_quote_context, clear_context, get_logger
from core.result import Failure
from services.cache import QuoteCacheService
from services.errors import ErrorCode, FieldViolation, QuoteError, ValidationError
from services.quotes.factory import QuoteServicesHolder

if TYPE_CHECKING:
    from rest_framework.request import Request

    from core.result import Result
    from services.quotes.factory import QuoteServices

logger = get_logger(__name__)

# Shared by every request handled by this process
quote_services = QuoteServicesHolder()

STATUS_BY_ERROR_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_LINE_ITEM: status.HTTP_400_BAD_REQUEST,
    ErrorCode.RATE_NOT_FOUND: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.CLASSIFICATION_NOT_FOUND: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.SOURCE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.CALCULATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(error: QuoteError) -> Response:
    """Render a QuoteError with the status code matching its kind."""
    return Response(
        {"error": error.to_dict()},
        status=STATUS_BY_ERROR_CODE.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


def _flatten_errors(errors: Any, prefix: str = "") -> list[FieldViolation]:
    """Turn nested DRF serializer errors into dotted-path field violations."""
    if isinstance(errors, dict):
        return [
            violation
            for key, value in errors.items()
            for violation in _flatten_errors(value, f"{prefix}.{key}" if prefix else str(key))
        ]
    if isinstance(errors, list) and errors and not isinstance(errors[0], str):
        return [
            violation
            for index, value in enumerate(errors)
            if value
            for violation in _flatten_errors(value, f"{prefix}.{index}")
        ]
    messages = errors if isinstance(errors, list) else [errors]
    return [FieldViolation(prefix or "non_field_errors", str(message)) for message in messages]


class QuoteCalculateView(APIView):
    """
    Quote calculation endpoint.

    Accepts items, route, discounts and options, and returns the full
    quote breakdown. Breakdowns are cached by inputs and reference-data
    content, so an unchanged request is answered from the cache.
    """

    permission_classes = []  # Quotes are public
    authentication_classes = []

    def post(self, request: Request) -> Response:
        """Calculate a quote."""
        serializer = QuoteRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(ValidationError(_flatten_errors(serializer.errors)))

        items, route, discounts, options = serializer.to_domain()
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        bind_quote_context(request_id, route.origin_country, route.destination_country)
        try:
            loaded = self._load_services()
            if isinstance(loaded, Failure):
                logger.error("Reference data unavailable", error=str(loaded.error))
                return error_response(loaded.error)
            services = loaded.value

            quote_cache = QuoteCacheService(ttl=get_settings().quotes.cache_ttl_seconds)
            rates = services.rate_store.current()
            registry = services.registry.snapshot()
            cache_key = quote_cache.make_quote_key(
                items,
                route,
                discounts,
                options,
                rates.digest if rates else "",
                registry.digest if registry else "",
            )
            cached = quote_cache.get(cache_key)
            if cached is not None:
                logger.debug("Quote served from cache", cache_key=cache_key)
                return self._quote_response(cached, request_id, cache_hit=True)

            result = services.engine.calculate_quote(items, route, discounts, options)
            if isinstance(result, Failure):
                return error_response(result.error)

            payload = result.value.to_dict()
            quote_cache.set(cache_key, payload)
            return self._quote_response(payload, request_id, cache_hit=False)
        finally:
            clear_context()

    def _load_services(self) -> Result[QuoteServices, QuoteError]:
        """Return the process-wide engine, loading reference data on first use."""
        return quote_services.get()

    @staticmethod
    def _quote_response(payload: dict[str, Any], request_id: str, cache_hit: bool) -> Response:
        response = Response({"quote": payload}, status=status.HTTP_200_OK)
        response["X-Request-ID"] = request_id
        response["X-Quote-Cache"] = "hit" if cache_hit else "miss"
        return response


class HealthCheckView(APIView):
    """
    API health check endpoint.

    Returns the health status of the API and its dependencies.
    """

    permission_classes = []  # No auth required for health check
    authentication_classes = []

    def get(self, request: Request) -> Response:
        """Return health status."""
        database = check_database()["status"] == "healthy"
        reference = check_reference_data() if database else {}
        services = {
            "database": database,
            "exchange_rates": reference.get("exchange_rates", {}).get("status") == "healthy",
            "classifications": reference.get("classifications", {}).get("status") == "healthy",
        }
        health_data = {
            "status": "healthy" if all(services.values()) else "degraded",
            "version": "0.1.0",
            "services": services,
        }

        serializer = HealthCheckSerializer(data=health_data)
        serializer.is_valid()
        if all(services.values()):
            return Response(serializer.data)
        return Response(serializer.data, status=status.HTTP_503_SERVICE_UNAVAILABLE)
