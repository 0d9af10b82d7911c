"""Health check endpoint for monitoring."""

from django.db import DatabaseError, connection
from django.http import JsonResponse


def health_check(_request: object) -> JsonResponse:
    """
    Health check endpoint.

    Reports database connectivity and whether the reference data the
    quote engine snapshots (exchange rates, classification codes) is
    present.

    Args:
        _request: Django HTTP request object (unused but required by Django).

    Returns:
        JsonResponse with health status.
    """
    checks: dict[str, dict[str, str]] = {
        "database": check_database(),
    }
    if checks["database"]["status"] == "healthy":
        checks.update(check_reference_data())

    # Determine overall status
    all_healthy = all(check.get("status") == "healthy" for check in checks.values())

    health_status = {
        "status": "healthy" if all_healthy else "degraded",
        "checks": checks,
    }

    return JsonResponse(
        health_status,
        status=200 if all_healthy else 503,
    )


def check_database() -> dict[str, str]:
    """Check database connectivity."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        return {"status": "healthy"}
    except DatabaseError as e:
        return {"status": "unhealthy", "error": str(e)}


def check_reference_data() -> dict[str, dict[str, str]]:
    """Check that active exchange rates and classification codes exist."""
    from apps.pricing.models import CountrySetting, HSNCode

    checks: dict[str, dict[str, str]] = {}
    for name, model in (("exchange_rates", CountrySetting), ("classifications", HSNCode)):
        try:
            count = model.objects.filter(is_active=True).count()
        except DatabaseError as e:
            checks[name] = {"status": "unhealthy", "error": str(e)}
            continue
        if count:
            checks[name] = {"status": "healthy", "entries": str(count)}
        else:
            checks[name] = {"status": "unhealthy", "error": "no active entries"}
    return checks
