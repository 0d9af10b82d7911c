"""URL configuration for the API application."""

from django.urls import path

from apps.api.views import HealthCheckView, QuoteCalculateView

app_name = "api"

urlpatterns = [
    path("quotes/calculate/", QuoteCalculateView.as_view(), name="quote-calculate"),
    path("health/", HealthCheckView.as_view(), name="health"),
]
