"""
URL configuration for crossborder_quotes project.

    /api/v1/quotes/calculate/   quote calculation
    /api/v1/health/             API health (service flags)
    /health/                    load balancer health (database and reference data)
    /api/docs/                  OpenAPI schema browser
"""

from django.conf import settings
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from core.health import health_check

urlpatterns = [
    # Reference data is edited in the admin
    path("admin/", admin.site.urls),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger"),
    path("api/v1/", include("apps.api.urls", namespace="api")),
    path("health/", health_check, name="health"),
]

if settings.DEBUG and "debug_toolbar" in settings.INSTALLED_APPS:
    from debug_toolbar.toolbar import debug_toolbar_urls

    urlpatterns = [*urlpatterns, *debug_toolbar_urls()]
