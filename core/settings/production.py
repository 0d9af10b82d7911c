"""
Production settings for crossborder_quotes project.

Every value is read through core.config. Startup fails while SECRET_KEY
still holds the insecure development default.
"""

import dj_database_url
from django.core.exceptions import ImproperlyConfigured

from .base import *

if app_settings.secret_key.get_secret_value().startswith("django-insecure"):
    msg = "SECRET_KEY must be set in production"
    raise ImproperlyConfigured(msg)

DEBUG = False

DATABASES = {
    "default": dj_database_url.parse(
        app_settings.database.connection_url,
        conn_max_age=600,
        conn_health_checks=True,
        ssl_require=True,
    )
}

# Cached breakdowns are shared between workers
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": app_settings.redis.url or "redis://localhost:6379/0",
        "TIMEOUT": app_settings.quotes.cache_ttl_seconds,
    }
}

CORS_ALLOWED_ORIGINS = [f"https://{host}" for host in app_settings.allowed_hosts]

SECURE_SSL_REDIRECT = True
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True

# Admin static files served by WhiteNoise
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    *MIDDLEWARE[1:],
]
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# structlog renders JSON itself; the stdlib handler only passes lines through
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(message)s"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": app_settings.logging.level,
    },
}

configure_logging(json_format=True, log_level=app_settings.logging.level)
