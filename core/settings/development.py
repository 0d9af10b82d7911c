"""
Development settings for crossborder_quotes project.

Database, cache and log level come from core.config, so a local .env
file is enough to point the quote service at another database or Redis.
"""

import dj_database_url

from .base import *

DEBUG = True

ALLOWED_HOSTS = [*app_settings.allowed_hosts, "0.0.0.0"]  # noqa: S104

# DATABASE_URL wins over the DB_* parameters
DATABASES = {"default": dj_database_url.parse(app_settings.database.connection_url)}

# Quote breakdowns go to Redis when configured, otherwise to process memory
if app_settings.redis.url:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": app_settings.redis.url,
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "quote-breakdowns",
        }
    }

CORS_ALLOW_ALL_ORIGINS = True

INSTALLED_APPS = [
    *INSTALLED_APPS,
    "debug_toolbar",
]

MIDDLEWARE = [
    "debug_toolbar.middleware.DebugToolbarMiddleware",
    *MIDDLEWARE,
]

INTERNAL_IPS = ["127.0.0.1"]

# Browsable API for trying quote requests by hand
REST_FRAMEWORK["DEFAULT_RENDERER_CLASSES"] = [
    "rest_framework.renderers.JSONRenderer",
    "rest_framework.renderers.BrowsableAPIRenderer",
]
REST_FRAMEWORK["DEFAULT_PARSER_CLASSES"] = [
    "rest_framework.parsers.JSONParser",
    "rest_framework.parsers.FormParser",
]

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": app_settings.logging.level,
    },
    "loggers": {
        "django.db.backends": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}
