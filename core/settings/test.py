"""
Test settings for crossborder_quotes project.

Tables are created from the models on an in-memory SQLite database and
the cache is disabled, so every quote request is calculated.
"""

from .base import *

SECRET_KEY = "test-secret-key-not-for-production"  # noqa: S105

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.dummy.DummyCache",
    }
}

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

LOGGING = {
    "version": 1,
    "disable_existing_loggers": True,
    "handlers": {
        "null": {
            "class": "logging.NullHandler",
        },
    },
    "root": {
        "handlers": ["null"],
        "level": "WARNING",
    },
}

# Only warnings and errors reach the test output
configure_logging(json_format=False, log_level="WARNING")
