"""Test settings: SQLite (unless DATABASE_URL is set) and an in-process cache."""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from config.settings import *  # noqa: E402,F401,F403
from config.settings import BASE_DIR, REST_FRAMEWORK  # noqa: E402

from decouple import config  # noqa: E402
from dj_database_url import parse as db_url  # noqa: E402

DEBUG = False

DATABASES = {
    "default": config(
        "DATABASE_URL",
        default=f'sqlite:///{BASE_DIR / "test.sqlite3"}',
        cast=db_url,
    )
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "storefront-tests",
    }
}

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_RATES": {
        **REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"],
        "anon": "10000/hour",
        "user": "10000/hour",
        "order_placement": "10000/minute",
        "order_listing": "10000/minute",
    },
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

ORDERS_ENFORCE_PRICE_MATCH = False

if DATABASES["default"]["ENGINE"] == "django.db.backends.sqlite3":
    # A file, not the in-memory default, so threaded tests share one database.
    DATABASES["default"]["TEST"] = {"NAME": str(BASE_DIR / "test_storefront.sqlite3")}
    DATABASES["default"].setdefault("OPTIONS", {}).update(
        {"timeout": 20, "transaction_mode": "IMMEDIATE"}
    )
