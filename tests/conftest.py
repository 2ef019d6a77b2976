from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.catalog.models import Brand, Category, Product


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def auth_client():
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    user = get_user_model().objects.create_user(
        username="storefront-user", password="testpass123"
    )
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def category():
    return Category.objects.create(name="Smartphones", description="Phones")


@pytest.fixture()
def brand():
    return Brand.objects.create(name="Kaito", country="Japan")


@pytest.fixture()
def make_product():
    """Factory for catalog products with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "name": f"Product {counter['n']}",
            "price": Decimal("10.00"),
            "stock_quantity": 10,
        }
        data.update(overrides)
        return Product.objects.create(**data)

    return _make
