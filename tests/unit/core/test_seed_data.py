from io import StringIO

import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command

from modules.catalog.models import Brand, Category, Product
from modules.orders.models import Order

pytestmark = pytest.mark.unit


def _seed(orders: int) -> str:
    out = StringIO()
    call_command("seed_data", orders=orders, stdout=out)
    return out.getvalue()


def test_seeds_catalog_and_orders():
    output = _seed(orders=4)

    assert "Seed completed" in output
    assert Category.objects.count() == 4
    assert Brand.objects.count() == 3
    assert Product.objects.count() == 12
    assert Order.objects.count() == 4
    assert Order.objects.filter(kind="legal").count() == 2
    assert get_user_model().objects.filter(username="admin", is_superuser=True).exists()


def test_rerun_does_not_duplicate():
    _seed(orders=3)
    stock = dict(Product.objects.values_list("id", "stock_quantity"))

    _seed(orders=3)

    assert Product.objects.count() == 12
    assert Order.objects.count() == 3
    assert dict(Product.objects.values_list("id", "stock_quantity")) == stock
