"""Unit tests for the inventory ledger.

Covers:
- Stock reads and the not-found path.
- Conditional decrement: succeeds only while enough stock remains.
- A decrement decided on a stale read is still refused.
- Row locks return only the products that exist.
"""

from __future__ import annotations

from uuid import uuid4

import pytest
from django.db import transaction

from modules.catalog.exceptions import InsufficientStock, ProductNotFound
from modules.catalog.models import Product
from modules.catalog.repositories.ledger import InventoryDjangoLedger

pytestmark = pytest.mark.unit


@pytest.fixture()
def ledger():
    return InventoryDjangoLedger()


class TestGetStock:
    def test_returns_current_stock(self, ledger, make_product):
        product = make_product(stock_quantity=7)
        assert ledger.get_stock(product.id) == 7

    def test_unknown_product(self, ledger):
        with pytest.raises(ProductNotFound):
            ledger.get_stock(uuid4())

    def test_malformed_id(self, ledger):
        with pytest.raises(ProductNotFound):
            ledger.get_stock("nope")


class TestDecrementStock:
    def test_decrements_and_returns_remaining(self, ledger, make_product):
        product = make_product(stock_quantity=5)
        assert ledger.decrement_stock(product.id, 3) == 2
        product.refresh_from_db()
        assert product.stock_quantity == 2

    def test_can_take_everything(self, ledger, make_product):
        product = make_product(stock_quantity=4)
        assert ledger.decrement_stock(product.id, 4) == 0

    def test_refuses_when_not_enough(self, ledger, make_product):
        product = make_product(stock_quantity=2)
        with pytest.raises(InsufficientStock) as exc_info:
            ledger.decrement_stock(product.id, 3)
        assert exc_info.value.product_id == product.id
        assert exc_info.value.requested == 3
        assert exc_info.value.available == 2
        product.refresh_from_db()
        assert product.stock_quantity == 2

    def test_unknown_product(self, ledger):
        with pytest.raises(ProductNotFound):
            ledger.decrement_stock(uuid4(), 1)

    @pytest.mark.parametrize("amount", [0, -2])
    def test_amount_must_be_positive(self, ledger, make_product, amount):
        product = make_product()
        with pytest.raises(ValueError):
            ledger.decrement_stock(product.id, amount)

    def test_stale_read_cannot_oversell(self, ledger, make_product):
        """A caller that read stock=5 must not sell 5 after another sale."""
        product = make_product(stock_quantity=5)
        seen = ledger.get_stock(product.id)

        # Another transaction takes 3 units after our read.
        Product.objects.filter(id=product.id).update(stock_quantity=2)

        with pytest.raises(InsufficientStock):
            ledger.decrement_stock(product.id, seen)
        product.refresh_from_db()
        assert product.stock_quantity == 2


class TestLockProducts:
    def test_returns_locked_rows_by_id(self, ledger, make_product):
        a, b = make_product(), make_product()
        with transaction.atomic():
            locked = ledger.lock_products([b.id, a.id, a.id])
        assert set(locked) == {a.id, b.id}
        assert locked[a.id].stock_quantity == a.stock_quantity

    def test_unknown_ids_are_absent(self, ledger, make_product):
        product = make_product()
        with transaction.atomic():
            locked = ledger.lock_products([product.id, uuid4()])
        assert list(locked) == [product.id]

    def test_empty_input(self, ledger):
        assert ledger.lock_products([]) == {}
