"""Unit tests for OrderPlacementService.

Covers:
- Placement with stock reservation and unit price snapshots.
- All-or-nothing: a missing product or short stock on any line leaves
  no order, no line and no stock change.
- Several lines for one product share one stock figure.
- Price reconciliation (logged, or refused when enforced).
- Idempotency, including the duplicate-key race.
- Storage failures and post-commit read failures.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from unittest import mock
from uuid import uuid4

import pytest
from django.db import DatabaseError

from modules.catalog.models import Product
from modules.catalog.repositories.ledger import InventoryDjangoLedger
from modules.orders.dtos import PlaceOrderDTO, PlaceOrderLineDTO
from modules.orders.exceptions import (
    InsufficientStock,
    OrderReadFailure,
    PriceMismatch,
    ProductNotFound,
    TransactionFailure,
)
from modules.orders.models import Order, OrderLine
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderPlacementService

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures / helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def service():
    return OrderPlacementService(
        order_repository=OrderDjangoRepository(),
        inventory_ledger=InventoryDjangoLedger(),
    )


@pytest.fixture()
def product_p(make_product):
    return make_product(name="P", price=Decimal("10.00"), stock_quantity=5)


def _dto(lines, price=Decimal("30.00"), **overrides) -> PlaceOrderDTO:
    data = {
        "kind": "individual",
        "price": price,
        "status": "new",
        "service_mode": "delivery",
        "phone": "+7 916 555-01-02",
        "name": "Anna",
        "lines": [
            PlaceOrderLineDTO(product_id=product_id, quantity=quantity)
            for product_id, quantity in lines
        ],
    }
    data.update(overrides)
    return PlaceOrderDTO(**data)


def _stock(product: Product) -> int:
    product.refresh_from_db()
    return product.stock_quantity


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------


class TestPlaceOrder:
    def test_reference_scenario(self, service, product_p):
        order = service.place_order(_dto([(product_p.id, 3)]))

        assert _stock(product_p) == 2
        assert order.kind == "individual"
        lines = list(order.lines.all())
        assert len(lines) == 1
        assert lines[0].product_id == product_p.id
        assert lines[0].quantity == 3

        with pytest.raises(InsufficientStock) as exc_info:
            service.place_order(_dto([(product_p.id, 3)]))
        assert exc_info.value.product_id == product_p.id
        assert exc_info.value.available == 2
        assert _stock(product_p) == 2
        assert Order.objects.count() == 1

    def test_each_product_decremented_by_its_quantity(self, service, make_product):
        a = make_product(price=Decimal("10.00"), stock_quantity=10)
        b = make_product(price=Decimal("5.00"), stock_quantity=8)
        c = make_product(price=Decimal("1.00"), stock_quantity=3)

        order = service.place_order(
            _dto([(b.id, 2), (a.id, 1), (c.id, 3)], price=Decimal("23.00"))
        )

        assert order.lines.count() == 3
        assert (_stock(a), _stock(b), _stock(c)) == (9, 6, 0)

    def test_lines_keep_caller_order_and_snapshot_price(self, service, make_product):
        a = make_product(price=Decimal("10.00"))
        b = make_product(price=Decimal("2.50"))

        dto = _dto([(b.id, 2), (a.id, 1)], price=Decimal("15.00"))
        order = service.place_order(dto)
        Product.objects.filter(id=a.id).update(price=Decimal("99.00"))

        lines = list(OrderDjangoRepository().get_by_id(order.id).lines.all())
        assert [line.product_id for line in lines] == [b.id, a.id]
        assert [line.unit_price for line in lines] == [
            Decimal("2.50"),
            Decimal("10.00"),
        ]
        assert [line.subtotal for line in lines] == [Decimal("5.00"), Decimal("10.00")]

    def test_header_fields_persisted(self, service, product_p):
        order = service.place_order(
            _dto(
                [(product_p.id, 1)],
                price=Decimal("10.00"),
                bonus=Decimal("1.50"),
                user_id=7,
                comment="Ring twice",
            )
        )
        order.refresh_from_db()
        assert order.bonus == Decimal("1.50")
        assert order.user_id == 7
        assert order.comment == "Ring twice"
        assert order.service_mode == "delivery"

    def test_legal_order(self, service, product_p):
        order = service.place_order(
            _dto(
                [(product_p.id, 1)],
                price=Decimal("10.00"),
                kind="legal",
                phone="",
                name="",
                organization="Acme LLC",
                tax_id="7707083893",
            )
        )
        assert order.is_legal
        assert order.organization == "Acme LLC"
        assert order.phone == ""


# ---------------------------------------------------------------------------
# Atomicity
# ---------------------------------------------------------------------------


class TestAllOrNothing:
    def test_short_stock_on_last_line_rolls_back(self, service, make_product):
        a = make_product(stock_quantity=10)
        b = make_product(stock_quantity=1)

        with pytest.raises(InsufficientStock) as exc_info:
            service.place_order(_dto([(a.id, 4), (b.id, 2)]))

        assert exc_info.value.product_id == b.id
        assert Order.objects.count() == 0
        assert OrderLine.objects.count() == 0
        assert (_stock(a), _stock(b)) == (10, 1)

    def test_unknown_product_rolls_back(self, service, make_product):
        a = make_product(stock_quantity=10)
        missing = uuid4()

        with pytest.raises(ProductNotFound) as exc_info:
            service.place_order(_dto([(a.id, 1), (missing, 1)]))

        assert exc_info.value.product_id == missing
        assert Order.objects.count() == 0
        assert _stock(a) == 10

    def test_duplicate_lines_claim_one_stock_figure(self, service, product_p):
        with pytest.raises(InsufficientStock) as exc_info:
            service.place_order(_dto([(product_p.id, 3), (product_p.id, 3)]))

        assert exc_info.value.requested == 3
        assert exc_info.value.available == 2
        assert _stock(product_p) == 5
        assert Order.objects.count() == 0

    def test_duplicate_lines_within_stock(self, service, product_p):
        order = service.place_order(
            _dto([(product_p.id, 2), (product_p.id, 3)], price=Decimal("50.00"))
        )
        assert order.lines.count() == 2
        assert _stock(product_p) == 0

    def test_storage_failure_is_wrapped_and_rolled_back(self, service, product_p):
        with mock.patch.object(
            OrderDjangoRepository, "add_lines", side_effect=DatabaseError("disk full")
        ):
            with pytest.raises(TransactionFailure) as exc_info:
                service.place_order(_dto([(product_p.id, 1)]))

        assert isinstance(exc_info.value.__cause__, DatabaseError)
        assert Order.objects.count() == 0
        assert _stock(product_p) == 5


# ---------------------------------------------------------------------------
# Price reconciliation
# ---------------------------------------------------------------------------


class TestPriceReconciliation:
    def test_mismatch_is_logged_and_caller_price_kept(self, service, product_p, caplog):
        with caplog.at_level(logging.WARNING):
            dto = _dto([(product_p.id, 3)], price=Decimal("25.00"))
            order = service.place_order(dto)

        assert order.price == Decimal("25.00")
        assert order.lines_total == Decimal("30.00")
        assert any("order.price_mismatch" in r.getMessage() for r in caplog.records)

    def test_mismatch_refused_when_enforced(self, product_p):
        strict = OrderPlacementService(
            order_repository=OrderDjangoRepository(),
            inventory_ledger=InventoryDjangoLedger(),
            enforce_price_match=True,
        )
        with pytest.raises(PriceMismatch) as exc_info:
            strict.place_order(_dto([(product_p.id, 3)], price=Decimal("25.00")))

        assert exc_info.value.computed == Decimal("30.00")
        assert Order.objects.count() == 0
        assert _stock(product_p) == 5

    def test_matching_price_accepted_when_enforced(self, product_p):
        strict = OrderPlacementService(
            order_repository=OrderDjangoRepository(),
            inventory_ledger=InventoryDjangoLedger(),
            enforce_price_match=True,
        )
        order = strict.place_order(_dto([(product_p.id, 3)], price=Decimal("30.00")))
        assert order.price == Decimal("30.00")

    def test_enforcement_follows_settings_by_default(self, settings, product_p):
        settings.ORDERS_ENFORCE_PRICE_MATCH = True
        strict = OrderPlacementService(
            order_repository=OrderDjangoRepository(),
            inventory_ledger=InventoryDjangoLedger(),
        )
        with pytest.raises(PriceMismatch):
            strict.place_order(_dto([(product_p.id, 1)], price=Decimal("1.00")))


# ---------------------------------------------------------------------------
# Idempotency
# ---------------------------------------------------------------------------


class TestIdempotency:
    def test_same_key_returns_same_order(self, service, product_p):
        dto = _dto([(product_p.id, 2)], price=Decimal("20.00"), idempotency_key="k-1")
        first = service.place_order(dto)
        second = service.place_order(dto)

        assert first.id == second.id
        assert Order.objects.count() == 1
        assert _stock(product_p) == 3

    def test_replay_is_reported_as_not_created(self, service, product_p):
        dto = _dto([(product_p.id, 1)], price=Decimal("10.00"), idempotency_key="k-2")
        first = service.place(dto)
        replay = service.place(dto)

        assert first.created is True
        assert replay.created is False
        assert replay.order.id == first.order.id

    def test_duplicate_key_race_resolves_to_winner(self, service, product_p):
        dto = _dto([(product_p.id, 1)], price=Decimal("10.00"), idempotency_key="race")
        winner = service.place_order(dto)

        class LateRepository(OrderDjangoRepository):
            """Misses the key on the first look-up, as a racing request would."""

            calls = 0

            def get_by_idempotency_key(self, key):
                LateRepository.calls += 1
                if LateRepository.calls == 1:
                    return None
                return super().get_by_idempotency_key(key)

        loser = OrderPlacementService(
            order_repository=LateRepository(),
            inventory_ledger=InventoryDjangoLedger(),
        )
        result = loser.place(dto)

        assert result.created is False
        assert result.order.id == winner.id
        assert Order.objects.count() == 1
        assert _stock(product_p) == 4

    def test_find_by_idempotency_key(self, service, product_p):
        assert service.find_by_idempotency_key("missing") is None
        order = service.place_order(
            _dto([(product_p.id, 1)], price=Decimal("10.00"), idempotency_key="found")
        )
        assert service.find_by_idempotency_key("found").id == order.id


# ---------------------------------------------------------------------------
# Post-commit read
# ---------------------------------------------------------------------------


class TestPostCommitRead:
    def test_missing_after_commit_raises_with_order_id(self, service, product_p):
        with mock.patch.object(OrderDjangoRepository, "get_by_id", return_value=None):
            with pytest.raises(OrderReadFailure) as exc_info:
                service.place_order(_dto([(product_p.id, 1)]))

        order = Order.objects.get()
        assert exc_info.value.order_id == order.id
        assert _stock(product_p) == 4

    def test_read_error_after_commit_keeps_write(self, service, product_p):
        with mock.patch.object(
            OrderDjangoRepository, "get_by_id", side_effect=DatabaseError("gone")
        ):
            with pytest.raises(OrderReadFailure):
                service.place_order(_dto([(product_p.id, 2)]))

        assert Order.objects.count() == 1
        assert OrderLine.objects.count() == 1
        assert _stock(product_p) == 3
