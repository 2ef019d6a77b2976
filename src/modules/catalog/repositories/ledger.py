"""Django ORM implementation of the inventory ledger.

Two guards keep stock from going negative under concurrent placements:

1. ``lock_products`` takes ``SELECT ... FOR UPDATE`` row locks (in primary
   key order, so two orders touching the same products cannot deadlock)
   for the lifetime of the caller's transaction.
2. ``decrement_stock`` is a conditional ``UPDATE ... SET stock = stock - n
   WHERE id = ? AND stock >= n``; zero affected rows means the decrement
   is refused, whatever the caller read earlier.

On backends without row locks (SQLite) the conditional update alone is
sufficient because writers are serialised by the database.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.catalog.exceptions import InsufficientStock, ProductNotFound
from modules.catalog.models import Product
from modules.catalog.repositories.interfaces import IInventoryLedger

logger = structlog.get_logger(__name__)


class InventoryDjangoLedger(IInventoryLedger):
    """Concrete inventory ledger backed by the ``products`` table."""

    def _current_stock(self, product_id: Any) -> Optional[int]:
        try:
            return (
                Product.objects.filter(id=product_id)
                .values_list("stock_quantity", flat=True)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_stock(self, product_id: Any) -> int:
        stock = self._current_stock(product_id)
        if stock is None:
            raise ProductNotFound(product_id)
        return stock

    def lock_products(self, product_ids: Iterable[Any]) -> Dict[Any, Product]:
        """Lock product rows until the surrounding transaction ends.

        Must be called inside ``transaction.atomic``; Django raises
        ``TransactionManagementError`` otherwise.
        """
        ids = set(product_ids)
        if not ids:
            return {}
        locked = Product.objects.select_for_update().filter(id__in=ids).order_by("id")
        products = {product.id: product for product in locked}
        logger.debug(
            "inventory.products_locked",
            requested=len(ids),
            locked=len(products),
        )
        return products

    @transaction.atomic
    def decrement_stock(self, product_id: Any, amount: int) -> int:
        if amount < 1:
            raise ValueError("Decrement amount must be at least 1.")

        try:
            updated = Product.objects.filter(
                id=product_id, stock_quantity__gte=amount
            ).update(
                stock_quantity=F("stock_quantity") - amount,
                updated_at=timezone.now(),
            )
        except (ValueError, ValidationError):
            raise ProductNotFound(product_id) from None

        remaining = self._current_stock(product_id)
        if remaining is None:
            raise ProductNotFound(product_id)
        if not updated:
            logger.warning(
                "inventory.decrement_refused",
                product_id=str(product_id),
                requested=amount,
                available=remaining,
            )
            raise InsufficientStock(product_id, requested=amount, available=remaining)

        logger.info(
            "inventory.stock_decremented",
            product_id=str(product_id),
            quantity=amount,
            remaining=remaining,
        )
        return remaining
