"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Write
methods are wrapped in ``transaction.atomic()``: called from a service
that already opened a transaction they become savepoints of it, so the
whole Order aggregate still commits or rolls back as one unit.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.orders.models import Order, OrderLine
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _with_lines(self) -> "models.QuerySet[Order]":
        return Order.objects.prefetch_related("lines__product")

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_header(self, data: Dict[str, Any]) -> Order:
        order = Order(**data)
        order.save()
        logger.info("order.header_created", order_id=str(order.id), kind=order.kind)
        return order

    @transaction.atomic
    def add_lines(self, order: Order, lines: List[Dict[str, Any]]) -> List[OrderLine]:
        """Insert all lines in one statement.

        ``bulk_create`` skips ``OrderLine.save()``, so the subtotal is
        computed here.
        """
        objs = []
        for position, line_data in enumerate(lines):
            line = OrderLine(
                order=order,
                product_id=line_data["product_id"],
                quantity=line_data["quantity"],
                unit_price=line_data["unit_price"],
                position=position,
            )
            line.subtotal = line.compute_subtotal()
            objs.append(line)
        created = OrderLine.objects.bulk_create(objs)
        logger.info("order.lines_created", order_id=str(order.id), line_count=len(created))
        return created

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve an order with eager-loaded lines and their products.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._with_lines().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: Any) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Eager-loads lines (with product) so the caller can build the
        aggregate while the row is locked.  Returns ``None`` for
        non-existent or invalid IDs.
        """
        try:
            return self._with_lines().select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return self._with_lines().filter(idempotency_key=key).first()

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Order]":
        """List orders with optional filters and eager-loaded lines.

        Supported filter keys include ``status``, ``kind`` and ``user_id``.
        """
        queryset = self._with_lines()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order, update_fields: Optional[List[str]] = None) -> Order:
        entity.save(update_fields=update_fields)
        logger.info(
            "order.saved",
            order_id=str(entity.id),
            fields=update_fields or "all",
        )
        return entity

    @transaction.atomic
    def delete(self, id: Any) -> bool:
        """Delete an order and, by cascade, its lines.

        Returns ``False`` if no order exists with the given ID.
        """
        try:
            deleted, _ = Order.objects.filter(id=id).delete()
        except (ValueError, ValidationError):
            return False
        if not deleted:
            return False
        logger.info("order.deleted", order_id=str(id))
        return True
