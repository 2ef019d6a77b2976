"""Order repository interface.

Extends ``IRepository[Order]`` with the methods the Order aggregate
needs: header creation, bulk line insertion, locked reads and
idempotency-key look-up.

The Service Layer depends exclusively on this contract (DIP).  Writes
must join the caller's transaction so that the header, the lines and the
stock movements of one order commit together.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderLine


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create_header(self, data: Dict[str, Any]) -> Order:
        """Insert the order header row and return it (with its id)."""

    @abstractmethod
    def add_lines(self, order: Order, lines: List[Dict[str, Any]]) -> List[OrderLine]:
        """Insert all lines of *order*.

        Each dict carries ``product_id``, ``quantity`` and ``unit_price``;
        list position is preserved.
        """

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve an order with prefetched lines and products."""

    @abstractmethod
    def get_for_update(self, id: Any) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Order]":
        """List orders in stored order with optional filters."""

    @abstractmethod
    def save(self, entity: Order, update_fields: Optional[List[str]] = None) -> Order:
        """Persist header changes (optionally restricted to *update_fields*)."""
