"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.

``ProductNotFound`` and ``InsufficientStock`` are raised by the inventory
ledger and re-exported here so callers of the order services can import
every error they may see from one place.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from modules.catalog.exceptions import InsufficientStock, ProductNotFound

__all__ = [
    "InsufficientStock",
    "OrderError",
    "OrderNotFound",
    "OrderReadFailure",
    "PriceMismatch",
    "ProductNotFound",
    "TransactionFailure",
]


class OrderError(Exception):
    """Base class for order subsystem failures."""


class OrderNotFound(OrderError):
    """The requested order does not exist."""


class TransactionFailure(OrderError):
    """The storage layer failed to apply or commit the transaction.

    The outcome of the write is unknown; callers must re-read before
    retrying (or retry with the same idempotency key).
    """


class OrderReadFailure(OrderError):
    """The order was committed but could not be re-read for the response."""

    def __init__(self, order_id: Any) -> None:
        self.order_id = order_id
        super().__init__(
            f"Order {order_id} was created but could not be loaded."
        )


class PriceMismatch(OrderError):
    """Caller-supplied price differs from the sum of the lines.

    Only raised when ``ORDERS_ENFORCE_PRICE_MATCH`` is enabled.
    """

    def __init__(self, supplied: Decimal, computed: Decimal) -> None:
        self.supplied = supplied
        self.computed = computed
        super().__init__(
            f"Price doesn't match order lines total: "
            f"expected {computed}, received {supplied}."
        )
