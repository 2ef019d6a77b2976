"""Catalog domain exceptions.

Raised by the catalog query service and the inventory ledger.  The API
layer (Views) catches these and translates them into appropriate HTTP
responses.
"""

from __future__ import annotations

from typing import Any


class ProductNotFound(Exception):
    """A referenced product id does not resolve."""

    def __init__(self, product_id: Any) -> None:
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found.")


class InsufficientStock(Exception):
    """Requested quantity exceeds the stock available to this transaction."""

    def __init__(self, product_id: Any, requested: int, available: int) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}."
        )


class CategoryNotFound(Exception):
    """The requested category does not exist."""


class BrandNotFound(Exception):
    """The requested brand does not exist."""


class EmptySearchQuery(Exception):
    """A product search was issued without a query string."""
