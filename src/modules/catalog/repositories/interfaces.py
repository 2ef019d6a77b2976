"""Catalog repository and inventory ledger interfaces.

The catalog repositories are read-only: catalog editing is owned by
another system.  ``IInventoryLedger`` is the single write path for
``Product.stock_quantity`` and must compose with the caller's
transaction so that every stock movement of one order commits or rolls
back together.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from django.db import models

from modules.core.repositories.interfaces import IReadRepository

if TYPE_CHECKING:
    from modules.catalog.models import Brand, Category, Product


class IProductRepository(IReadRepository["Product"]):
    """Read contract for products."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List products in stored order with optional ORM look-ups."""

    @abstractmethod
    def search_by_name(self, query: str) -> "models.QuerySet[Product]":
        """Case-insensitive substring match on the product name."""


class ICategoryRepository(IReadRepository["Category"]):
    """Read contract for categories."""

    @abstractmethod
    def list_with_products(self) -> "models.QuerySet[Category]":
        """List categories in stored order with their products prefetched."""

    @abstractmethod
    def ids_matching_name(self, query: str) -> list:
        """Return ids of categories whose name contains *query* (any case)."""


class IBrandRepository(IReadRepository["Brand"]):
    """Read contract for brands."""

    @abstractmethod
    def list_with_products(self) -> "models.QuerySet[Brand]":
        """List brands in stored order with their products prefetched."""

    @abstractmethod
    def ids_matching_name(self, query: str) -> list:
        """Return ids of brands whose name contains *query* (any case)."""


class IInventoryLedger(ABC):
    """Owner of product stock counts.

    Every method runs inside the caller's ``transaction.atomic`` block
    when one is open.
    """

    @abstractmethod
    def get_stock(self, product_id: Any) -> int:
        """Return the current stock of *product_id*.

        Raises:
            ProductNotFound: the id does not resolve.
        """

    @abstractmethod
    def lock_products(self, product_ids: Iterable[Any]) -> Dict[Any, "Product"]:
        """Lock the given product rows for the rest of the transaction.

        Returns a mapping ``{product_id: Product}``; ids that do not
        resolve are simply absent.
        """

    @abstractmethod
    def decrement_stock(self, product_id: Any, amount: int) -> int:
        """Atomically remove *amount* units and return the remaining stock.

        Raises:
            ProductNotFound: the id does not resolve.
            InsufficientStock: fewer than *amount* units remain.
        """
