"""Django ORM implementations of the catalog read repositories.

Error handling follows the Null Object pattern: look-ups return ``None``
instead of raising; the Service Layer decides how to translate a
missing entity into a domain exception.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError
from django.db import models

from modules.catalog.models import Brand, Category, Product
from modules.catalog.repositories.interfaces import (
    IBrandRepository,
    ICategoryRepository,
    IProductRepository,
)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def _base(self) -> "models.QuerySet[Product]":
        return Product.objects.select_related("category", "brand")

    def get_by_id(self, id: Any) -> Optional[Product]:
        """Retrieve a product with its category and brand.

        Returns ``None`` for non-existent or malformed IDs.
        """
        try:
            return self._base().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"category_id": "0190..."}
            {"brand_id__in": [...]}
        """
        queryset = self._base()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def search_by_name(self, query: str) -> "models.QuerySet[Product]":
        return self._base().filter(name__icontains=query)


class CategoryDjangoRepository(ICategoryRepository):
    """Concrete Category repository backed by Django ORM."""

    def get_by_id(self, id: Any) -> Optional[Category]:
        try:
            return Category.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Category]":
        queryset = Category.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_with_products(self) -> "models.QuerySet[Category]":
        return self.list().prefetch_related("products")

    def ids_matching_name(self, query: str) -> list:
        return list(
            Category.objects.filter(name__icontains=query).values_list("id", flat=True)
        )


class BrandDjangoRepository(IBrandRepository):
    """Concrete Brand repository backed by Django ORM."""

    def get_by_id(self, id: Any) -> Optional[Brand]:
        try:
            return Brand.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Brand]":
        queryset = Brand.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_with_products(self) -> "models.QuerySet[Brand]":
        return self.list().prefetch_related("products")

    def ids_matching_name(self, query: str) -> list:
        return list(
            Brand.objects.filter(name__icontains=query).values_list("id", flat=True)
        )
