"""Catalog query service (read-only use cases).

Paginated listings and single-entity look-ups for products, categories
and brands, plus the storefront product search.  Nothing here writes:
stock shown by these queries is read without locks and is for display
only. Order placement re-reads it under lock via the inventory ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog

from modules.catalog.exceptions import (
    BrandNotFound,
    CategoryNotFound,
    EmptySearchQuery,
    ProductNotFound,
)
from modules.core.pagination import Page, paginate

if TYPE_CHECKING:
    from modules.catalog.models import Brand, Category, Product
    from modules.catalog.repositories.interfaces import (
        IBrandRepository,
        ICategoryRepository,
        IProductRepository,
    )

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CategoryWithProducts:
    category: Category
    products: Page[Product]


@dataclass(frozen=True)
class BrandWithProducts:
    brand: Brand
    products: Page[Product]


class CatalogQueryService:
    """Application service for catalog reads.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        product_repository: IProductRepository,
        category_repository: ICategoryRepository,
        brand_repository: IBrandRepository,
    ) -> None:
        self._product_repo = product_repository
        self._category_repo = category_repository
        self._brand_repo = brand_repository

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def list_products(
        self,
        skip: int = 0,
        limit: Optional[int] = None,
        category_id: Optional[Any] = None,
        brand_id: Optional[Any] = None,
    ) -> Page[Product]:
        """Return a window of products in stored order.

        ``category_id`` / ``brand_id`` narrow the listing; ``total`` counts
        the filtered set.

        Raises:
            InvalidPageRange: ``skip`` or ``limit`` is negative.
        """
        filters: Dict[str, Any] = {}
        if category_id:
            filters["category_id"] = category_id
        if brand_id:
            filters["brand_id"] = brand_id
        return paginate(self._product_repo.list(filters), skip, limit)

    def get_product(self, id: Any) -> Product:
        """Retrieve a single product.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._product_repo.get_by_id(id)
        if not product:
            raise ProductNotFound(id)
        return product

    def search_products(self, query: str) -> List[Product]:
        """Search products with a name → category → brand fallback.

        1. Products whose name contains *query* (any case).
        2. If none, products in categories whose name contains *query*.
        3. If still none, products of brands whose name contains *query*.

        Raises:
            EmptySearchQuery: *query* is blank.
        """
        query = (query or "").strip()
        if not query:
            raise EmptySearchQuery("Query parameter 'q' is required.")

        log = logger.bind(query=query)

        products = list(self._product_repo.search_by_name(query))
        if products:
            log.info(
                "catalog.search_matched", matched_on="product_name", count=len(products)
            )
            return products

        category_ids = self._category_repo.ids_matching_name(query)
        if category_ids:
            products = list(self._product_repo.list({"category_id__in": category_ids}))
            if products:
                log.info(
                    "catalog.search_matched",
                    matched_on="category_name",
                    count=len(products),
                )
                return products

        brand_ids = self._brand_repo.ids_matching_name(query)
        if brand_ids:
            products = list(self._product_repo.list({"brand_id__in": brand_ids}))

        log.info("catalog.search_matched", matched_on="brand_name", count=len(products))
        return products

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def list_categories(
        self, skip: int = 0, limit: Optional[int] = None
    ) -> Page[Category]:
        """Return a window of categories, each with all of its products."""
        return paginate(self._category_repo.list_with_products(), skip, limit)

    def get_category(
        self,
        id: Any,
        product_skip: int = 0,
        product_limit: Optional[int] = None,
    ) -> CategoryWithProducts:
        """Retrieve a category together with a window of its products.

        Raises:
            CategoryNotFound: if the category does not exist.
            InvalidPageRange: a product window bound is negative.
        """
        category = self._category_repo.get_by_id(id)
        if not category:
            raise CategoryNotFound(f"Category {id} not found.")
        products = paginate(
            self._product_repo.list({"category_id": category.id}),
            product_skip,
            product_limit,
        )
        return CategoryWithProducts(category=category, products=products)

    # ------------------------------------------------------------------
    # Brands
    # ------------------------------------------------------------------

    def list_brands(self, skip: int = 0, limit: Optional[int] = None) -> Page[Brand]:
        """Return a window of brands, each with all of its products."""
        return paginate(self._brand_repo.list_with_products(), skip, limit)

    def get_brand(
        self,
        id: Any,
        product_skip: int = 0,
        product_limit: Optional[int] = None,
    ) -> BrandWithProducts:
        """Retrieve a brand together with a window of its products.

        Raises:
            BrandNotFound: if the brand does not exist.
            InvalidPageRange: a product window bound is negative.
        """
        brand = self._brand_repo.get_by_id(id)
        if not brand:
            raise BrandNotFound(f"Brand {id} not found.")
        products = paginate(
            self._product_repo.list({"brand_id": brand.id}),
            product_skip,
            product_limit,
        )
        return BrandWithProducts(brand=brand, products=products)
