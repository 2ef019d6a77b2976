"""Unit tests for CatalogQueryService.

Covers:
- Product listing windows and category/brand filters.
- Search fallback: product name, then category name, then brand name.
- Category / brand detail with a paginated product window.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.catalog.exceptions import (
    BrandNotFound,
    CategoryNotFound,
    EmptySearchQuery,
    ProductNotFound,
)
from modules.catalog.models import Brand, Category
from modules.catalog.views import build_catalog_service
from modules.core.pagination import InvalidPageRange

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return build_catalog_service()


class TestListProducts:
    def test_skip_ten_limit_five_over_twelve(self, service, make_product):
        products = [make_product() for _ in range(12)]
        page = service.list_products(skip=10, limit=5)
        assert page.items == products[10:12]
        assert page.total == 12

    def test_no_limit_returns_all(self, service, make_product):
        products = [make_product() for _ in range(3)]
        assert service.list_products().items == products

    def test_filter_by_category_and_brand(self, service, make_product, category, brand):
        both = make_product(category=category, brand=brand)
        make_product(category=category)
        make_product(brand=brand)
        page = service.list_products(category_id=category.id, brand_id=brand.id)
        assert page.items == [both]
        assert page.total == 1

    def test_negative_limit(self, service):
        with pytest.raises(InvalidPageRange):
            service.list_products(limit=-1)


class TestGetProduct:
    def test_found(self, service, make_product):
        product = make_product()
        assert service.get_product(product.id) == product

    def test_missing(self, service):
        with pytest.raises(ProductNotFound):
            service.get_product(uuid4())


class TestSearchProducts:
    def test_matches_product_name_first(self, service, make_product):
        audio = Category.objects.create(name="Audio")
        by_name = make_product(name="Audio Cable")
        make_product(name="Speaker", category=audio)
        assert service.search_products("audio") == [by_name]

    def test_falls_back_to_category_name(self, service, make_product):
        audio = Category.objects.create(name="Audio")
        speaker = make_product(name="Speaker", category=audio)
        make_product(name="Kettle")
        assert service.search_products("AUDIO") == [speaker]

    def test_falls_back_to_brand_name(self, service, make_product):
        veloce = Brand.objects.create(name="Veloce")
        kettle = make_product(name="Kettle", brand=veloce)
        make_product(name="Toaster")
        assert service.search_products("veloce") == [kettle]

    def test_category_without_products_falls_through_to_brand(
        self, service, make_product
    ):
        Category.objects.create(name="Nordic")
        nordlys = Brand.objects.create(name="Nordic Light")
        lamp = make_product(name="Lamp", brand=nordlys)
        assert service.search_products("nordic") == [lamp]

    def test_no_match_is_empty(self, service, make_product):
        make_product(name="Kettle")
        assert service.search_products("zzz") == []

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_blank_query_rejected(self, service, query):
        with pytest.raises(EmptySearchQuery):
            service.search_products(query)


class TestCategoriesAndBrands:
    def test_list_categories(self, service):
        created = [Category.objects.create(name=f"C{i}") for i in range(3)]
        page = service.list_categories(skip=1, limit=1)
        assert page.items == [created[1]]
        assert page.total == 3

    def test_get_category_with_product_window(self, service, make_product, category):
        products = [make_product(category=category) for _ in range(4)]
        make_product()
        result = service.get_category(category.id, product_skip=1, product_limit=2)
        assert result.category == category
        assert result.products.items == products[1:3]
        assert result.products.total == 4

    def test_get_category_missing(self, service):
        with pytest.raises(CategoryNotFound):
            service.get_category(uuid4())

    def test_list_brands(self, service, brand):
        assert service.list_brands().items == [brand]

    def test_listings_prefetch_products(
        self, service, make_product, category, brand, django_assert_num_queries
    ):
        product = make_product(category=category, brand=brand)

        with django_assert_num_queries(3):
            categories = service.list_categories().items
            assert list(categories[0].products.all()) == [product]
        with django_assert_num_queries(3):
            brands = service.list_brands().items
            assert list(brands[0].products.all()) == [product]

    def test_get_brand_with_products(self, service, make_product, brand):
        product = make_product(brand=brand)
        result = service.get_brand(brand.id)
        assert result.brand == brand
        assert result.products.items == [product]

    def test_get_brand_missing(self, service):
        with pytest.raises(BrandNotFound):
            service.get_brand("not-a-uuid")
