"""Catalog API views.

Exposes the ``CatalogQueryService`` via HTTP using DRF ViewSets.
Catalog browsing is public.  Domain exceptions are caught and translated
into appropriate HTTP status codes; the view never swallows generic
exceptions.
"""

from __future__ import annotations

from typing import Any, Dict, Type

from rest_framework import serializers, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.catalog.exceptions import (
    BrandNotFound,
    CategoryNotFound,
    EmptySearchQuery,
    ProductNotFound,
)
from modules.catalog.repositories.django_repository import (
    BrandDjangoRepository,
    CategoryDjangoRepository,
    ProductDjangoRepository,
)
from modules.catalog.serializers import (
    BrandListSerializer,
    BrandSerializer,
    CategoryListSerializer,
    CategorySerializer,
    ProductListQuerySerializer,
    ProductSerializer,
)
from modules.catalog.services import CatalogQueryService
from modules.core.pagination import InvalidPageRange, Page, parse_page_params


def build_catalog_service() -> CatalogQueryService:
    return CatalogQueryService(
        product_repository=ProductDjangoRepository(),
        category_repository=CategoryDjangoRepository(),
        brand_repository=BrandDjangoRepository(),
    )


def page_payload(
    key: str, page: Page, serializer_class: Type[serializers.Serializer]
) -> Dict[str, Any]:
    return {
        key: serializer_class(page.items, many=True).data,
        "total": page.total,
        "skip": page.skip,
        "limit": page.limit,
    }


def _bad_request(exc: Exception) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


class CatalogViewSet(ViewSet):
    """Shared wiring for the public catalog endpoints."""

    permission_classes = [AllowAny]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_catalog_service()


class ProductViewSet(CatalogViewSet):
    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/products/?skip=&limit=&category_id=&brand_id="""
        query = ProductListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            skip, limit = parse_page_params(request.query_params)
            page = self._service.list_products(
                skip=skip,
                limit=limit,
                category_id=query.validated_data.get("category_id"),
                brand_id=query.validated_data.get("brand_id"),
            )
        except InvalidPageRange as exc:
            return _bad_request(exc)
        return Response(page_payload("products", page, ProductSerializer))

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._service.get_product(pk)
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(ProductSerializer(product).data)

    @action(detail=False, methods=["get"])
    def search(self, request: Request) -> Response:
        """GET /api/v1/products/search/?q="""
        try:
            products = self._service.search_products(request.query_params.get("q", ""))
        except EmptySearchQuery as exc:
            return _bad_request(exc)
        return Response({"products": ProductSerializer(products, many=True).data})


class CategoryViewSet(CatalogViewSet):
    def list(self, request: Request) -> Response:
        """GET /api/v1/categories/?skip=&limit="""
        try:
            skip, limit = parse_page_params(request.query_params)
            page = self._service.list_categories(skip=skip, limit=limit)
        except InvalidPageRange as exc:
            return _bad_request(exc)
        return Response(page_payload("categories", page, CategoryListSerializer))

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/categories/{pk}/?product_skip=&product_limit="""
        try:
            skip, limit = parse_page_params(
                request.query_params, "product_skip", "product_limit"
            )
            result = self._service.get_category(pk, skip, limit)
        except InvalidPageRange as exc:
            return _bad_request(exc)
        except CategoryNotFound:
            return Response(
                {"detail": "Category not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        data = dict(CategorySerializer(result.category).data)
        data.update(page_payload("products", result.products, ProductSerializer))
        return Response(data)


class BrandViewSet(CatalogViewSet):
    def list(self, request: Request) -> Response:
        """GET /api/v1/brands/?skip=&limit="""
        try:
            skip, limit = parse_page_params(request.query_params)
            page = self._service.list_brands(skip=skip, limit=limit)
        except InvalidPageRange as exc:
            return _bad_request(exc)
        return Response(page_payload("brands", page, BrandListSerializer))

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/brands/{pk}/?product_skip=&product_limit="""
        try:
            skip, limit = parse_page_params(
                request.query_params, "product_skip", "product_limit"
            )
            result = self._service.get_brand(pk, skip, limit)
        except InvalidPageRange as exc:
            return _bad_request(exc)
        except BrandNotFound:
            return Response(
                {"detail": "Brand not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        data = dict(BrandSerializer(result.brand).data)
        data.update(page_payload("products", result.products, ProductSerializer))
        return Response(data)
