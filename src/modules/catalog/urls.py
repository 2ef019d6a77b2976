"""Catalog URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.catalog.views import BrandViewSet, CategoryViewSet, ProductViewSet

router = DefaultRouter(trailing_slash=True)
router.register("products", ProductViewSet, basename="product")
router.register("categories", CategoryViewSet, basename="category")
router.register("brands", BrandViewSet, basename="brand")

urlpatterns = router.urls
