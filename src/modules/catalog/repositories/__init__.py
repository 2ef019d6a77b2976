"""Catalog repositories package."""

from modules.catalog.repositories.django_repository import (
    BrandDjangoRepository,
    CategoryDjangoRepository,
    ProductDjangoRepository,
)
from modules.catalog.repositories.interfaces import (
    IBrandRepository,
    ICategoryRepository,
    IInventoryLedger,
    IProductRepository,
)
from modules.catalog.repositories.ledger import InventoryDjangoLedger

__all__ = [
    "BrandDjangoRepository",
    "CategoryDjangoRepository",
    "IBrandRepository",
    "ICategoryRepository",
    "IInventoryLedger",
    "IProductRepository",
    "InventoryDjangoLedger",
    "ProductDjangoRepository",
]
