"""Catalog models: Category, Brand and Product.

Business rules implemented:
- Product price is a non-negative decimal.
- Product stock quantity never goes negative (``PositiveIntegerField`` plus
  a database check constraint).
- Stock is written only by the inventory ledger during order placement;
  catalog editing happens outside this service (Django admin / imports).
- Listings use a stable "stored order": ``created_at`` then ``id``.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class Category(BaseModel):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    image = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        db_table = "categories"
        ordering = ["created_at", "id"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:
        return self.name


class Brand(BaseModel):
    name = models.CharField(max_length=255)
    country = models.CharField(max_length=100, blank=True, default="")
    description = models.TextField(blank=True, default="")
    image = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        db_table = "brands"
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return self.name


class Product(BaseModel):
    """Sellable catalog item.

    ``stock_quantity`` is the contended resource under concurrent order
    placement.  Read it freely for display, but only
    ``InventoryDjangoLedger`` may decrement it.
    """

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    stock_quantity = models.PositiveIntegerField(default=0)
    rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[
            MinValueValidator(Decimal("0.00")),
            MaxValueValidator(Decimal("5.00")),
        ],
    )
    images = models.JSONField(default=list, blank=True)
    info = models.TextField(blank=True, default="")
    feature = models.TextField(blank=True, default="")
    guarantee = models.CharField(max_length=255, blank=True, default="")
    discount = models.CharField(max_length=255, blank=True, default="")
    category = models.ForeignKey(
        "catalog.Category",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )
    brand = models.ForeignKey(
        "catalog.Brand",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    class Meta:
        db_table = "products"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["name"], name="products_name_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="products_price_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="products_stock_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price < 0:
            raise ValidationError({"price": "Price cannot be negative."})
        if self.images and not isinstance(self.images, list):
            raise ValidationError({"images": "Images must be a list of URLs."})

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.name} ({self.stock_quantity} in stock)"
