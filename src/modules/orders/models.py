"""Order and OrderLine models.

Business rules implemented:
- An Order and its OrderLines are created together in one transaction.
- ``kind`` selects the header fields in use: individual orders carry
  ``phone`` / ``name``, legal orders carry ``organization`` / ``tax_id``.
- ``price`` is the caller-supplied total and is authoritative; the sum of
  line subtotals is exposed as ``lines_total`` for reconciliation.
- Idempotency via ``idempotency_key`` unique constraint.
- OrderLine snapshots the product price at placement (``unit_price``) and
  is immutable afterwards.
- ``user_id`` is a plain reference to the storefront user; it is not a
  foreign key and is not validated.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import IDEMPOTENCY_KEY_MAX_LENGTH, OrderKind


class Order(BaseModel):
    """Order aggregate root (header)."""

    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    bonus = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    user_id = models.PositiveBigIntegerField(null=True, blank=True, db_index=True)
    kind = models.CharField(max_length=20, choices=OrderKind.choices)
    status = models.CharField(max_length=50)
    service_mode = models.CharField(max_length=50)
    phone = models.CharField(max_length=32, blank=True, default="")
    name = models.CharField(max_length=255, blank=True, default="")
    organization = models.CharField(max_length=255, blank=True, default="")
    tax_id = models.CharField(max_length=32, blank=True, default="")
    comment = models.TextField(blank=True, default="")
    idempotency_key = models.CharField(
        max_length=IDEMPOTENCY_KEY_MAX_LENGTH,
        unique=True,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["kind"], name="orders_kind_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="orders_price_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(bonus__gte=0),
                name="orders_bonus_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # Kind helpers
    # ------------------------------------------------------------------

    @property
    def is_individual(self) -> bool:
        return self.kind == OrderKind.INDIVIDUAL

    @property
    def is_legal(self) -> bool:
        return self.kind == OrderKind.LEGAL

    @property
    def lines_total(self) -> Decimal:
        """Sum of line subtotals (uses prefetched lines when available)."""
        return sum((line.subtotal for line in self.lines.all()), Decimal("0.00"))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.kind == OrderKind.INDIVIDUAL:
            required = ("phone", "name")
        elif self.kind == OrderKind.LEGAL:
            required = ("organization", "tax_id")
        else:
            raise ValidationError({"kind": f"Unknown order kind '{self.kind}'."})
        errors = {
            field: "This field is required for this order kind."
            for field in required
            if not getattr(self, field)
        }
        if errors:
            raise ValidationError(errors)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"Order {self.id} [{self.kind}] ({self.status})"


class OrderLine(BaseModel):
    """Line linking an Order to a Product with the requested quantity.

    ``unit_price`` is a **snapshot** of the product price at placement;
    it never changes even if the product price is updated later.
    ``subtotal`` is always ``quantity * unit_price``.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="lines",
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="order_lines",
    )
    position = models.PositiveIntegerField(default=0)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, editable=False)

    class Meta:
        db_table = "order_lines"
        ordering = ["position", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_lines_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def compute_subtotal(self) -> Decimal:
        return self.quantity * self.unit_price

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.compute_subtotal()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity} (${self.subtotal})"
