"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``PlaceOrderLineDTO``: one requested ``(product_id, quantity)`` pair.
- ``PlaceOrderDTO``: placement request (header fields per kind + lines).
- ``UpdateOrderDTO``: partial header update with explicit optional fields.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import IDEMPOTENCY_KEY_MAX_LENGTH, OrderKind

_REQUIRED_BY_KIND: Dict[str, tuple[str, ...]] = {
    OrderKind.INDIVIDUAL.value: ("phone", "name"),
    OrderKind.LEGAL.value: ("organization", "tax_id"),
}


def _non_negative(v: Optional[Decimal], label: str) -> Optional[Decimal]:
    if v is not None and v < 0:
        raise ValueError(f"{label} cannot be negative.")
    return v


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------


class PlaceOrderLineDTO(BaseModel):
    """Immutable DTO for a single line of a placement request.

    The unit price is resolved by the Service Layer from the catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class PlaceOrderDTO(BaseModel):
    """Immutable DTO for order placement requests.

    Validates:
    - ``price`` and ``bonus`` are non-negative.
    - ``status`` and ``service_mode`` are non-empty.
    - individual orders carry ``phone`` and ``name``; legal orders carry
      ``organization`` and ``tax_id``.
    - ``lines`` contains at least one line.  The same product may appear
      on several lines; their quantities add up against one stock figure.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    kind: OrderKind
    price: Decimal
    bonus: Decimal = Decimal("0.00")
    user_id: Optional[int] = None
    status: str
    service_mode: str
    phone: str = ""
    name: str = ""
    organization: str = ""
    tax_id: str = ""
    comment: str = ""
    lines: List[PlaceOrderLineDTO]
    idempotency_key: Optional[str] = None

    @field_validator("price")
    @classmethod
    def price_must_be_non_negative(cls, v: Decimal) -> Decimal:
        return _non_negative(v, "Price")

    @field_validator("bonus")
    @classmethod
    def bonus_must_be_non_negative(cls, v: Decimal) -> Decimal:
        return _non_negative(v, "Bonus")

    @field_validator("status", "service_mode")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("This field must not be empty.")
        return v

    @field_validator("lines")
    @classmethod
    def lines_must_not_be_empty(
        cls, v: List[PlaceOrderLineDTO]
    ) -> List[PlaceOrderLineDTO]:
        if not v:
            raise ValueError("Order must have at least one line.")
        return v

    @field_validator("idempotency_key")
    @classmethod
    def idempotency_key_length(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) > IDEMPOTENCY_KEY_MAX_LENGTH:
            raise ValueError(
                f"Idempotency key must be at most {IDEMPOTENCY_KEY_MAX_LENGTH} characters."
            )
        return v or None

    @model_validator(mode="after")
    def kind_fields_present(self):
        required = _REQUIRED_BY_KIND[self.kind.value]
        missing = [f for f in required if not getattr(self, f)]
        if missing:
            raise ValueError(
                f"Missing required fields for {self.kind.value} order: "
                f"{', '.join(missing)}."
            )
        return self

    def header_fields(self) -> Dict[str, Any]:
        """Header columns to persist, restricted to this order's kind."""
        fields: Dict[str, Any] = {
            "kind": self.kind.value,
            "price": self.price,
            "bonus": self.bonus,
            "user_id": self.user_id,
            "status": self.status,
            "service_mode": self.service_mode,
            "comment": self.comment,
            "idempotency_key": self.idempotency_key,
        }
        for field in _REQUIRED_BY_KIND[self.kind.value]:
            fields[field] = getattr(self, field)
        return fields


# ---------------------------------------------------------------------------
# Mutation
# ---------------------------------------------------------------------------


class UpdateOrderDTO(BaseModel):
    """Immutable DTO for partial order updates.

    ``None`` means "not supplied"; every supplied value is applied, so
    ``price=0`` / ``bonus=0`` set zero and ``comment=""`` clears the
    comment.  Fields that identify the order (status and the kind's
    contact fields) cannot be blanked.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    price: Optional[Decimal] = None
    bonus: Optional[Decimal] = None
    status: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    organization: Optional[str] = None
    tax_id: Optional[str] = None
    comment: Optional[str] = None

    @field_validator("price")
    @classmethod
    def price_must_be_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _non_negative(v, "Price")

    @field_validator("bonus")
    @classmethod
    def bonus_must_be_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _non_negative(v, "Bonus")

    @field_validator("status", "phone", "name", "organization", "tax_id")
    @classmethod
    def must_not_be_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v:
            raise ValueError("This field must not be empty.")
        return v

    def supplied(self) -> Dict[str, Any]:
        """Fields the caller actually supplied."""
        return self.model_dump(exclude_none=True)
