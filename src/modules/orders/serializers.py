"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict

from rest_framework import serializers

from modules.catalog.serializers import ProductSerializer
from modules.orders.constants import OrderKind
from modules.orders.models import Order, OrderLine

_REQUIRED_BY_KIND = {
    OrderKind.INDIVIDUAL.value: ("phone", "name"),
    OrderKind.LEGAL.value: ("organization", "tax_id"),
}

_MONEY = {"max_digits": 12, "decimal_places": 2, "min_value": 0}

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class PlaceOrderLineSerializer(serializers.Serializer):
    """Validates a single line in an order placement request."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class PlaceOrderSerializer(serializers.Serializer):
    """Validates the order placement request payload.

    The contact fields required depend on ``kind``; errors are reported
    per field.
    """

    kind = serializers.ChoiceField(choices=OrderKind.choices)
    price = serializers.DecimalField(**_MONEY)
    bonus = serializers.DecimalField(
        required=False, default=Decimal("0.00"), **_MONEY
    )
    user_id = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    status = serializers.CharField(max_length=50)
    service_mode = serializers.CharField(max_length=50)
    phone = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=32
    )
    name = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=255
    )
    organization = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=255
    )
    tax_id = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=32
    )
    comment = serializers.CharField(required=False, default="", allow_blank=True)
    lines = PlaceOrderLineSerializer(many=True, allow_empty=False)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        errors = {
            field: "This field is required for this order kind."
            for field in _REQUIRED_BY_KIND[attrs["kind"]]
            if not attrs.get(field)
        }
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class UpdateOrderSerializer(serializers.Serializer):
    """Validates a partial header update.

    Every field is optional; only keys present in the request are passed
    on.  ``comment`` may be blanked, the identifying fields may not.
    """

    price = serializers.DecimalField(required=False, **_MONEY)
    bonus = serializers.DecimalField(required=False, **_MONEY)
    status = serializers.CharField(required=False, max_length=50)
    phone = serializers.CharField(required=False, max_length=32)
    name = serializers.CharField(required=False, max_length=255)
    organization = serializers.CharField(required=False, max_length=255)
    tax_id = serializers.CharField(required=False, max_length=32)
    comment = serializers.CharField(required=False, allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderLineSerializer(serializers.ModelSerializer):
    """Read serializer for order lines with product snapshot."""

    product = ProductSerializer(read_only=True)

    class Meta:
        model = OrderLine
        fields = [
            "id",
            "product",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested lines."""

    lines = OrderLineSerializer(many=True, read_only=True)
    lines_total = serializers.DecimalField(
        max_digits=14, decimal_places=2, read_only=True
    )

    class Meta:
        model = Order
        fields = [
            "id",
            "kind",
            "status",
            "service_mode",
            "price",
            "bonus",
            "lines_total",
            "user_id",
            "phone",
            "name",
            "organization",
            "tax_id",
            "comment",
            "created_at",
            "updated_at",
            "lines",
        ]
        read_only_fields = fields
