"""Catalog DRF serializers (read-only API output and query parsing)."""

from __future__ import annotations

from rest_framework import serializers

from modules.catalog.models import Brand, Category, Product


class ProductSerializer(serializers.ModelSerializer):
    """Full catalog snapshot of a product.

    Also embedded in every order line view.
    """

    category_id = serializers.UUIDField(read_only=True, allow_null=True)
    brand_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "price",
            "stock_quantity",
            "rating",
            "images",
            "info",
            "feature",
            "guarantee",
            "discount",
            "category_id",
            "brand_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "description", "image", "created_at", "updated_at"]
        read_only_fields = fields


class BrandSerializer(serializers.ModelSerializer):
    class Meta:
        model = Brand
        fields = [
            "id",
            "name",
            "country",
            "description",
            "image",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProductListQuerySerializer(serializers.Serializer):
    """Validates the optional product listing filters."""

    category_id = serializers.UUIDField(required=False)
    brand_id = serializers.UUIDField(required=False)


class CategoryListSerializer(CategorySerializer):
    """Category listing row with every product of the category embedded."""

    products = ProductSerializer(many=True, read_only=True)

    class Meta(CategorySerializer.Meta):
        fields = CategorySerializer.Meta.fields + ["products"]
        read_only_fields = fields


class BrandListSerializer(BrandSerializer):
    """Brand listing row with every product of the brand embedded."""

    products = ProductSerializer(many=True, read_only=True)

    class Meta(BrandSerializer.Meta):
        fields = BrandSerializer.Meta.fields + ["products"]
        read_only_fields = fields
