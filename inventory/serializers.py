"""Serializers for the inventory API.

Read serializers render products and movements. Input serializers only check
shape; business rules (positive quantities, stock sufficiency, ajuste
immutability) are enforced by the services so the same rules apply to every
caller.
"""

from common.choices import MovementType
from rest_framework import serializers

from .models import Movement, Product


class ProductSerializer(serializers.ModelSerializer):
    """Read representation of a product with its low-stock flag."""

    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "category",
            "unit",
            "quantity",
            "min_quantity",
            "location",
            "supplier",
            "unit_cost",
            "priority",
            "is_low_stock",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class MovementSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    delivery_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Movement
        fields = [
            "id",
            "product_id",
            "product_name",
            "type",
            "quantity",
            "reason",
            "delivery_id",
            "created_at",
        ]
        read_only_fields = fields


class ProductCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    unit = serializers.CharField(max_length=32)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    category = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    min_quantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    location = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)
    supplier = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    priority = serializers.BooleanField(required=False, default=False)


class ProductUpdateSerializer(ProductCreateSerializer):
    """Partial update; quantity is deliberately absent."""

    quantity = None
    name = serializers.CharField(max_length=200, required=False)
    unit = serializers.CharField(max_length=32, required=False)
    priority = serializers.BooleanField(required=False)


class MovementCreateSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    type = serializers.ChoiceField(choices=MovementType.choices)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)


class MovementUpdateSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)


class MovementResultSerializer(serializers.Serializer):
    movement = MovementSerializer()
    product = ProductSerializer()


class PasswordSerializer(serializers.Serializer):
    password = serializers.CharField(trim_whitespace=False)


class ValuationSerializer(serializers.Serializer):
    total_value = serializers.DecimalField(max_digits=24, decimal_places=2)


# EOF
