"""Delivery serializers for read and write operations."""

from rest_framework import serializers

from .models import Delivery


class DeliverySerializer(serializers.ModelSerializer):
    """Read serializer; carries the product's name and SKU for listings."""

    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    sku = serializers.CharField(source="product.sku", read_only=True)

    class Meta:
        model = Delivery
        fields = [
            "id",
            "requested_at",
            "source_location",
            "destination_site",
            "product_id",
            "product_name",
            "sku",
            "quantity",
            "unit",
            "contact_name",
            "contact_phone",
            "status",
            "created_at",
        ]
        read_only_fields = fields


class DeliveryCreateSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2)
    source_location = serializers.CharField(max_length=200)
    destination_site = serializers.CharField(max_length=200)
    requested_at = serializers.DateTimeField(required=False, allow_null=True)
    contact_name = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)
    contact_phone = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)


class DeliveryUpdateSerializer(DeliveryCreateSerializer):
    """Partial update: any subset of descriptive fields, product and quantity."""

    product_id = serializers.UUIDField(required=False)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    source_location = serializers.CharField(max_length=200, required=False)
    destination_site = serializers.CharField(max_length=200, required=False)
    requested_at = serializers.DateTimeField(required=False)
    status = serializers.CharField(max_length=64, required=False)


class DeliveryStatusSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=64)


# EOF
