"""DRF views for deliveries."""

from django_filters import rest_framework as filters
from drf_spectacular.utils import OpenApiExample, extend_schema
from inventory.serializers import ProductSerializer
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import selectors, services
from .models import Delivery
from .serializers import (
    DeliveryCreateSerializer,
    DeliverySerializer,
    DeliveryStatusSerializer,
    DeliveryUpdateSerializer,
)

DELIVERY_EXAMPLE = {
    "id": "5c1e0a8b-3f57-4a59-8d36-4f1d1f3a2b77",
    "requested_at": "2025-01-03T09:00:00Z",
    "source_location": "Galpão A",
    "destination_site": "Obra Centro",
    "product_id": "0b6f8f8e-52a4-4bb4-9d4c-0d7f2b2f1a10",
    "product_name": "Cimento CP-II 50kg",
    "sku": "PROD-7K2QX9",
    "quantity": "20.00",
    "unit": "saco",
    "contact_name": "Marcos",
    "contact_phone": "+55 11 99999-0000",
    "status": "Pendente",
    "created_at": "2025-01-03T09:00:05Z",
}


class DeliveryFilterSet(filters.FilterSet):
    status = filters.CharFilter(field_name="status")
    product = filters.UUIDFilter(field_name="product_id")

    class Meta:
        model = Delivery
        fields = ["status", "product"]


class DeliveryListCreateView(generics.ListAPIView):
    serializer_class = DeliverySerializer
    pagination_class = None
    filterset_class = DeliveryFilterSet
    filter_backends = [filters.DjangoFilterBackend]

    def get_queryset(self):
        return selectors.list_deliveries()

    @extend_schema(
        tags=["Logistics Endpoints"],
        summary="List deliveries",
        description="Deliveries ordered by request time, newest first. Filters: status, product.",
        examples=[OpenApiExample("Deliveries", value=[DELIVERY_EXAMPLE], response_only=True)],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Logistics Endpoints"],
        summary="Create delivery",
        description=(
            "Schedules a delivery with status Pendente, debits the product and logs the linked saida. "
            "Returns 409 when the quantity exceeds the available balance."
        ),
        request=DeliveryCreateSerializer,
        responses={201: DeliverySerializer},
        examples=[OpenApiExample("Delivery", value=DELIVERY_EXAMPLE, response_only=True)],
    )
    def post(self, request):
        serializer = DeliveryCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        delivery = services.create_delivery(**serializer.validated_data)
        return Response(DeliverySerializer(delivery).data, status=status.HTTP_201_CREATED)


class DeliveryDetailView(APIView):
    @extend_schema(
        tags=["Logistics Endpoints"],
        summary="Update delivery",
        description=(
            "Partial update. Descriptive fields are overwritten as given; changing product_id or quantity "
            "re-balances both products and rewrites the linked movement."
        ),
        request=DeliveryUpdateSerializer,
        responses={200: DeliverySerializer},
    )
    def patch(self, request, delivery_id):
        serializer = DeliveryUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        delivery = services.update_delivery(delivery_id=delivery_id, changes=serializer.validated_data)
        return Response(DeliverySerializer(delivery).data)

    @extend_schema(
        tags=["Logistics Endpoints"],
        summary="Delete delivery",
        description="Returns the quantity to stock, removes the linked saida and deletes the delivery.",
        responses={200: ProductSerializer},
    )
    def delete(self, request, delivery_id):
        product = services.delete_delivery(delivery_id=delivery_id)
        return Response(ProductSerializer(product).data)


class DeliveryStatusView(APIView):
    @extend_schema(
        tags=["Logistics Endpoints"],
        summary="Update delivery status",
        description="Sets the free-form status label (Pendente, Em rota, Entregue, ...). Stock is untouched.",
        request=DeliveryStatusSerializer,
        responses={200: DeliverySerializer},
        examples=[OpenApiExample("Status", value={"status": "Em rota"}, request_only=True)],
    )
    def patch(self, request, delivery_id):
        serializer = DeliveryStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        delivery = services.update_delivery_status(delivery_id=delivery_id, status=serializer.validated_data["status"])
        return Response(DeliverySerializer(delivery).data)


# EOF
