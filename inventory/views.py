"""Inventory HTTP adapter: products, movements and the valuation report.

Views only translate HTTP to service calls. Domain errors propagate and are
rendered by ``config.exceptions.api_exception_handler``.
"""

from common.choices import MovementType
from django.conf import settings
from django_filters import rest_framework as filters
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import generics, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from config.auth import require_admin_password

from . import selectors, services
from .models import Movement
from .serializers import (
    MovementCreateSerializer,
    MovementResultSerializer,
    MovementSerializer,
    MovementUpdateSerializer,
    PasswordSerializer,
    ProductCreateSerializer,
    ProductSerializer,
    ProductUpdateSerializer,
    ValuationSerializer,
)

PRODUCT_EXAMPLE = {
    "id": "0b6f8f8e-52a4-4bb4-9d4c-0d7f2b2f1a10",
    "sku": "PROD-7K2QX9",
    "name": "Cimento CP-II 50kg",
    "description": None,
    "category": "Materiais",
    "unit": "saco",
    "quantity": "42.00",
    "min_quantity": "10.00",
    "location": "Galpão A",
    "supplier": "Votoran",
    "unit_cost": "38.90",
    "priority": False,
    "is_low_stock": False,
    "created_at": "2025-01-01T12:00:00Z",
    "updated_at": "2025-01-02T08:30:00Z",
}


class ProductPagination(PageNumberPagination):
    page_size_query_param = "page_size"
    max_page_size = 500

    def get_page_size(self, request):
        self.page_size = getattr(settings, "PRODUCT_PAGE_SIZE", 50)
        return super().get_page_size(request)


class ProductListCreateView(generics.ListAPIView):
    serializer_class = ProductSerializer
    pagination_class = ProductPagination
    filter_backends = []

    def get_queryset(self):
        return selectors.search_products(q=self.request.query_params.get("q", ""))

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List products",
        description="Products ordered by name. `q` matches name, SKU or category (case-insensitive).",
        parameters=[
            OpenApiParameter("q", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("page", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("page_size", OpenApiTypes.INT, OpenApiParameter.QUERY, required=False),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Create product",
        description="Creates a product with a generated SKU. A non-zero opening quantity is logged as an entrada.",
        request=ProductCreateSerializer,
        responses={201: ProductSerializer},
        examples=[OpenApiExample("Product", value=PRODUCT_EXAMPLE, response_only=True)],
    )
    def post(self, request):
        serializer = ProductCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = services.create_product(**serializer.validated_data)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


class ProductDetailView(APIView):
    @extend_schema(tags=["Inventory Endpoints"], summary="Get product", responses={200: ProductSerializer})
    def get(self, request, product_id):
        product = selectors.get_product(product_id)
        return Response(ProductSerializer(product).data)

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Update product",
        description="Partial update of descriptive fields. Quantity changes only through movements.",
        request=ProductUpdateSerializer,
        responses={200: ProductSerializer},
    )
    def patch(self, request, product_id):
        serializer = ProductUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        product = services.update_product(product_id=product_id, fields=serializer.validated_data)
        return Response(ProductSerializer(product).data)

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Delete product",
        description="Deletes the product together with its movements and deliveries.",
        responses={204: None},
    )
    def delete(self, request, product_id):
        services.delete_product(product_id=product_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class StockValuationView(APIView):
    throttle_scope = "password_verify"

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Total stock value",
        description="Sum of quantity x unit cost over products with a positive unit cost. Requires the admin password.",
        request=PasswordSerializer,
        responses={200: ValuationSerializer},
        examples=[OpenApiExample("Valuation", value={"total_value": "15234.50"}, response_only=True)],
    )
    def post(self, request):
        require_admin_password(request)
        return Response(ValuationSerializer({"total_value": selectors.stock_valuation()}).data)


class MovementFilterSet(filters.FilterSet):
    product = filters.UUIDFilter(field_name="product_id")
    type = filters.ChoiceFilter(choices=MovementType.choices)
    delivery = filters.UUIDFilter(field_name="delivery_id")

    class Meta:
        model = Movement
        fields = ["product", "type", "delivery"]


class MovementListCreateView(generics.ListAPIView):
    serializer_class = MovementSerializer
    filterset_class = MovementFilterSet
    filter_backends = [filters.DjangoFilterBackend]

    def get_queryset(self):
        return selectors.list_movements()

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List movements",
        description="Movement log, newest first. Filters: product, type (entrada/saida/ajuste), delivery.",
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Record movement",
        description=(
            "Applies an entrada, saida or ajuste to the product balance and logs it. "
            "A saida larger than the balance floors it at zero."
        ),
        request=MovementCreateSerializer,
        responses={201: MovementResultSerializer},
    )
    def post(self, request):
        serializer = MovementCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        movement, product = services.apply_movement(
            product_id=data["product_id"],
            movement_type=data["type"],
            quantity=data["quantity"],
            reason=data.get("reason"),
            unit_cost=data.get("unit_cost"),
        )
        body = MovementResultSerializer({"movement": movement, "product": product}).data
        return Response(body, status=status.HTTP_201_CREATED)


class MovementDetailView(APIView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Edit movement",
        description="Changes quantity and/or reason. The balance moves by the difference. Ajuste quantities are fixed.",
        request=MovementUpdateSerializer,
        responses={200: MovementResultSerializer},
    )
    def patch(self, request, movement_id):
        serializer = MovementUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        movement, product = services.edit_movement(movement_id=movement_id, **serializer.validated_data)
        return Response(MovementResultSerializer({"movement": movement, "product": product}).data)

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Delete movement",
        description="Reverses the movement's effect on the balance (clamped at zero) and removes it.",
        responses={200: ProductSerializer},
    )
    def delete(self, request, movement_id):
        product = services.delete_movement(movement_id=movement_id)
        return Response(ProductSerializer(product).data)


# EOF
