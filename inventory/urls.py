from django.urls import path

from .views import (
    MovementDetailView,
    MovementListCreateView,
    ProductDetailView,
    ProductListCreateView,
    StockValuationView,
)

urlpatterns = [
    path("products/", ProductListCreateView.as_view(), name="product-list"),
    path("products/valuation/", StockValuationView.as_view(), name="product-valuation"),
    path("products/<uuid:product_id>/", ProductDetailView.as_view(), name="product-detail"),
    path("movements/", MovementListCreateView.as_view(), name="movement-list"),
    path("movements/<uuid:movement_id>/", MovementDetailView.as_view(), name="movement-detail"),
]

# EOF
