from django.urls import path

from .views import DeliveryDetailView, DeliveryListCreateView, DeliveryStatusView

urlpatterns = [
    path("deliveries/", DeliveryListCreateView.as_view(), name="delivery-list"),
    path("deliveries/<uuid:delivery_id>/", DeliveryDetailView.as_view(), name="delivery-detail"),
    path("deliveries/<uuid:delivery_id>/status/", DeliveryStatusView.as_view(), name="delivery-status"),
]

# EOF
