"""Selectors for the logistics domain."""

from django.db import DEFAULT_DB_ALIAS

from .models import Delivery


def list_deliveries(*, status=None, product_id=None, using: str = DEFAULT_DB_ALIAS):
    """Deliveries, most recently requested first, with their product joined."""
    qs = Delivery.objects.using(using).select_related("product").order_by("-requested_at", "id")
    if status:
        qs = qs.filter(status=status)
    if product_id:
        qs = qs.filter(product_id=product_id)
    return qs


# EOF
