"""Read-only queries for products, movements and stock value."""

from decimal import Decimal

from django.db import DEFAULT_DB_ALIAS
from django.db.models import DecimalField, ExpressionWrapper, F, Q, Sum

from .exceptions import NotFoundError
from .ledger import ZERO, as_uuid, quantize
from .models import Movement, Product


def search_products(*, q: str = "", using: str = DEFAULT_DB_ALIAS):
    """Products ordered by name, optionally matching ``q`` on name, SKU or category."""
    qs = Product.objects.using(using).order_by("name", "id")
    q = (q or "").strip()
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(sku__icontains=q) | Q(category__icontains=q))
    return qs


def get_product(product_id, *, using: str = DEFAULT_DB_ALIAS) -> Product:
    try:
        return Product.objects.using(using).get(pk=as_uuid(product_id))
    except Product.DoesNotExist:
        raise NotFoundError("Product not found")


def list_movements(*, product_id=None, movement_type=None, delivery_id=None, using: str = DEFAULT_DB_ALIAS):
    """Movement log, newest first."""
    qs = Movement.objects.using(using).select_related("product").order_by("-created_at", "id")
    if product_id:
        qs = qs.filter(product_id=as_uuid(product_id))
    if movement_type:
        qs = qs.filter(type=movement_type)
    if delivery_id:
        qs = qs.filter(delivery_id=delivery_id)
    return qs


def stock_valuation(*, using: str = DEFAULT_DB_ALIAS) -> Decimal:
    """Total stock value: sum of quantity x unit cost over costed products."""
    value = ExpressionWrapper(F("quantity") * F("unit_cost"), output_field=DecimalField(max_digits=24, decimal_places=4))
    total = (
        Product.objects.using(using)
        .filter(unit_cost__gt=0)
        .aggregate(total=Sum(value))["total"]
    )
    return quantize(total or ZERO)


# EOF
