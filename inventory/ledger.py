"""Product ledger: locked reads and balance writes.

These helpers do no business validation. They must run inside the caller's
``transaction.atomic`` block; ``select_for_update`` refuses to run outside one.
"""

import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from django.core.exceptions import ValidationError
from django.db import DEFAULT_DB_ALIAS
from django.utils import timezone

from .exceptions import NotFoundError
from .models import Product

QUANTUM = Decimal("0.01")
ZERO = Decimal("0")


def quantize(value) -> Decimal:
    return Decimal(value).quantize(QUANTUM, rounding=ROUND_HALF_UP)


def as_uuid(value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise NotFoundError("Product not found")


def lock_and_read(product_id, *, using: str = DEFAULT_DB_ALIAS) -> Product:
    """Take the row lock on a product and return its current state."""
    try:
        return Product.objects.using(using).select_for_update().get(pk=as_uuid(product_id))
    except (Product.DoesNotExist, ValidationError):
        raise NotFoundError("Product not found")


def lock_many(product_ids: Iterable, *, using: str = DEFAULT_DB_ALIAS) -> dict:
    """Lock several products at once, in primary-key order.

    Returns a mapping of id -> Product. Raises NotFoundError if any id is unknown.
    """
    wanted = {as_uuid(pid) for pid in product_ids}
    products = list(Product.objects.using(using).select_for_update().filter(pk__in=wanted).order_by("pk"))
    if len(products) != len(wanted):
        raise NotFoundError("Product not found")
    return {p.pk: p for p in products}


def apply_balance(
    product: Product,
    new_quantity,
    new_unit_cost=None,
    *,
    using: str = DEFAULT_DB_ALIAS,
) -> Product:
    """Persist a new balance (and optionally unit cost) for a locked product.

    Always stamps ``updated_at``, even when the balance is unchanged.
    """
    product.quantity = quantize(new_quantity)
    update_fields = ["quantity", "updated_at"]
    if new_unit_cost is not None:
        product.unit_cost = quantize(new_unit_cost)
        update_fields.append("unit_cost")
    product.updated_at = timezone.now()
    product.save(using=using, update_fields=update_fields)
    return product


def weighted_average_cost(
    current_quantity, current_cost: Optional[Decimal], incoming_quantity, incoming_cost
) -> Decimal:
    """Blend the current unit cost with an incoming lot's cost by quantity."""
    current_quantity = max(Decimal(current_quantity), ZERO)
    incoming_quantity = Decimal(incoming_quantity)
    incoming_cost = Decimal(incoming_cost)
    if current_cost is None or current_quantity == ZERO:
        return quantize(incoming_cost)
    total = current_quantity + incoming_quantity
    if total <= ZERO:
        return quantize(incoming_cost)
    blended = (current_quantity * Decimal(current_cost) + incoming_quantity * incoming_cost) / total
    return quantize(blended)


# EOF
