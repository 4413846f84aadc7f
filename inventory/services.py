"""Inventory services: transactional stock movements and product upkeep.

Every mutating function opens its own ``transaction.atomic`` block, takes the
product row lock before reading the balance and keeps it until commit. Any
error raised inside the block rolls back the balance, the movement log and
any linked delivery together.
"""

import logging
import string
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

from common.choices import MovementType
from django.core.exceptions import ValidationError
from django.db import DEFAULT_DB_ALIAS, transaction
from django.utils import timezone
from django.utils.crypto import get_random_string

from .exceptions import InsufficientStockError, InvalidInputError, InvalidOperationError, NotFoundError
from .ledger import ZERO, apply_balance, lock_and_read, quantize, weighted_average_cost
from .models import Movement, Product
from .notifications import notify_if_low_stock

logger = logging.getLogger("estoque.inventory")

SKU_PREFIX = "PROD-"
SKU_ALPHABET = string.ascii_uppercase + string.digits
SKU_ATTEMPTS = 5
INITIAL_BALANCE_REASON = "Saldo inicial"
# Largest value a DecimalField(max_digits=12, decimal_places=2) holds
MAX_QUANTITY = Decimal("9999999999.99")

PRODUCT_EDITABLE_FIELDS = (
    "name",
    "description",
    "category",
    "unit",
    "min_quantity",
    "location",
    "supplier",
    "priority",
    "unit_cost",
)


# Input coercion


def coerce_quantity(value, *, field: str = "quantity", allow_zero: bool = False) -> Decimal:
    """Parse a client-supplied quantity into a 2-place Decimal.

    Raises InvalidInputError for missing, non-numeric, negative or (unless
    ``allow_zero``) zero values.
    """
    if value is None or value == "":
        raise InvalidInputError(f"{field} is required")
    try:
        parsed = quantize(Decimal(str(value)))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputError(f"{field} must be a number")
    if not parsed.is_finite():
        raise InvalidInputError(f"{field} must be a number")
    if parsed < ZERO or (parsed == ZERO and not allow_zero):
        raise InvalidInputError(f"{field} must be positive")
    if parsed > MAX_QUANTITY:
        raise InvalidInputError(f"{field} is too large")
    return parsed


def _coerce_optional(value, *, field: str) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return coerce_quantity(value, field=field, allow_zero=True)


def _check_movement_type(movement_type: str) -> str:
    if movement_type not in MovementType.values:
        raise InvalidInputError(f"Unknown movement type: {movement_type!r}")
    return movement_type


# Pure balance arithmetic


def compute_delta(movement_type: str, quantity) -> Decimal:
    """Signed balance change of an entrada/saida movement.

    Ajuste is an assignment, not a delta, and is rejected.
    """
    quantity = Decimal(quantity)
    if movement_type == MovementType.ENTRADA:
        return quantity
    if movement_type == MovementType.SAIDA:
        return -quantity
    if movement_type == MovementType.AJUSTE:
        raise InvalidOperationError("Ajuste sets an absolute balance and has no delta")
    raise InvalidInputError(f"Unknown movement type: {movement_type!r}")


def resolve_balance(current, movement_type: str, quantity) -> Decimal:
    """New balance after a movement, floored at zero."""
    if movement_type == MovementType.AJUSTE:
        return max(Decimal(quantity), ZERO)
    return max(Decimal(current) + compute_delta(movement_type, quantity), ZERO)


def reverse_effect_of(movement: Movement) -> Decimal:
    """Delta that undoes a movement. Ajuste movements cannot be reversed."""
    if movement.type == MovementType.AJUSTE:
        raise InvalidOperationError("Ajuste movements cannot be reversed")
    return -compute_delta(movement.type, movement.quantity)


# Movement recorder


def record(
    product: Product,
    movement_type: str,
    quantity,
    reason: Optional[str] = None,
    delivery=None,
    *,
    using: str = DEFAULT_DB_ALIAS,
) -> Movement:
    """Append a movement row inside the caller's transaction."""
    _check_movement_type(movement_type)
    quantity = coerce_quantity(quantity, allow_zero=movement_type == MovementType.AJUSTE)
    return Movement.objects.using(using).create(
        product=product,
        type=movement_type,
        quantity=quantity,
        reason=reason or None,
        delivery=delivery,
    )


def _get_movement(movement_id, *, using: str, lock: bool = False) -> Movement:
    qs = Movement.objects.using(using)
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=movement_id)
    except (Movement.DoesNotExist, ValidationError):
        raise NotFoundError("Movement not found")


def _lock_movement_with_product(movement_id, *, using: str) -> Tuple[Movement, Product]:
    """Lock the movement's product, then the movement itself."""
    movement = _get_movement(movement_id, using=using)
    product = lock_and_read(movement.product_id, using=using)
    # Re-read under the product lock; a concurrent delete may have won
    movement = _get_movement(movement_id, using=using, lock=True)
    if movement.product_id != product.pk:
        # Moved to another product by a delivery reassignment between the reads
        product = lock_and_read(movement.product_id, using=using)
    return movement, product


def apply_movement(
    *,
    product_id,
    movement_type: str,
    quantity,
    reason: Optional[str] = None,
    unit_cost=None,
    using: str = DEFAULT_DB_ALIAS,
) -> Tuple[Movement, Product]:
    """Record a direct movement and update the product balance.

    entrada/saida shift the balance by ``quantity``; ajuste sets it to
    ``quantity``. The result is floored at zero. An entrada carrying a
    ``unit_cost`` re-averages the product's unit cost.
    """
    _check_movement_type(movement_type)
    quantity = coerce_quantity(quantity, allow_zero=movement_type == MovementType.AJUSTE)
    incoming_cost = _coerce_optional(unit_cost, field="unit_cost")
    if incoming_cost is not None and movement_type != MovementType.ENTRADA:
        raise InvalidInputError("unit_cost only applies to entrada movements")

    with transaction.atomic(using=using):
        product = lock_and_read(product_id, using=using)
        previous = product.quantity
        new_quantity = resolve_balance(previous, movement_type, quantity)
        new_cost = None
        if incoming_cost is not None:
            new_cost = weighted_average_cost(previous, product.unit_cost, quantity, incoming_cost)
        apply_balance(product, new_quantity, new_cost, using=using)
        movement = record(product, movement_type, quantity, reason, using=using)
        notify_if_low_stock(product, previous, using=using)

    logger.info(
        "inventory.movement_recorded",
        extra={
            "event": "inventory.movement_recorded",
            "product_id": str(product.pk),
            "movement_id": str(movement.pk),
            "type": movement_type,
            "quantity": str(quantity),
            "balance_from": str(previous),
            "balance_to": str(product.quantity),
        },
    )
    return movement, product


def edit_movement(
    *,
    movement_id,
    quantity=None,
    reason: Optional[str] = None,
    using: str = DEFAULT_DB_ALIAS,
) -> Tuple[Movement, Product]:
    """Change a movement's quantity and/or reason, re-diffing its balance effect.

    The original delta is undone and the new one applied in a single step; a
    result below zero raises InsufficientStockError. A linked delivery follows
    the new quantity. Ajuste quantities are immutable.
    """
    if quantity is None and reason is None:
        raise InvalidInputError("Nothing to update")
    new_quantity = coerce_quantity(quantity, allow_zero=True) if quantity is not None else None

    with transaction.atomic(using=using):
        movement, product = _lock_movement_with_product(movement_id, using=using)
        previous = product.quantity

        quantity_changed = new_quantity is not None and new_quantity != movement.quantity
        if quantity_changed and movement.type == MovementType.AJUSTE:
            raise InvalidOperationError("Ajuste movements cannot change quantity")
        if new_quantity == ZERO and movement.type != MovementType.AJUSTE:
            raise InvalidInputError("quantity must be positive")

        update_fields = []
        if reason is not None:
            movement.reason = reason or None
            update_fields.append("reason")
        if quantity_changed:
            new_balance = previous + reverse_effect_of(movement) + compute_delta(movement.type, new_quantity)
            if new_balance < ZERO:
                raise InsufficientStockError(
                    f"Insufficient stock. Available: {previous}, balance after edit: {new_balance}"
                )
            apply_balance(product, new_balance, using=using)
            movement.quantity = new_quantity
            update_fields.append("quantity")
            if movement.delivery_id:
                from logistics.models import Delivery

                Delivery.objects.using(using).filter(pk=movement.delivery_id).update(quantity=new_quantity)
        if update_fields:
            movement.save(using=using, update_fields=update_fields)
        if quantity_changed:
            notify_if_low_stock(product, previous, using=using)

    logger.info(
        "inventory.movement_edited",
        extra={
            "event": "inventory.movement_edited",
            "movement_id": str(movement.pk),
            "product_id": str(product.pk),
            "delivery_id": str(movement.delivery_id) if movement.delivery_id else None,
            "balance_from": str(previous),
            "balance_to": str(product.quantity),
        },
    )
    return movement, product


def delete_movement(*, movement_id, using: str = DEFAULT_DB_ALIAS) -> Product:
    """Delete a movement and undo its balance effect (floored at zero).

    Deleting a movement created by a delivery removes that delivery as well.
    Returns the updated product.
    """
    with transaction.atomic(using=using):
        movement = _get_movement(movement_id, using=using)
        if movement.type == MovementType.AJUSTE:
            raise InvalidOperationError("Ajuste movements cannot be deleted")
        movement, product = _lock_movement_with_product(movement_id, using=using)
        previous = product.quantity
        apply_balance(product, max(previous + reverse_effect_of(movement), ZERO), using=using)

        delivery_id = movement.delivery_id
        movement.delete(using=using)
        if delivery_id:
            from logistics.models import Delivery

            Delivery.objects.using(using).filter(pk=delivery_id).delete()
        notify_if_low_stock(product, previous, using=using)

    logger.info(
        "inventory.movement_deleted",
        extra={
            "event": "inventory.movement_deleted",
            "movement_id": str(movement_id),
            "product_id": str(product.pk),
            "delivery_id": str(delivery_id) if delivery_id else None,
            "balance_from": str(previous),
            "balance_to": str(product.quantity),
        },
    )
    return product


# Products


def generate_sku(*, using: str = DEFAULT_DB_ALIAS) -> str:
    for _ in range(SKU_ATTEMPTS):
        sku = f"{SKU_PREFIX}{get_random_string(6, allowed_chars=SKU_ALPHABET)}"
        if not Product.objects.using(using).filter(sku=sku).exists():
            return sku
    raise InvalidOperationError("Could not allocate a unique SKU")


def required_text(value, *, field: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise InvalidInputError(f"{field} is required")
    return text


def create_product(
    *,
    name: str,
    unit: str,
    description: Optional[str] = None,
    category: Optional[str] = None,
    quantity=0,
    min_quantity=None,
    location: Optional[str] = None,
    supplier: Optional[str] = None,
    unit_cost=None,
    priority: bool = False,
    using: str = DEFAULT_DB_ALIAS,
) -> Product:
    """Create a product with a generated SKU.

    A non-zero opening quantity is booked as an entrada so the movement log
    always explains the balance.
    """
    name = required_text(name, field="name")
    unit = required_text(unit, field="unit")
    opening = coerce_quantity(quantity if quantity not in (None, "") else 0, allow_zero=True)
    min_quantity = _coerce_optional(min_quantity, field="min_quantity")
    unit_cost = _coerce_optional(unit_cost, field="unit_cost")

    with transaction.atomic(using=using):
        product = Product.objects.using(using).create(
            sku=generate_sku(using=using),
            name=name,
            unit=unit,
            description=description or None,
            category=category or None,
            quantity=opening,
            min_quantity=min_quantity,
            location=location or None,
            supplier=supplier or None,
            unit_cost=unit_cost,
            priority=bool(priority),
        )
        if opening > ZERO:
            record(product, MovementType.ENTRADA, opening, INITIAL_BALANCE_REASON, using=using)

    logger.info(
        "inventory.product_created",
        extra={"event": "inventory.product_created", "product_id": str(product.pk), "sku": product.sku},
    )
    return product


def update_product(*, product_id, fields: dict, using: str = DEFAULT_DB_ALIAS) -> Product:
    """Update descriptive product fields. Quantity is never editable here."""
    changes = {k: v for k, v in (fields or {}).items() if k in PRODUCT_EDITABLE_FIELDS}
    if not changes:
        raise InvalidInputError("No valid fields to update")
    if "name" in changes:
        changes["name"] = required_text(changes["name"], field="name")
    if "unit" in changes:
        changes["unit"] = required_text(changes["unit"], field="unit")
    for field in ("min_quantity", "unit_cost"):
        if field in changes:
            changes[field] = _coerce_optional(changes[field], field=field)
    if "priority" in changes:
        changes["priority"] = bool(changes["priority"])

    with transaction.atomic(using=using):
        product = lock_and_read(product_id, using=using)
        for field, value in changes.items():
            setattr(product, field, value)
        product.updated_at = timezone.now()
        product.save(using=using, update_fields=[*changes.keys(), "updated_at"])
    return product


def delete_product(*, product_id, using: str = DEFAULT_DB_ALIAS) -> None:
    """Delete a product together with its movements and deliveries."""
    with transaction.atomic(using=using):
        product = lock_and_read(product_id, using=using)
        product.delete(using=using)
    logger.info(
        "inventory.product_deleted",
        extra={"event": "inventory.product_deleted", "product_id": str(product_id)},
    )


# EOF
