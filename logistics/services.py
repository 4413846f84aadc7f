"""Logistics services: deliveries that withdraw and return product stock.

A delivery always has exactly one linked ``saida`` movement. Creating,
reassigning and deleting a delivery move the product balance, the delivery row
and that movement together inside one transaction.

Lock order: product rows first (ascending primary key when there are two),
then the delivery row.
"""

import logging
from typing import Optional, Tuple

from common.choices import MovementType
from django.core.exceptions import ValidationError
from django.db import DEFAULT_DB_ALIAS, transaction
from django.utils import timezone
from inventory.exceptions import InsufficientStockError, InvalidInputError, NotFoundError
from inventory.ledger import ZERO, apply_balance, as_uuid, lock_and_read, lock_many
from inventory.models import Movement, Product
from inventory.notifications import notify_if_low_stock
from inventory.services import coerce_quantity, record, required_text

from .models import Delivery

logger = logging.getLogger("estoque.logistics")

EDITABLE_FIELDS = (
    "requested_at",
    "source_location",
    "destination_site",
    "contact_name",
    "contact_phone",
    "status",
)
REQUIRED_TEXT_FIELDS = ("source_location", "destination_site", "status")


def delivery_reason(destination_site: str) -> str:
    return f"Entrega logística p/ {destination_site}"


def _clean_field_changes(fields: dict) -> dict:
    changes = {k: v for k, v in (fields or {}).items() if k in EDITABLE_FIELDS}
    for field in REQUIRED_TEXT_FIELDS:
        if field in changes:
            changes[field] = required_text(changes[field], field=field)
    if "requested_at" in changes and changes["requested_at"] is None:
        raise InvalidInputError("requested_at cannot be empty")
    for field in ("contact_name", "contact_phone"):
        if field in changes:
            changes[field] = changes[field] or None
    return changes


def _get_delivery(delivery_id, *, using: str, lock: bool = False) -> Delivery:
    qs = Delivery.objects.using(using)
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=delivery_id)
    except (Delivery.DoesNotExist, ValidationError):
        raise NotFoundError("Delivery not found")


def _lock_delivery_with_products(delivery_id, extra_product_id=None, *, using: str) -> Tuple[Delivery, dict]:
    """Lock the delivery's product (plus an optional second one), then the delivery."""
    delivery = _get_delivery(delivery_id, using=using)
    wanted = {delivery.product_id}
    if extra_product_id is not None:
        wanted.add(extra_product_id)
    products = lock_many(wanted, using=using)
    locked = _get_delivery(delivery_id, using=using, lock=True)
    if locked.product_id not in products:
        # Reassigned by another transaction between the two reads
        products[locked.product_id] = lock_and_read(locked.product_id, using=using)
    return locked, products


def _linked_movement(delivery: Delivery, *, using: str) -> Optional[Movement]:
    return (
        Movement.objects.using(using)
        .select_for_update()
        .filter(delivery=delivery, type=MovementType.SAIDA)
        .order_by("created_at", "id")
        .first()
    )


def _apply_field_changes(delivery: Delivery, changes: dict, *, using: str) -> Delivery:
    for field, value in changes.items():
        setattr(delivery, field, value)
    delivery.save(using=using, update_fields=list(changes.keys()))
    if "destination_site" in changes:
        Movement.objects.using(using).filter(delivery=delivery, type=MovementType.SAIDA).update(
            reason=delivery_reason(delivery.destination_site)
        )
    return delivery


def create_delivery(
    *,
    product_id,
    quantity,
    source_location: str,
    destination_site: str,
    requested_at=None,
    contact_name: Optional[str] = None,
    contact_phone: Optional[str] = None,
    using: str = DEFAULT_DB_ALIAS,
) -> Delivery:
    """Schedule a delivery and debit its quantity from the product.

    Rejects (rather than clamps) requests above the available balance.
    """
    quantity = coerce_quantity(quantity)
    source_location = required_text(source_location, field="source_location")
    destination_site = required_text(destination_site, field="destination_site")

    with transaction.atomic(using=using):
        product = lock_and_read(product_id, using=using)
        previous = product.quantity
        if previous < quantity:
            raise InsufficientStockError(f"Insufficient stock. Available: {previous}, requested: {quantity}")
        delivery = Delivery.objects.using(using).create(
            requested_at=requested_at or timezone.now(),
            source_location=source_location,
            destination_site=destination_site,
            product=product,
            quantity=quantity,
            unit=product.unit,
            contact_name=contact_name or None,
            contact_phone=contact_phone or None,
            status=Delivery.STATUS_PENDING,
        )
        apply_balance(product, previous - quantity, using=using)
        record(product, MovementType.SAIDA, quantity, delivery_reason(destination_site), delivery, using=using)
        notify_if_low_stock(product, previous, using=using)

    logger.info(
        "logistics.delivery_created",
        extra={
            "event": "logistics.delivery_created",
            "delivery_id": str(delivery.pk),
            "product_id": str(product.pk),
            "quantity": str(quantity),
            "balance_from": str(previous),
            "balance_to": str(product.quantity),
        },
    )
    return delivery


def update_delivery_fields(*, delivery_id, fields: dict, using: str = DEFAULT_DB_ALIAS) -> Delivery:
    """Overwrite only the supplied descriptive fields; stock is untouched."""
    changes = _clean_field_changes(fields)
    if not changes:
        raise InvalidInputError("No valid fields to update")
    with transaction.atomic(using=using):
        delivery = _get_delivery(delivery_id, using=using, lock=True)
        _apply_field_changes(delivery, changes, using=using)
    return delivery


def update_delivery_status(*, delivery_id, status: str, using: str = DEFAULT_DB_ALIAS) -> Delivery:
    """Set the free-form status label. Any label may follow any other."""
    prev = None
    with transaction.atomic(using=using):
        delivery = _get_delivery(delivery_id, using=using, lock=True)
        prev = delivery.status
        _apply_field_changes(delivery, {"status": required_text(status, field="status")}, using=using)
    logger.info(
        "logistics.delivery_status_changed",
        extra={
            "event": "logistics.delivery_status_changed",
            "delivery_id": str(delivery.pk),
            "status_from": prev,
            "status_to": delivery.status,
        },
    )
    return delivery


def _reassign(delivery_id, product_id, quantity, *, using: str) -> Delivery:
    """Move a delivery to another product and/or quantity. Caller owns the transaction."""
    delivery, products = _lock_delivery_with_products(delivery_id, product_id, using=using)
    old_product = products[delivery.product_id]
    new_product = old_product
    if product_id is not None:
        new_product = products[as_uuid(product_id)]
    old_quantity = delivery.quantity
    new_quantity = quantity if quantity is not None else old_quantity

    if new_product.pk == old_product.pk and new_quantity == old_quantity:
        return delivery

    if new_product.pk == old_product.pk:
        previous = old_product.quantity
        balance = previous + old_quantity - new_quantity
        if balance < ZERO:
            raise InsufficientStockError(
                f"Insufficient stock. Available: {previous + old_quantity}, requested: {new_quantity}"
            )
        apply_balance(old_product, balance, using=using)
        notify_if_low_stock(old_product, previous, using=using)
    else:
        old_previous = old_product.quantity
        apply_balance(old_product, old_previous + old_quantity, using=using)
        new_previous = new_product.quantity
        if new_previous < new_quantity:
            raise InsufficientStockError(f"Insufficient stock. Available: {new_previous}, requested: {new_quantity}")
        apply_balance(new_product, new_previous - new_quantity, using=using)
        notify_if_low_stock(old_product, old_previous, using=using)
        notify_if_low_stock(new_product, new_previous, using=using)
        delivery.product = new_product
        delivery.unit = new_product.unit

    delivery.quantity = new_quantity
    delivery.save(using=using, update_fields=["product", "quantity", "unit"])

    movement = _linked_movement(delivery, using=using)
    if movement is None:
        record(new_product, MovementType.SAIDA, new_quantity, delivery_reason(delivery.destination_site), delivery, using=using)
    else:
        movement.product = new_product
        movement.quantity = new_quantity
        movement.reason = delivery_reason(delivery.destination_site)
        movement.save(using=using, update_fields=["product", "quantity", "reason"])

    logger.info(
        "logistics.delivery_reassigned",
        extra={
            "event": "logistics.delivery_reassigned",
            "delivery_id": str(delivery.pk),
            "product_from": str(old_product.pk),
            "product_to": str(new_product.pk),
            "quantity_from": str(old_quantity),
            "quantity_to": str(new_quantity),
        },
    )
    return delivery


def reassign_delivery(
    *,
    delivery_id,
    product_id=None,
    quantity=None,
    using: str = DEFAULT_DB_ALIAS,
) -> Delivery:
    """Change a delivery's product and/or quantity.

    The old quantity is credited back to the old product, the new quantity is
    debited from the new product and the linked movement is rewritten to
    match. All or nothing.
    """
    if product_id is None and quantity is None:
        raise InvalidInputError("Nothing to update")
    quantity = coerce_quantity(quantity) if quantity is not None else None
    with transaction.atomic(using=using):
        return _reassign(delivery_id, product_id, quantity, using=using)


def update_delivery(*, delivery_id, changes: dict, using: str = DEFAULT_DB_ALIAS) -> Delivery:
    """Apply a partial edit: descriptive fields and/or product and quantity."""
    changes = changes or {}
    field_changes = _clean_field_changes(changes)
    product_id = changes.get("product_id")
    quantity = changes.get("quantity")
    if not field_changes and product_id is None and quantity is None:
        raise InvalidInputError("No valid fields to update")
    quantity = coerce_quantity(quantity) if quantity is not None else None

    with transaction.atomic(using=using):
        if product_id is not None or quantity is not None:
            delivery = _reassign(delivery_id, product_id, quantity, using=using)
        else:
            delivery = _get_delivery(delivery_id, using=using, lock=True)
        if field_changes:
            _apply_field_changes(delivery, field_changes, using=using)
    return delivery


def delete_delivery(*, delivery_id, using: str = DEFAULT_DB_ALIAS) -> Product:
    """Cancel a delivery: return its quantity to stock and drop its movement.

    The linked saida is deleted rather than offset by a compensating entrada.
    Returns the updated product.
    """
    with transaction.atomic(using=using):
        delivery, products = _lock_delivery_with_products(delivery_id, using=using)
        product = products[delivery.product_id]
        previous = product.quantity
        apply_balance(product, previous + delivery.quantity, using=using)
        Movement.objects.using(using).filter(delivery=delivery).delete()
        delivery.delete(using=using)
        notify_if_low_stock(product, previous, using=using)

    logger.info(
        "logistics.delivery_deleted",
        extra={
            "event": "logistics.delivery_deleted",
            "delivery_id": str(delivery_id),
            "product_id": str(product.pk),
            "quantity": str(delivery.quantity),
            "balance_from": str(previous),
            "balance_to": str(product.quantity),
        },
    )
    return product


# EOF
