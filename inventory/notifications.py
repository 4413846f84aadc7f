"""Low-stock notifications.

The stock services only decide *whether* a product crossed its minimum. The
alert itself is handed to the notifier configured in ``LOW_STOCK_NOTIFIER``
once the owning transaction commits, and runs on a background worker so a
slow or failing mail server never affects the mutation.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from functools import partial
from typing import Optional, Protocol

from django.conf import settings
from django.core.mail import send_mail
from django.db import DEFAULT_DB_ALIAS, transaction
from django.utils import timezone
from django.utils.html import format_html
from django.utils.module_loading import import_string

logger = logging.getLogger("estoque.notifications")

DEFAULT_NOTIFIER = "inventory.notifications.EmailLowStockNotifier"

_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="low-stock")


@dataclass(frozen=True)
class ProductSnapshot:
    """Post-mutation view of a product, detached from the ORM."""

    id: str
    sku: str
    name: str
    quantity: Decimal
    unit: str
    min_quantity: Optional[Decimal]

    @classmethod
    def from_product(cls, product) -> "ProductSnapshot":
        return cls(
            id=str(product.pk),
            sku=product.sku,
            name=product.name,
            quantity=product.quantity,
            unit=product.unit,
            min_quantity=product.min_quantity,
        )


class LowStockNotifier(Protocol):
    def notify(self, snapshot: ProductSnapshot) -> None: ...


def format_quantity(value) -> str:
    """Format a quantity the way Brazilian users read it (1.234,5)."""
    if value is None:
        return "-"
    text = f"{Decimal(value):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return text.rstrip("0").rstrip(",")


class EmailLowStockNotifier:
    """Send the low-stock alert through Django's email backend."""

    def notify(self, snapshot: ProductSnapshot) -> None:
        recipients = list(getattr(settings, "LOW_STOCK_RECIPIENTS", []) or [])
        if not recipients:
            logger.warning(
                "inventory.low_stock_no_recipients",
                extra={"event": "inventory.low_stock_no_recipients", "sku": snapshot.sku},
            )
            return

        subject = f"Alerta: Estoque Baixo - {snapshot.name}"
        quantity = f"{format_quantity(snapshot.quantity)} {snapshot.unit}"
        minimum = f"{format_quantity(snapshot.min_quantity)} {snapshot.unit}"
        sent_at = timezone.localtime().strftime("%d/%m/%Y %H:%M")

        body = (
            "O sistema detectou que o seguinte item atingiu o nível crítico de estoque.\n\n"
            f"SKU: {snapshot.sku or '-'}\n"
            f"Produto: {snapshot.name}\n"
            f"Estoque atual: {quantity}\n"
            f"Mínimo definido: {minimum}\n\n"
            f"Data do alerta: {sent_at}\n"
        )
        html = format_html(
            "<h2>Alerta de Reposição Necessária</h2>"
            "<p>O sistema detectou que o seguinte item atingiu o nível crítico de estoque.</p>"
            "<table border='1' cellpadding='8' cellspacing='0'>"
            "<tr><td><strong>SKU</strong></td><td>{}</td></tr>"
            "<tr><td><strong>Produto</strong></td><td>{}</td></tr>"
            "<tr><td><strong>Estoque Atual</strong></td><td>{}</td></tr>"
            "<tr><td><strong>Mínimo Definido</strong></td><td>{}</td></tr>"
            "</table>"
            "<p>Data do alerta: {}</p>",
            snapshot.sku or "-",
            snapshot.name,
            quantity,
            minimum,
            sent_at,
        )
        send_mail(
            subject,
            body,
            getattr(settings, "DEFAULT_FROM_EMAIL", None),
            recipients,
            html_message=html,
        )


def get_notifier() -> LowStockNotifier:
    path = getattr(settings, "LOW_STOCK_NOTIFIER", None) or DEFAULT_NOTIFIER
    return import_string(path)()


def crossed_low_stock(product, previous_quantity) -> bool:
    """True when the new balance sits at/below the minimum and actually moved."""
    if product.min_quantity is None:
        return False
    return product.quantity <= product.min_quantity and product.quantity != previous_quantity


def _deliver(snapshot: ProductSnapshot) -> None:
    try:
        get_notifier().notify(snapshot)
    except Exception:
        logger.exception(
            "inventory.low_stock_notify_failed",
            extra={"event": "inventory.low_stock_notify_failed", "sku": snapshot.sku},
        )


def dispatch(snapshot: ProductSnapshot) -> None:
    """Hand the snapshot to the notifier without waiting for it."""
    logger.info(
        "inventory.low_stock",
        extra={
            "event": "inventory.low_stock",
            "product_id": snapshot.id,
            "sku": snapshot.sku,
            "quantity": str(snapshot.quantity),
            "min_quantity": str(snapshot.min_quantity),
        },
    )
    if getattr(settings, "LOW_STOCK_NOTIFY_ASYNC", True):
        _executor.submit(_deliver, snapshot)
    else:
        _deliver(snapshot)


def notify_if_low_stock(product, previous_quantity, *, using: str = DEFAULT_DB_ALIAS) -> bool:
    """Schedule a low-stock alert for after commit when the product crossed its minimum.

    Returns whether an alert was scheduled. Nothing is sent if the transaction
    rolls back.
    """
    if not crossed_low_stock(product, previous_quantity):
        return False
    snapshot = ProductSnapshot.from_product(product)
    transaction.on_commit(partial(dispatch, snapshot), using=using, robust=True)
    return True


# EOF
