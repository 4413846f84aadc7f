from decimal import Decimal
from unittest import mock

import pytest
from common.choices import MovementType
from django.core import mail
from inventory.exceptions import InsufficientStockError
from inventory.models import Product
from inventory.notifications import (
    EmailLowStockNotifier,
    ProductSnapshot,
    crossed_low_stock,
    dispatch,
    format_quantity,
)
from inventory.services import apply_movement, edit_movement
from inventory.tests.factories import ProductFactory


def _snapshot(**overrides):
    data = {
        "id": "0b6f8f8e-52a4-4bb4-9d4c-0d7f2b2f1a10",
        "sku": "PROD-ABC123",
        "name": "Cimento",
        "quantity": Decimal("5"),
        "unit": "saco",
        "min_quantity": Decimal("10"),
    }
    data.update(overrides)
    return ProductSnapshot(**data)


def test_crossed_low_stock_rules():
    product = Product(quantity=Decimal("5"), min_quantity=Decimal("10"))
    assert crossed_low_stock(product, Decimal("100")) is True
    # Unchanged balance does not re-alert
    assert crossed_low_stock(product, Decimal("5")) is False
    product.min_quantity = None
    assert crossed_low_stock(product, Decimal("100")) is False
    product.min_quantity = Decimal("4.99")
    assert crossed_low_stock(product, Decimal("100")) is False


def test_format_quantity_uses_brazilian_separators():
    assert format_quantity(Decimal("1234.5")) == "1.234,5"
    assert format_quantity(Decimal("10")) == "10"
    assert format_quantity(None) == "-"


@pytest.mark.django_db
def test_saida_below_minimum_notifies_after_commit(alerts, django_capture_on_commit_callbacks):
    product = ProductFactory(quantity=Decimal("100"), min_quantity=Decimal("10"))

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        _, updated = apply_movement(product_id=product.id, movement_type=MovementType.SAIDA, quantity=95)

    assert updated.quantity == Decimal("5")
    assert len(callbacks) == 1
    assert len(alerts) == 1
    assert alerts[0].sku == product.sku
    assert alerts[0].quantity == Decimal("5")
    assert alerts[0].min_quantity == Decimal("10")


@pytest.mark.django_db
def test_no_notification_above_minimum_or_without_minimum(alerts, django_capture_on_commit_callbacks):
    above = ProductFactory(quantity=Decimal("100"), min_quantity=Decimal("10"))
    unset = ProductFactory(quantity=Decimal("100"))

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        apply_movement(product_id=above.id, movement_type=MovementType.SAIDA, quantity=50)
        apply_movement(product_id=unset.id, movement_type=MovementType.SAIDA, quantity=99)

    assert callbacks == []
    assert alerts == []


@pytest.mark.django_db
def test_rolled_back_mutation_never_notifies(alerts, django_capture_on_commit_callbacks):
    product = ProductFactory(quantity=Decimal("100"), min_quantity=Decimal("10"))
    movement, _ = apply_movement(product_id=product.id, movement_type=MovementType.SAIDA, quantity=50)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(InsufficientStockError):
            edit_movement(movement_id=movement.id, quantity=150)

    assert callbacks == []
    assert alerts == []


@pytest.mark.django_db
def test_notifier_failure_does_not_affect_committed_result(settings, django_capture_on_commit_callbacks):
    settings.LOW_STOCK_NOTIFIER = "inventory.tests.notifiers.FailingNotifier"
    product = ProductFactory(quantity=Decimal("100"), min_quantity=Decimal("10"))

    with mock.patch("inventory.notifications.logger") as logger:
        with django_capture_on_commit_callbacks(execute=True):
            movement, updated = apply_movement(product_id=product.id, movement_type=MovementType.SAIDA, quantity=95)

    product.refresh_from_db()
    assert product.quantity == Decimal("5")
    assert movement.pk is not None
    logger.exception.assert_called_once()


def test_dispatch_runs_on_background_worker_when_async(settings):
    settings.LOW_STOCK_NOTIFY_ASYNC = True
    with mock.patch("inventory.notifications._executor") as executor:
        dispatch(_snapshot())
    executor.submit.assert_called_once()


def test_email_notifier_sends_text_and_html(settings):
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    settings.LOW_STOCK_RECIPIENTS = ["compras@example.com"]

    EmailLowStockNotifier().notify(_snapshot(quantity=Decimal("1234.5"), min_quantity=Decimal("2000")))

    assert len(mail.outbox) == 1
    message = mail.outbox[0]
    assert message.subject == "Alerta: Estoque Baixo - Cimento"
    assert message.to == ["compras@example.com"]
    assert "PROD-ABC123" in message.body
    assert "1.234,5 saco" in message.body
    html, mimetype = message.alternatives[0]
    assert mimetype == "text/html"
    assert "Alerta de Reposição Necessária" in html


def test_email_notifier_skips_without_recipients(settings):
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    settings.LOW_STOCK_RECIPIENTS = []

    EmailLowStockNotifier().notify(_snapshot())

    assert mail.outbox == []
