from datetime import timedelta
from decimal import Decimal
from unittest import mock

import pytest
from common.choices import DeliveryStatus, MovementType
from django.utils import timezone
from inventory import services as inventory_services
from inventory.exceptions import InsufficientStockError, InvalidInputError, NotFoundError
from inventory.models import Movement
from inventory.services import delete_movement, edit_movement
from inventory.tests.factories import ProductFactory
from logistics.models import Delivery
from logistics.services import (
    create_delivery,
    delete_delivery,
    reassign_delivery,
    update_delivery,
    update_delivery_fields,
    update_delivery_status,
)

MISSING = "00000000-0000-0000-0000-000000000000"


def _deliver(product, quantity, site="Obra Centro", **kwargs):
    return create_delivery(
        product_id=product.id,
        quantity=quantity,
        source_location="Galpão A",
        destination_site=site,
        **kwargs,
    )


def _linked(delivery):
    return Movement.objects.get(delivery=delivery)


@pytest.mark.django_db
def test_create_delivery_debits_stock_and_logs_one_linked_saida():
    product = ProductFactory(quantity=Decimal("50"), unit="saco")

    delivery = _deliver(product, 20, contact_name="Marcos")

    product.refresh_from_db()
    assert product.quantity == Decimal("30")
    assert delivery.status == DeliveryStatus.PENDENTE
    assert delivery.unit == "saco"
    assert delivery.contact_name == "Marcos"
    movements = list(Movement.objects.filter(product=product))
    assert len(movements) == 1
    assert movements[0].type == MovementType.SAIDA
    assert movements[0].quantity == Decimal("20")
    assert movements[0].delivery_id == delivery.id
    assert movements[0].reason == "Entrega logística p/ Obra Centro"


@pytest.mark.django_db
def test_create_delivery_may_take_the_whole_balance():
    product = ProductFactory(quantity=Decimal("15"))
    _deliver(product, 15)
    product.refresh_from_db()
    assert product.quantity == Decimal("0")


@pytest.mark.django_db
def test_oversized_delivery_is_rejected_and_writes_nothing():
    product = ProductFactory(quantity=Decimal("10"))

    with pytest.raises(InsufficientStockError):
        _deliver(product, 15)

    product.refresh_from_db()
    assert product.quantity == Decimal("10")
    assert Delivery.objects.count() == 0
    assert Movement.objects.count() == 0


@pytest.mark.django_db
def test_create_delivery_validates_input_and_product():
    product = ProductFactory(quantity=Decimal("10"))
    with pytest.raises(InvalidInputError):
        _deliver(product, 0)
    with pytest.raises(InvalidInputError):
        _deliver(product, 1, site="  ")
    with pytest.raises(NotFoundError):
        create_delivery(product_id=MISSING, quantity=1, source_location="A", destination_site="B")


@pytest.mark.django_db
def test_delete_delivery_restores_balance_and_removes_linked_saida():
    product = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(product, 20)

    updated = delete_delivery(delivery_id=delivery.id)

    assert updated.quantity == Decimal("50")
    assert not Delivery.objects.filter(pk=delivery.pk).exists()
    assert not Movement.objects.filter(product=product).exists()


@pytest.mark.django_db
def test_delete_unknown_delivery():
    with pytest.raises(NotFoundError):
        delete_delivery(delivery_id=MISSING)


@pytest.mark.django_db
def test_status_is_free_form_and_does_not_touch_stock():
    product = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(product, 20)

    delivery = update_delivery_status(delivery_id=delivery.id, status=DeliveryStatus.ENTREGUE)
    delivery = update_delivery_status(delivery_id=delivery.id, status="Aguardando guindaste")

    assert delivery.status == "Aguardando guindaste"
    product.refresh_from_db()
    assert product.quantity == Decimal("30")
    with pytest.raises(InvalidInputError):
        update_delivery_status(delivery_id=delivery.id, status="")


@pytest.mark.django_db
def test_partial_field_update_keeps_omitted_fields():
    product = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(product, 20, contact_name="Marcos", contact_phone="1199")
    later = timezone.now() + timedelta(days=1)

    delivery = update_delivery_fields(
        delivery_id=delivery.id, fields={"destination_site": "Obra Norte", "requested_at": later}
    )

    delivery.refresh_from_db()
    assert delivery.destination_site == "Obra Norte"
    assert delivery.requested_at == later
    assert delivery.contact_name == "Marcos"
    assert delivery.contact_phone == "1199"
    assert _linked(delivery).reason == "Entrega logística p/ Obra Norte"
    product.refresh_from_db()
    assert product.quantity == Decimal("30")


@pytest.mark.django_db
def test_field_update_without_known_fields_is_invalid():
    product = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(product, 20)
    with pytest.raises(InvalidInputError):
        update_delivery_fields(delivery_id=delivery.id, fields={"quantity": 3, "bogus": 1})


@pytest.mark.django_db
def test_reassign_quantity_on_same_product():
    product = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(product, 20)

    delivery = reassign_delivery(delivery_id=delivery.id, quantity=45)

    product.refresh_from_db()
    assert product.quantity == Decimal("5")
    assert delivery.quantity == Decimal("45")
    assert _linked(delivery).quantity == Decimal("45")

    with pytest.raises(InsufficientStockError):
        reassign_delivery(delivery_id=delivery.id, quantity=51)
    product.refresh_from_db()
    assert product.quantity == Decimal("5")


@pytest.mark.django_db
def test_reassign_to_another_product_rebalances_both_and_rewrites_movement():
    old = ProductFactory(quantity=Decimal("50"), unit="saco")
    new = ProductFactory(quantity=Decimal("40"), unit="m3")
    delivery = _deliver(old, 20)

    delivery = reassign_delivery(delivery_id=delivery.id, product_id=new.id, quantity=25)

    old.refresh_from_db()
    new.refresh_from_db()
    assert old.quantity == Decimal("50")
    assert new.quantity == Decimal("15")
    assert delivery.product_id == new.id
    assert delivery.unit == "m3"
    movement = _linked(delivery)
    assert movement.product_id == new.id
    assert movement.quantity == Decimal("25")
    assert Movement.objects.filter(delivery=delivery).count() == 1


@pytest.mark.django_db
def test_reassign_that_new_product_cannot_cover_changes_nothing():
    old = ProductFactory(quantity=Decimal("50"))
    new = ProductFactory(quantity=Decimal("10"))
    delivery = _deliver(old, 20)

    with pytest.raises(InsufficientStockError):
        reassign_delivery(delivery_id=delivery.id, product_id=new.id)

    old.refresh_from_db()
    new.refresh_from_db()
    delivery.refresh_from_db()
    assert old.quantity == Decimal("30")
    assert new.quantity == Decimal("10")
    assert delivery.product_id == old.id
    assert _linked(delivery).product_id == old.id


@pytest.mark.django_db
def test_reassign_recreates_missing_linked_movement():
    product = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(product, 20)
    Movement.objects.filter(delivery=delivery).delete()

    reassign_delivery(delivery_id=delivery.id, quantity=10)

    movement = _linked(delivery)
    assert movement.type == MovementType.SAIDA
    assert movement.quantity == Decimal("10")


@pytest.mark.django_db
def test_reassign_errors():
    product = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(product, 20)
    with pytest.raises(InvalidInputError):
        reassign_delivery(delivery_id=delivery.id)
    with pytest.raises(NotFoundError):
        reassign_delivery(delivery_id=delivery.id, product_id=MISSING)
    with pytest.raises(NotFoundError):
        reassign_delivery(delivery_id=MISSING, quantity=1)


@pytest.mark.django_db
def test_update_delivery_combines_fields_and_reassignment():
    product = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(product, 20)

    delivery = update_delivery(delivery_id=delivery.id, changes={"quantity": Decimal("30"), "status": "Em rota"})

    delivery.refresh_from_db()
    product.refresh_from_db()
    assert delivery.quantity == Decimal("30")
    assert delivery.status == "Em rota"
    assert product.quantity == Decimal("20")


@pytest.mark.django_db
def test_update_delivery_is_all_or_nothing():
    product = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(product, 20)

    with pytest.raises(InsufficientStockError):
        update_delivery(delivery_id=delivery.id, changes={"quantity": 100, "status": "Em rota"})

    delivery.refresh_from_db()
    assert delivery.status == DeliveryStatus.PENDENTE
    assert delivery.quantity == Decimal("20")


@pytest.mark.django_db
def test_editing_linked_movement_updates_delivery_quantity():
    product = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(product, 20)

    edit_movement(movement_id=_linked(delivery).id, quantity=25)

    delivery.refresh_from_db()
    product.refresh_from_db()
    assert delivery.quantity == Decimal("25")
    assert product.quantity == Decimal("25")


@pytest.mark.django_db
def test_rejected_linked_movement_edit_leaves_delivery_untouched():
    product = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(product, 20)
    movement = _linked(delivery)

    with pytest.raises(InsufficientStockError):
        edit_movement(movement_id=movement.id, quantity=71)

    product.refresh_from_db()
    delivery.refresh_from_db()
    movement.refresh_from_db()
    assert product.quantity == Decimal("30")
    assert delivery.quantity == Decimal("20")
    assert movement.quantity == Decimal("20")
    assert movement.product_id == product.id


@pytest.mark.django_db
def test_deleting_linked_movement_removes_delivery():
    product = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(product, 20)

    updated = delete_movement(movement_id=_linked(delivery).id)

    assert updated.quantity == Decimal("50")
    assert not Delivery.objects.filter(pk=delivery.pk).exists()


@pytest.mark.django_db
def test_delivery_below_minimum_notifies(alerts, django_capture_on_commit_callbacks):
    product = ProductFactory(quantity=Decimal("50"), min_quantity=Decimal("30"))

    with django_capture_on_commit_callbacks(execute=True):
        _deliver(product, 20)

    assert [a.quantity for a in alerts] == [Decimal("30")]


def _reassign_before_lock(delivery, target):
    """Run a reassignment right after the movement is first read, before its product is locked."""
    real_lock = inventory_services.lock_and_read
    state = {"done": False}

    def lock_after_reassign(product_id, *, using):
        if not state["done"]:
            state["done"] = True
            reassign_delivery(delivery_id=delivery.id, product_id=target.id)
        return real_lock(product_id, using=using)

    return mock.patch.object(inventory_services, "lock_and_read", side_effect=lock_after_reassign)


@pytest.mark.django_db
def test_deleting_linked_movement_follows_concurrent_reassignment():
    a = ProductFactory(quantity=Decimal("50"))
    b = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(a, 20)

    with _reassign_before_lock(delivery, b):
        updated = delete_movement(movement_id=_linked(delivery).id)

    a.refresh_from_db()
    b.refresh_from_db()
    assert updated.pk == b.pk
    assert a.quantity == Decimal("50")
    assert b.quantity == Decimal("50")
    assert not Delivery.objects.filter(pk=delivery.pk).exists()


@pytest.mark.django_db
def test_editing_linked_movement_follows_concurrent_reassignment():
    a = ProductFactory(quantity=Decimal("50"))
    b = ProductFactory(quantity=Decimal("50"))
    delivery = _deliver(a, 20)

    with _reassign_before_lock(delivery, b):
        _, updated = edit_movement(movement_id=_linked(delivery).id, quantity=25)

    a.refresh_from_db()
    b.refresh_from_db()
    delivery.refresh_from_db()
    assert updated.pk == b.pk
    assert a.quantity == Decimal("50")
    assert b.quantity == Decimal("25")
    assert delivery.quantity == Decimal("25")
