from decimal import Decimal

import pytest
from django.db import transaction
from inventory.exceptions import NotFoundError
from inventory.ledger import apply_balance, lock_and_read, lock_many, quantize, weighted_average_cost
from inventory.tests.factories import ProductFactory


@pytest.mark.django_db
def test_lock_and_read_returns_current_balance():
    product = ProductFactory(quantity=Decimal("12.50"))
    with transaction.atomic():
        locked = lock_and_read(product.id)
    assert locked.pk == product.pk
    assert locked.quantity == Decimal("12.50")


@pytest.mark.django_db
@pytest.mark.parametrize("product_id", ["00000000-0000-0000-0000-000000000000", "not-a-uuid", None])
def test_lock_and_read_unknown_product_is_not_found(product_id):
    with transaction.atomic():
        with pytest.raises(NotFoundError):
            lock_and_read(product_id)


@pytest.mark.django_db
def test_lock_many_returns_all_products_keyed_by_id():
    a = ProductFactory()
    b = ProductFactory()
    with transaction.atomic():
        locked = lock_many([str(b.id), a.id, b.id])
    assert set(locked) == {a.id, b.id}
    assert list(locked) == sorted([a.id, b.id])


@pytest.mark.django_db
def test_lock_many_raises_when_any_product_is_missing():
    a = ProductFactory()
    with transaction.atomic():
        with pytest.raises(NotFoundError):
            lock_many([a.id, "00000000-0000-0000-0000-000000000000"])


@pytest.mark.django_db
def test_apply_balance_persists_and_stamps_updated_at_even_when_unchanged():
    product = ProductFactory(quantity=Decimal("5"))
    assert product.updated_at is None
    with transaction.atomic():
        apply_balance(lock_and_read(product.id), Decimal("5"))
    product.refresh_from_db()
    assert product.quantity == Decimal("5.00")
    first_stamp = product.updated_at
    assert first_stamp is not None

    with transaction.atomic():
        apply_balance(lock_and_read(product.id), Decimal("5"))
    product.refresh_from_db()
    assert product.quantity == Decimal("5.00")
    assert product.updated_at >= first_stamp


@pytest.mark.django_db
def test_apply_balance_updates_unit_cost_only_when_given():
    product = ProductFactory(quantity=Decimal("1"), unit_cost=Decimal("3.00"))
    with transaction.atomic():
        apply_balance(lock_and_read(product.id), Decimal("2"))
    product.refresh_from_db()
    assert product.unit_cost == Decimal("3.00")

    with transaction.atomic():
        apply_balance(lock_and_read(product.id), Decimal("4"), Decimal("4.255"))
    product.refresh_from_db()
    assert product.quantity == Decimal("4.00")
    assert product.unit_cost == Decimal("4.26")


def test_quantize_rounds_half_up_to_cents():
    assert quantize("1.005") == Decimal("1.01")
    assert quantize(Decimal("2")) == Decimal("2.00")


def test_weighted_average_cost_blends_by_quantity():
    # 10 @ 2.00 + 30 @ 4.00 -> 3.50
    assert weighted_average_cost(Decimal("10"), Decimal("2.00"), Decimal("30"), Decimal("4.00")) == Decimal("3.50")


def test_weighted_average_cost_without_prior_cost_or_stock_takes_incoming():
    assert weighted_average_cost(Decimal("10"), None, Decimal("5"), Decimal("7.25")) == Decimal("7.25")
    assert weighted_average_cost(Decimal("0"), Decimal("9.99"), Decimal("5"), Decimal("7.25")) == Decimal("7.25")
