from decimal import Decimal

import pytest
from inventory.models import Movement
from inventory.tests.factories import ProductFactory
from logistics.models import Delivery
from rest_framework.test import APIClient


@pytest.fixture
def api():
    return APIClient()


def _payload(product, quantity="20", **extra):
    data = {
        "product_id": str(product.id),
        "quantity": quantity,
        "source_location": "Galpão A",
        "destination_site": "Obra Centro",
    }
    data.update(extra)
    return data


@pytest.mark.django_db
def test_create_and_list_deliveries(api):
    product = ProductFactory(name="Cimento", quantity=Decimal("50"), unit="saco")

    resp = api.post("/api/v1/logistics/deliveries/", _payload(product, contact_name="Marcos"), format="json")

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "Pendente"
    assert body["unit"] == "saco"
    assert body["product_name"] == "Cimento"
    assert body["sku"] == product.sku
    product.refresh_from_db()
    assert product.quantity == Decimal("30")

    resp = api.get("/api/v1/logistics/deliveries/")
    assert resp.status_code == 200
    rows = resp.json()
    assert [row["id"] for row in rows] == [body["id"]]


@pytest.mark.django_db
def test_oversized_delivery_is_409(api):
    product = ProductFactory(quantity=Decimal("10"))

    resp = api.post("/api/v1/logistics/deliveries/", _payload(product, quantity="15"), format="json")

    assert resp.status_code == 409
    assert resp.json()["code"] == "insufficient_stock"
    assert Delivery.objects.count() == 0
    product.refresh_from_db()
    assert product.quantity == Decimal("10")


@pytest.mark.django_db
def test_missing_destination_is_400(api):
    product = ProductFactory(quantity=Decimal("10"))
    payload = _payload(product)
    del payload["destination_site"]

    resp = api.post("/api/v1/logistics/deliveries/", payload, format="json")

    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_input"


@pytest.mark.django_db
def test_status_patch(api):
    product = ProductFactory(quantity=Decimal("50"))
    delivery_id = api.post("/api/v1/logistics/deliveries/", _payload(product), format="json").json()["id"]

    resp = api.patch(f"/api/v1/logistics/deliveries/{delivery_id}/status/", {"status": "Em rota"}, format="json")

    assert resp.status_code == 200
    assert resp.json()["status"] == "Em rota"


@pytest.mark.django_db
def test_patch_reassigns_product_and_quantity(api):
    old = ProductFactory(quantity=Decimal("50"))
    new = ProductFactory(quantity=Decimal("40"), unit="m3")
    delivery_id = api.post("/api/v1/logistics/deliveries/", _payload(old), format="json").json()["id"]

    resp = api.patch(
        f"/api/v1/logistics/deliveries/{delivery_id}/",
        {"product_id": str(new.id), "quantity": "10", "contact_phone": "11 4000-0000"},
        format="json",
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["product_id"] == str(new.id)
    assert body["unit"] == "m3"
    assert body["contact_phone"] == "11 4000-0000"
    old.refresh_from_db()
    new.refresh_from_db()
    assert old.quantity == Decimal("50")
    assert new.quantity == Decimal("30")


@pytest.mark.django_db
def test_delete_returns_product_with_restored_balance(api):
    product = ProductFactory(quantity=Decimal("50"))
    delivery_id = api.post("/api/v1/logistics/deliveries/", _payload(product), format="json").json()["id"]

    resp = api.delete(f"/api/v1/logistics/deliveries/{delivery_id}/")

    assert resp.status_code == 200
    assert Decimal(resp.json()["quantity"]) == Decimal("50")
    assert not Movement.objects.filter(product=product).exists()

    resp = api.delete(f"/api/v1/logistics/deliveries/{delivery_id}/")
    assert resp.status_code == 404
