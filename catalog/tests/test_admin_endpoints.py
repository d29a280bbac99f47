import pytest
from catalog.models import ProductVariant
from catalog.tests.factories import ProductFactory, ProductVariantFactory, StaffFactory, UserFactory
from inventory.models import StockTransaction
from rest_framework.test import APIClient


@pytest.mark.django_db
def test_admin_create_product_requires_staff():
    client = APIClient()
    payload = {"title": "Linen Shirt", "slug": "linen-shirt"}

    client.force_authenticate(user=UserFactory())
    resp_forbidden = client.post("/api/v1/admin/catalog/products/", payload, format="json")
    assert resp_forbidden.status_code in (401, 403)

    client.force_authenticate(user=StaffFactory())
    resp = client.post("/api/v1/admin/catalog/products/", payload, format="json")
    assert resp.status_code == 201
    assert resp.data["slug"] == "linen-shirt"


@pytest.mark.django_db
def test_admin_create_variant_books_opening_stock():
    staff = StaffFactory()
    p = ProductFactory()
    client = APIClient()
    client.force_authenticate(user=staff)

    resp = client.post(
        "/api/v1/admin/catalog/variants/",
        {"product": p.id, "sku": "LIN-M", "price": "300.00", "cost_price": "140.00", "initial_stock": 7},
        format="json",
    )
    assert resp.status_code == 201
    assert resp.data["stock_quantity"] == 7
    assert "initial_stock" not in resp.data

    txn = StockTransaction.objects.get(variant_id=resp.data["id"])
    assert txn.quantity == 7
    assert txn.kind == "restock"
    assert txn.created_by_id == staff.id


@pytest.mark.django_db
def test_admin_create_variant_without_stock_writes_no_transaction():
    client = APIClient()
    client.force_authenticate(user=StaffFactory())
    p = ProductFactory()

    resp = client.post("/api/v1/admin/catalog/variants/", {"product": p.id, "sku": "LIN-S"}, format="json")
    assert resp.status_code == 201
    assert resp.data["stock_quantity"] == 0
    assert not StockTransaction.objects.filter(variant_id=resp.data["id"]).exists()


@pytest.mark.django_db
def test_admin_patch_cannot_edit_stock_directly():
    v = ProductVariantFactory(stock_quantity=3)
    client = APIClient()
    client.force_authenticate(user=StaffFactory())

    resp = client.patch(
        f"/api/v1/admin/catalog/variants/{v.id}/",
        {"stock_quantity": 100, "price": "120.00", "track_inventory": False},
        format="json",
    )
    assert resp.status_code == 200
    v.refresh_from_db()
    assert v.stock_quantity == 3
    assert str(v.price) == "120.00"
    assert v.track_inventory is False


@pytest.mark.django_db
def test_admin_variant_delete_not_allowed():
    v = ProductVariantFactory()
    client = APIClient()
    client.force_authenticate(user=StaffFactory())

    resp = client.delete(f"/api/v1/admin/catalog/variants/{v.id}/")
    assert resp.status_code == 405
    assert ProductVariant.objects.filter(id=v.id).exists()
