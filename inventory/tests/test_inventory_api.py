from decimal import Decimal

import pytest
from catalog.tests.factories import ProductVariantFactory, StaffFactory, UserFactory
from common.choices import TransactionKind
from inventory.models import StockTransaction
from inventory.services import apply_delta
from rest_framework.test import APIClient


@pytest.fixture
def staff_client():
    client = APIClient()
    client.force_authenticate(user=StaffFactory())
    return client


@pytest.mark.django_db
def test_inventory_endpoints_require_authentication():
    client = APIClient()
    assert client.get("/api/v1/inventory/stock-levels/").status_code in (401, 403)
    assert client.get("/api/v1/inventory/transactions/").status_code in (401, 403)


@pytest.mark.django_db
def test_stock_levels_list_flags_low_stock(staff_client):
    ProductVariantFactory(sku="SKU-LOW", stock_quantity=2, cost_price=Decimal("10.00"))
    ProductVariantFactory(sku="SKU-OK", stock_quantity=20)
    ProductVariantFactory(sku="SKU-UNTRACKED", stock_quantity=0, track_inventory=False)

    resp = staff_client.get("/api/v1/inventory/stock-levels/")
    assert resp.status_code == 200
    rows = {row["sku"]: row for row in resp.json()["results"]}
    assert rows["SKU-LOW"]["low_stock"] is True
    assert Decimal(rows["SKU-LOW"]["stock_value"]) == Decimal("20.00")
    assert rows["SKU-OK"]["low_stock"] is False
    assert rows["SKU-UNTRACKED"]["low_stock"] is False

    resp_sku = staff_client.get("/api/v1/inventory/stock-levels/?sku=sku-ok")
    assert [row["sku"] for row in resp_sku.json()["results"]] == ["SKU-OK"]


@pytest.mark.django_db
def test_summary_totals(staff_client):
    ProductVariantFactory(stock_quantity=3, cost_price=Decimal("10.00"))
    ProductVariantFactory(stock_quantity=10, cost_price=Decimal("2.50"))

    resp = staff_client.get("/api/v1/inventory/summary/")
    assert resp.status_code == 200
    body = resp.json()
    assert Decimal(body["total_value"]) == Decimal("55.00")
    assert body["total_units"] == 13
    assert body["low_stock_count"] == 1
    assert body["low_stock_threshold"] == 5
    assert body["variant_count"] == 2


@pytest.mark.django_db
def test_transactions_list_filters_by_kind_and_variant(staff_client):
    v1 = ProductVariantFactory(stock_quantity=0)
    v2 = ProductVariantFactory(stock_quantity=0)
    t_in = apply_delta(variant_id=v1.id, quantity=5, kind=TransactionKind.RESTOCK)
    t_out = apply_delta(variant_id=v1.id, quantity=-1, kind=TransactionKind.SALE)
    t_other = apply_delta(variant_id=v2.id, quantity=2, kind=TransactionKind.RESTOCK)

    resp_all = staff_client.get("/api/v1/inventory/transactions/")
    assert resp_all.status_code == 200
    all_ids = [row["id"] for row in resp_all.json()["results"]]
    assert set(all_ids) == {t_in.id, t_out.id, t_other.id}

    resp_kind = staff_client.get("/api/v1/inventory/transactions/?kind=restock")
    assert {row["id"] for row in resp_kind.json()["results"]} == {t_in.id, t_other.id}

    resp_variant = staff_client.get(f"/api/v1/inventory/transactions/?variant={v1.id}")
    assert {row["id"] for row in resp_variant.json()["results"]} == {t_in.id, t_out.id}


@pytest.mark.django_db
def test_adjustment_books_transaction(staff_client):
    v = ProductVariantFactory(stock_quantity=4)

    resp = staff_client.post(
        "/api/v1/inventory/adjustments/",
        {"variant_id": v.id, "quantity": -1, "note": "Damaged"},
        format="json",
    )
    assert resp.status_code == 201
    assert resp.json()["kind"] == "adjustment"
    v.refresh_from_db()
    assert v.stock_quantity == 3
    assert StockTransaction.objects.get(variant=v).note == "Damaged"


@pytest.mark.django_db
def test_adjustment_below_zero_returns_stock_error(staff_client):
    v = ProductVariantFactory(stock_quantity=1)

    resp = staff_client.post("/api/v1/inventory/adjustments/", {"variant_id": v.id, "quantity": -5}, format="json")
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "insufficient_stock"
    assert body["available"] == 1
    assert body["requested"] == 5
    v.refresh_from_db()
    assert v.stock_quantity == 1


@pytest.mark.django_db
def test_adjustment_validation_and_permissions():
    v = ProductVariantFactory()
    client = APIClient()

    client.force_authenticate(user=UserFactory())
    resp_forbidden = client.post("/api/v1/inventory/adjustments/", {"variant_id": v.id, "quantity": 1}, format="json")
    assert resp_forbidden.status_code == 403

    client.force_authenticate(user=StaffFactory())
    resp_zero = client.post("/api/v1/inventory/adjustments/", {"variant_id": v.id, "quantity": 0}, format="json")
    assert resp_zero.status_code == 400
    resp_restock = client.post(
        "/api/v1/inventory/adjustments/",
        {"variant_id": v.id, "quantity": -2, "kind": "restock"},
        format="json",
    )
    assert resp_restock.status_code == 400
    resp_unknown = client.post("/api/v1/inventory/adjustments/", {"variant_id": 987654, "quantity": 1}, format="json")
    assert resp_unknown.status_code == 400
    assert resp_unknown.json()["code"] == "invalid_input"
