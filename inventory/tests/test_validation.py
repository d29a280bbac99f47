import pytest
from catalog.tests.factories import ProductVariantFactory
from inventory.errors import InsufficientStockError, InvalidTransitionInputError
from inventory.validation import StockRequest, build_requests, validate, validate_fresh


def test_validate_passes_when_stock_covers_requests():
    requests = [
        StockRequest(variant_id=1, requested_qty=3, track_inventory=True, current_stock=3),
        StockRequest(variant_id=2, requested_qty=0, track_inventory=True, current_stock=0),
    ]
    assert validate(requests) is True


def test_validate_reports_first_short_variant():
    requests = [
        StockRequest(variant_id=1, requested_qty=1, track_inventory=True, current_stock=5),
        StockRequest(variant_id=2, requested_qty=5, track_inventory=True, current_stock=2),
    ]
    with pytest.raises(InsufficientStockError) as exc:
        validate(requests)
    assert exc.value.variant_id == 2
    assert exc.value.available == 2
    assert exc.value.requested == 5
    assert str(exc.value) == "Insufficient stock for variant 2. Available: 2, Requested: 5"


def test_validate_ignores_untracked_variants():
    requests = [StockRequest(variant_id=9, requested_qty=50, track_inventory=False, current_stock=-3)]
    assert validate(requests) is True


def test_validate_rejects_negative_request():
    with pytest.raises(InvalidTransitionInputError):
        validate([StockRequest(variant_id=1, requested_qty=-1, track_inventory=True, current_stock=10)])


@pytest.mark.django_db
def test_build_requests_reads_current_stock():
    v = ProductVariantFactory(stock_quantity=4)
    u = ProductVariantFactory(stock_quantity=0, track_inventory=False)

    requests = build_requests({v.id: 2, u.id: 7})
    by_id = {r.variant_id: r for r in requests}
    assert by_id[v.id].current_stock == 4 and by_id[v.id].track_inventory is True
    assert by_id[u.id].track_inventory is False


@pytest.mark.django_db
def test_validate_fresh_sees_changes_made_after_first_read():
    v = ProductVariantFactory(stock_quantity=5)
    assert validate_fresh({v.id: 5}) is True

    # Someone else sold two units in the meantime
    type(v).objects.filter(id=v.id).update(stock_quantity=3)
    with pytest.raises(InsufficientStockError):
        validate_fresh({v.id: 5})


@pytest.mark.django_db
def test_validate_fresh_rejects_unknown_variant():
    with pytest.raises(InvalidTransitionInputError):
        validate_fresh({987654: 1})
