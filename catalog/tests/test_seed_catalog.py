from io import StringIO

import pytest
from catalog.models import ProductVariant
from django.core.management import call_command
from inventory.models import StockTransaction
from inventory.selectors import ledger_total_for_variant


@pytest.mark.django_db
def test_seed_catalog_books_opening_stock_once():
    call_command("seed_catalog", stdout=StringIO())
    txn_count = StockTransaction.objects.count()
    call_command("seed_catalog", stdout=StringIO())

    assert StockTransaction.objects.count() == txn_count
    tee = ProductVariant.objects.get(sku="TEE-BLK-M")
    assert tee.stock_quantity == 12
    assert ledger_total_for_variant(tee.id) == 12
    assert ProductVariant.objects.get(sku="GIFT-WRAP").track_inventory is False
