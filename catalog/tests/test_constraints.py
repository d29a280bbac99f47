from decimal import Decimal

import pytest
from catalog.models import ProductVariant
from catalog.tests.factories import ProductFactory, ProductVariantFactory
from django.db import IntegrityError


@pytest.mark.django_db
def test_variant_negative_price_rejected():
    p = ProductFactory()
    with pytest.raises(IntegrityError):
        ProductVariant.objects.create(product=p, sku="NEG-PRICE", price=Decimal("-1.00"))


@pytest.mark.django_db
def test_variant_negative_cost_rejected():
    p = ProductFactory()
    with pytest.raises(IntegrityError):
        ProductVariant.objects.create(product=p, sku="NEG-COST", cost_price=Decimal("-5.00"))


@pytest.mark.django_db
def test_variant_sku_unique():
    ProductVariantFactory(sku="DUP-1")
    with pytest.raises(IntegrityError):
        ProductVariantFactory(sku="DUP-1")


@pytest.mark.django_db
def test_stock_value_uses_cost_price():
    v = ProductVariantFactory(stock_quantity=4, cost_price=Decimal("12.50"))
    assert v.stock_value == Decimal("50.00")
