"""Query filters for inventory list endpoints."""

from catalog.models import ProductVariant
from common.choices import TransactionKind
from django_filters import rest_framework as filters

from .models import StockTransaction


class StockLevelFilterSet(filters.FilterSet):
    product = filters.NumberFilter(field_name="product_id")
    sku = filters.CharFilter(field_name="sku", lookup_expr="iexact")
    tracked = filters.BooleanFilter(field_name="track_inventory")
    max_stock = filters.NumberFilter(field_name="stock_quantity", lookup_expr="lte")

    class Meta:
        model = ProductVariant
        fields = ["product", "sku", "tracked", "max_stock"]


class StockTransactionFilterSet(filters.FilterSet):
    variant = filters.NumberFilter(field_name="variant_id")
    order = filters.NumberFilter(field_name="order_id")
    kind = filters.ChoiceFilter(choices=TransactionKind.choices)
    created_after = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_before = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = StockTransaction
        fields = ["variant", "order", "kind", "created_after", "created_before"]
