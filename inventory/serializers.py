"""Serializers for the inventory domain.

Stock levels and the transaction log are read-only; adjustments are the
one write, validated here and booked through ``inventory.services``.
"""

from catalog.models import ProductVariant
from common.choices import TransactionKind
from rest_framework import serializers

from .models import StockTransaction


class StockLevelSerializer(serializers.ModelSerializer):
    """Current stock per variant with its value at cost."""

    product_title = serializers.CharField(source="product.title", read_only=True)
    stock_value = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)
    low_stock = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = ProductVariant
        fields = [
            "id",
            "sku",
            "title",
            "product",
            "product_title",
            "track_inventory",
            "stock_quantity",
            "cost_price",
            "stock_value",
            "low_stock",
            "updated_at",
        ]
        read_only_fields = fields

    def get_low_stock(self, obj) -> bool:
        threshold = self.context.get("low_stock_threshold")
        if threshold is None or not obj.track_inventory:
            return False
        return obj.stock_quantity <= threshold


class StockTransactionSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(source="variant.sku", read_only=True)

    class Meta:
        model = StockTransaction
        fields = [
            "id",
            "variant",
            "sku",
            "quantity",
            "kind",
            "order",
            "note",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields


class StockSummarySerializer(serializers.Serializer):
    total_value = serializers.DecimalField(max_digits=18, decimal_places=2)
    total_units = serializers.IntegerField()
    low_stock_count = serializers.IntegerField()
    low_stock_threshold = serializers.IntegerField()
    variant_count = serializers.IntegerField()


class StockAdjustmentSerializer(serializers.Serializer):
    """Manual stock correction for one variant.

    ``quantity`` is signed; ``kind`` defaults to ``adjustment`` and may be
    ``restock`` for received goods.
    """

    variant_id = serializers.IntegerField()
    quantity = serializers.IntegerField()
    kind = serializers.ChoiceField(
        choices=[TransactionKind.ADJUSTMENT, TransactionKind.RESTOCK],
        default=TransactionKind.ADJUSTMENT,
    )
    note = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate_quantity(self, value):
        if value == 0:
            raise serializers.ValidationError("Quantity must be non-zero.")
        return value

    def validate(self, attrs):
        if attrs["kind"] == TransactionKind.RESTOCK and attrs["quantity"] < 0:
            raise serializers.ValidationError({"quantity": "Restock quantity must be positive."})
        return attrs


# EOF
