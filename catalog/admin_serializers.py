"""Admin serializers for write endpoints in the catalog app.

Stock quantity is read-only here: opening stock for a new variant is
booked through the ledger so the transaction history stays complete.
"""

from common.choices import TransactionKind
from django.db import transaction
from inventory.services import apply_delta
from rest_framework import serializers

from .models import Product, ProductVariant


class ProductAdminSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = [
            "id",
            "title",
            "slug",
            "description",
            "is_active",
        ]


class ProductVariantAdminSerializer(serializers.ModelSerializer):
    initial_stock = serializers.IntegerField(min_value=0, required=False, write_only=True, default=0)

    class Meta:
        model = ProductVariant
        fields = [
            "id",
            "product",
            "sku",
            "title",
            "price",
            "cost_price",
            "track_inventory",
            "stock_quantity",
            "initial_stock",
        ]
        read_only_fields = ["stock_quantity"]

    def create(self, validated_data):  # type: ignore[override]
        initial_stock = validated_data.pop("initial_stock", 0)
        request = self.context.get("request")
        with transaction.atomic():
            variant = super().create(validated_data)
            if initial_stock:
                apply_delta(
                    variant_id=variant.id,
                    quantity=initial_stock,
                    kind=TransactionKind.RESTOCK,
                    note="Opening stock",
                    user=getattr(request, "user", None),
                )
                variant.refresh_from_db(fields=["stock_quantity"])
        return variant

    def update(self, instance, validated_data):  # type: ignore[override]
        validated_data.pop("initial_stock", None)
        return super().update(instance, validated_data)
