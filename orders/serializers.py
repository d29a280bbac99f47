"""DRF serializers for Orders.

Read serializers expose the committed snapshot (lines, totals, revision);
write serializers validate input shape only and hand off to
``orders.services`` for the stock reconciliation.
"""

from decimal import Decimal

from common.choices import OrderStatus, SalesChannel
from rest_framework import serializers

from .models import Order, OrderLine, ShippingCompany


class ShippingCompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = ShippingCompany
        fields = ["id", "name", "phone", "is_active"]


class OrderLineSerializer(serializers.ModelSerializer):
    """API representation of an order line with computed line_total."""

    line_total = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = OrderLine
        fields = [
            "id",
            "variant",
            "product_title",
            "variant_sku",
            "quantity",
            "unit_price",
            "unit_cost",
            "line_total",
        ]
        read_only_fields = fields

    def get_line_total(self, obj: OrderLine) -> Decimal:
        return obj.line_total


class OrderSerializer(serializers.ModelSerializer):
    lines = OrderLineSerializer(many=True, read_only=True)
    net_value = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "number",
            "status",
            "revision",
            "customer_name",
            "customer_phone",
            "customer_address",
            "channel",
            "tags",
            "notes",
            "shipping_company",
            "lines",
            "subtotal",
            "shipping_cost",
            "discount",
            "total",
            "total_cost",
            "net_value",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_net_value(self, obj: Order) -> Decimal:
        return obj.net_value


class LineInputSerializer(serializers.Serializer):
    variant_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)


class OrderDetailsInputSerializer(serializers.Serializer):
    """Editable order fields that carry no stock effect."""

    customer_name = serializers.CharField(max_length=160, required=False, allow_blank=True)
    customer_phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    customer_address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    channel = serializers.ChoiceField(choices=SalesChannel.choices, required=False, allow_blank=True)
    tags = serializers.ListField(child=serializers.CharField(max_length=40, allow_blank=True), required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    shipping_company = serializers.PrimaryKeyRelatedField(
        queryset=ShippingCompany.objects.filter(is_active=True), required=False, allow_null=True
    )
    shipping_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)

    def validate_tags(self, value):
        return [tag.strip() for tag in value if tag.strip()]


class OrderCreateSerializer(OrderDetailsInputSerializer):
    lines = LineInputSerializer(many=True, allow_empty=False)
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)


class OrderUpdateSerializer(OrderDetailsInputSerializer):
    lines = LineInputSerializer(many=True, allow_empty=False, required=False)
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    revision = serializers.IntegerField(min_value=0, required=False)


class BulkStatusSerializer(serializers.Serializer):
    order_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False, max_length=500)
    status = serializers.ChoiceField(choices=OrderStatus.choices)

    def validate_order_ids(self, value):
        # Keep request order, drop duplicates
        return list(dict.fromkeys(value))
