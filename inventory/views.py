"""Inventory health, stock level, ledger and adjustment views."""

from catalog.models import ProductVariant
from django.db import transaction
from django_filters import rest_framework as filters
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import generics, permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from .errors import StockOperationError, error_response_data
from .filters import StockLevelFilterSet, StockTransactionFilterSet
from .models import StockTransaction
from .selectors import low_stock_threshold, stock_summary
from .serializers import (
    StockAdjustmentSerializer,
    StockLevelSerializer,
    StockSummarySerializer,
    StockTransactionSerializer,
)
from .services import apply_delta
from .validation import validate_fresh


class InventoryHealthView(APIView):
    permission_classes = [permissions.AllowAny]
    throttle_classes = []

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Inventory health",
        description="Simple healthcheck endpoint for the inventory app",
        examples=[OpenApiExample("Health OK", value={"status": "ok", "app": "inventory"})],
    )
    def get(self, request):
        return Response({"status": "ok", "app": "inventory"})


class StockLevelListView(generics.ListAPIView):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = StockLevelSerializer
    filter_backends = [filters.DjangoFilterBackend]
    filterset_class = StockLevelFilterSet
    throttle_scope = "inventory"

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List stock levels",
        description="Current stock per variant, lowest stock first. Filters: product, sku, tracked, max_stock.",
        examples=[
            OpenApiExample(
                "Stock Levels",
                value={
                    "results": [
                        {
                            "id": 10,
                            "sku": "TEE-BLK-M",
                            "title": "Black / M",
                            "product": 3,
                            "product_title": "Basic Tee",
                            "track_inventory": True,
                            "stock_quantity": 4,
                            "cost_price": "120.00",
                            "stock_value": "480.00",
                            "low_stock": True,
                            "updated_at": "2025-01-01T12:00:00Z",
                        }
                    ]
                },
            )
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return ProductVariant.objects.select_related("product").order_by("stock_quantity", "sku")

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["low_stock_threshold"] = low_stock_threshold()
        return context


class StockSummaryView(APIView):
    permission_classes = [permissions.IsAuthenticated]
    throttle_scope = "inventory"

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Inventory summary",
        description="Total stock value at cost, total units and the number of low-stock tracked variants.",
        responses={200: StockSummarySerializer},
    )
    def get(self, request):
        return Response(StockSummarySerializer(stock_summary()).data)


class StockTransactionListView(generics.ListAPIView):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = StockTransactionSerializer
    filter_backends = [filters.DjangoFilterBackend]
    filterset_class = StockTransactionFilterSet
    throttle_scope = "inventory"

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List stock transactions",
        description=(
            "Append-only ledger of stock changes, newest first. "
            "Filters: variant, order, kind, created_after, created_before (ISO)."
        ),
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return StockTransaction.objects.select_related("variant").order_by("-created_at", "-id")


class StockAdjustmentView(APIView):
    permission_classes = [permissions.IsAdminUser]
    throttle_scope = "inventory_write"

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Adjust stock",
        description=(
            "Books a manual stock change for one variant. Negative adjustments on tracked variants "
            "cannot take stock below zero."
        ),
        request=StockAdjustmentSerializer,
        responses={201: StockTransactionSerializer},
        examples=[
            OpenApiExample(
                "Count correction",
                value={"variant_id": 10, "quantity": -2, "note": "Damaged in storage"},
                request_only=True,
            )
        ],
    )
    def post(self, request):
        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            with transaction.atomic():
                if data["quantity"] < 0:
                    validate_fresh({data["variant_id"]: -data["quantity"]})
                txn = apply_delta(
                    variant_id=data["variant_id"],
                    quantity=data["quantity"],
                    kind=data["kind"],
                    note=data["note"] or "Manual adjustment",
                    user=request.user,
                )
        except StockOperationError as exc:
            body, code = error_response_data(exc)
            return Response(body, status=code)
        return Response(StockTransactionSerializer(txn).data, status=201)


# EOF
