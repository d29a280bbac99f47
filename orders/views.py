"""Orders API endpoints.

Create, edit and bulk status changes go through ``orders.services`` and
therefore through the stock ledger. Mutations are idempotent when an
``Idempotency-Key`` header is provided.
"""

from django.http import Http404
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from inventory.errors import StockOperationError, error_response_data
from rest_framework import generics, permissions
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Order, ShippingCompany
from .serializers import (
    BulkStatusSerializer,
    OrderCreateSerializer,
    OrderSerializer,
    OrderUpdateSerializer,
    ShippingCompanySerializer,
)
from .services import bulk_update_status, compute_request_hash, create_order, update_order, with_idempotency

IDEMPOTENCY_HEADER = OpenApiParameter(
    name="Idempotency-Key",
    location=OpenApiParameter.HEADER,
    required=False,
    description="Makes the request idempotent within scope+path+method",
    type=str,
)


def _run_idempotent(request, handler):
    idem_key = request.headers.get("Idempotency-Key")
    if idem_key:
        body, code = with_idempotency(
            key=idem_key,
            user=request.user,
            path=str(request.path),
            method=str(request.method),
            request_hash=compute_request_hash(getattr(request, "data", None)),
            handler=handler,
        )
        return Response(body, status=code)
    body, code = handler()
    return Response(body, status=code)


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"


class OrderListCreateView(generics.ListAPIView):
    """List orders with basic filters, or create a new order.

    Filters:
    - `status`: one of the OrderStatus values
    - `number`: exact match of order number
    - `phone`: exact match of customer phone
    - `start`: ISO date/time string; filters `created_at >= start`
    - `end`: ISO date/time string; filters `created_at <= end`
    """

    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    pagination_class = DefaultPagination
    throttle_scope = "orders"

    def get_queryset(self):
        qs = Order.objects.order_by("-id").prefetch_related("lines")
        status = self.request.query_params.get("status")
        if status:
            qs = qs.filter(status=status)
        number = self.request.query_params.get("number")
        if number:
            qs = qs.filter(number=number)
        phone = self.request.query_params.get("phone")
        if phone:
            qs = qs.filter(customer_phone=phone)
        start = self.request.query_params.get("start")
        if start:
            qs = qs.filter(created_at__gte=start)
        end = self.request.query_params.get("end")
        if end:
            qs = qs.filter(created_at__lte=end)
        return qs

    def get_throttles(self):
        if self.request.method == "POST":
            self.throttle_scope = "orders_write"
        return super().get_throttles()

    @extend_schema(
        tags=["Orders"],
        summary="List orders",
        parameters=[
            OpenApiParameter(name="status", description="Order status filter", required=False, type=str),
            OpenApiParameter(name="number", description="Order number exact match", required=False, type=str),
            OpenApiParameter(name="phone", description="Customer phone exact match", required=False, type=str),
            OpenApiParameter(name="start", description="Created at >= start (ISO)", required=False, type=str),
            OpenApiParameter(name="end", description="Created at <= end (ISO)", required=False, type=str),
            OpenApiParameter(name="page", description="Page number", required=False, type=int),
            OpenApiParameter(name="page_size", description="Items per page", required=False, type=int),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Orders"],
        summary="Create order",
        description=(
            "Creates an order and deducts its lines from stock. Tracked variants without enough stock "
            "reject the whole order. Without `status` the order starts as `prepared` when stock covers "
            "every line, otherwise `pending`."
        ),
        request=OrderCreateSerializer,
        parameters=[IDEMPOTENCY_HEADER],
        responses={201: OrderSerializer},
        examples=[
            OpenApiExample(
                "Create",
                value={
                    "customer_name": "Mona",
                    "customer_phone": "01000000000",
                    "channel": "facebook",
                    "shipping_cost": "50.00",
                    "lines": [{"variant_id": 10, "quantity": 3}],
                },
                request_only=True,
            ),
            OpenApiExample(
                "Insufficient stock",
                value={
                    "code": "insufficient_stock",
                    "detail": "Insufficient stock for variant 10. Available: 2, Requested: 5",
                    "variant_id": 10,
                    "available": 2,
                    "requested": 5,
                },
                response_only=True,
                status_codes=["400"],
            ),
        ],
    )
    def post(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        def _handler():
            try:
                order = create_order(user=request.user, **data)
            except StockOperationError as exc:
                return error_response_data(exc)
            return OrderSerializer(order, context={"request": request}).data, 201

        return _run_idempotent(request, _handler)


class OrderDetailView(APIView):
    """Retrieve or edit a single order.

    Edits replace the line snapshot and/or status; stock is reconciled
    against the last committed state of the order.
    """

    permission_classes = [IsAuthenticated]
    throttle_scope = "orders"

    def get_throttles(self):
        if self.request.method == "PATCH":
            self.throttle_scope = "orders_write"
        return super().get_throttles()

    def _get_order(self, order_id: int) -> Order:
        try:
            return Order.objects.prefetch_related("lines").get(pk=order_id)
        except Order.DoesNotExist:
            raise Http404("Not found.")

    @extend_schema(tags=["Orders"], summary="Get order detail", responses={200: OrderSerializer})
    def get(self, request, order_id: int):
        order = self._get_order(order_id)
        return Response(OrderSerializer(order, context={"request": request}).data)

    @extend_schema(
        tags=["Orders"],
        summary="Edit order",
        description=(
            "Replaces lines and/or status in one reconciled commit. Moving into `returned` restocks the "
            "order's lines; moving out of it deducts them again. Pass the `revision` you read to reject "
            "edits made on a stale copy (409)."
        ),
        request=OrderUpdateSerializer,
        parameters=[IDEMPOTENCY_HEADER],
        responses={200: OrderSerializer},
        examples=[
            OpenApiExample(
                "Return order",
                value={"status": "returned", "revision": 2},
                request_only=True,
            ),
        ],
    )
    def patch(self, request, order_id: int):
        self._get_order(order_id)
        serializer = OrderUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        expected_revision = data.pop("revision", None)

        def _handler():
            try:
                order = update_order(
                    order_id=order_id,
                    expected_revision=expected_revision,
                    user=request.user,
                    **data,
                )
            except StockOperationError as exc:
                return error_response_data(exc)
            order = Order.objects.prefetch_related("lines").get(pk=order.pk)
            return OrderSerializer(order, context={"request": request}).data, 200

        return _run_idempotent(request, _handler)


class OrderBulkStatusView(APIView):
    """Set one status on many orders; each order succeeds or fails on its own."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Orders"],
        summary="Bulk status change",
        request=BulkStatusSerializer,
        parameters=[IDEMPOTENCY_HEADER],
        examples=[
            OpenApiExample(
                "Report",
                value={"status": "delivered", "succeeded": [1, 2], "failed": {"3": "Unknown order 3"}},
                response_only=True,
            ),
        ],
    )
    def post(self, request):
        serializer = BulkStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order_ids = serializer.validated_data["order_ids"]
        status = serializer.validated_data["status"]

        def _handler():
            report = bulk_update_status(order_ids=order_ids, status=status, user=request.user)
            body = {
                "status": report.status,
                "succeeded": report.succeeded,
                "failed": {str(order_id): message for order_id, message in report.failed.items()},
            }
            return body, 200

        return _run_idempotent(request, _handler)


class ShippingCompanyListCreateView(generics.ListCreateAPIView):
    serializer_class = ShippingCompanySerializer
    queryset = ShippingCompany.objects.order_by("name")
    throttle_scope = "orders"

    def get_permissions(self):
        if self.request.method == "POST":
            return [permissions.IsAdminUser()]
        return [IsAuthenticated()]

    @extend_schema(tags=["Orders"], summary="List shipping companies")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(tags=["Orders"], summary="Create shipping company")
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)
