from decimal import Decimal

from common.choices import OrderStatus, SalesChannel
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class ShippingCompany(TimeStampedModel):
    name = models.CharField(max_length=120, unique=True)
    phone = models.CharField(max_length=32, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "shipping companies"

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class Order(TimeStampedModel):
    """Customer order with a snapshot of its line items.

    The committed lines together with ``status`` are the baseline every
    later edit is diffed against; ``revision`` increments on each commit.
    Totals are denormalized for reporting.
    """

    STATUS_PENDING = OrderStatus.PENDING
    STATUS_PROCESSING = OrderStatus.PROCESSING
    STATUS_PREPARED = OrderStatus.PREPARED
    STATUS_SHIPPED = OrderStatus.SHIPPED
    STATUS_DELIVERED = OrderStatus.DELIVERED
    STATUS_COLLECTED = OrderStatus.COLLECTED
    STATUS_CANCELLED = OrderStatus.CANCELLED
    STATUS_UNAVAILABLE = OrderStatus.UNAVAILABLE
    STATUS_RETURNED = OrderStatus.RETURNED
    STATUS_CHOICES = OrderStatus.choices

    number = models.CharField(max_length=32, unique=True, null=True, blank=True, db_index=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    revision = models.PositiveIntegerField(default=0)

    customer_name = models.CharField(max_length=160, blank=True)
    customer_phone = models.CharField(max_length=32, blank=True, db_index=True)
    customer_address = models.CharField(max_length=255, blank=True)
    channel = models.CharField(max_length=16, choices=SalesChannel.choices, blank=True)
    tags = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)

    shipping_company = models.ForeignKey(
        ShippingCompany, null=True, blank=True, related_name="orders", on_delete=models.PROTECT
    )
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    shipping_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="orders", on_delete=models.SET_NULL
    )

    class Meta:
        ordering = ["-id"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(name="order_shipping_non_negative", condition=models.Q(shipping_cost__gte=0)),
            models.CheckConstraint(name="order_discount_non_negative", condition=models.Q(discount__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Order#{self.id} status={self.status} rev={self.revision}"

    @property
    def net_value(self) -> Decimal:
        """Order total minus shipping and the fixed handling fee."""
        fee = Decimal(str(getattr(settings, "ORDER_HANDLING_FEE", "10")))
        return (self.total or Decimal("0.00")) - (self.shipping_cost or Decimal("0.00")) - fee


class OrderLine(TimeStampedModel):
    """Line item within an order.

    Snapshots product title, SKU, sale price and cost at time of sale.
    """

    order = models.ForeignKey(Order, related_name="lines", on_delete=models.CASCADE)
    variant = models.ForeignKey("catalog.ProductVariant", related_name="order_lines", on_delete=models.PROTECT)
    product_title = models.CharField(max_length=200, blank=True)
    variant_sku = models.CharField(max_length=64, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["order", "variant"], name="orderline_order_variant_idx"),
        ]
        constraints = [
            models.CheckConstraint(name="orderline_quantity_positive", condition=models.Q(quantity__gt=0)),
            models.CheckConstraint(name="orderline_price_non_negative", condition=models.Q(unit_price__gte=0)),
            models.CheckConstraint(name="orderline_cost_non_negative", condition=models.Q(unit_cost__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"OrderLine#{self.id} order={self.order_id} variant={self.variant_id} qty={self.quantity}"

    @property
    def line_total(self) -> Decimal:
        return (self.unit_price or Decimal("0.00")) * Decimal(int(self.quantity))

    @property
    def line_cost(self) -> Decimal:
        return (self.unit_cost or Decimal("0.00")) * Decimal(int(self.quantity))


class IdempotencyKey(TimeStampedModel):
    """Stores idempotent request results to prevent duplicate processing."""

    key = models.CharField(max_length=128)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.CASCADE)
    scope = models.CharField(max_length=128)
    path = models.CharField(max_length=255)
    method = models.CharField(max_length=16)
    request_hash = models.CharField(max_length=64, null=True, blank=True)
    response_code = models.IntegerField(null=True, blank=True)
    response_json = models.JSONField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["key", "scope", "path", "method"], name="uniq_idem_scope_path_method"),
        ]
