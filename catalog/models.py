"""Catalog app models.

Products and their sellable variants. A variant carries its own stock
quantity; the quantity is only ever changed through the stock ledger
(``inventory.services``), never by direct edit.
"""

from decimal import Decimal

from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Product(TimeStampedModel):
    """Core product entity."""

    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["title"]

    def __str__(self) -> str:  # pragma: no cover
        return self.title


class ProductVariant(TimeStampedModel):
    """Variant SKU under a product (e.g., size/color).

    ``stock_quantity`` may go negative only when ``track_inventory`` is off;
    for tracked variants the ledger refuses deductions below zero.
    """

    product = models.ForeignKey(Product, related_name="variants", on_delete=models.CASCADE)
    sku = models.CharField(max_length=64, unique=True)
    title = models.CharField(max_length=120, blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    track_inventory = models.BooleanField(default=True)
    stock_quantity = models.IntegerField(default=0)

    class Meta:
        ordering = ["sku"]
        constraints = [
            models.CheckConstraint(name="variant_price_non_negative", condition=models.Q(price__gte=0)),
            models.CheckConstraint(name="variant_cost_non_negative", condition=models.Q(cost_price__gte=0)),
        ]
        indexes = [
            models.Index(fields=["product", "track_inventory"], name="variant_product_tracked_idx"),
            models.Index(fields=["stock_quantity"], name="variant_stock_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.product.title} [{self.sku}]"

    @property
    def stock_value(self) -> Decimal:
        return (self.cost_price or Decimal("0.00")) * Decimal(int(self.stock_quantity))
