"""Inventory models.

Stock quantity lives on ``catalog.ProductVariant``; this app owns the
append-only log of every change made to it.
"""

from common.choices import TransactionKind
from django.conf import settings
from django.db import models


class ImmutableRecordError(Exception):
    pass


class StockTransaction(models.Model):
    KIND_SALE = TransactionKind.SALE
    KIND_RETURN = TransactionKind.RETURN
    KIND_RESTOCK = TransactionKind.RESTOCK
    KIND_ADJUSTMENT = TransactionKind.ADJUSTMENT
    KIND_CHOICES = TransactionKind.choices

    variant = models.ForeignKey("catalog.ProductVariant", related_name="stock_transactions", on_delete=models.PROTECT)
    quantity = models.IntegerField()  # signed: +restock/return, -sale/deduction
    kind = models.CharField(max_length=16, choices=KIND_CHOICES)
    order = models.ForeignKey(
        "orders.Order",
        null=True,
        blank=True,
        related_name="stock_transactions",
        on_delete=models.PROTECT,
    )
    note = models.CharField(max_length=255, blank=True)
    idempotency_key = models.CharField(max_length=200, null=True, blank=True, unique=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(name="stock_transaction_non_zero", condition=~models.Q(quantity=0)),
        ]
        indexes = [
            models.Index(fields=["variant", "created_at"], name="stocktxn_variant_created_idx"),
            models.Index(fields=["kind"], name="stocktxn_kind_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.kind} {self.quantity:+d} for variant {self.variant_id}"

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ImmutableRecordError("Stock transactions are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("Stock transactions are append-only")


# EOF
