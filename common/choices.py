"""Shared enumerations and choices used across apps."""

from django.db import models


class TransactionKind(models.TextChoices):
    """Kinds of stock ledger entries."""

    SALE = "sale", "Sale"
    RETURN = "return", "Return"
    RESTOCK = "restock", "Restock"
    ADJUSTMENT = "adjustment", "Adjustment"


class OrderStatus(models.TextChoices):
    """Fulfillment statuses for orders.

    Any status may be set to any other; only moves into or out of
    ``RETURNED`` have stock side effects.
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PREPARED = "prepared", "Prepared"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    COLLECTED = "collected", "Collected"
    CANCELLED = "cancelled", "Cancelled"
    UNAVAILABLE = "unavailable", "Unavailable"
    RETURNED = "returned", "Returned"


class SalesChannel(models.TextChoices):
    FACEBOOK = "facebook", "Facebook"
    INSTAGRAM = "instagram", "Instagram"
    TIKTOK = "tiktok", "Tiktok"
    WEBSITE = "website", "Website"
