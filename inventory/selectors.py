"""Selectors for the inventory domain."""

from decimal import Decimal
from typing import Iterable

from catalog.models import ProductVariant
from django.conf import settings
from django.db.models import DecimalField, ExpressionWrapper, F, Sum

from .errors import InvalidTransitionInputError
from .models import StockTransaction


def read_stock(variant_id) -> int:
    try:
        return int(ProductVariant.objects.only("stock_quantity").get(id=variant_id).stock_quantity)
    except ProductVariant.DoesNotExist:
        raise InvalidTransitionInputError(f"Unknown variant {variant_id}")


def fresh_stock_levels(variant_ids: Iterable) -> dict:
    """Read stock and tracking flag for each variant straight from the database.

    Returns ``{variant_id: (stock_quantity, track_inventory)}``. Raises
    ``InvalidTransitionInputError`` when any id is unknown.
    """
    ids = {int(v) for v in variant_ids}
    if not ids:
        return {}
    rows = ProductVariant.objects.filter(id__in=ids).values_list("id", "stock_quantity", "track_inventory")
    levels = {vid: (int(qty), bool(tracked)) for vid, qty, tracked in rows}
    missing = ids - set(levels)
    if missing:
        raise InvalidTransitionInputError(f"Unknown variant(s): {', '.join(str(v) for v in sorted(missing))}")
    return levels


def ledger_total_for_variant(variant_id) -> int:
    total = StockTransaction.objects.filter(variant_id=variant_id).aggregate(total=Sum("quantity"))["total"]
    return int(total or 0)


def low_stock_threshold() -> int:
    return int(getattr(settings, "LOW_STOCK_THRESHOLD", 5))


def stock_summary(queryset=None) -> dict:
    """Totals shown on the inventory overview.

    Stock value is ``sum(stock_quantity * cost_price)``; the low stock count
    only covers tracked variants at or below ``LOW_STOCK_THRESHOLD``.
    """
    qs = queryset if queryset is not None else ProductVariant.objects.all()
    value_expr = ExpressionWrapper(
        F("stock_quantity") * F("cost_price"), output_field=DecimalField(max_digits=18, decimal_places=2)
    )
    totals = qs.aggregate(total_value=Sum(value_expr), total_units=Sum("stock_quantity"))
    threshold = low_stock_threshold()
    return {
        "total_value": (totals["total_value"] or Decimal("0.00")).quantize(Decimal("0.01")),
        "total_units": int(totals["total_units"] or 0),
        "low_stock_count": qs.filter(track_inventory=True, stock_quantity__lte=threshold).count(),
        "low_stock_threshold": threshold,
        "variant_count": qs.count(),
    }


# EOF
