"""Order services: creation, edits, and bulk status changes.

Every commit runs the same pipeline: lock the order, diff against the
committed lines, add the status side effect, validate net deductions
against fresh stock, apply the merged changes through the ledger, then
store the new lines as the next baseline.
"""

import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional, Tuple

from catalog.models import ProductVariant
from common.choices import OrderStatus
from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from inventory.errors import (
    ConcurrentEditError,
    InsufficientStockError,
    InvalidTransitionInputError,
    LedgerWriteError,
    StockOperationError,
)
from inventory.selectors import fresh_stock_levels
from inventory.services import LedgerEntry, apply_deltas
from inventory.validation import validate_fresh

from .models import IdempotencyKey, Order, OrderLine, ShippingCompany
from .fulfillment import coalesce
from .reconcile import deduction_demands, plan_stock_changes

logger = logging.getLogger("retailops.orders")

DETAIL_FIELDS = (
    "customer_name",
    "customer_phone",
    "customer_address",
    "channel",
    "tags",
    "notes",
    "shipping_company",
    "shipping_cost",
    "discount",
)


@dataclass(frozen=True)
class LineInput:
    variant_id: int
    quantity: int
    unit_price: Optional[Decimal] = None
    unit_cost: Optional[Decimal] = None


@dataclass
class BulkStatusReport:
    status: str
    succeeded: list = field(default_factory=list)
    failed: dict = field(default_factory=dict)


def _log_event(event: str, **fields) -> None:
    try:
        logger.info(event, extra={"event": event, **fields})
    except Exception:
        # Logging should never break mutations
        pass


def _normalize_lines(lines: Iterable) -> list:
    normalized = []
    for line in lines:
        if isinstance(line, dict):
            line = LineInput(**line)
        if int(line.quantity) <= 0:
            raise InvalidTransitionInputError(f"Quantity for variant {line.variant_id} must be positive")
        normalized.append(line)
    if not normalized:
        raise InvalidTransitionInputError("An order needs at least one line")
    return normalized


def _load_variants(lines: list) -> dict:
    ids = {int(line.variant_id) for line in lines}
    variants = ProductVariant.objects.select_related("product").in_bulk(ids)
    missing = ids - set(variants)
    if missing:
        raise InvalidTransitionInputError(f"Unknown variant(s): {', '.join(str(v) for v in sorted(missing))}")
    return variants


def _check_status(status: str) -> None:
    if status not in OrderStatus.values:
        raise InvalidTransitionInputError(f"Unknown order status {status!r}")


def _check_shipping(order: Order, old_status: Optional[str], new_status: str) -> None:
    if new_status == Order.STATUS_SHIPPED and old_status != Order.STATUS_SHIPPED and not order.shipping_company_id:
        raise InvalidTransitionInputError("A shipping company must be assigned before marking an order shipped")


def _apply_details(order: Order, details: dict) -> None:
    unknown = set(details) - set(DETAIL_FIELDS)
    if unknown:
        raise InvalidTransitionInputError(f"Unsupported order field(s): {', '.join(sorted(unknown))}")
    for name, value in details.items():
        if name in ("shipping_cost", "discount"):
            value = Decimal(str(value if value is not None else "0"))
            if value < 0:
                raise InvalidTransitionInputError(f"{name} cannot be negative")
        if name == "shipping_company" and value is not None and not isinstance(value, ShippingCompany):
            try:
                value = ShippingCompany.objects.get(pk=value)
            except (ShippingCompany.DoesNotExist, ValueError, TypeError):
                raise InvalidTransitionInputError(f"Unknown shipping company {value}")
        if name == "tags" and value is None:
            value = []
        if name in ("customer_name", "customer_phone", "customer_address", "channel", "notes") and value is None:
            value = ""
        setattr(order, name, value)


def _replace_lines(order: Order, lines: list, variants: dict, previous: Iterable = ()) -> list:
    """Swap the order's line snapshot for ``lines``.

    Unit price and cost default to the price/cost the variant already had
    on this order, else to the variant's current values.
    """
    earlier = {}
    for line in previous:
        earlier.setdefault(line.variant_id, (line.unit_price, line.unit_cost))
    OrderLine.objects.filter(order=order).delete()
    rows = []
    for line in lines:
        variant = variants[int(line.variant_id)]
        prev_price, prev_cost = earlier.get(variant.id, (variant.price, variant.cost_price))
        rows.append(
            OrderLine(
                order=order,
                variant=variant,
                product_title=variant.product.title,
                variant_sku=variant.sku,
                quantity=int(line.quantity),
                unit_price=Decimal(str(line.unit_price)) if line.unit_price is not None else prev_price,
                unit_cost=Decimal(str(line.unit_cost)) if line.unit_cost is not None else prev_cost,
            )
        )
    return OrderLine.objects.bulk_create(rows)


def _refresh_totals(order: Order, lines: Iterable[OrderLine]) -> None:
    subtotal = Decimal("0.00")
    total_cost = Decimal("0.00")
    for line in lines:
        subtotal += line.line_total
        total_cost += line.line_cost
    order.subtotal = subtotal
    order.total_cost = total_cost
    order.total = max(Decimal("0.00"), subtotal + (order.shipping_cost or 0) - (order.discount or 0))


def _apply_changes(order: Order, changes: list, user=None) -> list:
    entries = [
        LedgerEntry(
            variant_id=change.variant_id,
            quantity=change.quantity,
            kind=change.kind,
            order_id=order.id,
            note=f"{change.note}: {order.number or order.id}",
            idempotency_key=change.idempotency_key(order.id, order.revision),
        )
        for change in changes
    ]
    result = apply_deltas(entries, user=user)
    if not result.ok:
        # Lost a race against a concurrent deduction after validation passed
        _, first_error = result.failed[0]
        if isinstance(first_error, InsufficientStockError):
            raise first_error
        # The commit's atomic block undoes the entries written so far
        raise LedgerWriteError(
            f"{len(result.failed)} stock change(s) failed: {first_error}",
            applied=[],
            failed=result.failed,
        )
    return entries


def _initial_status(lines: list) -> str:
    """Prepared when current stock covers every line, otherwise Pending.

    Untracked variants count too: a made-to-order item without stock keeps
    the order Pending until it is sourced.
    """
    demands = coalesce(lines)
    levels = fresh_stock_levels(demands)
    if all(levels[vid][0] >= qty for vid, qty in demands.items()):
        return Order.STATUS_PREPARED
    return Order.STATUS_PENDING


def create_order(*, lines: Iterable, status: Optional[str] = None, user=None, **details) -> Order:
    """Create an order and deduct its lines from stock.

    Raises ``InsufficientStockError`` before anything is written when a
    tracked variant cannot cover its quantity.
    """
    lines = _normalize_lines(lines)
    variants = _load_variants(lines)
    if status is None:
        status = _initial_status(lines)
    _check_status(status)

    with transaction.atomic():
        order = Order(status=status, revision=1, created_by=user if getattr(user, "pk", None) else None)
        _apply_details(order, details)
        _check_shipping(order, None, status)
        changes = plan_stock_changes(old_lines=[], new_lines=lines, old_status=None, new_status=status, creating=True)
        validate_fresh(deduction_demands(changes))

        order.save()
        order.number = f"ORD-{int(order.id):06d}"
        _apply_changes(order, changes, user)
        created = _replace_lines(order, lines, variants)
        _refresh_totals(order, created)
        order.save()

    _log_event(
        "order_created",
        order_id=order.id,
        status=order.status,
        line_count=len(created),
        user_id=getattr(user, "id", None),
    )
    return order


def update_order(
    *,
    order_id: int,
    lines: Optional[Iterable] = None,
    status: Optional[str] = None,
    expected_revision: Optional[int] = None,
    user=None,
    **details,
) -> Order:
    """Commit an edit of lines, status and details as one reconciled change.

    ``lines`` replaces the whole line snapshot when given. When
    ``expected_revision`` is given and the order moved on since the caller
    read it, ``ConcurrentEditError`` is raised and nothing changes.
    """
    if status is not None:
        _check_status(status)
    new_inputs = _normalize_lines(lines) if lines is not None else None
    variants = _load_variants(new_inputs) if new_inputs is not None else None

    with transaction.atomic():
        try:
            order = Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, ValueError, TypeError):
            raise InvalidTransitionInputError(f"Unknown order {order_id}")
        if expected_revision is not None and int(expected_revision) != order.revision:
            raise ConcurrentEditError(order.id, expected=int(expected_revision), current=order.revision)

        # Durable baseline: what was last committed, not what the client saw
        old_lines = list(OrderLine.objects.filter(order=order).order_by("id"))
        old_status = order.status
        new_status = status or old_status
        if new_inputs is None:
            new_inputs = [
                LineInput(
                    variant_id=line.variant_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    unit_cost=line.unit_cost,
                )
                for line in old_lines
            ]

        _apply_details(order, details)
        _check_shipping(order, old_status, new_status)
        changes = plan_stock_changes(
            old_lines=old_lines, new_lines=new_inputs, old_status=old_status, new_status=new_status
        )
        validate_fresh(deduction_demands(changes))

        order.revision += 1
        order.status = new_status
        _apply_changes(order, changes, user)
        if lines is not None:
            current = _replace_lines(order, new_inputs, variants, previous=old_lines)
        else:
            current = old_lines
        _refresh_totals(order, current)
        order.save()

    _log_event(
        "order_updated",
        order_id=order.id,
        revision=order.revision,
        stock_changes=len(changes),
        user_id=getattr(user, "id", None),
    )
    if old_status != new_status:
        _log_event(
            "order_status_changed",
            order_id=order.id,
            status_from=old_status,
            status_to=new_status,
            user_id=getattr(user, "id", None),
        )
    return order


def bulk_update_status(*, order_ids: Iterable[int], status: str, user=None) -> BulkStatusReport:
    """Set ``status`` on each order independently.

    Each order commits in its own transaction; a failure is recorded in the
    report and never aborts the remaining orders.
    """
    _check_status(status)
    report = BulkStatusReport(status=status)
    for order_id in order_ids:
        try:
            update_order(order_id=order_id, status=status, user=user)
        except StockOperationError as exc:
            report.failed[order_id] = str(exc)
            continue
        except DatabaseError:
            logger.exception(
                "bulk_status_order_failed",
                extra={"event": "bulk_status_order_failed", "order_id": order_id},
            )
            report.failed[order_id] = "Unable to save order. Please retry."
            continue
        report.succeeded.append(order_id)
    _log_event(
        "bulk_status_finished",
        status=status,
        succeeded=len(report.succeeded),
        failed=len(report.failed),
        user_id=getattr(user, "id", None),
    )
    return report


def with_idempotency(
    *,
    key: str,
    user,
    path: str,
    method: str,
    handler: Callable[[], Tuple[dict, int]],
    request_hash: Optional[str] = None,
) -> Tuple[dict, int]:
    """Run handler idempotently and persist its response for the given key and scope.

    - Scope is derived from the caller: for authenticated users, "user:<id>"; otherwise "anon".
    - If a record exists and the stored `request_hash` differs from the provided one, returns 409.
    - If a record exists but response is not yet stored, returns 409 to indicate in-progress.
    """

    scope = f"user:{getattr(user, 'id', None)}" if getattr(user, "id", None) else "anon"
    method = str(method).upper()
    path = str(path)
    ttl_hours = int(getattr(settings, "IDEMPOTENCY_KEY_TTL_HOURS", 24))

    try:
        with transaction.atomic():
            idem = IdempotencyKey.objects.create(
                key=key,
                user=user if getattr(user, "id", None) else None,
                scope=scope,
                path=path,
                method=method,
                request_hash=request_hash,
                expires_at=timezone.now() + timedelta(hours=ttl_hours),
            )
    except IntegrityError:
        idem = IdempotencyKey.objects.get(key=key, scope=scope, path=path, method=method)
        if idem.request_hash and request_hash and idem.request_hash != request_hash:
            return {"detail": "Idempotency key reused with different request payload"}, 409
        if idem.response_json is not None and idem.response_code is not None:
            return idem.response_json, int(idem.response_code)
        return {"detail": "Request in progress"}, 409

    body, code = handler()
    if code >= 500:
        # Retryable failures must not be pinned to the key
        IdempotencyKey.objects.filter(id=idem.id).delete()
        return body, code
    IdempotencyKey.objects.filter(id=idem.id).update(response_json=_json_safe(body), response_code=code)
    return body, code


def _json_safe(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def compute_request_hash(data: Optional[dict]) -> Optional[str]:
    """Compute a canonical SHA256 hash of the request body.

    Uses sorted keys JSON representation to stabilize the hash across equivalent payloads.
    Returns None when data is falsy.
    """
    if not data:
        return None
    try:
        payload = json.dumps(_json_safe(data), sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError):
        return None
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
