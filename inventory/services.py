"""Stock ledger services.

Every change to a variant's stock goes through ``apply_delta``: a single
conditional UPDATE on the variant row followed by one append to the
transaction log, both inside one atomic block.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from catalog.models import ProductVariant
from common.choices import TransactionKind
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from .errors import InsufficientStockError, InvalidTransitionInputError, LedgerWriteError, StockOperationError
from .models import StockTransaction

logger = logging.getLogger("retailops.ledger")


@dataclass(frozen=True)
class LedgerEntry:
    variant_id: int
    quantity: int
    kind: str
    order_id: Optional[int] = None
    note: str = ""
    idempotency_key: Optional[str] = None


@dataclass
class BatchResult:
    """Outcome of ``apply_deltas``.

    ``applied`` holds ``(entry, transaction)`` pairs, ``skipped`` the entries
    whose idempotency key was already in the log, ``failed`` holds
    ``(entry, error)`` pairs.
    """

    applied: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    failed: list = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        if not self.failed:
            return
        _, first_error = self.failed[0]
        raise LedgerWriteError(
            f"{len(self.failed)} stock change(s) failed: {first_error}",
            applied=[entry for entry, _ in self.applied],
            failed=self.failed,
        )


def _log_event(event: str, level: int = logging.INFO, **fields) -> None:
    try:
        logger.log(level, event, extra={"event": event, **fields})
    except Exception:
        # Logging should never break stock mutations
        pass


def increment_stock(*, variant_id: int, amount: int) -> None:
    if amount <= 0:
        raise InvalidTransitionInputError("Increment amount must be positive")
    updated = ProductVariant.objects.filter(id=variant_id).update(
        stock_quantity=F("stock_quantity") + amount, updated_at=timezone.now()
    )
    if not updated:
        raise InvalidTransitionInputError(f"Unknown variant {variant_id}")


def decrement_stock(*, variant_id: int, amount: int) -> None:
    """Decrement stock in one conditional UPDATE.

    Tracked variants only match while ``stock_quantity >= amount`` so two
    concurrent deductions can never push them below zero.
    """
    if amount <= 0:
        raise InvalidTransitionInputError("Decrement amount must be positive")
    updated = (
        ProductVariant.objects.filter(id=variant_id)
        .filter(Q(track_inventory=False) | Q(stock_quantity__gte=amount))
        .update(stock_quantity=F("stock_quantity") - amount, updated_at=timezone.now())
    )
    if updated:
        return
    try:
        current = ProductVariant.objects.only("stock_quantity").get(id=variant_id)
    except ProductVariant.DoesNotExist:
        raise InvalidTransitionInputError(f"Unknown variant {variant_id}")
    raise InsufficientStockError(variant_id, available=current.stock_quantity, requested=amount)


def _already_applied(idempotency_key: Optional[str]) -> bool:
    return bool(idempotency_key) and StockTransaction.objects.filter(idempotency_key=idempotency_key).exists()


def apply_delta(
    *,
    variant_id: int,
    quantity: int,
    kind: str,
    order_id: Optional[int] = None,
    note: str = "",
    idempotency_key: Optional[str] = None,
    user=None,
) -> Optional[StockTransaction]:
    """Apply a signed stock change and append its transaction.

    quantity: positive for restock/return, negative for sale/deduction.
    Returns the new transaction, or None when ``idempotency_key`` was
    already recorded (nothing is applied twice).
    """
    if not quantity:
        raise InvalidTransitionInputError("Stock delta must be non-zero")
    if kind not in TransactionKind.values:
        raise InvalidTransitionInputError(f"Unknown transaction kind {kind!r}")

    try:
        with transaction.atomic():
            if _already_applied(idempotency_key):
                _log_event("stock_delta_duplicate", variant_id=variant_id, idempotency_key=idempotency_key)
                return None
            if quantity > 0:
                increment_stock(variant_id=variant_id, amount=quantity)
            else:
                decrement_stock(variant_id=variant_id, amount=-quantity)
            txn = StockTransaction.objects.create(
                variant_id=variant_id,
                quantity=quantity,
                kind=kind,
                order_id=order_id,
                note=note[:255],
                idempotency_key=idempotency_key or None,
                created_by=user if getattr(user, "pk", None) else None,
            )
    except IntegrityError as exc:
        # A concurrent writer recorded the same key first
        if _already_applied(idempotency_key):
            _log_event("stock_delta_duplicate", variant_id=variant_id, idempotency_key=idempotency_key)
            return None
        raise LedgerWriteError(f"Unable to record stock change for variant {variant_id}") from exc
    except DatabaseError as exc:
        raise LedgerWriteError(f"Unable to record stock change for variant {variant_id}") from exc

    # An enclosing atomic block may still roll the write back
    transaction.on_commit(
        lambda: _log_event(
            "stock_delta_applied",
            variant_id=variant_id,
            quantity=quantity,
            kind=kind,
            order_id=order_id,
            transaction_id=txn.id,
        )
    )
    return txn


def apply_deltas(entries: Iterable[LedgerEntry], *, user=None) -> BatchResult:
    """Apply each entry independently and report per item.

    A failing entry never stops the rest; the caller inspects the result
    (or calls ``raise_for_failures``) and decides how to reconcile.
    """
    result = BatchResult()
    for entry in entries:
        try:
            txn = apply_delta(
                variant_id=entry.variant_id,
                quantity=entry.quantity,
                kind=entry.kind,
                order_id=entry.order_id,
                note=entry.note,
                idempotency_key=entry.idempotency_key,
                user=user,
            )
        except StockOperationError as exc:
            result.failed.append((entry, exc))
            _log_event(
                "stock_delta_failed",
                level=logging.WARNING,
                variant_id=entry.variant_id,
                quantity=entry.quantity,
                error=str(exc),
            )
            continue
        if txn is None:
            result.skipped.append(entry)
        else:
            result.applied.append((entry, txn))
    return result


def _pair_quantities(items: Iterable[tuple]) -> list:
    pairs = []
    for variant_id, qty in items:
        qty = int(qty)
        if qty < 0:
            raise InvalidTransitionInputError(f"Negative quantity for variant {variant_id}")
        if qty:
            pairs.append((variant_id, qty))
    return pairs


def _order_entries(items: Iterable[tuple], *, sign: int, order_id, note: str, kind: str, event: str) -> list:
    entries = []
    for variant_id, qty in _pair_quantities(items):
        idempotency_key = None
        if order_id is not None:
            idempotency_key = f"order:{order_id}:variant:{variant_id}:{str(kind)}"
            if event:
                idempotency_key = f"{idempotency_key}:{event}"
        entries.append(
            LedgerEntry(
                variant_id=variant_id,
                quantity=sign * qty,
                kind=kind,
                order_id=order_id,
                note=note,
                idempotency_key=idempotency_key,
            )
        )
    return entries


def deduct_stock(
    items: Iterable[tuple],
    *,
    order_id: Optional[int] = None,
    note: str = "Order Creation",
    kind: str = TransactionKind.SALE,
    event: str = "",
    user=None,
) -> BatchResult:
    """Deduct ``(variant_id, qty)`` pairs, one transaction per pair.

    With ``order_id`` each pair is keyed by order, variant, kind and the
    optional ``event`` label, so a retried call skips pairs already booked.
    """
    entries = _order_entries(items, sign=-1, order_id=order_id, note=note, kind=kind, event=event)
    return apply_deltas(entries, user=user)


def restock_items(
    items: Iterable[tuple],
    *,
    order_id: Optional[int] = None,
    note: str = "Order Returned",
    kind: str = TransactionKind.RETURN,
    event: str = "",
    user=None,
) -> BatchResult:
    """Return ``(variant_id, qty)`` pairs to stock, keyed like ``deduct_stock``."""
    entries = _order_entries(items, sign=1, order_id=order_id, note=note, kind=kind, event=event)
    return apply_deltas(entries, user=user)


# EOF
