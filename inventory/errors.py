"""Error types raised by the stock ledger and the order reconciliation flow."""


class StockOperationError(Exception):
    """Base class for stock ledger failures."""


class InsufficientStockError(StockOperationError):
    """A tracked variant cannot supply the requested deduction."""

    def __init__(self, variant_id, available: int, requested: int):
        self.variant_id = variant_id
        self.available = int(available)
        self.requested = int(requested)
        super().__init__(
            f"Insufficient stock for variant {variant_id}. Available: {self.available}, Requested: {self.requested}"
        )


class LedgerWriteError(StockOperationError):
    """The stock update or the transaction log append failed.

    ``applied`` lists the ledger entries that stay written despite the
    failure so the caller can reconcile. It is empty when an enclosing
    transaction rolled the whole commit back.
    """

    def __init__(self, message: str = "Unable to record stock change", applied=None, failed=None):
        self.applied = list(applied or [])
        self.failed = list(failed or [])
        super().__init__(message)


class InvalidTransitionInputError(StockOperationError):
    """Malformed input, rejected before any side effect."""


class ConcurrentEditError(StockOperationError):
    """The order changed since the caller read it."""

    def __init__(self, order_id, expected: int, current: int):
        self.order_id = order_id
        self.expected = expected
        self.current = current
        super().__init__(f"Order {order_id} is at revision {current}, expected {expected}")


def error_response_data(exc: StockOperationError) -> tuple:
    """Map a ledger error to an API body and HTTP status code."""
    if isinstance(exc, InsufficientStockError):
        return {
            "code": "insufficient_stock",
            "detail": str(exc),
            "variant_id": exc.variant_id,
            "available": exc.available,
            "requested": exc.requested,
        }, 400
    if isinstance(exc, ConcurrentEditError):
        return {"code": "stale_revision", "detail": str(exc), "current_revision": exc.current}, 409
    if isinstance(exc, InvalidTransitionInputError):
        return {"code": "invalid_input", "detail": str(exc)}, 400
    # Write failures are usually transient backend problems
    return {"code": "ledger_write_failed", "detail": "Unable to record stock change. Please retry."}, 503
