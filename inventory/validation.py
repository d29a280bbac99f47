"""Stock feasibility checks run before any ledger write."""

from dataclasses import dataclass
from typing import Iterable, Mapping

from .errors import InsufficientStockError, InvalidTransitionInputError
from .selectors import fresh_stock_levels


@dataclass(frozen=True)
class StockRequest:
    variant_id: int
    requested_qty: int
    track_inventory: bool
    current_stock: int


def validate(requests: Iterable[StockRequest]) -> bool:
    """Reject the batch if any tracked variant cannot cover its request.

    Untracked variants always pass, their stock may go negative. Pure: no
    reads, no writes.
    """
    for req in requests:
        if req.requested_qty < 0:
            raise InvalidTransitionInputError(f"Negative quantity requested for variant {req.variant_id}")
        if req.track_inventory and req.current_stock < req.requested_qty:
            raise InsufficientStockError(req.variant_id, available=req.current_stock, requested=req.requested_qty)
    return True


def build_requests(demands: Mapping[int, int]) -> list[StockRequest]:
    """Pair each demanded quantity with stock read fresh from the database."""
    levels = fresh_stock_levels(demands.keys())
    return [
        StockRequest(
            variant_id=int(vid),
            requested_qty=int(qty),
            track_inventory=levels[int(vid)][1],
            current_stock=levels[int(vid)][0],
        )
        for vid, qty in sorted(demands.items())
    ]


def validate_fresh(demands: Mapping[int, int]) -> bool:
    """Validate ``{variant_id: qty_to_deduct}`` against current stock.

    Must be called immediately before the dependent write; values cached
    earlier in an editing session are never trusted.
    """
    return validate(build_requests(demands))
