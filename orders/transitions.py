"""Stock side effects of order status changes.

Statuses form a free workflow: any status may follow any other. Only two
moves touch stock. Entering ``returned`` puts the order's current lines
back on the shelf; leaving it takes them off again.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from common.choices import OrderStatus, TransactionKind

from .fulfillment import LineQuantity, coalesce

RETURNED_NOTE = "Status Change: Returned"
UNRETURNED_NOTE = "Status Change: Un-returned"


@dataclass(frozen=True)
class StatusEffect:
    direction: int  # +1 restock, -1 deduct
    kind: str
    note: str
    lines: tuple

    def signed(self) -> dict:
        return {line.variant_id: self.direction * line.quantity for line in self.lines}


def holds_stock(status: Optional[str]) -> bool:
    """Whether an order in ``status`` keeps its units out of stock."""
    return status != OrderStatus.RETURNED


def status_side_effect(old_status: Optional[str], new_status: str, current_lines: Iterable) -> Optional[StatusEffect]:
    """Full restock or full deduction required by a status change, if any.

    ``current_lines`` are the lines that will be committed together with
    ``new_status``. ``old_status`` is None for an order being created.
    """
    if old_status == new_status:
        return None
    entering = new_status == OrderStatus.RETURNED
    leaving = old_status == OrderStatus.RETURNED
    if not (entering or leaving):
        return None
    lines = tuple(LineQuantity(variant_id=vid, quantity=qty) for vid, qty in sorted(coalesce(current_lines).items()))
    if entering:
        return StatusEffect(direction=1, kind=TransactionKind.RETURN, note=RETURNED_NOTE, lines=lines)
    return StatusEffect(direction=-1, kind=TransactionKind.ADJUSTMENT, note=UNRETURNED_NOTE, lines=lines)
