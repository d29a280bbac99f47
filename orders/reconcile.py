"""Plan the stock changes of one order commit.

A commit may change line items and status at once. Both effects are
computed against the durable baseline and merged per variant, so each
variant receives at most one ledger entry per commit:

1. line diff between the committed lines and the new lines, skipped when
   the order was ``returned`` (its units are already back in stock);
2. status effect on the lines that will be current after the commit;
3. per-variant sum of the two.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from common.choices import TransactionKind

from .fulfillment import diff
from .transitions import holds_stock, status_side_effect

CREATE_NOTE = "Order Creation"
EDIT_NOTE = "Order Edit"


@dataclass(frozen=True)
class PlannedChange:
    variant_id: int
    quantity: int  # signed
    kind: str
    note: str

    def idempotency_key(self, order_id, revision: int) -> str:
        return f"order:{order_id}:rev:{revision}:variant:{self.variant_id}:{str(self.kind)}"


def plan_stock_changes(
    *,
    old_lines: Iterable,
    new_lines: Iterable,
    old_status: Optional[str],
    new_status: str,
    creating: bool = False,
) -> list:
    new_lines = list(new_lines)
    line_deltas = diff(old_lines, new_lines).signed() if holds_stock(old_status) else {}
    effect = status_side_effect(old_status, new_status, new_lines)
    status_deltas = effect.signed() if effect else {}

    changes = []
    for vid in sorted(set(line_deltas) | set(status_deltas)):
        net = line_deltas.get(vid, 0) + status_deltas.get(vid, 0)
        if not net:
            continue
        if effect and net * effect.direction > 0:
            # Dropped lines ride along with the return as one event
            kind, note = effect.kind, effect.note
        elif net < 0:
            kind, note = TransactionKind.SALE, CREATE_NOTE if creating else EDIT_NOTE
        else:
            kind, note = TransactionKind.RESTOCK, EDIT_NOTE
        changes.append(PlannedChange(variant_id=vid, quantity=net, kind=kind, note=note))
    return changes


def deduction_demands(changes: Iterable[PlannedChange]) -> dict:
    """``{variant_id: units_to_deduct}`` for the validation gate."""
    return {change.variant_id: -change.quantity for change in changes if change.quantity < 0}
