"""Line-item diffing for order edits.

Quantities are coalesced per variant first (an order may list the same
variant on several lines), then compared side by side. Only the
difference moves stock, never the absolute quantities.
"""

from dataclasses import dataclass, field
from typing import Iterable

from inventory.errors import InvalidTransitionInputError


@dataclass(frozen=True)
class LineQuantity:
    variant_id: int
    quantity: int


@dataclass(frozen=True)
class FulfillmentDiff:
    deduct: list = field(default_factory=list)
    restock: list = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.deduct and not self.restock

    def signed(self) -> dict:
        """``{variant_id: delta}`` with restocks positive and deductions negative."""
        deltas = {line.variant_id: -line.quantity for line in self.deduct}
        deltas.update({line.variant_id: line.quantity for line in self.restock})
        return deltas


def coalesce(lines: Iterable) -> dict:
    """Sum quantities per variant.

    Accepts anything with ``variant_id`` and ``quantity`` attributes
    (``LineQuantity``, ``OrderLine``, service line inputs). Zero totals are
    dropped.
    """
    totals: dict = {}
    for line in lines:
        qty = int(line.quantity)
        if qty < 0:
            raise InvalidTransitionInputError(f"Negative quantity for variant {line.variant_id}")
        vid = int(line.variant_id)
        totals[vid] = totals.get(vid, 0) + qty
    return {vid: qty for vid, qty in totals.items() if qty}


def diff(old_lines: Iterable, new_lines: Iterable) -> FulfillmentDiff:
    """Minimal per-variant changes turning ``old_lines`` into ``new_lines``.

    A variant whose quantity grew needs the extra units deducted; one that
    shrank (or disappeared) gets the excess restocked.
    """
    old = coalesce(old_lines)
    new = coalesce(new_lines)
    deduct, restock = [], []
    for vid in sorted(set(old) | set(new)):
        delta = new.get(vid, 0) - old.get(vid, 0)
        if delta > 0:
            deduct.append(LineQuantity(variant_id=vid, quantity=delta))
        elif delta < 0:
            restock.append(LineQuantity(variant_id=vid, quantity=-delta))
    return FulfillmentDiff(deduct=deduct, restock=restock)
