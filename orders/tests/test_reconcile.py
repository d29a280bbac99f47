import pytest
from common.choices import OrderStatus, TransactionKind
from inventory.errors import InvalidTransitionInputError
from orders.fulfillment import LineQuantity, coalesce, diff
from orders.reconcile import deduction_demands, plan_stock_changes
from orders.transitions import status_side_effect


def lines(**quantities):
    return [LineQuantity(variant_id=int(vid[1:]), quantity=qty) for vid, qty in quantities.items()]


def test_coalesce_sums_repeated_variants_and_drops_zero():
    assert coalesce(lines(v1=2, v2=0) + lines(v1=3)) == {1: 5}


def test_coalesce_rejects_negative_quantity():
    with pytest.raises(InvalidTransitionInputError):
        coalesce([LineQuantity(variant_id=1, quantity=-1)])


def test_diff_splits_growth_and_shrink():
    result = diff(lines(v1=3, v2=4, v3=1), lines(v1=5, v2=1, v4=2))
    assert result.deduct == [LineQuantity(1, 2), LineQuantity(4, 2)]
    assert result.restock == [LineQuantity(2, 3), LineQuantity(3, 1)]
    assert result.signed() == {1: -2, 2: 3, 3: 1, 4: -2}


def test_diff_of_identical_snapshots_is_empty():
    assert diff(lines(v1=2), lines(v1=2)).is_empty()


def test_diff_then_inverse_diff_cancels_out():
    old, new = lines(v1=3, v2=1), lines(v1=1, v3=4)
    forward = diff(old, new).signed()
    back = diff(new, old).signed()
    assert {vid: forward.get(vid, 0) + back.get(vid, 0) for vid in set(forward) | set(back)} == {1: 0, 2: 0, 3: 0}


def test_status_effect_only_for_returned_moves():
    current = lines(v1=5)
    assert status_side_effect(OrderStatus.PENDING, OrderStatus.SHIPPED, current) is None
    assert status_side_effect(OrderStatus.RETURNED, OrderStatus.RETURNED, current) is None

    entering = status_side_effect(OrderStatus.SHIPPED, OrderStatus.RETURNED, current)
    assert entering.kind == TransactionKind.RETURN
    assert entering.signed() == {1: 5}

    leaving = status_side_effect(OrderStatus.RETURNED, OrderStatus.PROCESSING, current)
    assert leaving.kind == TransactionKind.ADJUSTMENT
    assert leaving.signed() == {1: -5}


def test_plan_for_creation_deducts_all_lines():
    changes = plan_stock_changes(
        old_lines=[], new_lines=lines(v1=3, v2=1), old_status=None, new_status=OrderStatus.PREPARED, creating=True
    )
    assert [(c.variant_id, c.quantity, c.kind, c.note) for c in changes] == [
        (1, -3, TransactionKind.SALE, "Order Creation"),
        (2, -1, TransactionKind.SALE, "Order Creation"),
    ]
    assert deduction_demands(changes) == {1: 3, 2: 1}


def test_plan_for_edit_uses_diff_only():
    changes = plan_stock_changes(
        old_lines=lines(v1=3, v2=2),
        new_lines=lines(v1=5),
        old_status=OrderStatus.PROCESSING,
        new_status=OrderStatus.SHIPPED,
    )
    assert [(c.variant_id, c.quantity, c.kind) for c in changes] == [
        (1, -2, TransactionKind.SALE),
        (2, 2, TransactionKind.RESTOCK),
    ]


def test_plan_edit_and_return_restocks_each_held_unit_once():
    # 3 units held; the edit asks for 5 and returns the order in the same commit
    changes = plan_stock_changes(
        old_lines=lines(v1=3),
        new_lines=lines(v1=5),
        old_status=OrderStatus.DELIVERED,
        new_status=OrderStatus.RETURNED,
    )
    assert len(changes) == 1
    assert changes[0].quantity == 3
    assert changes[0].kind == TransactionKind.RETURN


def test_plan_return_with_dropped_line_records_one_return_event():
    changes = plan_stock_changes(
        old_lines=lines(v1=2, v2=3),
        new_lines=lines(v1=2),
        old_status=OrderStatus.DELIVERED,
        new_status=OrderStatus.RETURNED,
    )
    assert {c.variant_id: c.quantity for c in changes} == {1: 2, 2: 3}
    assert {c.kind for c in changes} == {TransactionKind.RETURN}
    assert {c.note for c in changes} == {"Status Change: Returned"}


def test_plan_edit_while_returned_moves_no_stock():
    changes = plan_stock_changes(
        old_lines=lines(v1=3),
        new_lines=lines(v1=1, v2=4),
        old_status=OrderStatus.RETURNED,
        new_status=OrderStatus.RETURNED,
    )
    assert changes == []


def test_plan_unreturn_with_edit_deducts_new_lines():
    changes = plan_stock_changes(
        old_lines=lines(v1=3),
        new_lines=lines(v1=2, v2=1),
        old_status=OrderStatus.RETURNED,
        new_status=OrderStatus.PROCESSING,
    )
    assert {c.variant_id: c.quantity for c in changes} == {1: -2, 2: -1}
    assert all(c.kind == TransactionKind.ADJUSTMENT for c in changes)


def test_plan_for_status_move_without_stock_effect_is_empty():
    changes = plan_stock_changes(
        old_lines=lines(v1=2, v2=2),
        new_lines=lines(v1=2, v2=2),
        old_status=OrderStatus.SHIPPED,
        new_status=OrderStatus.DELIVERED,
    )
    assert changes == []


def test_idempotency_key_is_scoped_to_revision_and_kind():
    (change,) = plan_stock_changes(
        old_lines=[], new_lines=lines(v7=1), old_status=None, new_status=OrderStatus.PENDING, creating=True
    )
    assert change.idempotency_key(12, 1) == "order:12:rev:1:variant:7:sale"
    assert change.idempotency_key(12, 2) != change.idempotency_key(12, 1)
