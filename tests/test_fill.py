from __future__ import annotations

import pytest

from budget_planner.errors import ValidationError
from budget_planner.fill import fill_months, fill_range, resolve_target_slot


def test_fill_forward_overwrites_inclusive_range() -> None:
    values = {m: float(m) for m in range(1, 13)}
    values[3] = 80.0
    filled = fill_range(values, 3, 6)
    assert [filled[m] for m in (3, 4, 5, 6)] == [80.0] * 4
    assert filled[1] == 1.0 and filled[2] == 2.0
    assert [filled[m] for m in range(7, 13)] == [float(m) for m in range(7, 13)]
    # input untouched
    assert values[4] == 4.0


def test_fill_backwards_uses_source_value() -> None:
    filled = fill_range({9: 25.0}, 9, 7)
    assert [filled[m] for m in (7, 8, 9)] == [25.0, 25.0, 25.0]
    assert filled[10] == 0.0


def test_fill_same_month_is_noop() -> None:
    assert fill_range({1: 5.0}, 4, 4) is None


def test_fill_rejects_bad_month() -> None:
    with pytest.raises(ValidationError):
        fill_range({}, 0, 3)
    with pytest.raises(ValidationError):
        fill_months(1, 13)


def test_resolve_target_slot_nearest_centre() -> None:
    slots = [(i * 100.0, i * 100.0 + 100.0) for i in range(12)]
    assert resolve_target_slot(10.0, slots) == 1
    assert resolve_target_slot(560.0, slots) == 6
    assert resolve_target_slot(5000.0, slots) == 12
    # exact midpoint between slot 1 and 2 centres: first wins
    assert resolve_target_slot(100.0, slots) == 1


def test_resolve_target_slot_default_without_slots() -> None:
    assert resolve_target_slot(42.0, [], default=3) == 3
