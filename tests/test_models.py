from __future__ import annotations

import pytest

from budget_planner.errors import ValidationError
from budget_planner.models import (
    CashflowAnchor,
    Component,
    Group,
    Section,
    find_component,
    month_vector,
    validate_month,
)


def _hierarchy():
    return [
        Section(1, 'expense', 'Expenses', groups=(
            Group(10, 'Food', components=(Component(100, 'Groceries'), Component(101, 'Dining Out', disabled=True))),
            Group(11, 'Travel', disabled=True, components=(Component(110, 'Flights'),)),
        )),
    ]


def test_find_component_returns_its_ancestors() -> None:
    section, group, component = find_component(_hierarchy(), 110)
    assert (section.id, group.id, component.name) == (1, 11, 'Flights')
    assert find_component(_hierarchy(), 999) is None


def test_active_entities_skip_disabled() -> None:
    section = _hierarchy()[0]
    assert [g.id for g in section.active_groups()] == [10]
    assert [c.id for c in section.groups[0].active_components()] == [100]
    assert section.groups[1].active_components() == []


def test_month_vector_is_zero_filled() -> None:
    assert month_vector({2: 5.0, 12: 1.0}) == [0.0, 5.0] + [0.0] * 9 + [1.0]
    assert month_vector(None) == [0.0] * 12


def test_month_validation() -> None:
    assert validate_month("3") == 3
    for bad in (0, 13, 2.5, "x", None):
        with pytest.raises(ValidationError):
            validate_month(bad)
    with pytest.raises(ValidationError):
        CashflowAnchor(0.0, 2024, 13)
    with pytest.raises(ValidationError):
        Section(1, 'transfer')
