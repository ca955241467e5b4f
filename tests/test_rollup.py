"""Unit tests for budget_planner.rollup."""

from __future__ import annotations

import pytest

from budget_planner.models import Component, Group, Section
from budget_planner.rollup import compute_rollup, rollup_frame


def _hierarchy(group_disabled: bool = False, component_disabled: bool = False):
    income = Section(1, 'income', 'Income', groups=(
        Group(10, 'Employment', components=(Component(100, 'Salary'),)),
    ))
    expenses = Section(2, 'expense', 'Expenses', groups=(
        Group(20, 'Housing', components=(
            Component(200, 'Rent'),
            Component(201, 'Utilities', disabled=component_disabled),
        )),
        Group(21, 'Food', disabled=group_disabled, components=(Component(210, 'Groceries'),)),
    ))
    return [income, expenses]


def _values():
    return {
        100: {1: 3000.0, 2: 3000.0},
        200: {1: 100.0},
        201: {1: 50.0},
        210: {1: 400.0},
    }


def test_expense_group_total_is_negative() -> None:
    rollup = compute_rollup(_hierarchy(), {200: {1: 100.0}, 201: {1: 50.0}}, 2024)
    assert rollup.groups[20][1] == -150.0
    assert rollup.sections[2][1] == -150.0


def test_grand_total_nets_income_and_expenses() -> None:
    rollup = compute_rollup(_hierarchy(), _values(), 2024)
    assert rollup.grand[1] == pytest.approx(3000.0 - 100.0 - 50.0 - 400.0)
    assert rollup.grand[2] == 3000.0
    assert rollup.grand_monthly[2:] == [0.0] * 10
    assert rollup.sections[1].annual == 6000.0


def test_disabled_group_is_excluded_everywhere() -> None:
    rollup = compute_rollup(_hierarchy(group_disabled=True), _values(), 2024)
    assert rollup.groups[21].monthly == [0.0] * 12
    assert rollup.sections[2][1] == -150.0
    assert rollup.grand[1] == pytest.approx(2850.0)
    # component keeps its raw magnitude
    assert rollup.components[210][1] == 400.0


def test_disabled_component_is_excluded() -> None:
    rollup = compute_rollup(_hierarchy(component_disabled=True), _values(), 2024)
    assert rollup.groups[20][1] == -100.0
    assert rollup.components[201][1] == 50.0


def test_missing_values_read_as_zero() -> None:
    rollup = compute_rollup(_hierarchy(), {}, 2024)
    assert rollup.grand.annual == 0.0
    assert rollup.components[100].monthly == [0.0] * 12


def test_input_values_not_modified() -> None:
    values = _values()
    compute_rollup(_hierarchy(), values, 2024)
    assert values == _values()


def test_rollup_frame_layout() -> None:
    hierarchy = _hierarchy(group_disabled=True)
    frame = rollup_frame(hierarchy, compute_rollup(hierarchy, _values(), 2024))
    assert list(frame.columns[:4]) == ['Level', 'Name', 'Id', 'Kind']
    assert 'Food' not in frame['Name'].tolist()
    total = frame.iloc[-1]
    assert total['Level'] == 'Total' and total['Name'] == 'Net'
    assert total['Jan'] == pytest.approx(2850.0)

    with_disabled = rollup_frame(hierarchy, compute_rollup(hierarchy, _values(), 2024), include_disabled=True)
    assert 'Food' in with_disabled['Name'].tolist()
