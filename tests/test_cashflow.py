from __future__ import annotations

import math

import pytest

from budget_planner.cashflow import cashflow_frame, compute_cashflow
from budget_planner.errors import ValidationError
from budget_planner.models import CashflowAnchor


def _monthly_net():
    return [100.0, 200.0, -50.0, 25.0] + [0.0] * 8


def test_balance_starts_at_anchor_month() -> None:
    anchor = CashflowAnchor(1000.0, 2024, 3)
    balances = compute_cashflow(_monthly_net(), anchor, 2024)
    assert balances[:2] == [None, None]
    assert balances[2] == 950.0
    assert balances[3] == 975.0
    assert balances[11] == 975.0


def test_year_before_anchor_is_all_undefined() -> None:
    anchor = CashflowAnchor(1000.0, 2024, 3)
    assert compute_cashflow(_monthly_net(), anchor, 2023) == [None] * 12


def test_later_year_restarts_from_starting_balance() -> None:
    anchor = CashflowAnchor(1000.0, 2024, 3)
    balances = compute_cashflow(_monthly_net(), anchor, 2025)
    assert balances[0] == 1100.0
    assert balances[1] == 1300.0


def test_requires_twelve_totals() -> None:
    with pytest.raises(ValidationError):
        compute_cashflow([1.0, 2.0], CashflowAnchor(0.0, 2024, 1), 2024)


def test_cashflow_frame_uses_nan_for_undefined_months() -> None:
    anchor = CashflowAnchor(0.0, 2024, 2)
    frame = cashflow_frame(_monthly_net(), compute_cashflow(_monthly_net(), anchor, 2024))
    assert list(frame.columns) == ['Month', 'Net', 'Balance']
    assert math.isnan(frame.loc[0, 'Balance'])
    assert frame.loc[1, 'Balance'] == 200.0
