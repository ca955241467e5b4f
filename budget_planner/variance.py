"""Budget versus actual comparison.

Both sides are compared as unsigned magnitudes.  The difference is oriented
so that a positive number is always good news:

* expense: ``budget - actual`` (spent less than planned)
* income: ``actual - budget`` (earned more than planned)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np
import pandas as pd

from .models import EXPENSE, MONTH_LABELS, Section, ValuesByComponent, month_vector

FAVORABLE = 'favorable'
UNFAVORABLE = 'unfavorable'
NEUTRAL = 'neutral'


def classify(diff: float) -> str:
    if diff > 0:
        return FAVORABLE
    if diff < 0:
        return UNFAVORABLE
    return NEUTRAL


def difference(kind: str, budget: float, actual: float) -> float:
    if kind == EXPENSE:
        return budget - actual
    return actual - budget


@dataclass
class VarianceLine:
    """Budget, actual and oriented difference for one entity."""

    kind: str
    budget: List[float] = field(default_factory=lambda: [0.0] * 12)
    actual: List[float] = field(default_factory=lambda: [0.0] * 12)

    @property
    def diff(self) -> List[float]:
        return [difference(self.kind, b, a) for b, a in zip(self.budget, self.actual)]

    @property
    def budget_total(self) -> float:
        return float(sum(self.budget))

    @property
    def actual_total(self) -> float:
        return float(sum(self.actual))

    @property
    def diff_total(self) -> float:
        return float(sum(self.diff))

    @property
    def favorability(self) -> List[str]:
        return [classify(d) for d in self.diff]

    @property
    def annual_favorability(self) -> str:
        return classify(self.diff_total)


@dataclass
class Variance:
    year: int
    components: Dict[int, VarianceLine] = field(default_factory=dict)
    groups: Dict[int, VarianceLine] = field(default_factory=dict)
    sections: Dict[int, VarianceLine] = field(default_factory=dict)


def compute_variance(
    hierarchy: List[Section],
    budget: ValuesByComponent,
    actual: ValuesByComponent,
    year: int,
) -> Variance:
    """Compare budget and actual values for ``year`` at every level.

    Disabled groups and components are absent from the result and excluded
    from their parents' totals.
    """
    result = Variance(year=year)
    for section in hierarchy:
        section_budget = np.zeros(12)
        section_actual = np.zeros(12)
        for group in section.active_groups():
            group_budget = np.zeros(12)
            group_actual = np.zeros(12)
            for component in group.active_components():
                comp_budget = np.array(month_vector(budget.get(component.id)))
                comp_actual = np.array(month_vector(actual.get(component.id)))
                result.components[component.id] = VarianceLine(
                    section.kind, comp_budget.tolist(), comp_actual.tolist()
                )
                group_budget += comp_budget
                group_actual += comp_actual
            result.groups[group.id] = VarianceLine(section.kind, group_budget.tolist(), group_actual.tolist())
            section_budget += group_budget
            section_actual += group_actual
        result.sections[section.id] = VarianceLine(section.kind, section_budget.tolist(), section_actual.tolist())
    return result


def variance_frame(hierarchy: List[Section], variance: Variance) -> pd.DataFrame:
    """Comparison table with Budget, Actual and Diff rows for each entity."""
    rows = []

    def _rows(level: str, name: str, entity_id: int, line: VarianceLine) -> None:
        for row_type, monthly, total in (
            ('Budget', line.budget, line.budget_total),
            ('Actual', line.actual, line.actual_total),
            ('Diff', line.diff, line.diff_total),
        ):
            row = {'Level': level, 'Name': name, 'Id': entity_id, 'Kind': line.kind, 'Type': row_type}
            row.update(dict(zip(MONTH_LABELS, monthly)))
            row['Total'] = total
            rows.append(row)

    for section in hierarchy:
        _rows('Section', section.name, section.id, variance.sections[section.id])
        for group in section.active_groups():
            _rows('Group', group.name, group.id, variance.groups[group.id])
            for component in group.active_components():
                _rows('Component', component.name, component.id, variance.components[component.id])

    return pd.DataFrame(rows, columns=['Level', 'Name', 'Id', 'Kind', 'Type', *MONTH_LABELS, 'Total'])
