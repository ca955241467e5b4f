"""Roll component figures up through groups and sections.

Amounts are stored as non-negative magnitudes.  Sign is applied here:
income sections contribute ``+amount``, expense sections ``-amount``.
Disabled groups, and disabled components or components inside a disabled
group, are left out of every total.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .models import MONTH_LABELS, MonthlyTotals, Section, ValuesByComponent, month_vector


@dataclass
class Rollup:
    year: int
    components: Dict[int, MonthlyTotals] = field(default_factory=dict)  # raw magnitudes
    groups: Dict[int, MonthlyTotals] = field(default_factory=dict)
    sections: Dict[int, MonthlyTotals] = field(default_factory=dict)
    grand: MonthlyTotals = field(default_factory=MonthlyTotals)

    @property
    def grand_monthly(self) -> List[float]:
        return list(self.grand.monthly)


def compute_rollup(hierarchy: List[Section], values: ValuesByComponent, year: int) -> Rollup:
    """Aggregate one year of values into signed group, section and grand totals.

    ``values`` maps component id to ``{month: amount}``; it is not modified.
    """
    rollup = Rollup(year=year)
    grand = np.zeros(12)

    for section in hierarchy:
        sign = -1.0 if section.is_expense else 1.0
        section_total = np.zeros(12)

        for group in section.groups:
            group_total = np.zeros(12)
            for component in group.components:
                raw = np.array(month_vector(values.get(component.id)))
                rollup.components[component.id] = MonthlyTotals(raw.tolist())
                if group.disabled or component.disabled:
                    continue
                group_total += sign * raw
            rollup.groups[group.id] = MonthlyTotals(group_total.tolist())
            section_total += group_total

        rollup.sections[section.id] = MonthlyTotals(section_total.tolist())
        grand += section_total

    rollup.grand = MonthlyTotals(grand.tolist())
    return rollup


def rollup_frame(hierarchy: List[Section], rollup: Rollup, include_disabled: bool = False) -> pd.DataFrame:
    """Budget report table: one row per section, group and component plus a grand total.

    Component rows show the raw magnitude; aggregate rows carry sign.
    """
    rows = []

    def _row(level: str, name: str, entity_id: Optional[int], kind: str, totals: MonthlyTotals) -> None:
        row = {'Level': level, 'Name': name, 'Id': entity_id, 'Kind': kind}
        row.update(dict(zip(MONTH_LABELS, totals.monthly)))
        row['Total'] = totals.annual
        rows.append(row)

    for section in hierarchy:
        _row('Section', section.name, section.id, section.kind, rollup.sections[section.id])
        for group in section.groups:
            if group.disabled and not include_disabled:
                continue
            _row('Group', group.name, group.id, section.kind, rollup.groups[group.id])
            for component in group.components:
                if component.disabled and not include_disabled:
                    continue
                _row('Component', component.name, component.id, section.kind, rollup.components[component.id])

    _row('Total', 'Net', None, '', rollup.grand)
    return pd.DataFrame(rows, columns=['Level', 'Name', 'Id', 'Kind', *MONTH_LABELS, 'Total'])
