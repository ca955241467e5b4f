"""Core data types: the Section → Group → Component tree and month helpers.

The hierarchy is a plain tree of dataclasses.  Monthly figures travel as
``{month: amount}`` maps keyed 1..12; :func:`month_vector` turns any such map
into the fixed 12-slot list the calculators work on, so missing months are
always read as 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Mapping, Optional, Tuple

from .errors import ValidationError

INCOME = 'income'
EXPENSE = 'expense'
SECTION_KINDS = (INCOME, EXPENSE)

MONTHS: Tuple[int, ...] = tuple(range(1, 13))
MONTH_LABELS: Tuple[str, ...] = (
    'Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
    'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec',
)

# component_id -> month -> amount, as returned by the store
ValuesByComponent = Mapping[int, Mapping[int, float]]


@dataclass(frozen=True)
class Component:
    id: int
    name: str = ''
    disabled: bool = False
    sort_order: int = 0


@dataclass(frozen=True)
class Group:
    id: int
    name: str = ''
    disabled: bool = False
    sort_order: int = 0
    components: Tuple[Component, ...] = ()

    def active_components(self) -> List[Component]:
        """Components that count towards totals (none if the group is disabled)."""
        if self.disabled:
            return []
        return [c for c in self.components if not c.disabled]


@dataclass(frozen=True)
class Section:
    id: int
    kind: str
    name: str = ''
    sort_order: int = 0
    groups: Tuple[Group, ...] = ()

    def __post_init__(self) -> None:
        if self.kind not in SECTION_KINDS:
            raise ValidationError(f"Section kind must be one of {SECTION_KINDS}, got {self.kind!r}")

    @property
    def is_expense(self) -> bool:
        return self.kind == EXPENSE

    def active_groups(self) -> List[Group]:
        return [g for g in self.groups if not g.disabled]


@dataclass(frozen=True)
class CashflowAnchor:
    starting_balance: float
    starting_year: int
    starting_month: int

    def __post_init__(self) -> None:
        validate_month(self.starting_month)

    def precedes(self, year: int, month: int) -> bool:
        """True when ``year``/``month`` lies strictly before the anchor."""
        return year < self.starting_year or (year == self.starting_year and month < self.starting_month)


@dataclass(frozen=True)
class ActualsCutoff:
    cutoff_year: int
    cutoff_month: int

    def __post_init__(self) -> None:
        validate_month(self.cutoff_month)


@dataclass
class MonthlyTotals:
    """Twelve monthly figures for one level of the tree."""

    monthly: List[float] = field(default_factory=lambda: [0.0] * 12)

    @property
    def annual(self) -> float:
        return float(sum(self.monthly))

    def __getitem__(self, month: int) -> float:
        return self.monthly[validate_month(month) - 1]


def validate_month(month: Any) -> int:
    """Return ``month`` as an int in 1..12 or raise :class:`ValidationError`."""
    try:
        value = int(month)
    except (TypeError, ValueError):
        raise ValidationError(f"Month must be an integer between 1 and 12, got {month!r}") from None
    if isinstance(month, float) and month != value:
        raise ValidationError(f"Month must be an integer between 1 and 12, got {month!r}")
    if value < 1 or value > 12:
        raise ValidationError(f"Month must be between 1 and 12, got {value}")
    return value


def month_vector(values: Optional[Mapping[int, float]]) -> List[float]:
    """Zero-filled list of 12 amounts (index 0 is January)."""
    vector = [0.0] * 12
    if not values:
        return vector
    for month, amount in values.items():
        month_num = validate_month(month)
        vector[month_num - 1] = float(amount or 0.0)
    return vector


def iter_components(hierarchy: List[Section]) -> Iterator[Tuple[Section, Group, Component]]:
    """Walk every component together with its section and group, in tree order."""
    for section in hierarchy:
        for group in section.groups:
            for component in group.components:
                yield section, group, component


def find_component(hierarchy: List[Section], component_id: int) -> Optional[Tuple[Section, Group, Component]]:
    for section, group, component in iter_components(hierarchy):
        if component.id == component_id:
            return section, group, component
    return None
