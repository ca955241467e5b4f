"""Drag-fill: copy one month's value across a range of months."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .models import MONTHS, validate_month


def resolve_target_slot(
    pointer: float,
    slot_bounds: Sequence[Tuple[float, float]],
    default: Optional[int] = None,
) -> Optional[int]:
    """Return the 1-based slot whose centre is nearest to ``pointer``.

    ``slot_bounds`` holds ``(start, end)`` coordinates of each month column
    in display order.  The first slot wins a tie; ``default`` is returned
    when there are no slots.
    """
    closest = default
    closest_distance = float('inf')
    for index, (start, end) in enumerate(slot_bounds, start=1):
        centre = start + (end - start) / 2
        distance = abs(pointer - centre)
        if distance < closest_distance:
            closest_distance = distance
            closest = index
    return closest


def fill_months(source: int, target: int) -> List[int]:
    """Inclusive list of months between ``source`` and ``target``."""
    source = validate_month(source)
    target = validate_month(target)
    return list(range(min(source, target), max(source, target) + 1))


def fill_range(values: Mapping[int, float], source: int, target: int) -> Optional[Dict[int, float]]:
    """Overwrite every month from ``source`` to ``target`` with the source value.

    Returns the new month map, or ``None`` when source and target are the
    same month.  The input mapping is left untouched.
    """
    source = validate_month(source)
    target = validate_month(target)
    if source == target:
        return None
    source_value = float(values.get(source, 0.0) or 0.0)
    filled = {month: float(values.get(month, 0.0) or 0.0) for month in MONTHS}
    for month in fill_months(source, target):
        filled[month] = source_value
    return filled
