"""Running cash balance for one year, starting from the configured anchor."""

from __future__ import annotations

from typing import List, Optional, Sequence

import pandas as pd

from .errors import ValidationError
from .models import MONTH_LABELS, MONTHS, CashflowAnchor


def compute_cashflow(grand_totals: Sequence[float], anchor: CashflowAnchor, year: int) -> List[Optional[float]]:
    """Balance at the end of each month of ``year``.

    Months before the anchor are ``None``.  The accumulator starts from
    ``anchor.starting_balance`` for every queried year; December of the
    previous year is not carried forward.
    """
    if len(grand_totals) != 12:
        raise ValidationError(f"Expected 12 monthly totals, got {len(grand_totals)}")

    balance = float(anchor.starting_balance)
    balances: List[Optional[float]] = []
    for month in MONTHS:
        if anchor.precedes(year, month):
            balances.append(None)
            continue
        balance += float(grand_totals[month - 1])
        balances.append(balance)
    return balances


def cashflow_frame(grand_totals: Sequence[float], balances: Sequence[Optional[float]]) -> pd.DataFrame:
    """Month, Net, Balance table for display; undefined balances are NaN."""
    return pd.DataFrame({
        'Month': list(MONTH_LABELS),
        'Net': [float(v) for v in grand_totals],
        'Balance': [float('nan') if b is None else b for b in balances],
    })
