"""Formatting utilities for amounts shown in the budget tables."""

from __future__ import annotations

import math
from typing import Optional, Union

Number = Union[float, int]


def format_amount(amount: Number, decimals: int = 0) -> str:
    """Format with ``.`` as thousands separator and ``,`` as decimal mark.

    Example:
        >>> format_amount(1234567)
        '1.234.567'
        >>> format_amount(1234.5, decimals=2)
        '1.234,50'
    """
    formatted = f"{amount:,.{decimals}f}"
    return formatted.replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency(amount: Number, is_expense: bool = False, symbol: str = "€") -> str:
    """Format an amount with the currency symbol; expense amounts go in parentheses.

    Example:
        >>> format_currency(-1500, is_expense=True)
        '(1.500 €)'
        >>> format_currency(0, is_expense=True)
        '0 €'
    """
    formatted = f"{format_amount(abs(amount))} {symbol}"
    if is_expense and amount != 0:
        return f"({formatted})"
    return formatted


def format_cell(amount: Optional[Number]) -> str:
    """Cell display: ``-`` for zero or missing values."""
    if amount is None or (isinstance(amount, float) and math.isnan(amount)) or amount == 0:
        return "-"
    return format_amount(amount)


def format_difference(diff: Number) -> str:
    """Signed variance display: ``+50``, ``-20`` or ``-`` when even."""
    if diff == 0:
        return "-"
    prefix = "+" if diff > 0 else ""
    return f"{prefix}{format_amount(diff)}"
