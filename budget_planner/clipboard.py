"""Parse a row of cells pasted from a spreadsheet.

Excel and Google Sheets put a copied row on the clipboard as tab-separated
text.  Each cell may carry a currency symbol, US (``1,234.56``) or European
(``1.234,56``) separators, or accounting parentheses for negatives.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import numpy as np
import pandas as pd

from .errors import ParseError
from .models import MONTH_LABELS, validate_month

logger = logging.getLogger(__name__)

MAX_FIELDS = 12
NO_DATA_ERROR = 'No data found in clipboard'

US_FORMAT = 'us'
EUROPEAN_FORMAT = 'european'

_CURRENCY_RE = re.compile(r"[€$£¥]")
_WHITESPACE_RE = re.compile(r"\s")
_COMMA_DECIMAL_RE = re.compile(r",\d{1,2}$")
_DOT_THOUSANDS_RE = re.compile(r"\.\d{3}")
_PARENTHESIZED_RE = re.compile(r"^\((\d+\.?\d*)\)$")
_LEADING_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass
class ParsedClipboard:
    values: List[float] = field(default_factory=list)
    raw_values: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors and len(self.values) > 0

    def to_monthly(self, start_month: int = 1) -> Dict[int, float]:
        """Lay the values onto consecutive months from ``start_month``; overflow past December is dropped."""
        start = validate_month(start_month)
        return {
            start + offset: value
            for offset, value in enumerate(self.values)
            if start + offset <= 12
        }


def detect_number_format(cleaned: str) -> str:
    if _COMMA_DECIMAL_RE.search(cleaned) or _DOT_THOUSANDS_RE.search(cleaned):
        return EUROPEAN_FORMAT
    return US_FORMAT


def normalize_number(raw: str) -> str:
    """Rewrite one trimmed cell into a string ``float`` understands."""
    cleaned = _CURRENCY_RE.sub('', raw)
    cleaned = _WHITESPACE_RE.sub('', cleaned)
    if detect_number_format(cleaned) == EUROPEAN_FORMAT:
        cleaned = cleaned.replace('.', '').replace(',', '.', 1)
    else:
        cleaned = cleaned.replace(',', '')
    # Accounting negatives: (100) → -100
    match = _PARENTHESIZED_RE.match(cleaned)
    if match:
        cleaned = f"-{match.group(1)}"
    return cleaned


def parse_cell(raw: str) -> float:
    """Parse a single trimmed cell; raises :class:`ParseError` when it is not a number."""
    if raw == '' or raw == '-':
        return 0.0
    cleaned = normalize_number(raw)
    # Trailing text after the number is ignored: "100EUR" and "50%" read as 100 and 50.
    match = _LEADING_NUMBER_RE.match(cleaned)
    if match is None:
        raise ParseError(f"Cannot parse {raw!r} as a number")
    number = pd.to_numeric(pd.Series([match.group()], dtype=object), errors='coerce').iloc[0]
    if pd.isna(number) or not np.isfinite(number):
        raise ParseError(f"Cannot parse {raw!r} as a number")
    return float(number)


def parse_clipboard_row(text: Optional[str]) -> ParsedClipboard:
    """Parse tab-separated clipboard text into at most 12 monthly values.

    Bad cells become 0 and add an error entry; nothing is raised.
    """
    parts = (text or '').strip().split('\t')
    if len(parts) == 1 and parts[0] == '':
        return ParsedClipboard(errors=[NO_DATA_ERROR])

    parsed = ParsedClipboard()
    for position, part in enumerate(parts[:MAX_FIELDS], start=1):
        raw = part.strip()
        parsed.raw_values.append(raw)
        try:
            parsed.values.append(parse_cell(raw))
        except ParseError:
            parsed.errors.append(f'Invalid value at position {position}: "{raw}"')
            parsed.values.append(0.0)

    if parsed.errors:
        logger.debug("Clipboard row parsed with %d error(s): %s", len(parsed.errors), parsed.errors)
    return parsed


def paste_preview(
    parsed: ParsedClipboard,
    start_month: int,
    current_values: Optional[Mapping[int, float]] = None,
) -> pd.DataFrame:
    """Table of the months a paste would overwrite, before and after.

    Columns: Month, Current, New.
    """
    current_values = current_values or {}
    rows = []
    for month, value in parsed.to_monthly(start_month).items():
        rows.append({
            'Month': MONTH_LABELS[month - 1],
            'Current': float(current_values.get(month, 0.0) or 0.0),
            'New': value,
        })
    return pd.DataFrame(rows, columns=['Month', 'Current', 'New'])
