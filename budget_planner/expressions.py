"""Evaluate the small arithmetic expressions users may type into a cell.

Two forms are understood, each with exactly one operator and unsigned
decimal operands:

* ``BASE OP PCT%`` - percentage adjustment, e.g. ``100+10%`` → 110
* ``LEFT OP RIGHT`` - plain arithmetic, e.g. ``200*3`` → 600

Anything else is "not an expression" and the caller parses the text as a
plain number instead (see :func:`parse_cell_value`).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from .errors import ParseError

NUMBER = 'NUMBER'
OPERATOR = 'OPERATOR'
PERCENT = 'PERCENT'

OPERATORS = frozenset('+-*/')

# Grammar cases
PERCENT_FORM = 'PERCENT'
BINARY_FORM = 'BINARY'

_TOKEN_RE = re.compile(
    r"(?P<NUMBER>\d+(?:\.\d*)?)|(?P<OPERATOR>[+\-*/])|(?P<PERCENT>%)|(?P<SPACE>\s+)"
)


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    spaced: bool = False  # preceded by whitespace


@dataclass(frozen=True)
class Expression:
    form: str
    left: float
    operator: str
    right: float


def tokenize(text: str) -> List[Token]:
    """Split ``text`` into NUMBER/OPERATOR/PERCENT tokens.

    Raises :class:`ParseError` on any other character.
    """
    tokens: List[Token] = []
    pos = 0
    spaced = False
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ParseError(f"Unexpected character {text[pos]!r} at offset {pos}")
        kind = match.lastgroup
        if kind == 'SPACE':
            spaced = True
        else:
            tokens.append(Token(kind, match.group(), spaced))
            spaced = False
        pos = match.end()
    return tokens


def parse_expression(text: str) -> Expression:
    """Match the token stream against the two supported forms."""
    tokens = tokenize(text)
    kinds = [token.kind for token in tokens]
    if kinds == [NUMBER, OPERATOR, NUMBER, PERCENT]:
        if tokens[3].spaced:
            raise ParseError("Percent sign must directly follow the number")
        form = PERCENT_FORM
    elif kinds == [NUMBER, OPERATOR, NUMBER]:
        form = BINARY_FORM
    else:
        raise ParseError(f"Unsupported expression: {text!r}")
    return Expression(
        form=form,
        left=float(tokens[0].text),
        operator=tokens[1].text,
        right=float(tokens[2].text),
    )


def apply_percent(base: float, operator: str, percent: float) -> float:
    fraction = percent / 100
    if operator == '+':
        return base + base * fraction
    if operator == '-':
        return base - base * fraction
    if operator == '*':
        return base * fraction
    if fraction == 0:
        raise ZeroDivisionError("division by 0%")
    return base / fraction


def apply_binary(left: float, operator: str, right: float) -> float:
    if operator == '+':
        return left + right
    if operator == '-':
        return left - right
    if operator == '*':
        return left * right
    if right == 0:
        raise ZeroDivisionError("division by zero")
    return left / right


def evaluate_expression(text: str) -> Optional[float]:
    """Return the value of ``text`` or ``None`` if it is not an expression.

    Division by zero (including ``/0%``) also yields ``None``.
    """
    trimmed = text.strip()
    if not any(ch in OPERATORS for ch in trimmed):
        return None
    try:
        expression = parse_expression(trimmed)
    except ParseError:
        return None
    try:
        if expression.form == PERCENT_FORM:
            return apply_percent(expression.left, expression.operator, expression.right)
        return apply_binary(expression.left, expression.operator, expression.right)
    except ZeroDivisionError:
        return None


def parse_literal(text: str) -> float:
    """Parse a plain number; empty, unparsable or non-finite input gives 0."""
    cleaned = text.strip()
    if not cleaned:
        return 0.0
    number = pd.to_numeric(pd.Series([cleaned], dtype=object), errors='coerce').iloc[0]
    if pd.isna(number) or not np.isfinite(number):
        return 0.0
    return float(number)


def parse_cell_value(text: str) -> float:
    """Turn what the user typed into the amount to store."""
    evaluated = evaluate_expression(text)
    if evaluated is not None:
        return float(evaluated)
    return parse_literal(text)
