"""Unit tests for budget_planner.expressions."""

from __future__ import annotations

import pytest

from budget_planner import expressions as ex
from budget_planner.errors import ParseError


@pytest.mark.parametrize(
    "text, expected",
    [
        ("100+10%", 110.0),
        ("100-10%", 90.0),
        ("200*50%", 100.0),
        ("50/50%", 100.0),
        ("200*3", 600.0),
        ("100 + 50", 150.0),
        ("7.5-2.5", 5.0),
        ("9/3", 3.0),
    ],
)
def test_evaluate_supported_forms(text: str, expected: float) -> None:
    assert ex.evaluate_expression(text) == pytest.approx(expected)


def test_no_operator_is_not_an_expression() -> None:
    assert ex.evaluate_expression("1234.5") is None
    assert ex.evaluate_expression("") is None


def test_division_by_zero_is_failure() -> None:
    assert ex.evaluate_expression("100/0") is None
    assert ex.evaluate_expression("100/0%") is None


def test_unsupported_shapes_are_not_expressions() -> None:
    # negative operands and chained operators are outside the grammar
    assert ex.evaluate_expression("-5+3") is None
    assert ex.evaluate_expression("1+2+3") is None
    assert ex.evaluate_expression("100+10 %") is None
    assert ex.evaluate_expression("abc+1") is None


def test_parse_expression_names_the_form() -> None:
    assert ex.parse_expression("100+10%").form == ex.PERCENT_FORM
    parsed = ex.parse_expression("200 * 3")
    assert parsed.form == ex.BINARY_FORM
    assert (parsed.left, parsed.operator, parsed.right) == (200.0, "*", 3.0)


def test_tokenize_rejects_unknown_characters() -> None:
    with pytest.raises(ParseError):
        ex.tokenize("12x3")
    kinds = [t.kind for t in ex.tokenize("1.5 * 2%")]
    assert kinds == [ex.NUMBER, ex.OPERATOR, ex.NUMBER, ex.PERCENT]


def test_parse_cell_value_falls_back_to_literal() -> None:
    assert ex.parse_cell_value("100+10%") == pytest.approx(110.0)
    assert ex.parse_cell_value("") == 0.0
    assert ex.parse_cell_value("  ") == 0.0
    assert ex.parse_cell_value("42.5") == 42.5
    assert ex.parse_cell_value("abc") == 0.0
    assert ex.parse_cell_value("100/0%") == 0.0
    assert ex.parse_cell_value("-5") == -5.0
