"""Unit tests for budget_planner.clipboard."""

from __future__ import annotations

import pytest

from budget_planner.clipboard import (
    EUROPEAN_FORMAT,
    NO_DATA_ERROR,
    US_FORMAT,
    detect_number_format,
    parse_clipboard_row,
    paste_preview,
)


@pytest.mark.parametrize(
    "cell, expected",
    [
        ("1.234,56", 1234.56),
        ("1,234.56", 1234.56),
        ("(100)", -100.0),
        ("€50", 50.0),
        ("$ 1,000", 1000.0),
        ("-", 0.0),
        ("", 0.0),
        ("12,5", 12.5),
        ("2.000", 2000.0),
    ],
)
def test_single_cell_formats(cell: str, expected: float) -> None:
    parsed = parse_clipboard_row(f"1\t{cell}\t1")
    assert parsed.values[1] == pytest.approx(expected)


def test_invalid_cell_becomes_zero_with_error() -> None:
    parsed = parse_clipboard_row("10\tabc\t30")
    assert parsed.values == [10.0, 0.0, 30.0]
    assert parsed.raw_values == ["10", "abc", "30"]
    assert parsed.errors == ['Invalid value at position 2: "abc"']
    assert not parsed.is_valid


def test_empty_clipboard_is_invalid() -> None:
    parsed = parse_clipboard_row("   ")
    assert parsed.values == []
    assert parsed.errors == [NO_DATA_ERROR]
    assert not parsed.is_valid


def test_at_most_twelve_fields() -> None:
    parsed = parse_clipboard_row("\t".join(str(i) for i in range(1, 16)))
    assert len(parsed.values) == 12
    assert parsed.values[-1] == 12.0
    assert parsed.is_valid


def test_detect_number_format() -> None:
    assert detect_number_format("1.234,56") == EUROPEAN_FORMAT
    assert detect_number_format("1234,5") == EUROPEAN_FORMAT
    assert detect_number_format("1,234.56") == US_FORMAT
    assert detect_number_format("12.5") == US_FORMAT


def test_to_monthly_drops_overflow() -> None:
    parsed = parse_clipboard_row("1\t2\t3\t4")
    assert parsed.to_monthly(10) == {10: 1.0, 11: 2.0, 12: 3.0}


def test_paste_preview_frame() -> None:
    parsed = parse_clipboard_row("100\t200")
    frame = paste_preview(parsed, 11, {11: 5.0})
    assert list(frame.columns) == ["Month", "Current", "New"]
    assert frame["Month"].tolist() == ["Nov", "Dec"]
    assert frame["Current"].tolist() == [5.0, 0.0]
    assert frame["New"].tolist() == [100.0, 200.0]


def test_trailing_text_after_number_is_ignored() -> None:
    parsed = parse_clipboard_row("100 EUR\t50%\t12abc\tEUR 7")
    assert parsed.values == [100.0, 50.0, 12.0, 0.0]
    assert parsed.errors == ['Invalid value at position 4: "EUR 7"']
