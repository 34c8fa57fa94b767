from datetime import date

import pytest
from statement_import.models import RawRow
from statement_import.normalize import (
    clean_description,
    normalize_row,
    normalize_rows,
    parse_date,
)


def _raw(line: int, d: str, amount: str, description: str = "X") -> RawRow:
    return RawRow(line_number=line, raw={"date": d, "amount": amount, "description": description})


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-01-15", date(2024, 1, 15)),
        ("15/01/2024", date(2024, 1, 15)),
        ("15-01-2024", date(2024, 1, 15)),
        ("2024/01/15", date(2024, 1, 15)),
        ("15.01.2024", date(2024, 1, 15)),
        ("01/31/2024", date(2024, 1, 31)),
        ("15/01/24", date(2024, 1, 15)),
        ("15.01.24", date(2024, 1, 15)),
        ("2024-01-15 10:32", date(2024, 1, 15)),
        ("2024-01-15T10:32:00", date(2024, 1, 15)),
        ("15 Jan 2024", date(2024, 1, 15)),
    ],
)
def test_parse_date_formats(raw, expected):
    assert parse_date(raw) == expected


def test_day_first_wins_when_ambiguous():
    assert parse_date("03/04/2024") == date(2024, 4, 3)


@pytest.mark.parametrize("raw", ["", "10", "31/02/2024", "15/01/1999", "not a date"])
def test_parse_date_rejects(raw):
    with pytest.raises(ValueError, match="Invalid date format"):
        parse_date(raw)


def test_clean_description_collapses_whitespace_and_controls():
    assert clean_description("  NETFLIX\t\t.COM \x00\x07 ") == "NETFLIX .COM"
    assert clean_description(None) == ""


def test_normalize_row_builds_parsed_row():
    row = normalize_row(_raw(7, "15/01/2024", "-17,99", "  NETFLIX.COM  "))

    assert row is not None
    assert row.line_number == 7
    assert row.date == date(2024, 1, 15)
    assert row.timestamp == 1705276800000
    assert row.amount_cents == -1799
    assert row.direction == "expense"
    assert row.description == "NETFLIX.COM"
    assert row.original_description == "  NETFLIX.COM  "


def test_zero_amount_rows_are_dropped_silently():
    assert normalize_row(_raw(2, "2024-01-15", "0,00")) is None


def test_normalize_rows_collects_errors_and_continues():
    rows = [
        _raw(2, "2024-01-15", "-1,00", "A"),
        _raw(3, "bad", "-1,00", "B"),
        _raw(4, "2024-01-15", "abc", "C"),
        _raw(5, "2024-01-15", "0", "D"),
        _raw(6, "2024-01-16", "5,00", "E"),
    ]

    parsed, errors = normalize_rows(rows)

    assert [p.description for p in parsed] == ["A", "E"]
    assert [(e.line_number, e.message) for e in errors] == [
        (3, "Invalid date format: 'bad'"),
        (4, "Invalid amount format: 'abc'"),
    ]
    assert errors[0].raw == "B"
