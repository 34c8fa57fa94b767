from decimal import Decimal

import pytest
from statement_import.money import (
    cents_to_decimal,
    format_cents,
    parse_amount,
    parse_amount_to_cents,
)


@pytest.mark.parametrize(
    "raw, cents",
    [
        ("-1.234,56", -123456),
        ("1,234.56", 123456),
        ("1234.56", 123456),
        ("-17,99", -1799),
        ("2500,00", 250000),
        ("+42", 4200),
        ("1.234", 123400),
        ("0,123", 12),
        ("1.234.567", 123456700),
        ("12,50-", -1250),
        ("(45,00)", -4500),
        ("€ -9,90", -990),
        ("-9,90 EUR", -990),
        ("$1,000.00", 100000),
        ("1 234,56", 123456),
    ],
)
def test_parse_amount_to_cents_handles_localized_notations(raw, cents):
    assert parse_amount_to_cents(raw) == cents


def test_parse_amount_keeps_exact_decimal():
    assert parse_amount("-0,10") == Decimal("-0.10")


def test_half_up_rounding_on_extra_decimals():
    assert parse_amount_to_cents("0.005") == 1
    assert parse_amount_to_cents("-0.005") == -1


@pytest.mark.parametrize("raw", ["", "   ", "abc", "12,34,x", "--", None])
def test_parse_amount_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_amount(raw)


def test_format_cents_uses_italian_separators():
    assert format_cents(-123456) == "-1.234,56 €"
    assert format_cents(1799) == "17,99 €"
    assert format_cents(5) == "0,05 €"


def test_cents_to_decimal():
    assert cents_to_decimal(-1799) == Decimal("-17.99")
