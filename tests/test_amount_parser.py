"""Tests for amount parser."""

from decimal import Decimal

import pytest

from katalis.utils.amount_parser import parse_amount


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1500000", Decimal("1500000")),
        ("Rp 1.500.000", Decimal("1500000")),
        ("IDR 1,500,000", Decimal("1500000")),
        ("1.500.000,50", Decimal("1500000.50")),
        ("1,500,000.50", Decimal("1500000.50")),
        ("1.500", Decimal("1500")),
        ("12.5", Decimal("12.5")),
        ("500rb", Decimal("500000")),
        ("1.5jt", Decimal("1500000")),
        ("2,5jt", Decimal("2500000")),
        ("2k", Decimal("2000")),
        ("3 juta", Decimal("3000000")),
    ],
)
def test_parse_amount_formats(text, expected):
    """Test plain, separated and shorthand amounts."""
    assert parse_amount(text) == expected


def test_parse_negative_amounts():
    """Test minus signs and parentheses."""
    assert parse_amount("-250000") == Decimal("-250000")
    assert parse_amount("(250.000)") == Decimal("-250000")


@pytest.mark.parametrize("text", ["", "   ", "abc", "1jt2"])
def test_parse_invalid_amounts(text):
    """Test values that are not amounts."""
    with pytest.raises(ValueError):
        parse_amount(text)
