from __future__ import annotations

import pytest

from reporting.format_utils import (
    EMPTY,
    clean_jurisdiction,
    format_currency,
    format_date,
    format_differential,
    format_number,
    format_percent,
    format_signed_currency,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        (2_700_000_000, "$2.70B"),
        (1_350_000, "$1.35M"),
        (968_000, "$968K"),
        (4_500, "$4.5K"),
        (950, "$950"),
        (-2_500_000, "-$2.50M"),
        ("$1,200", "$1.2K"),
        ({"amount": 10_000}, "$10K"),
        (None, "$0"),
    ],
)
def test_format_currency_magnitudes(value, expected):
    assert format_currency(value) == expected


def test_format_signed_currency():
    assert format_signed_currency(1500) == "+$1.5K"
    assert format_signed_currency(-1500) == "-$1.5K"


def test_format_percent_signs_positive_values():
    assert format_percent(12) == "+12%"
    assert format_percent(-5) == "-5%"
    assert format_percent(0) == "0%"
    assert format_percent(None) == "0%"
    assert format_percent(40, signed=False) == "40%"
    assert format_percent("+8%") == "+8%"


def test_format_differential():
    assert format_differential(0) == EMPTY
    assert format_differential(23) == "+23%"
    assert format_differential(2.5) == "+2.5%"


def test_clean_jurisdiction():
    assert clean_jurisdiction("united_arab_emirates") == "United Arab Emirates"
    assert clean_jurisdiction({"country": "SINGAPORE"}) == "Singapore"
    assert clean_jurisdiction({"name": "new_zealand", "country": "NZ"}) == "New Zealand"
    assert clean_jurisdiction(None) == ""


def test_format_date_long_form():
    assert format_date("2026-01-15T10:00:00Z") == "January 15, 2026"
    assert format_date("02/19/2026") == "February 19, 2026"


def test_format_number_keeps_counts_whole():
    assert format_number(0) == "0"
    assert format_number(1250) == "1,250"
    assert format_number(0.5) == "0.50"
    assert format_number(3.14159, precision=2) == "3.14"
