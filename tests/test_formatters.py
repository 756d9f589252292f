"""Unit tests for the formatters module."""

import pytest

from pension_planner import formatters as fmt


def test_format_tax_year():
    assert fmt.format_tax_year(2031) == "2031/32"
    assert fmt.format_tax_year(2099) == "2099/00"
    assert fmt.format_tax_year(2008) == "2008/09"


def test_format_currency():
    assert fmt.format_currency(1234.56) == "£1,234.56"
    assert fmt.format_currency(0) == "£0.00"
    assert fmt.format_currency(-50) == "-£50.00"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("£1,234.56", 1234.56),
        (" 863 000 ", 863000.0),
        ("abc", 0.0),
        ("", 0.0),
    ],
)
def test_parse_currency(text, expected):
    assert fmt.parse_currency(text) == pytest.approx(expected)


def test_percentages():
    assert fmt.format_percentage(0.04) == "4%"
    assert fmt.format_percentage(0.0326) == "3.3%"
    assert fmt.format_percentage(0.0326, 2) == "3.26%"
    assert fmt.parse_percentage("4%") == pytest.approx(0.04)
    assert fmt.parse_percentage("3.26 %") == pytest.approx(0.0326)
    assert fmt.parse_percentage("n/a") == 0.0


def test_format_compact():
    assert fmt.format_compact(1_200_000) == "£1.2M"
    assert fmt.format_compact(250_000) == "£250K"
    assert fmt.format_compact(999) == "£999.00"
