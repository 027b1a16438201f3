from __future__ import annotations

import pytest

from invoice_app.utils import (
    format_amount,
    format_amount_for_pdf,
    format_compact_amount,
    format_for_input,
    format_indian_number,
    format_invoice_amount,
    parse_amount,
)


@pytest.mark.parametrize("number,places,expected", [
    (999, 0, "999"),
    (1000, 0, "1,000"),
    (100000, 0, "1,00,000"),
    (1234567, 0, "12,34,567"),
    (1234567.891, 2, "12,34,567.89"),
    (-45000, 0, "-45,000"),
])
def test_format_indian_number(number, places, expected):
    assert format_indian_number(number, places) == expected


def test_format_amount():
    assert format_amount(1234567) == "₹12,34,567"
    assert format_amount(-1000) == "-₹1,000"
    assert format_amount(1500.5, show_symbol=False, decimal_places=2) == "1,500.50"
    assert format_invoice_amount(250) == "₹250.00"


def test_format_amount_for_pdf():
    assert format_amount_for_pdf(1500) == "Rs.1,500.00"
    assert format_amount_for_pdf(150000.5, show_symbol=False) == "1,50,000.50"


@pytest.mark.parametrize("amount,expected", [
    (25_000_000, "₹2.5Cr"),
    (150_000, "₹1.5L"),
    (2_500, "₹2.5K"),
    (500, "₹500"),
])
def test_format_compact_amount(amount, expected):
    assert format_compact_amount(amount) == expected


@pytest.mark.parametrize("text,expected", [
    ("₹1,23,456.50", 123456.5),
    ("Rs.1,000", 1000.0),
    ("Rs 75", 75.0),
    ("  42 ", 42.0),
    ("abc", 0.0),
    ("", 0.0),
])
def test_parse_amount(text, expected):
    assert parse_amount(text) == pytest.approx(expected)


def test_format_for_input():
    assert format_for_input(12.5) == "12.50"
