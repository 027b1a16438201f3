"""
Currency Formatting

Indian Rupee formatting with lakh/crore digit grouping (12,34,567.00).
The PDF variant uses "Rs." because the rupee sign is missing from the
standard PDF fonts.
"""

from __future__ import annotations

CURRENCY_SYMBOL = "₹"
PDF_CURRENCY_SYMBOL = "Rs."
CURRENCY_CODE = "INR"


def _group_indian(digits: str) -> str:
    """Group an unsigned digit string as 12,34,567."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_indian_number(number: float, decimal_places: int = 0) -> str:
    """Format a number with Indian digit grouping."""
    sign = "-" if number < 0 else ""
    text = f"{abs(number):.{decimal_places}f}"
    integer, _, fraction = text.partition(".")
    grouped = _group_indian(integer)
    if fraction:
        grouped = f"{grouped}.{fraction}"
    return f"{sign}{grouped}"


def format_amount(amount: float, show_symbol: bool = True, decimal_places: int = 0) -> str:
    """Format an amount with the rupee sign, e.g. -₹1,23,456."""
    sign = "-" if amount < 0 else ""
    symbol = CURRENCY_SYMBOL if show_symbol else ""
    return f"{sign}{symbol}{format_indian_number(abs(amount), decimal_places)}"


def format_amount_for_pdf(amount: float, show_symbol: bool = True, decimal_places: int = 2) -> str:
    formatted = format_indian_number(amount, decimal_places)
    if not show_symbol:
        return formatted
    return f"{PDF_CURRENCY_SYMBOL}{formatted}"


def format_compact_amount(amount: float, show_symbol: bool = True) -> str:
    """Compact notation: K (thousand), L (lakh), Cr (crore)."""
    symbol = CURRENCY_SYMBOL if show_symbol else ""
    if amount >= 10_000_000:
        return f"{symbol}{amount / 10_000_000:.1f}Cr"
    if amount >= 100_000:
        return f"{symbol}{amount / 100_000:.1f}L"
    if amount >= 1_000:
        return f"{symbol}{amount / 1_000:.1f}K"
    return format_amount(amount, show_symbol=show_symbol)


def format_invoice_amount(amount: float) -> str:
    return format_amount(amount, decimal_places=2)


def format_for_input(amount: float) -> str:
    return f"{amount:.2f}"


def parse_amount(text: str) -> float:
    """Parse an amount string, ignoring currency symbols and separators."""
    cleaned = (
        text.replace(CURRENCY_SYMBOL, "")
        .replace(PDF_CURRENCY_SYMBOL, "")
        .replace("Rs", "")
        .replace(",", "")
        .strip()
    )
    try:
        return float(cleaned)
    except ValueError:
        return 0.0
