"""Formatting helpers."""

from .currency import (
    CURRENCY_CODE,
    CURRENCY_SYMBOL,
    PDF_CURRENCY_SYMBOL,
    format_amount,
    format_amount_for_pdf,
    format_compact_amount,
    format_for_input,
    format_indian_number,
    format_invoice_amount,
    parse_amount,
)

__all__ = [
    "CURRENCY_CODE",
    "CURRENCY_SYMBOL",
    "PDF_CURRENCY_SYMBOL",
    "format_amount",
    "format_amount_for_pdf",
    "format_compact_amount",
    "format_for_input",
    "format_indian_number",
    "format_invoice_amount",
    "parse_amount",
]
