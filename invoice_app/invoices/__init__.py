"""Invoice documents and invoice list operations."""

from .invoice_book import (
    InvoiceSortBy,
    duplicate_invoice,
    filter_by_amount_range,
    filter_by_date_range,
    filter_by_status,
    invoice_summary,
    search_invoices,
    sort_invoices,
)
from .invoice_generator import InvoiceGenerator, generate_invoice_preview, pdf_safe

__all__ = [
    "InvoiceGenerator",
    "generate_invoice_preview",
    "pdf_safe",
    "InvoiceSortBy",
    "duplicate_invoice",
    "filter_by_amount_range",
    "filter_by_date_range",
    "filter_by_status",
    "invoice_summary",
    "search_invoices",
    "sort_invoices",
]
