"""Domain records module."""

from .records import (
    Client,
    CompanySettings,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    generate_invoice_number,
    parse_datetime,
)

__all__ = [
    "Client",
    "CompanySettings",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "generate_invoice_number",
    "parse_datetime",
]
