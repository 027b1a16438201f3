"""
Invoice Book

Search, filter, sort and summary operations over a list of invoices.
All functions return new lists and never modify their input.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from invoice_app.models import Invoice, InvoiceStatus

STATUS_ORDER = {status: index for index, status in enumerate(InvoiceStatus)}


class InvoiceSortBy(str, Enum):
    """Sort keys for invoice lists."""

    INVOICE_NUMBER = "invoice_number"
    CLIENT_NAME = "client_name"
    AMOUNT = "amount"
    DATE = "date"
    DUE_DATE = "due_date"
    STATUS = "status"


_SORT_KEYS = {
    InvoiceSortBy.INVOICE_NUMBER: lambda inv: inv.invoice_number,
    InvoiceSortBy.CLIENT_NAME: lambda inv: inv.client.name,
    InvoiceSortBy.AMOUNT: lambda inv: inv.total,
    InvoiceSortBy.DATE: lambda inv: inv.created_date,
    InvoiceSortBy.DUE_DATE: lambda inv: inv.due_date,
    InvoiceSortBy.STATUS: lambda inv: STATUS_ORDER[inv.status],
}


def _day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def search_invoices(invoices: list[Invoice], query: str) -> list[Invoice]:
    """Case-insensitive match on number, client name, client email or notes."""
    if not query:
        return list(invoices)

    needle = query.lower()
    return [
        inv for inv in invoices
        if needle in inv.invoice_number.lower()
        or needle in inv.client.name.lower()
        or needle in inv.client.email.lower()
        or needle in inv.notes.lower()
    ]


def filter_by_status(invoices: list[Invoice], statuses: Iterable[InvoiceStatus]) -> list[Invoice]:
    wanted = set(statuses)
    return [inv for inv in invoices if inv.status in wanted]


def filter_by_date_range(
    invoices: list[Invoice],
    start: date | datetime,
    end: date | datetime,
) -> list[Invoice]:
    """Keep invoices created between start and end, both days inclusive."""
    first, last = _day(start), _day(end)
    return [inv for inv in invoices if first <= inv.created_date.date() <= last]


def filter_by_amount_range(invoices: list[Invoice], min_amount: float, max_amount: float) -> list[Invoice]:
    return [inv for inv in invoices if min_amount <= inv.total <= max_amount]


def sort_invoices(
    invoices: list[Invoice],
    sort_by: InvoiceSortBy,
    ascending: bool = True,
) -> list[Invoice]:
    return sorted(invoices, key=_SORT_KEYS[InvoiceSortBy(sort_by)], reverse=not ascending)


def duplicate_invoice(
    invoice: Invoice,
    now: Optional[datetime] = None,
    payment_terms_days: int = 30,
) -> Invoice:
    """Copy an invoice as a new draft with a fresh id, number and due date."""
    now = now or datetime.now()
    return Invoice.create(
        client=invoice.client,
        items=list(invoice.items),
        due_date=now + timedelta(days=payment_terms_days),
        tax_percentage=invoice.tax_percentage,
        discount_amount=invoice.discount_amount,
        notes=invoice.notes,
        now=now,
    )


def invoice_summary(invoices: list[Invoice], now: Optional[datetime] = None) -> dict:
    """
    Summarize an invoice list.

    Paid amount counts PAID invoices; pending is everything else.
    """
    now = now or datetime.now()
    total = sum(inv.total for inv in invoices)
    paid = sum(inv.total for inv in invoices if inv.status == InvoiceStatus.PAID)

    return {
        "count": len(invoices),
        "total_amount": round(total, 2),
        "paid_amount": round(paid, 2),
        "pending_amount": round(total - paid, 2),
        "overdue_count": len([inv for inv in invoices if inv.overdue_at(now)]),
        "status_counts": {
            status.value: len([inv for inv in invoices if inv.status == status])
            for status in InvoiceStatus
        },
    }
