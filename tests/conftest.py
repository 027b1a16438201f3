# tests/conftest.py
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import pytest

from invoice_app.models import Client, CompanySettings, Invoice, InvoiceItem, InvoiceStatus

NOW = datetime(2026, 1, 15, 10, 30)


def make_invoice(
    number: str = "INV-0001",
    client: Optional[Client] = None,
    items: Optional[list[InvoiceItem]] = None,
    created: datetime = datetime(2026, 1, 10, 9, 0),
    due: datetime = datetime(2026, 2, 10),
    status: InvoiceStatus = InvoiceStatus.DRAFT,
    tax_percentage: float = 18.0,
    discount_amount: float = 0.0,
    notes: str = "",
    invoice_id: Optional[str] = None,
) -> Invoice:
    """
    Helper to construct an Invoice with fixed dates for deterministic tests.
    """
    return Invoice(
        id=invoice_id or f"id-{number}",
        invoice_number=number,
        client=client or Client(id="c-1", name="Acme Traders", email="billing@acme.in", phone="9876543210"),
        items=items if items is not None else [
            InvoiceItem(description="Web design", quantity=2, price=1500.0),
            InvoiceItem(description="Hosting", quantity=1, price=1000.0),
        ],
        created_date=created,
        due_date=due,
        tax_percentage=tax_percentage,
        discount_amount=discount_amount,
        status=status,
        notes=notes,
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def sample_client() -> Client:
    return Client(
        id="c-1",
        name="Acme Traders",
        email="billing@acme.in",
        address="12 MG Road, Bengaluru",
        phone="9876543210",
    )


@pytest.fixture
def sample_invoice(sample_client) -> Invoice:
    return make_invoice(client=sample_client)


@pytest.fixture
def sample_invoices() -> list[Invoice]:
    """Four invoices across statuses, clients and creation days."""
    globex = Client(id="c-2", name="Globex Corp", email="accounts@globex.com")
    return [
        make_invoice("INV-0001", created=datetime(2026, 1, 1, 8, 0), status=InvoiceStatus.PAID),
        make_invoice("INV-0002", created=datetime(2026, 1, 5, 23, 59), status=InvoiceStatus.SENT,
                     due=datetime(2026, 1, 10)),
        make_invoice("INV-0003", client=globex, created=datetime(2026, 1, 10, 12, 0),
                     items=[InvoiceItem(description="Consulting", quantity=10, price=200.0)],
                     tax_percentage=0.0, notes="Quarterly retainer"),
        make_invoice("INV-0004", client=globex, created=datetime(2026, 1, 14, 0, 0),
                     status=InvoiceStatus.OVERDUE, due=datetime(2026, 1, 14)),
    ]


@pytest.fixture
def company_settings() -> CompanySettings:
    return CompanySettings(
        name="Sharma Enterprises",
        address="45 Park Street, Kolkata",
        phone="+91 9830012345",
        email="info@sharma.co.in",
        bank_name="State Bank of India",
        bank_account="30012345678",
        bank_ifsc="SBIN0001234",
    )


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """
    Temporary data directory used by the store and the web API.
    """
    return tmp_path / "data"
