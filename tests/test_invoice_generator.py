from __future__ import annotations

import re

import pytest

from invoice_app.invoices import InvoiceGenerator, generate_invoice_preview, pdf_safe
from invoice_app.models import InvoiceItem, InvoiceStatus
from tests.conftest import make_invoice


@pytest.fixture
def generator(tmp_path):
    return InvoiceGenerator(tmp_path / "invoices")


def test_generate_invoice_writes_pdf(generator, sample_invoice, company_settings):
    pdf_bytes, filename = generator.generate_invoice(sample_invoice, company_settings)

    assert pdf_bytes.startswith(b"%PDF")
    assert re.fullmatch(r"invoice_INV-0001_\d+\.pdf", filename)
    written = generator.output_dir / filename
    assert written.read_bytes() == pdf_bytes


def test_generate_invoice_to_explicit_path(generator, sample_invoice, tmp_path):
    target = tmp_path / "custom" / "acme.pdf"
    pdf_bytes, filename = generator.generate_invoice(sample_invoice, output_path=target)

    assert filename == "acme.pdf"
    assert target.read_bytes() == pdf_bytes


def test_file_name_replaces_unsafe_characters(generator):
    invoice = make_invoice(number="INV/2026 #7")
    assert re.fullmatch(r"invoice_INV_2026__7_\d+\.pdf", generator._file_name(invoice))


def test_generate_handles_unicode_and_markup(generator, company_settings):
    invoice = make_invoice(
        items=[InvoiceItem(description="Design <b>&</b> build ✓", quantity=1, price=100.0)],
        notes="Pay via UPI 🙏\nThanks",
        discount_amount=10.0,
    )
    pdf_bytes, _ = generator.generate_invoice(invoice, company_settings)
    assert pdf_bytes.startswith(b"%PDF")


@pytest.mark.parametrize("changes,message", [
    ({"number": ""}, "Invoice number cannot be empty"),
    ({"items": []}, "Invoice must have at least one item"),
    ({"items": [InvoiceItem("Free sample", 1, 0.0)]}, "Invoice total must be greater than zero"),
])
def test_generate_rejects_incomplete_invoices(generator, changes, message):
    with pytest.raises(ValueError, match=message):
        generator.generate_invoice(make_invoice(**changes))
    assert list(generator.output_dir.iterdir()) == []


@pytest.mark.parametrize("text,expected", [
    ("Plain text", "Plain text"),
    ("  Tom & Jerry <Ltd>  ", "Tom &amp; Jerry &lt;Ltd&gt;"),
    ("Line one\nLine two", "Line one<br/>Line two"),
    ("Price ₹500", "Price  500"),
    ("Café", "Café"),
    (None, ""),
])
def test_pdf_safe(text, expected):
    assert pdf_safe(text) == expected


def test_preview():
    invoice = make_invoice(status=InvoiceStatus.SENT)
    assert generate_invoice_preview(invoice).splitlines() == [
        "Invoice #INV-0001",
        "To: Acme Traders",
        "Items: 2",
        "Total: Rs.4,720.00",
        "Due: 10/02/2026",
        "Status: Sent",
    ]
