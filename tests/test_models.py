from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

import pytest

from invoice_app.models import (
    Client,
    CompanySettings,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    generate_invoice_number,
    parse_datetime,
)
from tests.conftest import make_invoice


def test_invoice_math():
    invoice = make_invoice(tax_percentage=18.0, discount_amount=500.0)
    assert invoice.subtotal == pytest.approx(4000.0)
    assert invoice.tax_amount == pytest.approx(720.0)
    assert invoice.total == pytest.approx(4220.0)


def test_overdue_rules():
    invoice = make_invoice(due=datetime(2026, 1, 10), status=InvoiceStatus.SENT)
    assert invoice.overdue_at(datetime(2026, 1, 13, 12, 0))
    assert invoice.days_past_due(datetime(2026, 1, 13, 12, 0)) == 3
    assert not invoice.overdue_at(datetime(2026, 1, 9))
    assert invoice.days_past_due(datetime(2026, 1, 9)) == 0

    paid = invoice.copy_with(status=InvoiceStatus.PAID)
    assert not paid.overdue_at(datetime(2026, 2, 1))


def test_create_assigns_id_number_and_dates():
    now = datetime(2026, 1, 15, 10, 30)
    client = Client.create("Acme")
    invoice = Invoice.create(client, [InvoiceItem("Work", 1, 10.0)], due_date=datetime(2026, 2, 14), now=now)

    assert invoice.created_date == now
    assert invoice.status == InvoiceStatus.DRAFT
    assert re.fullmatch(r"INV-20260115-\d{5}", invoice.invoice_number)
    assert invoice.id and invoice.id != client.id


def test_generate_invoice_number_uses_millisecond_tail():
    now = datetime(2026, 3, 1, 9, 0)
    millis = str(int(now.timestamp() * 1000))
    assert generate_invoice_number(now) == f"INV-20260301-{millis[8:]}"


def test_copy_with_keeps_identity():
    invoice = make_invoice()
    updated = invoice.copy_with(id="other", created_date=datetime(2000, 1, 1), notes="Updated")
    assert updated.id == invoice.id
    assert updated.created_date == invoice.created_date
    assert updated.notes == "Updated"
    assert updated == invoice


def test_invoice_dict_round_trip_uses_stored_keys():
    invoice = make_invoice(status=InvoiceStatus.PAID, notes="Thanks")
    data = invoice.to_dict()

    assert data["invoiceNumber"] == "INV-0001"
    assert data["status"] == "paid"
    assert data["createdDate"] == "2026-01-10T09:00:00"

    restored = Invoice.from_dict(data)
    assert restored.total == pytest.approx(invoice.total)
    assert restored.client.email == invoice.client.email
    assert restored.due_date == invoice.due_date


def test_invoice_from_dict_defaults():
    restored = Invoice.from_dict({
        "id": "x",
        "invoiceNumber": "INV-9",
        "createdDate": "2026-01-01T00:00:00",
        "dueDate": "2026-01-31T00:00:00",
        "status": "archived",
    })
    assert restored.status == InvoiceStatus.DRAFT
    assert restored.items == []
    assert restored.tax_percentage == 0.0
    assert restored.client.name == ""


@pytest.mark.parametrize("raw,expected", [
    ("PAID", InvoiceStatus.PAID),
    (" sent ", InvoiceStatus.SENT),
    ("Overdue", InvoiceStatus.OVERDUE),
    ("", InvoiceStatus.DRAFT),
    (None, InvoiceStatus.DRAFT),
])
def test_status_parse(raw, expected):
    assert InvoiceStatus.parse(raw) == expected


def test_status_display_name():
    assert [s.display_name for s in InvoiceStatus] == ["Draft", "Sent", "Paid", "Overdue"]


def test_client_identity_is_by_id():
    a = Client(id="1", name="Acme")
    b = Client(id="1", name="Renamed")
    assert a == b
    assert len({a, b}) == 1
    assert Client.empty().name == ""
    assert a.copy_with(id="2", name="New").id == "1"


def test_company_settings_from_partial_dict():
    settings = CompanySettings.from_dict({"name": "Sharma Enterprises", "bankIFSC": "SBIN0001234"})
    assert settings.name == "Sharma Enterprises"
    assert settings.bank_ifsc == "SBIN0001234"
    assert settings.bank_name == CompanySettings.default().bank_name
    assert settings.logo_path is None
    assert CompanySettings.from_dict(settings.to_dict()) == settings


@pytest.mark.parametrize("raw,aware", [
    ("2026-01-10T09:00:00Z", datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)),
    ("2026-01-10T09:00:00.000Z", datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)),
    ("2026-01-10T14:30:00+05:30", datetime(2026, 1, 10, 14, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))),
])
def test_parse_datetime_converts_offsets_to_naive_local(raw, aware):
    parsed = parse_datetime(raw)
    assert parsed.tzinfo is None
    assert parsed == aware.astimezone().replace(tzinfo=None)


def test_parse_datetime_keeps_naive_values():
    assert parse_datetime("2026-01-10T09:00:00") == datetime(2026, 1, 10, 9, 0)
    assert parse_datetime(None, default=datetime(2000, 1, 1)) == datetime(2000, 1, 1)


def test_invoice_from_dict_with_utc_dates_compares_with_now():
    data = make_invoice().to_dict()
    data["dueDate"] = "2026-02-10T00:00:00Z"
    restored = Invoice.from_dict(data)

    assert restored.due_date.tzinfo is None
    assert restored.overdue_at(datetime(2026, 3, 1)) is True


@pytest.mark.parametrize("data,message", [
    ({"invoiceNumber": "X-1"}, "missing id"),
    ({"id": "x"}, "missing invoiceNumber"),
    (["not", "a", "record"], "must be an object"),
    ({"id": "x", "invoiceNumber": "X-1", "client": "Acme"}, "client must be an object"),
    ({"id": "x", "invoiceNumber": "X-1", "items": ["Hosting"]}, "item must be an object"),
])
def test_invoice_from_dict_rejects_malformed_records(data, message):
    with pytest.raises(ValueError, match=message):
        Invoice.from_dict(data)
