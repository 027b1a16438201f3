from __future__ import annotations

from datetime import datetime

import pytest

from invoice_app.models import Client, InvoiceItem
from invoice_app.validation import ValidationErrorType, validate_invoice
from tests.conftest import NOW, make_invoice


def test_valid_invoice_passes():
    result = validate_invoice(make_invoice(), ["INV-0002"], now=NOW)
    assert result.is_valid
    assert result.sanitized_value is None


def test_invalid_number_is_reported_first():
    invoice = make_invoice(number="x", items=[])
    result = validate_invoice(invoice, [], now=NOW)
    assert result.error_type == ValidationErrorType.TOO_SHORT


def test_duplicate_number_ignores_case():
    result = validate_invoice(make_invoice(number="INV-0001"), ["inv-0001"], now=NOW)
    assert result.error_type == ValidationErrorType.DUPLICATE_FOUND


def test_client_name_is_validated():
    invoice = make_invoice(client=Client(id="c", name="X"))
    result = validate_invoice(invoice, [], now=NOW)
    assert result.error_type == ValidationErrorType.TOO_SHORT


def test_client_email_checked_only_when_present():
    assert validate_invoice(make_invoice(client=Client(id="c", name="Acme")), [], now=NOW).is_valid

    invoice = make_invoice(client=Client(id="c", name="Acme", email="acme@"))
    assert validate_invoice(invoice, [], now=NOW).error_type == ValidationErrorType.INVALID_FORMAT


def test_invoice_needs_items():
    result = validate_invoice(make_invoice(items=[]), [], now=NOW)
    assert result.error_type == ValidationErrorType.BUSINESS_RULE_VIOLATION
    assert result.error_message == "Invoice must have at least one item"


@pytest.mark.parametrize("item,error_type,message", [
    (InvoiceItem("Design", 0, 100.0), ValidationErrorType.INVALID_RANGE,
     "Item quantity must be greater than zero"),
    (InvoiceItem("Design", 1, -1.0), ValidationErrorType.INVALID_RANGE,
     "Item price cannot be negative"),
    (InvoiceItem("", 1, 100.0), ValidationErrorType.REQUIRED, None),
])
def test_item_checks(item, error_type, message):
    result = validate_invoice(make_invoice(items=[item]), [], now=NOW)
    assert result.error_type == error_type
    if message:
        assert result.error_message == message


def test_due_date_in_the_past_is_rejected():
    invoice = make_invoice(due=datetime(2026, 1, 14, 23, 59))
    result = validate_invoice(invoice, [], now=NOW)
    assert result.error_type == ValidationErrorType.PAST_DATE
    assert result.error_message == "Due date cannot be in the past"


def test_due_today_is_accepted():
    invoice = make_invoice(due=datetime(2026, 1, 15, 0, 0))
    assert validate_invoice(invoice, [], now=NOW).is_valid
