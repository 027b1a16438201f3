"""
Invoice Rules

Whole-invoice checks applied before an invoice is stored or imported.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from invoice_app.models import Invoice
from invoice_app.validation.validation_helper import (
    ValidationErrorType,
    ValidationHelper,
    ValidationResult,
    get_validator,
)


def validate_invoice(
    invoice: Invoice,
    existing_numbers: list[str],
    now: Optional[datetime] = None,
    validator: Optional[ValidationHelper] = None,
) -> ValidationResult:
    """
    Validate an invoice, returning the first failing result.

    existing_numbers holds the invoice numbers of every other stored
    invoice; the invoice's own number must not be in it.
    """
    validator = validator or get_validator()

    result = validator.validate(invoice.invoice_number, "invoiceNumber")
    if not result.is_valid:
        return result

    result = validator.validate_unique(invoice.invoice_number, "Invoice number", existing_numbers)
    if not result.is_valid:
        return result

    result = validator.validate(invoice.client.name, "clientName")
    if not result.is_valid:
        return result

    if invoice.client.email:
        result = validator.validate(invoice.client.email, "email")
        if not result.is_valid:
            return result

    if not invoice.items:
        return ValidationResult.invalid(
            "Invoice must have at least one item",
            ValidationErrorType.BUSINESS_RULE_VIOLATION,
        )

    for item in invoice.items:
        result = validator.validate(item.description, "description")
        if not result.is_valid:
            return result
        if item.quantity <= 0:
            return ValidationResult.invalid(
                "Item quantity must be greater than zero",
                ValidationErrorType.INVALID_RANGE,
            )
        if item.price < 0:
            return ValidationResult.invalid(
                "Item price cannot be negative",
                ValidationErrorType.INVALID_RANGE,
            )

    result = validator.validate_date(invoice.due_date, "Due date", allow_past=False, now=now)
    if not result.is_valid:
        return result

    return ValidationResult.valid(None)
