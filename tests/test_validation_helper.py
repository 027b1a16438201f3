from __future__ import annotations

from datetime import date, datetime

import pytest

from invoice_app.validation import (
    ValidationErrorType,
    ValidationHelper,
    ValidationResult,
    ValidationRule,
    get_validator,
)


@pytest.fixture
def validator() -> ValidationHelper:
    return ValidationHelper()


# ---------------------------------------------------------------------------
# Pipeline basics
# ---------------------------------------------------------------------------

def test_unknown_field_is_invalid(validator):
    result = validator.validate("anything", "favouriteColour")
    assert not result.is_valid
    assert result.error_type == ValidationErrorType.INVALID
    assert "favouriteColour" in result.error_message


@pytest.mark.parametrize("value", [None, "", "   "])
def test_required_field_blank_uses_custom_message(validator, value):
    result = validator.validate(value, "clientName")
    assert not result.is_valid
    assert result.error_type == ValidationErrorType.REQUIRED
    assert result.error_message.startswith("Client name must be 2-100 characters")


@pytest.mark.parametrize("value", [None, "", "  \t "])
def test_optional_field_blank_is_valid_without_value(validator, value):
    result = validator.validate(value, "email")
    assert result.is_valid
    assert result.sanitized_value is None


def test_custom_rule_without_sanitize_returns_trimmed_value(validator):
    rule = ValidationRule(field="clientName", required=True, min_length=2, sanitize=False)
    result = validator.validate("  acme traders  ", "clientName", custom_rule=rule)
    assert result.is_valid
    assert result.sanitized_value == "acme traders"


# ---------------------------------------------------------------------------
# Security
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("value", [
    "<script>alert(1)</script>",
    "javascript:alert(1)",
    "Click onload=steal()",
    "drop table invoices",
    "Bad\x00byte",
])
def test_threats_are_rejected_with_reduced_confidence(validator, value):
    result = validator.validate(value, "description")
    assert not result.is_valid
    assert result.error_type == ValidationErrorType.SECURITY_THREAT
    assert result.confidence == pytest.approx(0.9)


def test_sql_verb_followed_by_space_is_flagged_even_in_plain_text(validator):
    result = validator.validate("Please select the blue one", "description")
    assert result.error_type == ValidationErrorType.SECURITY_THREAT


def test_email_with_consecutive_dots(validator):
    result = validator.validate("john..doe@example.com", "email")
    assert result.error_type == ValidationErrorType.INVALID_FORMAT
    assert result.error_message == "Email contains invalid consecutive dots"


def test_amount_with_leading_zero(validator):
    result = validator.validate("0123", "amount")
    assert result.error_type == ValidationErrorType.INVALID_FORMAT
    assert "cannot start with zero" in result.error_message


# ---------------------------------------------------------------------------
# Length, pattern and business rules
# ---------------------------------------------------------------------------

def test_invoice_number_too_short(validator):
    result = validator.validate("AB", "invoiceNumber")
    assert result.error_type == ValidationErrorType.TOO_SHORT


def test_address_too_long(validator):
    result = validator.validate("a" * 501, "address")
    assert result.error_type == ValidationErrorType.TOO_LONG


@pytest.mark.parametrize("field,value", [
    ("clientName", "John2"),
    ("invoiceNumber", "inv-001"),
    ("amount", "12.345"),
    ("percentage", "100"),
    ("email", "a@b"),
    ("phone", "123-45"),
    ("ifscCode", "SBIN1001234"),
    ("bankAccount", "abc12345"),
])
def test_pattern_mismatch(validator, field, value):
    result = validator.validate(value, field)
    assert not result.is_valid
    assert result.error_type == ValidationErrorType.INVALID_FORMAT


def test_forbidden_invoice_number(validator):
    result = validator.validate("TEST", "invoiceNumber")
    assert result.error_type == ValidationErrorType.BUSINESS_RULE_VIOLATION
    assert '"TEST"' in result.error_message


@pytest.mark.parametrize("value,message", [
    ("0", "Amount must be greater than zero"),
    ("1000000000", "Amount is too large (maximum: 999,999,999.99)"),
])
def test_amount_range(validator, value, message):
    result = validator.validate(value, "amount")
    assert result.error_type == ValidationErrorType.INVALID_RANGE
    assert result.error_message == message


@pytest.mark.parametrize("value", ["0.50", "1", "999999999.99"])
def test_amount_accepts_valid_values(validator, value):
    assert validator.validate(value, "amount").is_valid


def test_percentage_upper_bound(validator):
    assert validator.validate("99.99", "percentage").is_valid
    assert validator.validate("0", "percentage").is_valid


def test_phone_digit_count(validator):
    result = validator.validate("+1234567890123456", "phone")
    assert result.error_type == ValidationErrorType.INVALID_FORMAT
    assert result.error_message == "Phone number must contain 7-15 digits"
    assert validator.validate("+1 (555) 123", "phone").is_valid


# ---------------------------------------------------------------------------
# Sanitization
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("field,value,expected", [
    ("email", "User@Example.COM", "user@example.com"),
    ("clientName", "  john   SMITH ", "John Smith"),
    ("companyName", "sharma & sons", "Sharma & Sons"),
    ("description", "Web  design\n work", "Web design work"),
    ("address", "12 Main St\n\n\nCity", "12 Main St\nCity"),
    ("amount", "1500.50", "1500.50"),
    ("ifscCode", "SBIN0001234", "SBIN0001234"),
])
def test_validate_returns_sanitized_value(validator, field, value, expected):
    result = validator.validate(value, field)
    assert result.is_valid, result.error_message
    assert result.sanitized_value == expected


def test_sanitize_field_specific_rules(validator):
    assert validator.sanitize("Example.COM", "website") == "https://example.com"
    assert validator.sanitize("http://x.io", "website") == "http://x.io"
    assert validator.sanitize("+91 98-76 (54) ext", "phone") == "+91 98-76 (54) "
    assert validator.sanitize("Rs. 1,500.00", "amount") == ".1500.00"
    assert validator.sanitize("inv-1", "invoiceNumber") == "INV-1"
    assert validator.sanitize(" a\x07b ", "other") == "ab"


# ---------------------------------------------------------------------------
# Input restriction
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("field,value,expected", [
    ("amount", "123.456", "123.45"),
    ("amount", "12a3", "12"),
    ("percentage", "123.4", "123"),
    ("percentage", "9.999", "9.99"),
    ("phone", "+1 (555) abc-1234", "+1 (555) -1234"),
    ("invoiceNumber", "inv-00#1", "INV-001"),
    ("email", "John.Doe@Mail.com!", "john.doe@mail.com"),
    ("clientName", "R2-D2 & Co.", "RD & Co."),
])
def test_restrict_input(validator, field, value, expected):
    assert validator.restrict_input(value, field) == expected


def test_restrict_input_length_limits(validator):
    assert len(validator.restrict_input("x" * 1500, "notes")) == 1000
    assert len(validator.restrict_input("x" * 300, "somethingElse")) == 255
    assert len(validator.restrict_input("9" * 20, "amount")) == 12


# ---------------------------------------------------------------------------
# Dates, forms and uniqueness
# ---------------------------------------------------------------------------

NOW = datetime(2026, 1, 15, 10, 30)


def test_validate_date_missing(validator):
    result = validator.validate_date(None, "Due date")
    assert result.error_type == ValidationErrorType.REQUIRED
    assert result.error_message == "Due date is required"


def test_validate_date_compares_calendar_days(validator):
    earlier_today = datetime(2026, 1, 15, 0, 1)
    assert validator.validate_date(earlier_today, "Due date", allow_past=False, now=NOW).is_valid

    yesterday = validator.validate_date(date(2026, 1, 14), "Due date", allow_past=False, now=NOW)
    assert yesterday.error_type == ValidationErrorType.PAST_DATE

    tomorrow = validator.validate_date(date(2026, 1, 16), "Issue date", allow_future=False, now=NOW)
    assert tomorrow.error_type == ValidationErrorType.FUTURE_DATE


def test_validate_date_bounds(validator):
    result = validator.validate_date(date(2026, 1, 1), "Due date", min_date=date(2026, 2, 1), now=NOW)
    assert result.error_type == ValidationErrorType.INVALID_RANGE
    assert result.error_message == "Due date must be after 1/2/2026"

    result = validator.validate_date(date(2026, 3, 1), "Due date", max_date=datetime(2026, 2, 28), now=NOW)
    assert result.error_message == "Due date must be before 28/2/2026"


def test_validate_form(validator):
    results = validator.validate_form({
        "clientName": "acme",
        "email": "bad-email",
        "phone": None,
    })
    assert results["clientName"].is_valid
    assert results["clientName"].sanitized_value == "Acme"
    assert not results["email"].is_valid
    assert results["phone"].is_valid


def test_validate_unique(validator):
    result = validator.validate_unique("inv-001", "Invoice number", ["INV-001", "INV-002"])
    assert result.error_type == ValidationErrorType.DUPLICATE_FOUND
    assert result.error_message == 'Invoice number "inv-001" already exists'

    assert validator.validate_unique("INV-003", "Invoice number", ["INV-001"]).is_valid
    assert validator.validate_unique("  ", "Invoice number", ["INV-001"]).sanitized_value is None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def test_convenience_checks(validator):
    assert validator.is_valid_email("a.b@c.io")
    assert not validator.is_valid_email("nope")
    assert validator.is_valid_phone("98765 43210")
    assert not validator.is_valid_amount("-5")


def test_format_helpers():
    assert ValidationHelper.format_phone_number("555-123-4567") == "(555) 123-4567"
    assert ValidationHelper.format_phone_number("12345") == "12345"
    assert ValidationHelper.format_amount("12.5") == "12.50"
    assert ValidationHelper.format_amount("abc") == "abc"


def test_result_to_dict():
    result = ValidationResult.invalid("bad", ValidationErrorType.INVALID_RANGE, confidence=0.5)
    assert result.to_dict() == {
        "is_valid": False,
        "error_message": "bad",
        "error_type": "invalid_range",
        "sanitized_value": None,
        "confidence": 0.5,
    }


def test_get_validator_is_shared():
    assert get_validator() is get_validator()
