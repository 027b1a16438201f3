"""
Field Validation

Rule-driven validation and sanitization of form inputs.

Validation pipeline (first failure wins):
1. Required check (blank optional fields are valid and skip the rest)
2. Security threats (markup, script URLs, SQL verbs, control characters)
3. Length limits
4. Field pattern
5. Business rules (forbidden values, numeric ranges, email/phone structure)
6. Sanitization of the accepted value
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Callable, Optional, Union

from invoice_app.config.security_config import CONTROL_CHARS, THREAT_PATTERNS


class ValidationLevel(str, Enum):
    BASIC = "basic"
    STRICT = "strict"
    ENTERPRISE = "enterprise"


class ValidationErrorType(str, Enum):
    """Why a value was rejected."""

    REQUIRED = "required"
    INVALID = "invalid"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    INVALID_FORMAT = "invalid_format"
    DUPLICATE_FOUND = "duplicate_found"
    BUSINESS_RULE_VIOLATION = "business_rule_violation"
    SECURITY_THREAT = "security_threat"
    INVALID_RANGE = "invalid_range"
    FUTURE_DATE = "future_date"
    PAST_DATE = "past_date"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a single value."""

    is_valid: bool
    error_message: Optional[str] = None
    error_type: Optional[ValidationErrorType] = None
    sanitized_value: Optional[str] = None
    confidence: float = 1.0

    @classmethod
    def valid(cls, sanitized_value: Optional[str] = None) -> "ValidationResult":
        return cls(is_valid=True, sanitized_value=sanitized_value)

    @classmethod
    def invalid(
        cls,
        message: str,
        error_type: ValidationErrorType,
        confidence: float = 1.0,
    ) -> "ValidationResult":
        return cls(
            is_valid=False,
            error_message=message,
            error_type=error_type,
            confidence=confidence,
        )

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "error_message": self.error_message,
            "error_type": self.error_type.value if self.error_type else None,
            "sanitized_value": self.sanitized_value,
            "confidence": self.confidence,
        }


class ValidationFailedError(ValueError):
    """Raised when data must be rejected; carries the failing result."""

    def __init__(self, message: str, result: Optional[ValidationResult] = None):
        super().__init__(message)
        self.result = result


@dataclass(frozen=True)
class ValidationRule:
    """Constraints for one form field."""

    field: str
    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[re.Pattern] = None
    custom_message: Optional[str] = None
    sanitize: bool = True
    level: ValidationLevel = ValidationLevel.BASIC
    forbidden_values: Optional[Callable[[], list[str]]] = None


# =============================================================================
# Patterns and Standard Rules
# =============================================================================

PATTERNS: dict[str, re.Pattern] = {
    "email": re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"),
    "phone": re.compile(r"^\+?[\d\s\-\(\)]{7,20}$"),
    "invoiceNumber": re.compile(r"^[A-Z0-9\-]{3,20}$"),
    "clientName": re.compile(r"^[a-zA-Z\s\.\,\&]{2,100}$"),
    "companyName": re.compile(r"^[a-zA-Z0-9\s\.\,\&\-]{2,100}$"),
    "address": re.compile(r"^[a-zA-Z0-9\s\.\,\#\-\n]{5,500}$"),
    "amount": re.compile(r"^\d+(\.\d{1,2})?$"),
    "percentage": re.compile(r"^\d{1,2}(\.\d{1,2})?$"),
    "bankAccount": re.compile(r"^[A-Z0-9]{8,20}$"),
    "ifscCode": re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$"),
    "description": re.compile(r"^[a-zA-Z0-9\s\.\,\-\(\)]{1,500}$"),
    "notes": re.compile(r"^[a-zA-Z0-9\s\.\,\-\(\)\n]{0,1000}$"),
    "website": re.compile(
        r"^https?://(www\.)?[-a-zA-Z0-9@:%._\+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
        r"([-a-zA-Z0-9()@:%_\+.~#?&/=]*)$"
    ),
}

COMMON_FORBIDDEN_VALUES = frozenset({
    "admin", "root", "null", "undefined", "test", "demo", "sample",
    "example", "temp", "temporary", "delete", "remove", "system",
})

MAX_AMOUNT = 999_999_999.99
MAX_PERCENTAGE = 99.99

STANDARD_RULES: dict[str, ValidationRule] = {
    "clientName": ValidationRule(
        field="clientName",
        required=True,
        min_length=2,
        max_length=100,
        pattern=PATTERNS["clientName"],
        custom_message="Client name must be 2-100 characters with letters, spaces, and basic punctuation only",
    ),
    "companyName": ValidationRule(
        field="companyName",
        required=True,
        min_length=2,
        max_length=100,
        pattern=PATTERNS["companyName"],
        custom_message="Company name must be 2-100 characters with letters, numbers, spaces, and basic punctuation only",
    ),
    "email": ValidationRule(
        field="email",
        pattern=PATTERNS["email"],
        custom_message="Please enter a valid email address",
        level=ValidationLevel.STRICT,
    ),
    "phone": ValidationRule(
        field="phone",
        pattern=PATTERNS["phone"],
        custom_message="Please enter a valid phone number",
    ),
    "address": ValidationRule(
        field="address",
        min_length=5,
        max_length=500,
        pattern=PATTERNS["address"],
        custom_message="Address must be 5-500 characters",
    ),
    "invoiceNumber": ValidationRule(
        field="invoiceNumber",
        required=True,
        min_length=3,
        max_length=20,
        pattern=PATTERNS["invoiceNumber"],
        custom_message="Invoice number must be 3-20 characters with letters, numbers, and hyphens only",
        forbidden_values=lambda: sorted(COMMON_FORBIDDEN_VALUES),
    ),
    "amount": ValidationRule(
        field="amount",
        required=True,
        pattern=PATTERNS["amount"],
        custom_message="Please enter a valid amount (e.g., 100.50)",
    ),
    "percentage": ValidationRule(
        field="percentage",
        pattern=PATTERNS["percentage"],
        custom_message="Please enter a valid percentage (0-99.99)",
    ),
    "description": ValidationRule(
        field="description",
        required=True,
        min_length=1,
        max_length=500,
        pattern=PATTERNS["description"],
        custom_message="Description must be 1-500 characters",
    ),
    "notes": ValidationRule(
        field="notes",
        max_length=1000,
        pattern=PATTERNS["notes"],
        custom_message="Notes must be less than 1000 characters",
    ),
    "bankAccount": ValidationRule(
        field="bankAccount",
        min_length=8,
        max_length=20,
        pattern=PATTERNS["bankAccount"],
        custom_message="Bank account must be 8-20 characters with letters and numbers only",
    ),
    "ifscCode": ValidationRule(
        field="ifscCode",
        pattern=PATTERNS["ifscCode"],
        custom_message="IFSC code must be in format: ABCD0123456",
    ),
    "website": ValidationRule(
        field="website",
        pattern=PATTERNS["website"],
        custom_message="Please enter a valid website URL",
    ),
}

# field -> (keep pattern, prefix mode, max length, case)
# Prefix mode keeps the leading match of the pattern; otherwise every
# character matching the pattern is kept.
_INPUT_FILTERS: dict[str, tuple[Optional[re.Pattern], bool, int, Optional[str]]] = {
    "amount": (re.compile(r"\d*\.?\d{0,2}"), True, 12, None),
    "percentage": (re.compile(r"\d{0,2}\.?\d{0,2}"), True, 5, None),
    "phone": (re.compile(r"[\d\+\-\(\)\s]"), False, 20, None),
    "invoiceNumber": (re.compile(r"[A-Z0-9\-]"), False, 20, "upper"),
    "clientName": (re.compile(r"[a-zA-Z\s\.\,\&]"), False, 100, None),
    "companyName": (re.compile(r"[a-zA-Z\s\.\,\&]"), False, 100, None),
    "email": (re.compile(r"[a-zA-Z0-9@\.\-_]"), False, 254, "lower"),
    "description": (None, False, 500, None),
    "notes": (None, False, 1000, None),
    "address": (None, False, 500, None),
}
_DEFAULT_INPUT_LIMIT = 255

DateLike = Union[date, datetime]


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())


def _format_date(value: DateLike) -> str:
    return f"{value.day}/{value.month}/{value.year}"


# =============================================================================
# Validation Helper
# =============================================================================

class ValidationHelper:
    """Validates and sanitizes form values against field rules."""

    def __init__(self, rules: Optional[dict[str, ValidationRule]] = None):
        self.rules = dict(STANDARD_RULES)
        if rules:
            self.rules.update(rules)

    def validate(
        self,
        value: Optional[str],
        field_name: str,
        custom_rule: Optional[ValidationRule] = None,
    ) -> ValidationResult:
        """Validate a value for a field, returning the sanitized value on success."""
        rule = custom_rule or self.rules.get(field_name)
        if rule is None:
            return ValidationResult.invalid(
                f"No validation rule found for field: {field_name}",
                ValidationErrorType.INVALID,
            )

        is_blank = value is None or not value.strip()
        if rule.required and is_blank:
            return ValidationResult.invalid(
                rule.custom_message or f"{rule.field} is required",
                ValidationErrorType.REQUIRED,
            )
        if is_blank:
            return ValidationResult.valid(None)

        trimmed = value.strip()

        for check in (
            self._validate_security,
            self._validate_length,
            self._validate_pattern,
            self._validate_business_rules,
        ):
            result = check(trimmed, rule)
            if not result.is_valid:
                return result

        sanitized = self.sanitize(trimmed, field_name) if rule.sanitize else trimmed
        return ValidationResult.valid(sanitized)

    def _validate_security(self, value: str, rule: ValidationRule) -> ValidationResult:
        for pattern in THREAT_PATTERNS:
            if pattern.search(value):
                return ValidationResult.invalid(
                    "Input contains potentially dangerous content",
                    ValidationErrorType.SECURITY_THREAT,
                    confidence=0.9,
                )

        if rule.field == "email" and ".." in value:
            return ValidationResult.invalid(
                "Email contains invalid consecutive dots",
                ValidationErrorType.INVALID_FORMAT,
            )

        if (
            rule.field == "amount"
            and value.startswith("0")
            and len(value) > 1
            and not value.startswith("0.")
        ):
            return ValidationResult.invalid(
                "Amount cannot start with zero unless it's a decimal",
                ValidationErrorType.INVALID_FORMAT,
            )

        return ValidationResult.valid()

    def _validate_length(self, value: str, rule: ValidationRule) -> ValidationResult:
        if rule.min_length is not None and len(value) < rule.min_length:
            return ValidationResult.invalid(
                rule.custom_message or f"{rule.field} must be at least {rule.min_length} characters",
                ValidationErrorType.TOO_SHORT,
            )
        if rule.max_length is not None and len(value) > rule.max_length:
            return ValidationResult.invalid(
                rule.custom_message or f"{rule.field} must be no more than {rule.max_length} characters",
                ValidationErrorType.TOO_LONG,
            )
        return ValidationResult.valid()

    def _validate_pattern(self, value: str, rule: ValidationRule) -> ValidationResult:
        if rule.pattern is not None and not rule.pattern.search(value):
            return ValidationResult.invalid(
                rule.custom_message or f"{rule.field} format is invalid",
                ValidationErrorType.INVALID_FORMAT,
            )
        return ValidationResult.valid()

    def _validate_business_rules(self, value: str, rule: ValidationRule) -> ValidationResult:
        if rule.forbidden_values is not None:
            lowered = value.lower()
            if any(f.lower() == lowered for f in rule.forbidden_values()):
                return ValidationResult.invalid(
                    f'{rule.field} cannot be "{value}" - please choose a different value',
                    ValidationErrorType.BUSINESS_RULE_VIOLATION,
                )

        if rule.field == "amount":
            amount = _to_float(value)
            if amount is not None:
                if amount < 0:
                    return ValidationResult.invalid(
                        "Amount cannot be negative", ValidationErrorType.INVALID_RANGE
                    )
                if amount > MAX_AMOUNT:
                    return ValidationResult.invalid(
                        "Amount is too large (maximum: 999,999,999.99)",
                        ValidationErrorType.INVALID_RANGE,
                    )
                if amount == 0:
                    return ValidationResult.invalid(
                        "Amount must be greater than zero", ValidationErrorType.INVALID_RANGE
                    )

        elif rule.field == "percentage":
            percentage = _to_float(value)
            if percentage is not None and not 0 <= percentage <= MAX_PERCENTAGE:
                return ValidationResult.invalid(
                    "Percentage must be between 0 and 99.99",
                    ValidationErrorType.INVALID_RANGE,
                )

        elif rule.field == "email":
            parts = value.split("@")
            if len(parts) != 2:
                return ValidationResult.invalid(
                    "Email must contain exactly one @ symbol",
                    ValidationErrorType.INVALID_FORMAT,
                )
            if len(parts[1].split(".")) < 2:
                return ValidationResult.invalid(
                    "Email domain must contain at least one dot",
                    ValidationErrorType.INVALID_FORMAT,
                )

        elif rule.field == "phone":
            digits = re.sub(r"\D", "", value)
            if not 7 <= len(digits) <= 15:
                return ValidationResult.invalid(
                    "Phone number must contain 7-15 digits",
                    ValidationErrorType.INVALID_FORMAT,
                )

        return ValidationResult.valid()

    # -------------------------------------------------------------------------
    # Sanitization
    # -------------------------------------------------------------------------

    def sanitize(self, value: str, field_name: str) -> str:
        """Normalize a value for storage according to its field."""
        sanitized = CONTROL_CHARS.sub("", value.strip())

        if field_name == "email":
            sanitized = sanitized.lower()
        elif field_name == "phone":
            sanitized = re.sub(r"[^\d\+\-\(\)\s]", "", sanitized)
        elif field_name == "amount":
            sanitized = re.sub(r"[^\d\.]", "", sanitized)
        elif field_name == "invoiceNumber":
            sanitized = sanitized.upper()
        elif field_name in ("clientName", "companyName"):
            sanitized = " ".join(
                word[0].upper() + word[1:].lower()
                for word in sanitized.split(" ")
                if word
            )
        elif field_name == "website":
            sanitized = sanitized.lower()
            if not sanitized.startswith(("http://", "https://")):
                sanitized = f"https://{sanitized}"
        elif field_name in ("description", "notes"):
            sanitized = re.sub(r"\s+", " ", sanitized)
        elif field_name == "address":
            sanitized = re.sub(r"\n+", "\n", sanitized)
            sanitized = re.sub(r" +", " ", sanitized)

        return sanitized

    def restrict_input(self, value: str, field_name: str) -> str:
        """Drop characters a field never accepts and cut to its length limit."""
        keep, prefix_only, limit, case = _INPUT_FILTERS.get(
            field_name, (None, False, _DEFAULT_INPUT_LIMIT, None)
        )
        if case == "upper":
            value = value.upper()
        elif case == "lower":
            value = value.lower()

        if keep is not None:
            if prefix_only:
                match = keep.match(value)
                value = match.group(0) if match else ""
            else:
                value = "".join(keep.findall(value))

        return value[:limit]

    # -------------------------------------------------------------------------
    # Dates, Forms, Uniqueness
    # -------------------------------------------------------------------------

    def validate_date(
        self,
        value: Optional[DateLike],
        field_name: str,
        allow_past: bool = True,
        allow_future: bool = True,
        min_date: Optional[DateLike] = None,
        max_date: Optional[DateLike] = None,
        now: Optional[datetime] = None,
    ) -> ValidationResult:
        """Validate a date against day-level past/future rules and bounds."""
        if value is None:
            return ValidationResult.invalid(
                f"{field_name} is required", ValidationErrorType.REQUIRED
            )

        today = (now or datetime.now()).date()
        moment = _as_datetime(value)
        day = moment.date()

        if not allow_past and day < today:
            return ValidationResult.invalid(
                f"{field_name} cannot be in the past", ValidationErrorType.PAST_DATE
            )
        if not allow_future and day > today:
            return ValidationResult.invalid(
                f"{field_name} cannot be in the future", ValidationErrorType.FUTURE_DATE
            )
        if min_date is not None and moment < _as_datetime(min_date):
            return ValidationResult.invalid(
                f"{field_name} must be after {_format_date(min_date)}",
                ValidationErrorType.INVALID_RANGE,
            )
        if max_date is not None and moment > _as_datetime(max_date):
            return ValidationResult.invalid(
                f"{field_name} must be before {_format_date(max_date)}",
                ValidationErrorType.INVALID_RANGE,
            )

        return ValidationResult.valid()

    def validate_form(
        self,
        form_data: dict[str, Optional[str]],
        custom_rules: Optional[dict[str, ValidationRule]] = None,
    ) -> dict[str, ValidationResult]:
        custom_rules = custom_rules or {}
        return {
            field_name: self.validate(value, field_name, custom_rule=custom_rules.get(field_name))
            for field_name, value in form_data.items()
        }

    def validate_unique(
        self,
        value: Optional[str],
        field_name: str,
        existing_values: list[str],
    ) -> ValidationResult:
        """Reject a value that matches an existing one after sanitization."""
        if value is None or not value.strip():
            return ValidationResult.valid(None)

        sanitized = self.sanitize(value, field_name)
        target = sanitized.lower()
        for existing in existing_values:
            if self.sanitize(existing, field_name).lower() == target:
                return ValidationResult.invalid(
                    f'{field_name} "{value}" already exists',
                    ValidationErrorType.DUPLICATE_FOUND,
                )

        return ValidationResult.valid(sanitized)

    # -------------------------------------------------------------------------
    # Convenience
    # -------------------------------------------------------------------------

    def is_valid_email(self, email: str) -> bool:
        return self.validate(email, "email").is_valid

    def is_valid_phone(self, phone: str) -> bool:
        return self.validate(phone, "phone").is_valid

    def is_valid_amount(self, amount: str) -> bool:
        return self.validate(amount, "amount").is_valid

    @staticmethod
    def format_phone_number(phone: str) -> str:
        digits = re.sub(r"\D", "", phone)
        if len(digits) == 10:
            return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
        return phone

    @staticmethod
    def format_amount(amount: str) -> str:
        value = _to_float(amount)
        if value is None:
            return amount
        return f"{value:.2f}"


def _to_float(text: str) -> Optional[float]:
    try:
        return float(text)
    except (TypeError, ValueError):
        return None


# Singleton instance
_validator: Optional[ValidationHelper] = None


def get_validator() -> ValidationHelper:
    global _validator
    if _validator is None:
        _validator = ValidationHelper()
    return _validator
