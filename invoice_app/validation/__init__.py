"""Input validation module."""

from .invoice_rules import validate_invoice
from .validation_helper import (
    COMMON_FORBIDDEN_VALUES,
    PATTERNS,
    STANDARD_RULES,
    ValidationErrorType,
    ValidationFailedError,
    ValidationHelper,
    ValidationLevel,
    ValidationResult,
    ValidationRule,
    get_validator,
)

__all__ = [
    "COMMON_FORBIDDEN_VALUES",
    "PATTERNS",
    "STANDARD_RULES",
    "ValidationErrorType",
    "ValidationFailedError",
    "ValidationHelper",
    "ValidationLevel",
    "ValidationResult",
    "ValidationRule",
    "get_validator",
    "validate_invoice",
]
