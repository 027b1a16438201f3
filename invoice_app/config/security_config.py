"""
Security Configuration

Limits and checks applied to user input, exported files and file paths:
- SecurityConfig: input threat detection, sanitization, export limits
- PrivacyConfig: masking of sensitive values before logging or display
- FileSecurityConfig: allowed extensions and safe path checks
"""

from __future__ import annotations

import re
import time
from datetime import datetime, timedelta
from typing import Optional


# Control characters except tab, newline and carriage return
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

THREAT_PATTERNS = [
    re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"(union|select|insert|delete|update|drop)\s+", re.IGNORECASE),
    CONTROL_CHARS,
]

MARKUP = re.compile(r"<[^>]*>")

XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# =============================================================================
# Input and Export Security
# =============================================================================

class SecurityConfig:
    """Security limits for inputs and generated exports."""

    MAX_EXPORT_FILE_SIZE = 5 * 1024 * 1024  # 5MB
    MAX_EXPORT_INVOICES = 1000
    TEMP_FILE_RETENTION = timedelta(days=90)
    MAX_RETRY_ATTEMPTS = 3
    NETWORK_TIMEOUT = 30.0  # Seconds

    ENABLE_DATA_VALIDATION = True
    ENABLE_INPUT_SANITIZATION = True

    ALLOWED_EXPORT_TYPES = {
        "application/pdf",
        "text/csv",
        "application/json",
        XLSX_MIME_TYPE,
    }

    MAX_INPUT_LENGTHS = {
        "clientName": 100,
        "companyName": 100,
        "email": 254,
        "phone": 20,
        "address": 500,
        "invoiceNumber": 20,
        "description": 500,
        "notes": 1000,
    }

    @staticmethod
    def contains_security_threat(text: str) -> bool:
        """Check if input matches any known threat pattern."""
        return any(pattern.search(text) for pattern in THREAT_PATTERNS)

    @staticmethod
    def sanitize_input(text: str) -> str:
        """Strip control characters, surrounding whitespace and markup."""
        if not text:
            return text
        sanitized = CONTROL_CHARS.sub("", text)
        sanitized = sanitized.strip()
        return MARKUP.sub("", sanitized)

    @classmethod
    def is_valid_file_size(cls, size_bytes: int) -> bool:
        return size_bytes <= cls.MAX_EXPORT_FILE_SIZE

    @classmethod
    def is_allowed_export_type(cls, mime_type: str) -> bool:
        return mime_type in cls.ALLOWED_EXPORT_TYPES

    @classmethod
    def exceeds_max_length(cls, field_name: str, text: str) -> bool:
        limit = cls.MAX_INPUT_LENGTHS.get(field_name)
        return limit is not None and len(text) > limit

    @staticmethod
    def generate_secure_file_name(base_name: str, extension: str) -> str:
        """Build a file name with unsafe characters replaced and a ms timestamp."""
        timestamp = int(time.time() * 1000)
        sanitized = re.sub(r"[^\w\-]", "_", base_name, flags=re.ASCII)
        return f"{sanitized}_{timestamp}.{extension}"

    @classmethod
    def is_within_retention_period(
        cls,
        created: datetime,
        now: Optional[datetime] = None,
    ) -> bool:
        now = now or datetime.now()
        return now - created <= cls.TEMP_FILE_RETENTION


# =============================================================================
# Privacy
# =============================================================================

class PrivacyConfig:
    """Masking rules for personal data."""

    SENSITIVE_FIELDS = {"email", "phone", "address", "bankAccount", "taxNumber"}

    @classmethod
    def is_sensitive_field(cls, field_name: str) -> bool:
        return field_name in cls.SENSITIVE_FIELDS

    @classmethod
    def mask_sensitive_data(cls, field_name: str, value: str) -> str:
        """
        Mask a sensitive value for logs and display.

        Emails keep the first and last character of the user part, bank
        accounts keep their last four characters, everything else keeps two
        characters at each end. Values too short to mask partially are
        replaced entirely.
        """
        if not cls.is_sensitive_field(field_name) or not value:
            return value

        if field_name == "email":
            parts = value.split("@")
            if len(parts) == 2:
                username, domain = parts
                if len(username) > 2:
                    username = f"{username[0]}{'*' * (len(username) - 2)}{username[-1]}"
                return f"{username}@{domain}"
        elif field_name == "bankAccount":
            if len(value) > 4:
                return "*" * (len(value) - 4) + value[-4:]
        elif len(value) > 4:
            return f"{value[:2]}{'*' * (len(value) - 4)}{value[-2:]}"

        return "*" * len(value)


# =============================================================================
# File System Security
# =============================================================================

class FileSecurityConfig:
    """Rules for files the application reads and writes."""

    ALLOWED_READ_EXTENSIONS = {".pdf", ".csv", ".json", ".txt"}
    ALLOWED_WRITE_EXTENSIONS = {".pdf", ".csv", ".json", ".xlsx"}
    MAX_READ_FILE_SIZE = 10 * 1024 * 1024  # 10MB

    @staticmethod
    def _extension(file_name: str) -> str:
        index = file_name.rfind(".")
        if index == -1:
            return ""
        return file_name[index:].lower()

    @classmethod
    def is_allowed_read_extension(cls, file_name: str) -> bool:
        return cls._extension(file_name) in cls.ALLOWED_READ_EXTENSIONS

    @classmethod
    def is_allowed_write_extension(cls, file_name: str) -> bool:
        return cls._extension(file_name) in cls.ALLOWED_WRITE_EXTENSIONS

    @staticmethod
    def is_secure_file_path(file_path: str) -> bool:
        """Reject traversal, home-relative and absolute paths, and NUL bytes."""
        if ".." in file_path or "~/" in file_path or file_path.startswith("/"):
            return False
        if "\x00" in file_path:
            return False
        return True
