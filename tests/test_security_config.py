from __future__ import annotations

import re
from datetime import datetime, timedelta

import pytest

from invoice_app.config import FileSecurityConfig, PrivacyConfig, SecurityConfig
from invoice_app.config.security_config import XLSX_MIME_TYPE


@pytest.mark.parametrize("text,expected", [
    ("<SCRIPT src=x>evil()</SCRIPT>", True),
    ("JavaScript:void(0)", True),
    ('<img onerror = "x">', True),
    ("UNION SELECT * FROM users", True),
    ("tab\tand\nnewline are fine", False),
    ("Plain invoice note", False),
])
def test_contains_security_threat(text, expected):
    assert SecurityConfig.contains_security_threat(text) is expected


def test_sanitize_input_strips_markup_and_control_chars():
    assert SecurityConfig.sanitize_input("  <b>Hi</b>\x00 ") == "Hi"
    assert SecurityConfig.sanitize_input("") == ""


def test_export_limits():
    assert SecurityConfig.is_valid_file_size(5 * 1024 * 1024)
    assert not SecurityConfig.is_valid_file_size(5 * 1024 * 1024 + 1)
    assert SecurityConfig.MAX_EXPORT_INVOICES == 1000
    assert SecurityConfig.is_allowed_export_type("text/csv")
    assert SecurityConfig.is_allowed_export_type(XLSX_MIME_TYPE)
    assert not SecurityConfig.is_allowed_export_type("text/html")


def test_exceeds_max_length():
    assert SecurityConfig.exceeds_max_length("phone", "1" * 21)
    assert not SecurityConfig.exceeds_max_length("phone", "1" * 20)
    assert not SecurityConfig.exceeds_max_length("unknownField", "x" * 5000)


def test_generate_secure_file_name():
    name = SecurityConfig.generate_secure_file_name("my report/2024 é", "csv")
    assert re.fullmatch(r"my_report_2024__\d+\.csv", name)


def test_retention_period():
    now = datetime(2026, 1, 15)
    assert SecurityConfig.is_within_retention_period(now - timedelta(days=90), now=now)
    assert not SecurityConfig.is_within_retention_period(now - timedelta(days=91), now=now)


@pytest.mark.parametrize("field,value,expected", [
    ("email", "john@example.com", "j**n@example.com"),
    ("email", "jo@example.com", "jo@example.com"),
    ("phone", "9876543210", "98******10"),
    ("address", "12 MG Road", "12******ad"),
    ("bankAccount", "1234567890", "******7890"),
    ("phone", "1234", "****"),
    ("email", "not-an-email", "************"),
    ("name", "Acme", "Acme"),
    ("phone", "", ""),
])
def test_mask_sensitive_data(field, value, expected):
    assert PrivacyConfig.mask_sensitive_data(field, value) == expected


@pytest.mark.parametrize("name,read,write", [
    ("report.CSV", True, True),
    ("notes.txt", True, False),
    ("book.xlsx", False, True),
    ("archive.zip", False, False),
    ("README", False, False),
])
def test_file_extensions(name, read, write):
    assert FileSecurityConfig.is_allowed_read_extension(name) is read
    assert FileSecurityConfig.is_allowed_write_extension(name) is write


@pytest.mark.parametrize("path,expected", [
    ("exports/report.csv", True),
    ("../etc/passwd", False),
    ("~/secrets.json", False),
    ("/tmp/report.csv", False),
    ("report\x00.csv", False),
])
def test_is_secure_file_path(path, expected):
    assert FileSecurityConfig.is_secure_file_path(path) is expected
