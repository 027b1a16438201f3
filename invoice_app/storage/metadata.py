"""
Metadata Manager

Local JSON storage for clients, invoices, company settings and the
invoice number counter. Everything lives in <data_dir>/metadata.json;
generated PDFs and exports go to the invoices/ and exports/ subdirectories.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from invoice_app.config import BuildConfig, PrivacyConfig
from invoice_app.invoices.invoice_book import invoice_summary
from invoice_app.models import Client, CompanySettings, Invoice, InvoiceStatus
from invoice_app.validation import (
    ValidationFailedError,
    ValidationHelper,
    get_validator,
    validate_invoice,
)

logger = logging.getLogger(__name__)

CLIENT_FIELDS = {
    "name": "clientName",
    "email": "email",
    "phone": "phone",
    "address": "address",
}


def migrate_legacy_clients(raw: Any) -> list[dict]:
    """
    Normalize stored client data to a list of dicts.

    Older stores kept the whole list as one JSON string, or each client
    as its own JSON string.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = json.loads(raw)
    if not isinstance(raw, list):
        raise ValueError(f"Unexpected client data type: {type(raw).__name__}")
    return [json.loads(item) if isinstance(item, str) else item for item in raw]


def sanitize_client(client: Client, validator: Optional[ValidationHelper] = None) -> Client:
    """Validate client fields and return a copy holding the sanitized values."""
    validator = validator or get_validator()
    changes = {}
    for attr, field_name in CLIENT_FIELDS.items():
        result = validator.validate(getattr(client, attr), field_name)
        if not result.is_valid:
            raise ValidationFailedError(result.error_message or f"Invalid {attr}", result)
        changes[attr] = result.sanitized_value or ""
    return client.copy_with(**changes)


class MetadataManager:
    """Manages local JSON storage for clients, invoices and settings."""

    def __init__(self, data_dir: Path, invoice_prefix: str = "INV"):
        self.data_dir = Path(data_dir)
        self.metadata_path = self.data_dir / "metadata.json"
        self.invoices_dir = self.data_dir / "invoices"
        self.exports_dir = self.data_dir / "exports"
        self.invoice_prefix = invoice_prefix

        # Ensure directories exist
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.invoices_dir.mkdir(exist_ok=True)
        self.exports_dir.mkdir(exist_ok=True)

        self._data = self._load()

    def _empty(self) -> dict:
        return {
            "version": BuildConfig.STORAGE_VERSION,
            "clients": [],
            "invoices": [],
            "company_settings": None,
            "settings": {
                "invoice_prefix": self.invoice_prefix,
                "next_invoice_number": 1,
            },
        }

    def _load(self) -> dict:
        if not self.metadata_path.exists():
            return self._empty()

        try:
            with open(self.metadata_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Could not read {self.metadata_path}, starting with an empty store: {e}")
            return self._empty()

        if not isinstance(data, dict):
            logger.error(f"Unexpected content in {self.metadata_path}, starting with an empty store")
            return self._empty()

        for key, value in self._empty().items():
            data.setdefault(key, value)

        raw_clients = data["clients"]
        try:
            data["clients"] = migrate_legacy_clients(raw_clients)
        except ValueError as e:
            logger.error(f"Dropping unreadable client data: {e}")
            data["clients"] = []

        if data["clients"] != raw_clients:
            logger.info("Migrated legacy client data")
            self._data = data
            self._save()

        return data

    def _save(self) -> None:
        with open(self.metadata_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, ensure_ascii=False)

    # Client methods
    def get_clients(self) -> list[Client]:
        return [Client.from_dict(d) for d in self._data["clients"]]

    def get_client(self, client_id: str) -> Optional[Client]:
        for d in self._data["clients"]:
            if d["id"] == client_id:
                return Client.from_dict(d)
        return None

    def add_client(self, client: Client) -> Client:
        client = sanitize_client(client)
        self._data["clients"].append(client.to_dict())
        self._save()
        logger.info(f"Added client {client.id} ({PrivacyConfig.mask_sensitive_data('email', client.email)})")
        return client

    def update_client(self, client: Client) -> Optional[Client]:
        client = sanitize_client(client)
        for i, d in enumerate(self._data["clients"]):
            if d["id"] == client.id:
                self._data["clients"][i] = client.to_dict()
                self._save()
                return client
        return None

    def delete_client(self, client_id: str) -> bool:
        clients = self._data["clients"]
        remaining = [d for d in clients if d["id"] != client_id]
        if len(remaining) == len(clients):
            return False
        self._data["clients"] = remaining
        self._save()
        return True

    def search_clients(self, query: str) -> list[Client]:
        clients = self.get_clients()
        if not query:
            return clients
        needle = query.lower()
        return [c for c in clients if needle in c.name.lower() or needle in c.email.lower()]

    def client_count(self) -> int:
        return len(self._data["clients"])

    def clear_clients(self) -> None:
        self._data["clients"] = []
        self._save()

    # Invoice methods
    def peek_next_invoice_number(self) -> str:
        settings = self._data["settings"]
        prefix = settings.get("invoice_prefix", self.invoice_prefix)
        return f"{prefix}-{settings.get('next_invoice_number', 1):05d}"

    def get_next_invoice_number(self) -> str:
        number = self.peek_next_invoice_number()
        settings = self._data["settings"]
        settings["next_invoice_number"] = settings.get("next_invoice_number", 1) + 1
        self._save()
        return number

    def _check_invoice(self, invoice: Invoice, now: Optional[datetime] = None) -> None:
        others = [d["invoiceNumber"] for d in self._data["invoices"] if d["id"] != invoice.id]
        result = validate_invoice(invoice, others, now=now)
        if not result.is_valid:
            raise ValidationFailedError(result.error_message or "Invalid invoice data", result)

    def add_invoice(self, invoice: Invoice, now: Optional[datetime] = None) -> None:
        self._check_invoice(invoice, now)
        self._data["invoices"].append(invoice.to_dict())
        self._save()
        logger.info(f"Added invoice {invoice.invoice_number}")

    def add_numbered_invoice(self, invoice: Invoice, now: Optional[datetime] = None) -> Invoice:
        """
        Store an invoice under the next sequential number.

        The counter only advances once the numbered invoice passes validation.
        """
        invoice = invoice.copy_with(invoice_number=self.peek_next_invoice_number())
        self._check_invoice(invoice, now)
        self._data["invoices"].append(invoice.to_dict())
        self._data["settings"]["next_invoice_number"] = self._data["settings"].get("next_invoice_number", 1) + 1
        self._save()
        logger.info(f"Added invoice {invoice.invoice_number}")
        return invoice

    def update_invoice(self, invoice: Invoice, now: Optional[datetime] = None) -> bool:
        self._check_invoice(invoice, now)
        for i, d in enumerate(self._data["invoices"]):
            if d["id"] == invoice.id:
                self._data["invoices"][i] = invoice.to_dict()
                self._save()
                return True
        return False

    def import_invoices(self, invoices: Iterable[Invoice]) -> int:
        """Insert or replace invoices by id; callers validate beforehand."""
        by_id = {d["id"]: i for i, d in enumerate(self._data["invoices"])}
        count = 0
        for invoice in invoices:
            if invoice.id in by_id:
                self._data["invoices"][by_id[invoice.id]] = invoice.to_dict()
            else:
                by_id[invoice.id] = len(self._data["invoices"])
                self._data["invoices"].append(invoice.to_dict())
            count += 1
        self._save()
        return count

    def get_invoices(self, status: Optional[InvoiceStatus] = None) -> list[Invoice]:
        invoices = [Invoice.from_dict(d) for d in self._data["invoices"]]
        if status:
            invoices = [i for i in invoices if i.status == status]
        invoices.sort(key=lambda i: i.created_date, reverse=True)
        return invoices

    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        for d in self._data["invoices"]:
            if d["id"] == invoice_id:
                return Invoice.from_dict(d)
        return None

    def update_invoice_status(self, invoice_id: str, status: InvoiceStatus) -> bool:
        for d in self._data["invoices"]:
            if d["id"] == invoice_id:
                d["status"] = InvoiceStatus(status).value
                self._save()
                return True
        return False

    def bulk_update_status(self, invoice_ids: Iterable[str], status: InvoiceStatus) -> int:
        wanted = set(invoice_ids)
        status = InvoiceStatus(status)
        updated = 0
        for d in self._data["invoices"]:
            if d["id"] in wanted:
                d["status"] = status.value
                updated += 1
        if updated:
            self._save()
        logger.info(f"Bulk status update: {updated} invoices set to {status.value}")
        return updated

    def delete_invoice(self, invoice_id: str) -> bool:
        return self.bulk_delete([invoice_id]) == 1

    def bulk_delete(self, invoice_ids: Iterable[str]) -> int:
        wanted = set(invoice_ids)
        invoices = self._data["invoices"]
        remaining = [d for d in invoices if d["id"] not in wanted]
        removed = len(invoices) - len(remaining)
        if removed:
            self._data["invoices"] = remaining
            self._save()
        return removed

    def clear_invoices(self) -> None:
        self._data["invoices"] = []
        self._save()

    # Company settings
    def get_company_settings(self) -> CompanySettings:
        if self._data["company_settings"]:
            return CompanySettings.from_dict(self._data["company_settings"])
        return CompanySettings.default()

    def save_company_settings(self, settings: CompanySettings) -> None:
        self._data["company_settings"] = settings.to_dict()
        self._save()

    # Dashboard stats
    def get_dashboard_stats(self, now: Optional[datetime] = None) -> dict:
        invoices = self.get_invoices()
        summary = invoice_summary(invoices, now)

        return {
            "total_invoices": summary["count"],
            "total_clients": self.client_count(),
            "total_amount": summary["total_amount"],
            "paid_amount": summary["paid_amount"],
            "pending_amount": summary["pending_amount"],
            "overdue_invoices": summary["overdue_count"],
            "status_counts": summary["status_counts"],
            "recent_invoices": [i.to_dict() for i in invoices[:5]],
        }
