"""
Domain Records

Clients, invoice line items, invoices and company settings, with the
dict round-trip used by the JSON store and the backup export.

Invoice math:
- SUBTOTAL = sum of quantity * price over all items
- TAX AMOUNT = SUBTOTAL * tax_percentage / 100
- TOTAL = SUBTOTAL + TAX AMOUNT - discount_amount
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class InvoiceStatus(str, Enum):
    """Invoice lifecycle states."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, raw: Optional[str]) -> "InvoiceStatus":
        """Parse a status case-insensitively, falling back to DRAFT."""
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return cls.DRAFT


def parse_datetime(raw: Any, default: Optional[datetime] = None) -> datetime:
    """
    Parse an ISO-8601 timestamp into a naive local datetime.

    Offsets and a trailing Z are converted to local time so stored dates
    compare with datetime.now().
    """
    if isinstance(raw, datetime):
        value = raw
    elif raw:
        text = str(raw).strip()
        if text.endswith(("Z", "z")):
            text = f"{text[:-1]}+00:00"
        value = datetime.fromisoformat(text)
    else:
        return default or datetime.now()

    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


# =============================================================================
# Client
# =============================================================================

@dataclass(eq=False)
class Client:
    """Contact record referenced by invoices."""

    id: str
    name: str
    email: str = ""
    address: str = ""
    phone: str = ""

    @classmethod
    def create(cls, name: str, email: str = "", address: str = "", phone: str = "") -> "Client":
        return cls(id=str(uuid.uuid4()), name=name, email=email, address=address, phone=phone)

    @classmethod
    def empty(cls) -> "Client":
        return cls(id="", name="")

    def copy_with(self, **changes: Any) -> "Client":
        changes.pop("id", None)
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "address": self.address,
            "phone": self.phone,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Client":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            email=data.get("email", "") or "",
            address=data.get("address", "") or "",
            phone=data.get("phone", "") or "",
        )

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Client) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)


# =============================================================================
# Invoice Item
# =============================================================================

@dataclass
class InvoiceItem:
    """A single billable line."""

    description: str
    quantity: int
    price: float

    @property
    def total(self) -> float:
        return self.quantity * self.price

    def to_dict(self) -> dict:
        return {"description": self.description, "quantity": self.quantity, "price": self.price}

    @classmethod
    def from_dict(cls, data: dict) -> "InvoiceItem":
        if not isinstance(data, dict):
            raise ValueError(f"Invoice item must be an object, got {type(data).__name__}")
        return cls(
            description=data.get("description", ""),
            quantity=int(data.get("quantity", 0)),
            price=float(data.get("price", 0.0)),
        )


# =============================================================================
# Invoice
# =============================================================================

def generate_invoice_number(now: Optional[datetime] = None) -> str:
    """Build an INV-YYYYMMDD-NNNNN number from the millisecond clock."""
    now = now or datetime.now()
    millis = str(int(now.timestamp() * 1000))
    return f"INV-{now.strftime('%Y%m%d')}-{millis[8:]}"


@dataclass(eq=False)
class Invoice:
    """Billable document for a client."""

    id: str
    invoice_number: str
    client: Client
    items: list[InvoiceItem]
    created_date: datetime
    due_date: datetime
    tax_percentage: float = 0.0
    discount_amount: float = 0.0
    status: InvoiceStatus = InvoiceStatus.DRAFT
    notes: str = ""

    @classmethod
    def create(
        cls,
        client: Client,
        items: list[InvoiceItem],
        due_date: datetime,
        tax_percentage: float = 0.0,
        discount_amount: float = 0.0,
        notes: str = "",
        now: Optional[datetime] = None,
    ) -> "Invoice":
        now = now or datetime.now()
        return cls(
            id=str(uuid.uuid4()),
            invoice_number=generate_invoice_number(now),
            client=client,
            items=list(items),
            created_date=now,
            due_date=due_date,
            tax_percentage=tax_percentage,
            discount_amount=discount_amount,
            notes=notes,
        )

    @property
    def subtotal(self) -> float:
        return sum(item.total for item in self.items)

    @property
    def tax_amount(self) -> float:
        return self.subtotal * (self.tax_percentage / 100)

    @property
    def total(self) -> float:
        return self.subtotal + self.tax_amount - self.discount_amount

    def overdue_at(self, now: datetime) -> bool:
        return self.status != InvoiceStatus.PAID and now > self.due_date

    @property
    def is_overdue(self) -> bool:
        return self.overdue_at(datetime.now())

    def days_past_due(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now()
        if not self.overdue_at(now):
            return 0
        return (now - self.due_date).days

    def copy_with(self, **changes: Any) -> "Invoice":
        """Return an updated copy; id and created_date never change."""
        changes.pop("id", None)
        changes.pop("created_date", None)
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoiceNumber": self.invoice_number,
            "client": self.client.to_dict(),
            "items": [item.to_dict() for item in self.items],
            "createdDate": self.created_date.isoformat(),
            "dueDate": self.due_date.isoformat(),
            "taxPercentage": self.tax_percentage,
            "discountAmount": self.discount_amount,
            "status": self.status.value,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Invoice":
        """Raises ValueError when the record is not a dict or lacks id/invoiceNumber."""
        if not isinstance(data, dict):
            raise ValueError(f"Invoice record must be an object, got {type(data).__name__}")
        missing = [key for key in ("id", "invoiceNumber") if not data.get(key)]
        if missing:
            raise ValueError(f"Invoice record is missing {', '.join(missing)}")

        client = data.get("client") or {}
        if not isinstance(client, dict):
            raise ValueError("Invoice client must be an object")

        return cls(
            id=data["id"],
            invoice_number=data["invoiceNumber"],
            client=Client.from_dict(client),
            items=[InvoiceItem.from_dict(i) for i in data.get("items") or []],
            created_date=parse_datetime(data.get("createdDate")),
            due_date=parse_datetime(data.get("dueDate")),
            tax_percentage=float(data.get("taxPercentage") or 0.0),
            discount_amount=float(data.get("discountAmount") or 0.0),
            status=InvoiceStatus.parse(data.get("status")),
            notes=data.get("notes") or "",
        )

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Invoice) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return (
            f"Invoice(id={self.id!r}, number={self.invoice_number!r}, "
            f"client={self.client.name!r}, total={self.total:.2f}, status={self.status.value})"
        )


# =============================================================================
# Company Settings
# =============================================================================

@dataclass
class CompanySettings:
    """Issuer details printed on every invoice."""

    name: str
    address: str
    phone: str
    email: str
    bank_name: str
    bank_account: str
    bank_ifsc: str
    logo_path: Optional[str] = None

    @classmethod
    def default(cls) -> "CompanySettings":
        return cls(
            name="Your Company Name",
            address="Your Address, City, State, PIN Code",
            phone="+1234567890",
            email="info@yourcompany.com",
            bank_name="Your Bank Name",
            bank_account="1234567890123456",
            bank_ifsc="YOURBANK123",
        )

    def copy_with(self, **changes: Any) -> "CompanySettings":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "bankName": self.bank_name,
            "bankAccount": self.bank_account,
            "bankIFSC": self.bank_ifsc,
            "logoPath": self.logo_path,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CompanySettings":
        defaults = cls.default()
        return cls(
            name=data.get("name", defaults.name),
            address=data.get("address", defaults.address),
            phone=data.get("phone", defaults.phone),
            email=data.get("email", defaults.email),
            bank_name=data.get("bankName", defaults.bank_name),
            bank_account=data.get("bankAccount", defaults.bank_account),
            bank_ifsc=data.get("bankIFSC", defaults.bank_ifsc),
            logo_path=data.get("logoPath"),
        )
