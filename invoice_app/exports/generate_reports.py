"""
Report Generation

Exports invoices as CSV, JSON, Excel (XLSX) or PDF reports, with
scope/filter selection, statistics and CSV/backup import.

Selection rules:
- SELECTED scope with a non-empty id list keeps only those invoices
- Date range (inclusive by calendar day), status and client filters
  apply to every scope
- At most SecurityConfig.MAX_EXPORT_INVOICES invoices per export

Key Metrics:
- TOTAL AMOUNT: Sum of invoice totals
- PAID AMOUNT: Sum of totals of PAID invoices only
- PENDING AMOUNT: TOTAL AMOUNT - PAID AMOUNT
"""

from __future__ import annotations

import csv
import gzip
import io
import json
import logging
import re
import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Optional

from invoice_app.config import BuildConfig, FileSecurityConfig, SecurityConfig
from invoice_app.config.security_config import XLSX_MIME_TYPE
from invoice_app.invoices.invoice_generator import pdf_safe
from invoice_app.models import Client, Invoice, InvoiceStatus
from invoice_app.utils.currency import format_amount_for_pdf
from invoice_app.validation import ValidationFailedError, validate_invoice

logger = logging.getLogger(__name__)


# =============================================================================
# Data Structures
# =============================================================================

class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
    PDF = "pdf"
    EXCEL = "excel"

    @property
    def extension(self) -> str:
        return "xlsx" if self == ExportFormat.EXCEL else self.value

    @property
    def mime_type(self) -> str:
        return {
            ExportFormat.CSV: "text/csv",
            ExportFormat.JSON: "application/json",
            ExportFormat.PDF: "application/pdf",
            ExportFormat.EXCEL: XLSX_MIME_TYPE,
        }[self]


class ExportScope(str, Enum):
    ALL = "all"
    FILTERED = "filtered"
    SELECTED = "selected"


@dataclass
class ExportOptions:
    """What to export and how to render it."""

    format: ExportFormat
    scope: ExportScope = ExportScope.ALL
    include_fields: list[str] = field(default_factory=list)
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    status_filter: list[InvoiceStatus] = field(default_factory=list)
    client_filter: Optional[str] = None
    include_header: bool = True
    custom_file_name: Optional[str] = None
    compress_output: bool = False
    separator: str = ","
    pretty_json: bool = True

    @property
    def fields(self) -> list[str]:
        return list(self.include_fields) or list(AVAILABLE_FIELDS)

    @classmethod
    def from_dict(cls, data: dict) -> "ExportOptions":
        """Build options from a request payload (ISO dates, string enums)."""
        def _date(raw: Optional[str]) -> Optional[date]:
            return date.fromisoformat(raw[:10]) if raw else None

        return cls(
            format=ExportFormat(str(data.get("format", "csv")).lower()),
            scope=ExportScope(str(data.get("scope", "all")).lower()),
            include_fields=list(data.get("include_fields") or []),
            date_from=_date(data.get("date_from")),
            date_to=_date(data.get("date_to")),
            status_filter=[InvoiceStatus(s.lower()) for s in data.get("status_filter") or []],
            client_filter=data.get("client_filter") or None,
            include_header=bool(data.get("include_header", True)),
            custom_file_name=data.get("custom_file_name") or None,
            compress_output=bool(data.get("compress_output", False)),
            separator=data.get("separator") or ",",
            pretty_json=bool(data.get("pretty_json", True)),
        )


@dataclass
class ExportResult:
    """Outcome of an export run."""

    file_path: str
    file_name: str
    format: ExportFormat
    record_count: int
    file_size_bytes: int
    exported_at: datetime
    success: bool = True
    error_message: Optional[str] = None

    @classmethod
    def error(cls, message: str, export_format: ExportFormat) -> "ExportResult":
        return cls(
            file_path="",
            file_name="",
            format=export_format,
            record_count=0,
            file_size_bytes=0,
            exported_at=datetime.now(),
            success=False,
            error_message=message,
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["format"] = self.format.value
        data["exported_at"] = self.exported_at.isoformat()
        return data


@dataclass
class ExportStatistics:
    total_invoices: int
    total_amount: float
    paid_amount: float
    pending_amount: float
    status_counts: dict[InvoiceStatus, int]
    overdue_count: int

    def to_dict(self) -> dict:
        return {
            "total_invoices": self.total_invoices,
            "total_amount": self.total_amount,
            "paid_amount": self.paid_amount,
            "pending_amount": self.pending_amount,
            "status_counts": {s.value: n for s, n in self.status_counts.items()},
            "overdue_count": self.overdue_count,
        }


AVAILABLE_FIELDS: dict[str, str] = {
    "invoiceNumber": "Invoice Number",
    "clientName": "Client Name",
    "clientEmail": "Client Email",
    "clientPhone": "Client Phone",
    "clientAddress": "Client Address",
    "createdDate": "Issue Date",
    "dueDate": "Due Date",
    "status": "Status",
    "items": "Items",
    "itemCount": "Item Count",
    "subtotal": "Subtotal",
    "taxPercentage": "Tax %",
    "taxAmount": "Tax Amount",
    "discountAmount": "Discount",
    "total": "Total Amount",
    "notes": "Notes",
    "isOverdue": "Overdue",
    "daysPastDue": "Days Past Due",
}

MONEY_FIELDS = {"subtotal", "taxPercentage", "taxAmount", "discountAmount", "total"}
COUNT_FIELDS = {"itemCount", "daysPastDue"}

CSV_REQUIRED_COLUMNS = ("Invoice Number", "Client Name", "Total Amount")
CSV_SEPARATORS = ",;\t|"


# =============================================================================
# Field Rendering and Selection
# =============================================================================

def _format_date(value: datetime) -> str:
    return value.strftime("%d/%m/%Y")


def field_value(invoice: Invoice, field_name: str, now: Optional[datetime] = None) -> str:
    """Render one export column for an invoice; unknown fields are empty."""
    now = now or datetime.now()

    if field_name == "invoiceNumber":
        return invoice.invoice_number
    if field_name == "clientName":
        return invoice.client.name
    if field_name == "clientEmail":
        return invoice.client.email
    if field_name == "clientPhone":
        return invoice.client.phone
    if field_name == "clientAddress":
        return invoice.client.address
    if field_name == "createdDate":
        return _format_date(invoice.created_date)
    if field_name == "dueDate":
        return _format_date(invoice.due_date)
    if field_name == "status":
        return invoice.status.display_name
    if field_name == "items":
        return "; ".join(
            f"{item.description} ({item.quantity} x {format_amount_for_pdf(item.price)})"
            for item in invoice.items
        )
    if field_name == "itemCount":
        return str(len(invoice.items))
    if field_name == "subtotal":
        return f"{invoice.subtotal:.2f}"
    if field_name == "taxPercentage":
        return f"{invoice.tax_percentage:.2f}"
    if field_name == "taxAmount":
        return f"{invoice.tax_amount:.2f}"
    if field_name == "discountAmount":
        return f"{invoice.discount_amount:.2f}"
    if field_name == "total":
        return f"{invoice.total:.2f}"
    if field_name == "notes":
        return invoice.notes
    if field_name == "isOverdue":
        return "true" if invoice.overdue_at(now) else "false"
    if field_name == "daysPastDue":
        return str(invoice.days_past_due(now))
    return ""


def filter_invoices(
    invoices: list[Invoice],
    options: ExportOptions,
    selected_ids: Optional[list[str]] = None,
) -> list[Invoice]:
    """Apply scope, date, status and client filters in that order."""
    filtered = list(invoices)

    if options.scope == ExportScope.SELECTED:
        if selected_ids:
            wanted = set(selected_ids)
            filtered = [inv for inv in filtered if inv.id in wanted]
        else:
            logger.warning("Selected scope without invoice ids, exporting every invoice")

    if options.date_from is not None:
        start = options.date_from.date() if isinstance(options.date_from, datetime) else options.date_from
        filtered = [inv for inv in filtered if inv.created_date.date() >= start]

    if options.date_to is not None:
        end = options.date_to.date() if isinstance(options.date_to, datetime) else options.date_to
        filtered = [inv for inv in filtered if inv.created_date.date() <= end]

    if options.status_filter:
        statuses = set(options.status_filter)
        filtered = [inv for inv in filtered if inv.status in statuses]

    if options.client_filter:
        needle = options.client_filter.lower()
        filtered = [
            inv for inv in filtered
            if needle in inv.client.name.lower() or needle in inv.client.email.lower()
        ]

    return filtered


# =============================================================================
# Statistics
# =============================================================================

def get_export_statistics(invoices: list[Invoice], now: Optional[datetime] = None) -> ExportStatistics:
    """
    Calculate totals for a set of invoices.

    Rules:
    - PAID AMOUNT counts PAID invoices only
    - PENDING AMOUNT is everything else
    - Every status appears in status_counts, zero when absent
    """
    now = now or datetime.now()
    total_amount = sum(inv.total for inv in invoices)
    paid_amount = sum(inv.total for inv in invoices if inv.status == InvoiceStatus.PAID)

    return ExportStatistics(
        total_invoices=len(invoices),
        total_amount=round(total_amount, 2),
        paid_amount=round(paid_amount, 2),
        pending_amount=round(total_amount - paid_amount, 2),
        status_counts={
            status: len([inv for inv in invoices if inv.status == status])
            for status in InvoiceStatus
        },
        overdue_count=len([inv for inv in invoices if inv.overdue_at(now)]),
    )


# =============================================================================
# CSV / JSON Export
# =============================================================================

def export_to_csv(
    invoices: list[Invoice],
    options: ExportOptions,
    output_path: Optional[Path] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Export invoices to CSV.

    Returns CSV content as string. Optionally writes to file.
    """
    output = io.StringIO()
    writer = csv.writer(output, delimiter=options.separator)
    fields = options.fields

    if options.include_header:
        writer.writerow([AVAILABLE_FIELDS.get(f, f) for f in fields])

    for invoice in invoices:
        writer.writerow([field_value(invoice, f, now) for f in fields])

    content = output.getvalue()

    if output_path:
        with open(output_path, "w", newline="", encoding="utf-8") as f:
            f.write(content)

    return content


def export_to_json(
    invoices: list[Invoice],
    options: ExportOptions,
    now: Optional[datetime] = None,
) -> str:
    now = now or datetime.now()
    fields = options.fields
    data = {
        "exportInfo": {
            "exportedAt": now.isoformat(),
            "totalRecords": len(invoices),
            "format": "JSON",
            "version": "1.0",
        },
        "invoices": [
            {f: field_value(invoice, f, now) for f in fields}
            for invoice in invoices
        ],
    }
    return json.dumps(data, indent=2 if options.pretty_json else None, ensure_ascii=False)


# =============================================================================
# Excel Export
# =============================================================================

def export_to_xlsx(
    invoices: list[Invoice],
    options: ExportOptions,
    output_path: Optional[Path] = None,
    now: Optional[datetime] = None,
) -> bytes:
    """
    Export invoices to Excel with formatting and a summary sheet.

    Returns XLSX bytes. Optionally writes to file.
    """
    import openpyxl
    from openpyxl.styles import Alignment, Font, PatternFill
    from openpyxl.utils import get_column_letter

    now = now or datetime.now()
    fields = options.fields

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Invoices"

    # Styles
    header_fill = PatternFill(start_color="1a1a2e", end_color="1a1a2e", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")
    total_font = Font(bold=True)
    paid_fill = PatternFill(start_color="e8f5e9", end_color="e8f5e9", fill_type="solid")
    pending_fill = PatternFill(start_color="fce4ec", end_color="fce4ec", fill_type="solid")
    money_format = '#,##0.00'

    first_row = 1
    if options.include_header:
        for col, name in enumerate(fields, 1):
            cell = ws.cell(row=1, column=col, value=AVAILABLE_FIELDS.get(name, name))
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal='center')
        first_row = 2
        ws.freeze_panes = "A2"

    for row_idx, invoice in enumerate(invoices, first_row):
        for col, name in enumerate(fields, 1):
            value = field_value(invoice, name, now)
            if name in MONEY_FIELDS:
                cell = ws.cell(row=row_idx, column=col, value=float(value))
                cell.number_format = money_format
            elif name in COUNT_FIELDS:
                ws.cell(row=row_idx, column=col, value=int(value))
            else:
                ws.cell(row=row_idx, column=col, value=value)

    for col, name in enumerate(fields, 1):
        label = AVAILABLE_FIELDS.get(name, name)
        width = 40 if name in ("items", "notes", "clientAddress") else max(len(label) + 4, 12)
        ws.column_dimensions[get_column_letter(col)].width = width

    # Summary sheet
    stats = get_export_statistics(invoices, now)
    summary = wb.create_sheet("Summary")
    summary.cell(row=1, column=1, value="SUMMARY").font = Font(bold=True, size=12)
    summary.cell(row=2, column=1, value=f"Generated: {now.strftime('%d/%m/%Y %H:%M')}")

    summary.cell(row=4, column=1, value="Total Invoices:")
    summary.cell(row=4, column=2, value=stats.total_invoices)
    for offset, status in enumerate(InvoiceStatus, 5):
        summary.cell(row=offset, column=1, value=f"{status.display_name}:")
        summary.cell(row=offset, column=2, value=stats.status_counts[status])

    overdue_row = 5 + len(InvoiceStatus)
    summary.cell(row=overdue_row, column=1, value="Overdue:")
    summary.cell(row=overdue_row, column=2, value=stats.overdue_count)

    amount_rows = [
        ("TOTAL AMOUNT", stats.total_amount, None),
        ("PAID AMOUNT", stats.paid_amount, paid_fill),
        ("PENDING AMOUNT", stats.pending_amount, pending_fill),
    ]
    for offset, (label, amount, fill) in enumerate(amount_rows, overdue_row + 2):
        summary.cell(row=offset, column=1, value=label).font = total_font
        amount_cell = summary.cell(row=offset, column=2, value=amount)
        amount_cell.font = total_font
        amount_cell.number_format = '"Rs."#,##0.00'
        if fill is not None:
            amount_cell.fill = fill

    summary.column_dimensions["A"].width = 22
    summary.column_dimensions["B"].width = 18

    # Save to bytes
    buffer = io.BytesIO()
    wb.save(buffer)
    xlsx_bytes = buffer.getvalue()

    if output_path:
        with open(output_path, "wb") as f:
            f.write(xlsx_bytes)

    return xlsx_bytes


# =============================================================================
# PDF Report
# =============================================================================

def export_to_pdf(
    invoices: list[Invoice],
    options: ExportOptions,
    now: Optional[datetime] = None,
) -> bytes:
    """Tabular PDF report: one row per invoice followed by a summary block."""
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import A4, landscape
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.lib.units import inch
    from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

    now = now or datetime.now()
    stats = get_export_statistics(invoices, now)
    styles = getSampleStyleSheet()

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        rightMargin=0.5 * inch,
        leftMargin=0.5 * inch,
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title="Invoice Report",
        creator=BuildConfig.creator(),
    )

    elements = [
        Paragraph("Invoice Report", styles["Title"]),
        Paragraph(f"Generated on {now.strftime('%d/%m/%Y %H:%M')}", styles["Normal"]),
        Spacer(1, 0.25 * inch),
    ]

    rows = [["Invoice Number", "Client", "Issue Date", "Due Date", "Status", "Total"]]
    for invoice in invoices:
        rows.append([
            pdf_safe(invoice.invoice_number),
            Paragraph(pdf_safe(invoice.client.name), styles["Normal"]),
            _format_date(invoice.created_date),
            _format_date(invoice.due_date),
            invoice.status.display_name,
            format_amount_for_pdf(invoice.total),
        ])

    table = Table(
        rows,
        colWidths=[1.8 * inch, 3.2 * inch, 1.1 * inch, 1.1 * inch, 1.0 * inch, 1.5 * inch],
        repeatRows=1,
    )
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1a1a2e")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (-1, 0), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#e0e0e0")),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f7f7fb")]),
    ]))
    elements.append(table)
    elements.append(Spacer(1, 0.3 * inch))

    summary_rows = [
        ["Total Invoices", str(stats.total_invoices)],
        ["Overdue", str(stats.overdue_count)],
        ["Total Amount", format_amount_for_pdf(stats.total_amount)],
        ["Paid Amount", format_amount_for_pdf(stats.paid_amount)],
        ["Pending Amount", format_amount_for_pdf(stats.pending_amount)],
    ]
    summary = Table(summary_rows, colWidths=[2 * inch, 2 * inch], hAlign="LEFT")
    summary.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("LINEABOVE", (0, 2), (-1, 2), 0.5, colors.HexColor("#e0e0e0")),
    ]))
    elements.append(Paragraph("Summary", styles["Heading2"]))
    elements.append(summary)

    doc.build(elements)
    return buffer.getvalue()


# =============================================================================
# Export Service (Orchestrator)
# =============================================================================

class ExportService:
    """
    Orchestrates the complete export workflow.

    Usage:
        service = ExportService(output_dir="./exports")
        result = service.export_invoices(
            invoices,
            ExportOptions(format=ExportFormat.CSV, status_filter=[InvoiceStatus.PAID]),
        )
    """

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _file_name(self, options: ExportOptions, now: datetime) -> str:
        extension = options.format.extension
        if options.custom_file_name:
            base = re.sub(r"[^\w\-.]", "_", Path(options.custom_file_name).name, flags=re.ASCII)
            base = base.lstrip(".") or "invoices_export"
            if not base.lower().endswith(f".{extension}"):
                base = f"{base}.{extension}"
        else:
            base = f"invoices_export_{now.strftime('%Y%m%d_%H%M')}.{extension}"
        if options.compress_output:
            base = f"{base}.gz"
        return base

    def _render(self, invoices: list[Invoice], options: ExportOptions, now: datetime) -> bytes:
        if options.format == ExportFormat.CSV:
            return export_to_csv(invoices, options, now=now).encode("utf-8")
        if options.format == ExportFormat.JSON:
            return export_to_json(invoices, options, now=now).encode("utf-8")
        if options.format == ExportFormat.EXCEL:
            return export_to_xlsx(invoices, options, now=now)
        return export_to_pdf(invoices, options, now=now)

    def export_invoices(
        self,
        invoices: list[Invoice],
        options: ExportOptions,
        selected_ids: Optional[list[str]] = None,
        now: Optional[datetime] = None,
    ) -> ExportResult:
        """
        Complete export workflow.

        Failures are reported through ExportResult.error rather than raised.
        """
        now = now or datetime.now()

        try:
            selection = filter_invoices(invoices, options, selected_ids)
            if not selection:
                return ExportResult.error("No invoices match the export criteria", options.format)

            if len(selection) > SecurityConfig.MAX_EXPORT_INVOICES:
                return ExportResult.error(
                    f"Too many invoices to export ({len(selection)}), "
                    f"maximum is {SecurityConfig.MAX_EXPORT_INVOICES}",
                    options.format,
                )

            if not SecurityConfig.is_allowed_export_type(options.format.mime_type):
                return ExportResult.error(
                    f"Export type not allowed: {options.format.mime_type}", options.format
                )

            logger.info(f"Exporting {len(selection)} invoices as {options.format.value}...")
            payload = self._render(selection, options, now)
            if options.compress_output:
                payload = gzip.compress(payload)

            if not SecurityConfig.is_valid_file_size(len(payload)):
                logger.warning(f"Export rejected: {len(payload)} bytes exceeds the size limit")
                return ExportResult.error(
                    f"Export file too large ({len(payload) / 1024 / 1024:.1f}MB)", options.format
                )

            filename = self._file_name(options, now)
            filepath = self.output_dir / filename
            with open(filepath, "wb") as f:
                f.write(payload)

            logger.info(f"Export complete: {filename}")

            return ExportResult(
                file_path=str(filepath),
                file_name=filename,
                format=options.format,
                record_count=len(selection),
                file_size_bytes=len(payload),
                exported_at=now,
            )

        except Exception as e:
            logger.exception(f"Export failed: {e}")
            return ExportResult.error(f"Export failed: {e}", options.format)

    def get_export_statistics(self, invoices: list[Invoice], now: Optional[datetime] = None) -> ExportStatistics:
        return get_export_statistics(invoices, now)

    # =========================================================================
    # Import
    # =========================================================================

    def import_from_csv(
        self,
        path: str | Path,
        now: Optional[datetime] = None,
        separator: Optional[str] = None,
    ) -> list[Invoice]:
        """
        Read invoices from a CSV produced by the CSV export.

        Without an explicit separator the delimiter is detected from the
        header line. Items are not reconstructed. Rows without the Invoice
        Number, Client Name and Total Amount columns are skipped.
        """
        path = Path(path)
        now = now or datetime.now()

        if not FileSecurityConfig.is_allowed_read_extension(path.name):
            raise ValueError(f"File type not allowed for import: {path.name}")
        if path.stat().st_size > FileSecurityConfig.MAX_READ_FILE_SIZE:
            raise ValueError(f"File too large for import: {path.name}")

        with open(path, newline="", encoding="utf-8") as f:
            content = f.read()

        if not content.strip():
            raise ValueError("CSV file is empty")

        delimiter = separator or _detect_separator(content.splitlines()[0])
        rows = [row for row in csv.reader(io.StringIO(content, newline=""), delimiter=delimiter) if row]

        header = [h.strip() for h in rows[0]]
        missing = [label for label in CSV_REQUIRED_COLUMNS if label not in header]
        if missing:
            raise ValueError(f"CSV header is missing columns: {', '.join(missing)}")

        invoices = []
        for line_number, row in enumerate(rows[1:], 2):
            invoice = self._parse_csv_row(header, row, now)
            if invoice is None:
                logger.warning(f"Skipping CSV line {line_number}: missing required columns")
                continue
            invoices.append(invoice)

        logger.info(f"Imported {len(invoices)} invoices from {path.name}")
        return invoices

    @staticmethod
    def _parse_csv_row(header: list[str], row: list[str], now: datetime) -> Optional[Invoice]:
        def value(label: str) -> Optional[str]:
            if label not in header:
                return None
            index = header.index(label)
            if index >= len(row):
                return None
            return row[index].strip() or None

        number = value("Invoice Number")
        client_name = value("Client Name")
        if number is None or client_name is None or value("Total Amount") is None:
            return None

        client = Client(
            id=str(uuid.uuid4()),
            name=client_name,
            email=value("Client Email") or "",
            phone=value("Client Phone") or "",
            address=value("Client Address") or "",
        )

        return Invoice(
            id=str(uuid.uuid4()),
            invoice_number=number,
            client=client,
            items=[],
            created_date=_parse_csv_date(value("Issue Date")) or now,
            due_date=_parse_csv_date(value("Due Date")) or now + timedelta(days=30),
            tax_percentage=_parse_float(value("Tax %")),
            discount_amount=_parse_float(value("Discount")),
            status=InvoiceStatus.parse(value("Status")),
            notes=value("Notes") or "",
        )

    # =========================================================================
    # Backup
    # =========================================================================

    @staticmethod
    def export_backup(invoices: list[Invoice], now: Optional[datetime] = None) -> dict:
        """Full-fidelity backup of every invoice."""
        now = now or datetime.now()
        return {
            "invoices": [inv.to_dict() for inv in invoices],
            "exportDate": now.isoformat(),
            "version": "1.0",
        }

    @staticmethod
    def import_backup(
        data: dict,
        existing: list[Invoice],
        now: Optional[datetime] = None,
    ) -> list[Invoice]:
        """
        Parse and validate a backup.

        Raises ValidationFailedError naming the first invalid invoice.
        """
        if not isinstance(data, dict):
            raise ValueError("Backup must be a JSON object")
        if not isinstance(data.get("invoices"), list):
            raise ValueError("Backup has no invoice list")

        imported = [Invoice.from_dict(item) for item in data["invoices"]]
        for invoice in imported:
            others = [inv.invoice_number for inv in existing if inv.id != invoice.id]
            result = validate_invoice(invoice, others, now=now)
            if not result.is_valid:
                raise ValidationFailedError(
                    f"Invalid invoice data for {invoice.invoice_number}: {result.error_message}",
                    result,
                )

        logger.info(f"Validated {len(imported)} invoices from backup")
        return imported


def _parse_csv_date(raw: Optional[str]) -> Optional[datetime]:
    """Parse DD/MM/YYYY; anything else yields None."""
    if not raw:
        return None
    try:
        return datetime.strptime(raw, "%d/%m/%Y")
    except ValueError:
        return None


def _parse_float(raw: Optional[str]) -> float:
    try:
        return float(raw) if raw else 0.0
    except ValueError:
        return 0.0


def _detect_separator(header_line: str) -> str:
    """Guess the delimiter of an exported CSV from its header; comma when unsure."""
    try:
        return csv.Sniffer().sniff(header_line, delimiters=CSV_SEPARATORS).delimiter
    except csv.Error:
        return ","
