"""
Invoice Generator

Creates PDF invoices from stored invoices and the company settings.
Uses ReportLab for PDF generation.

Layout (single A4 page):
- INVOICE header with the company block
- Bill To block beside the invoice details
- Numbered items table and totals
- Bank details, terms, notes and signatory line
"""

from __future__ import annotations

import io
import logging
import re
import time
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    HRFlowable,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from invoice_app.config import BuildConfig, SecurityConfig
from invoice_app.models import CompanySettings, Invoice
from invoice_app.utils.currency import format_amount_for_pdf

logger = logging.getLogger(__name__)

# Standard PDF fonts only cover Latin-1
_UNSAFE_PDF_CHARS = re.compile(r"[^\x20-\x7E\xA0-\xFF\n]")

TERMS = [
    "1. Payment due within 30 days",
    "2. Goods once sold will not be taken back",
    "3. All disputes subject to local jurisdiction",
]

ACCENT = colors.HexColor("#1a1a2e")
MUTED = colors.HexColor("#666666")
RULE = colors.HexColor("#e0e0e0")


def pdf_safe(text: str) -> str:
    """Replace characters the PDF fonts cannot render and escape markup."""
    cleaned = _UNSAFE_PDF_CHARS.sub(" ", text or "").strip()
    return escape(cleaned).replace("\n", "<br/>")


def _format_date(value) -> str:
    return value.strftime("%d/%m/%Y")


class InvoiceGenerator:
    """
    Generates PDF invoices.

    Files are written to output_dir as invoice_<number>_<timestamp>.pdf
    and the bytes are returned to the caller as well.
    """

    def __init__(self, output_dir: str | Path):
        """Initialize with output directory for generated PDFs."""
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _check_invoice(invoice: Invoice) -> None:
        if not invoice.invoice_number:
            raise ValueError("Invoice number cannot be empty")
        if not invoice.items:
            raise ValueError("Invoice must have at least one item")
        if invoice.total <= 0:
            raise ValueError("Invoice total must be greater than zero")

    def _file_name(self, invoice: Invoice) -> str:
        safe_number = re.sub(r"[^\w\-]", "_", invoice.invoice_number, flags=re.ASCII)
        timestamp = int(time.time() * 1000)
        return f"invoice_{safe_number}_{timestamp}.pdf"

    def generate_invoice(
        self,
        invoice: Invoice,
        company_settings: Optional[CompanySettings] = None,
        output_path: Optional[Path] = None,
    ) -> tuple[bytes, str]:
        """
        Generate a PDF invoice.

        Raises ValueError when the invoice has no number, no items or a
        non-positive total.

        Returns:
            Tuple of (pdf_bytes, filename)
        """
        self._check_invoice(invoice)
        company = company_settings or CompanySettings.default()

        if output_path is not None:
            filepath = Path(output_path)
            filename = filepath.name
        else:
            filename = self._file_name(invoice)
            filepath = self.output_dir / filename

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=0.6 * inch,
            leftMargin=0.6 * inch,
            topMargin=0.6 * inch,
            bottomMargin=0.6 * inch,
            title=f"Invoice {invoice.invoice_number}",
            subject=f"Invoice {invoice.invoice_number}",
            author=company.name or BuildConfig.APP_NAME,
            creator=f"{BuildConfig.APP_NAME} v1.0",
        )

        styles = self._styles()
        elements = []
        elements.extend(self._build_header(invoice, company, styles))
        elements.extend(self._build_parties(invoice, styles))
        elements.extend(self._build_items(invoice, styles))
        elements.extend(self._build_totals(invoice))
        elements.extend(self._build_footer(invoice, company, styles))

        doc.build(elements)
        pdf_bytes = buffer.getvalue()

        if len(pdf_bytes) > SecurityConfig.MAX_EXPORT_FILE_SIZE:
            logger.warning(
                f"Invoice PDF {filename} is {len(pdf_bytes) / 1024 / 1024:.1f}MB, "
                f"above the {SecurityConfig.MAX_EXPORT_FILE_SIZE // (1024 * 1024)}MB limit"
            )

        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "wb") as f:
            f.write(pdf_bytes)

        logger.info(f"Generated invoice: {filename} ({len(pdf_bytes) / 1024:.1f}KB)")

        return pdf_bytes, filename

    # =========================================================================
    # Sections
    # =========================================================================

    @staticmethod
    def _styles() -> dict[str, ParagraphStyle]:
        base = getSampleStyleSheet()
        return {
            "title": ParagraphStyle(
                "InvoiceTitle",
                parent=base["Heading1"],
                fontSize=26,
                textColor=ACCENT,
                alignment=TA_RIGHT,
            ),
            "company": ParagraphStyle(
                "CompanyName",
                parent=base["Heading2"],
                fontSize=16,
                textColor=ACCENT,
                spaceAfter=4,
            ),
            "heading": ParagraphStyle(
                "SectionHeading",
                parent=base["Heading2"],
                fontSize=11,
                textColor=colors.HexColor("#4a4a6a"),
                spaceBefore=8,
                spaceAfter=4,
            ),
            "normal": ParagraphStyle(
                "NormalText",
                parent=base["Normal"],
                fontSize=10,
                textColor=colors.HexColor("#333333"),
                leading=14,
            ),
            "small": ParagraphStyle(
                "SmallText",
                parent=base["Normal"],
                fontSize=9,
                textColor=MUTED,
                leading=12,
            ),
            "cell": ParagraphStyle(
                "CellText",
                parent=base["Normal"],
                fontSize=9,
                leading=11,
            ),
            "signature": ParagraphStyle(
                "Signature",
                parent=base["Normal"],
                fontSize=10,
                alignment=TA_CENTER,
            ),
        }

    def _build_header(self, invoice: Invoice, company: CompanySettings, styles: dict) -> list:
        company_lines = [
            pdf_safe(company.address),
            f"Mobile: {pdf_safe(company.phone)}",
            f"Email: {pdf_safe(company.email)}",
        ]
        header_data = [[
            [
                Paragraph(pdf_safe(company.name.upper()), styles["company"]),
                Paragraph("<br/>".join(company_lines), styles["small"]),
            ],
            Paragraph("INVOICE", styles["title"]),
        ]]

        header_table = Table(header_data, colWidths=[4.5 * inch, 2.5 * inch])
        header_table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
            ("RIGHTPADDING", (0, 0), (-1, -1), 0),
        ]))
        return [
            header_table,
            HRFlowable(width="100%", thickness=1, color=RULE, spaceBefore=8, spaceAfter=12),
        ]

    def _build_parties(self, invoice: Invoice, styles: dict) -> list:
        client = invoice.client
        bill_to = [f"<b>{pdf_safe(client.name.upper())}</b>"]
        if client.address:
            bill_to.append(pdf_safe(client.address))
        if client.phone:
            bill_to.append(f"Phone: {pdf_safe(client.phone)}")
        if client.email:
            bill_to.append(pdf_safe(client.email))

        details = Table(
            [
                ["Invoice No.", pdf_safe(invoice.invoice_number)],
                ["Invoice Date", _format_date(invoice.created_date)],
                ["Due Date", _format_date(invoice.due_date)],
                ["Status", invoice.status.display_name],
            ],
            colWidths=[1.2 * inch, 1.8 * inch],
        )
        details.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("TEXTCOLOR", (0, 0), (0, -1), MUTED),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ]))

        parties = Table(
            [
                [Paragraph("BILL TO", styles["heading"]), Paragraph("INVOICE DETAILS", styles["heading"])],
                [Paragraph("<br/>".join(bill_to), styles["normal"]), details],
            ],
            colWidths=[4 * inch, 3 * inch],
        )
        parties.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
            ("RIGHTPADDING", (0, 0), (-1, -1), 0),
        ]))
        return [parties, Spacer(1, 0.25 * inch)]

    def _build_items(self, invoice: Invoice, styles: dict) -> list:
        rows = [["S.No", "Description", "Qty", "Rate", "Amount"]]
        for index, item in enumerate(invoice.items, 1):
            rows.append([
                str(index),
                Paragraph(pdf_safe(item.description), styles["cell"]),
                f"{item.quantity} PCS",
                format_amount_for_pdf(item.price),
                format_amount_for_pdf(item.total),
            ])

        items_table = Table(
            rows,
            colWidths=[0.5 * inch, 3.3 * inch, 0.8 * inch, 1.2 * inch, 1.2 * inch],
            repeatRows=1,
        )
        items_table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), ACCENT),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("ALIGN", (0, 0), (0, -1), "CENTER"),
            ("ALIGN", (2, 0), (-1, -1), "RIGHT"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("GRID", (0, 0), (-1, -1), 0.5, RULE),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f7f7fb")]),
            ("TOPPADDING", (0, 0), (-1, -1), 5),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ]))
        return [items_table, Spacer(1, 0.15 * inch)]

    def _build_totals(self, invoice: Invoice) -> list:
        rows = [
            ["Subtotal", format_amount_for_pdf(invoice.subtotal)],
            [f"Tax ({invoice.tax_percentage:.1f}%)", format_amount_for_pdf(invoice.tax_amount)],
        ]
        if invoice.discount_amount:
            rows.append(["Discount", f"-{format_amount_for_pdf(invoice.discount_amount)}"])
        rows.append(["TOTAL", format_amount_for_pdf(invoice.total)])

        totals_table = Table(rows, colWidths=[5.5 * inch, 1.5 * inch])
        totals_table.setStyle(TableStyle([
            ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("TEXTCOLOR", (0, 0), (0, -2), MUTED),
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("FONTSIZE", (0, -1), (-1, -1), 12),
            ("LINEABOVE", (0, -1), (-1, -1), 1, ACCENT),
            ("TOPPADDING", (0, 0), (-1, -1), 4),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ("RIGHTPADDING", (0, 0), (-1, -1), 0),
        ]))
        return [totals_table, Spacer(1, 0.3 * inch)]

    def _build_footer(self, invoice: Invoice, company: CompanySettings, styles: dict) -> list:
        bank_lines = [
            f"<b>Name:</b> {pdf_safe(company.name)}",
            f"<b>IFSC Code:</b> {pdf_safe(company.bank_ifsc)}",
            f"<b>Account No:</b> {pdf_safe(company.bank_account)}",
            f"<b>Bank:</b> {pdf_safe(company.bank_name)}",
        ]
        bank_block = [
            Paragraph("Bank Details", styles["heading"]),
            Paragraph("<br/>".join(bank_lines), styles["small"]),
        ]
        terms_block = [
            Paragraph("Terms and Conditions", styles["heading"]),
            Paragraph("<br/>".join(TERMS), styles["small"]),
        ]

        footer = Table([[bank_block, terms_block]], colWidths=[3.5 * inch, 3.5 * inch])
        footer.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ]))

        elements = [
            HRFlowable(width="100%", thickness=1, color=RULE, spaceAfter=6),
            footer,
        ]

        if invoice.notes:
            elements.append(Paragraph("Notes:", styles["heading"]))
            elements.append(Paragraph(pdf_safe(invoice.notes), styles["small"]))

        signatory = Table(
            [[
                "",
                [
                    Paragraph(f"For {pdf_safe(company.name)}", styles["signature"]),
                    Spacer(1, 0.5 * inch),
                    Paragraph("Authorised Signatory", styles["signature"]),
                ],
            ]],
            colWidths=[4.5 * inch, 2.5 * inch],
        )
        elements.append(Spacer(1, 0.3 * inch))
        elements.append(signatory)

        return elements


def generate_invoice_preview(invoice: Invoice) -> str:
    """
    Generate a simple text preview of an invoice.

    Useful for quick display in the UI.
    """
    preview = f"""
Invoice #{invoice.invoice_number}
To: {invoice.client.name}
Items: {len(invoice.items)}
Total: {format_amount_for_pdf(invoice.total)}
Due: {_format_date(invoice.due_date)}
Status: {invoice.status.display_name}
"""
    return preview.strip()
