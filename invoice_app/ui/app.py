"""
Invoice App Web API

Flask application for the invoicing tool.
Provides JSON endpoints for:
- Clients and invoices (CRUD, search, bulk operations)
- PDF invoice generation and download
- Company settings and form validation
- Exports, backups and dashboard stats
"""

from __future__ import annotations

import argparse
import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, request, send_file
from flask_cors import CORS

from invoice_app.config import (
    BuildConfig,
    FileSecurityConfig,
    SecurityConfig,
    get_app_settings,
    get_feature_flags,
    is_feature_enabled,
)
from invoice_app.config.security_config import XLSX_MIME_TYPE
from invoice_app.exports import ExportOptions, ExportService, get_export_statistics
from invoice_app.invoices import (
    InvoiceGenerator,
    InvoiceSortBy,
    duplicate_invoice,
    search_invoices,
    sort_invoices,
)
from invoice_app.models import Client, Invoice, InvoiceItem, InvoiceStatus, parse_datetime
from invoice_app.storage import MetadataManager, sanitize_client
from invoice_app.validation import ValidationFailedError, get_validator

logger = logging.getLogger(__name__)

DOWNLOAD_MIME_TYPES = {
    ".csv": "text/csv",
    ".json": "application/json",
    ".pdf": "application/pdf",
    ".xlsx": XLSX_MIME_TYPE,
    ".gz": "application/gzip",
}

# Company settings key -> validation field
COMPANY_FIELDS = {
    "name": "companyName",
    "address": "address",
    "phone": "phone",
    "email": "email",
    "bankAccount": "bankAccount",
    "bankIFSC": "ifscCode",
}

COMPANY_ATTRS = {
    "name": "name",
    "address": "address",
    "phone": "phone",
    "email": "email",
    "bankName": "bank_name",
    "bankAccount": "bank_account",
    "bankIFSC": "bank_ifsc",
    "logoPath": "logo_path",
}


# =============================================================================
# Request Parsing
# =============================================================================

def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def _parse_datetime(raw: str, field_name: str) -> datetime:
    try:
        return parse_datetime(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be an ISO date") from None


def _parse_invoice_fields(data: dict, metadata: MetadataManager) -> dict:
    """Turn a JSON payload into Invoice keyword arguments (present keys only)."""
    fields = {}

    if data.get("client_id"):
        client = metadata.get_client(data["client_id"])
        if client is None:
            raise ValueError(f"Client not found: {data['client_id']}")
        fields["client"] = client
    elif isinstance(data.get("client"), dict):
        fields["client"] = sanitize_client(Client.from_dict(data["client"]), get_validator())

    if "items" in data:
        if not isinstance(data["items"] or [], list):
            raise ValueError("items must be a list")
        fields["items"] = [InvoiceItem.from_dict(item) for item in data["items"] or []]
    if data.get("due_date"):
        fields["due_date"] = _parse_datetime(data["due_date"], "due_date")
    if "tax_percentage" in data:
        fields["tax_percentage"] = float(data["tax_percentage"] or 0)
    if "discount_amount" in data:
        fields["discount_amount"] = float(data["discount_amount"] or 0)
    if "notes" in data:
        fields["notes"] = data["notes"] or ""
    if data.get("status"):
        fields["status"] = InvoiceStatus(str(data["status"]).lower())
    if data.get("invoice_number"):
        fields["invoice_number"] = get_validator().restrict_input(str(data["invoice_number"]), "invoiceNumber")

    return fields


def _safe_download(directory: Path, filename: str, mimetype: Optional[str] = None):
    if "/" in filename or "\\" in filename or not FileSecurityConfig.is_secure_file_path(filename):
        return jsonify({"error": "Invalid filename"}), 400

    filepath = os.path.abspath(os.path.join(directory, filename))
    if not os.path.exists(filepath):
        return jsonify({"error": "File not found"}), 404

    mimetype = mimetype or DOWNLOAD_MIME_TYPES.get(Path(filename).suffix.lower(), "application/octet-stream")
    return send_file(filepath, mimetype=mimetype, as_attachment=True, download_name=filename)


# =============================================================================
# Flask App Factory
# =============================================================================

def create_app(data_dir: Optional[Path] = None) -> Flask:
    """Create and configure the Flask application."""

    settings = get_app_settings()
    if data_dir is None:
        data_dir = settings.data_dir

    app = Flask(__name__)

    CORS(app)

    # Initialize metadata manager
    metadata = MetadataManager(Path(data_dir), invoice_prefix=settings.invoice_prefix)
    app.config["metadata_manager"] = metadata
    app.config["invoices_dir"] = str(metadata.invoices_dir)
    app.config["exports_dir"] = str(metadata.exports_dir)

    validator = get_validator()

    # -------------------------------------------------------------------------
    # Error Handling
    # -------------------------------------------------------------------------

    @app.errorhandler(ValidationFailedError)
    def handle_validation_error(e: ValidationFailedError):
        body = {"success": False, "error": str(e)}
        if e.result is not None and e.result.error_type is not None:
            body["error_type"] = e.result.error_type.value
        return jsonify(body), 400

    @app.errorhandler(ValueError)
    def handle_value_error(e: ValueError):
        return jsonify({"success": False, "error": str(e)}), 400

    # -------------------------------------------------------------------------
    # Dashboard Routes
    # -------------------------------------------------------------------------

    @app.route("/api/stats")
    def get_stats():
        stats = metadata.get_dashboard_stats()
        if is_feature_enabled("advanced_reports"):
            stats["export_statistics"] = get_export_statistics(metadata.get_invoices()).to_dict()
        return jsonify(stats)

    # -------------------------------------------------------------------------
    # Client Routes
    # -------------------------------------------------------------------------

    @app.route("/api/clients", methods=["GET"])
    def list_clients():
        query = request.args.get("q", "").strip()
        return jsonify([c.to_dict() for c in metadata.search_clients(query)])

    @app.route("/api/clients", methods=["POST"])
    def add_client():
        data = _json_body()
        client = Client.create(
            name=data.get("name", ""),
            email=data.get("email", ""),
            address=data.get("address", ""),
            phone=data.get("phone", ""),
        )
        client = metadata.add_client(client)
        return jsonify({"success": True, "client": client.to_dict()}), 201

    @app.route("/api/clients/<client_id>", methods=["GET"])
    def get_client(client_id: str):
        client = metadata.get_client(client_id)
        if client is None:
            return jsonify({"error": "Client not found"}), 404
        return jsonify(client.to_dict())

    @app.route("/api/clients/<client_id>", methods=["PUT"])
    def update_client(client_id: str):
        client = metadata.get_client(client_id)
        if client is None:
            return jsonify({"error": "Client not found"}), 404

        data = _json_body()
        changes = {k: data[k] for k in ("name", "email", "address", "phone") if k in data}
        updated = metadata.update_client(client.copy_with(**changes))
        return jsonify({"success": True, "client": updated.to_dict()})

    @app.route("/api/clients/<client_id>", methods=["DELETE"])
    def delete_client(client_id: str):
        if metadata.delete_client(client_id):
            return jsonify({"success": True})
        return jsonify({"error": "Client not found"}), 404

    # -------------------------------------------------------------------------
    # Invoice Routes
    # -------------------------------------------------------------------------

    @app.route("/api/invoices", methods=["GET"])
    def list_invoices():
        status = request.args.get("status")
        invoices = metadata.get_invoices(status=InvoiceStatus(status.lower()) if status else None)
        invoices = search_invoices(invoices, request.args.get("q", "").strip())

        sort = request.args.get("sort")
        if sort:
            ascending = request.args.get("order", "asc").lower() != "desc"
            invoices = sort_invoices(invoices, InvoiceSortBy(sort), ascending=ascending)

        return jsonify([i.to_dict() for i in invoices])

    @app.route("/api/invoices", methods=["POST"])
    def create_invoice():
        data = _json_body()
        fields = _parse_invoice_fields(data, metadata)
        if "client" not in fields:
            raise ValueError("Client required")

        now = datetime.now()
        invoice = Invoice.create(
            client=fields.pop("client"),
            items=fields.pop("items", []),
            due_date=fields.pop("due_date", now + timedelta(days=settings.payment_terms_days)),
            now=now,
        )
        invoice = invoice.copy_with(**fields)

        if "invoice_number" in fields:
            metadata.add_invoice(invoice)
        else:
            invoice = metadata.add_numbered_invoice(invoice)
        return jsonify({"success": True, "invoice": invoice.to_dict()}), 201

    @app.route("/api/invoices/<invoice_id>", methods=["GET"])
    def get_invoice(invoice_id: str):
        invoice = metadata.get_invoice(invoice_id)
        if invoice is None:
            return jsonify({"error": "Invoice not found"}), 404
        return jsonify(invoice.to_dict())

    @app.route("/api/invoices/<invoice_id>", methods=["PUT"])
    def update_invoice(invoice_id: str):
        invoice = metadata.get_invoice(invoice_id)
        if invoice is None:
            return jsonify({"error": "Invoice not found"}), 404

        updated = invoice.copy_with(**_parse_invoice_fields(_json_body(), metadata))
        metadata.update_invoice(updated)
        return jsonify({"success": True, "invoice": updated.to_dict()})

    @app.route("/api/invoices/<invoice_id>", methods=["DELETE"])
    def delete_invoice(invoice_id: str):
        if metadata.delete_invoice(invoice_id):
            return jsonify({"success": True})
        return jsonify({"error": "Invoice not found"}), 404

    @app.route("/api/invoices/<invoice_id>/status", methods=["PUT"])
    def update_invoice_status(invoice_id: str):
        data = _json_body()
        status = InvoiceStatus(str(data.get("status", "")).lower())
        if metadata.update_invoice_status(invoice_id, status):
            return jsonify({"success": True})
        return jsonify({"error": "Invoice not found"}), 404

    @app.route("/api/invoices/<invoice_id>/duplicate", methods=["POST"])
    def duplicate(invoice_id: str):
        invoice = metadata.get_invoice(invoice_id)
        if invoice is None:
            return jsonify({"error": "Invoice not found"}), 404

        copy = duplicate_invoice(invoice, payment_terms_days=settings.payment_terms_days)
        copy = metadata.add_numbered_invoice(copy)
        return jsonify({"success": True, "invoice": copy.to_dict()}), 201

    @app.route("/api/invoices/bulk/status", methods=["POST"])
    def bulk_status():
        data = _json_body()
        status = InvoiceStatus(str(data.get("status", "")).lower())
        updated = metadata.bulk_update_status(data.get("ids") or [], status)
        return jsonify({"success": True, "updated": updated})

    @app.route("/api/invoices/bulk/delete", methods=["POST"])
    def bulk_delete():
        data = _json_body()
        deleted = metadata.bulk_delete(data.get("ids") or [])
        return jsonify({"success": True, "deleted": deleted})

    @app.route("/api/invoices/<invoice_id>/pdf", methods=["POST"])
    def generate_pdf(invoice_id: str):
        invoice = metadata.get_invoice(invoice_id)
        if invoice is None:
            return jsonify({"error": "Invoice not found"}), 404

        try:
            generator = InvoiceGenerator(output_dir=metadata.invoices_dir)
            pdf_bytes, filename = generator.generate_invoice(invoice, metadata.get_company_settings())
        except ValueError as e:
            return jsonify({"success": False, "error": str(e)}), 400
        except Exception as e:
            logger.exception("Invoice PDF generation failed")
            return jsonify({"success": False, "error": str(e)}), 500

        return jsonify({
            "success": True,
            "filename": filename,
            "size_bytes": len(pdf_bytes),
            "download_url": f"/api/invoices/download/{filename}",
        })

    @app.route("/api/invoices/download/<filename>")
    def download_invoice(filename: str):
        return _safe_download(metadata.invoices_dir, filename, mimetype="application/pdf")

    # -------------------------------------------------------------------------
    # Settings and Validation Routes
    # -------------------------------------------------------------------------

    @app.route("/api/settings/company", methods=["GET"])
    def get_company_settings():
        return jsonify(metadata.get_company_settings().to_dict())

    @app.route("/api/settings/company", methods=["PUT"])
    def save_company_settings():
        data = _json_body()
        changes = {}
        for key, attr in COMPANY_ATTRS.items():
            if key not in data:
                continue
            value = data[key]
            if key in COMPANY_FIELDS:
                result = validator.validate(value, COMPANY_FIELDS[key])
                if not result.is_valid:
                    raise ValidationFailedError(result.error_message or f"Invalid {key}", result)
                value = result.sanitized_value or ""
            elif value is not None:
                value = SecurityConfig.sanitize_input(str(value))
            changes[attr] = value

        company = metadata.get_company_settings().copy_with(**changes)
        metadata.save_company_settings(company)
        return jsonify({"success": True, "settings": company.to_dict()})

    @app.route("/api/validate", methods=["POST"])
    def validate_form():
        data = _json_body()
        form = data.get("fields", data)
        results = validator.validate_form({k: None if v is None else str(v) for k, v in form.items()})
        return jsonify({
            "is_valid": all(r.is_valid for r in results.values()),
            "fields": {k: r.to_dict() for k, r in results.items()},
        })

    # -------------------------------------------------------------------------
    # Export Routes
    # -------------------------------------------------------------------------

    @app.route("/api/exports", methods=["POST"])
    def run_export():
        data = _json_body()
        options = ExportOptions.from_dict(data)

        export_service = ExportService(output_dir=metadata.exports_dir)
        result = export_service.export_invoices(
            metadata.get_invoices(),
            options,
            selected_ids=data.get("selected_ids"),
        )
        if not result.success:
            return jsonify({"success": False, "error": result.error_message}), 400

        body = result.to_dict()
        body["download_url"] = f"/api/exports/download/{result.file_name}"
        return jsonify(body)

    @app.route("/api/exports/download/<filename>")
    def download_export(filename: str):
        return _safe_download(metadata.exports_dir, filename)

    @app.route("/api/backup", methods=["GET"])
    def export_backup():
        return jsonify(ExportService.export_backup(metadata.get_invoices()))

    @app.route("/api/backup", methods=["POST"])
    def import_backup():
        data = _json_body()
        invoices = ExportService.import_backup(data, metadata.get_invoices())
        imported = metadata.import_invoices(invoices)
        return jsonify({"success": True, "imported": imported})

    # Health check
    @app.route("/health")
    def health():
        return jsonify({
            "status": "ok",
            "version": BuildConfig.APP_VERSION,
            "environment": BuildConfig.environment().value,
            "features": get_feature_flags(),
        })

    logger.info(f"{BuildConfig.creator()} initialized with data dir {data_dir}")
    return app


# =============================================================================
# Main Entry Point
# =============================================================================

def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description=f"{BuildConfig.APP_NAME} - Invoicing API")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=5000, help="Port to bind to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args(argv)

    settings = get_app_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    print()
    print(f"   {BuildConfig.creator()}")
    print(f"   Running at: http://{args.host}:{args.port}")
    print()
    print("   Press Ctrl+C to stop")
    print()

    app = create_app(settings.data_dir)
    app.run(host=args.host, port=args.port, debug=args.debug or BuildConfig.is_debug())


if __name__ == "__main__":
    main()
