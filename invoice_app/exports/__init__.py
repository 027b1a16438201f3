"""Export generation module."""

from .generate_reports import (
    AVAILABLE_FIELDS,
    ExportFormat,
    ExportOptions,
    ExportResult,
    ExportScope,
    ExportService,
    ExportStatistics,
    export_to_csv,
    export_to_json,
    export_to_pdf,
    export_to_xlsx,
    field_value,
    filter_invoices,
    get_export_statistics,
)

__all__ = [
    "AVAILABLE_FIELDS",
    "ExportFormat",
    "ExportOptions",
    "ExportResult",
    "ExportScope",
    "ExportService",
    "ExportStatistics",
    "export_to_csv",
    "export_to_json",
    "export_to_pdf",
    "export_to_xlsx",
    "field_value",
    "filter_invoices",
    "get_export_statistics",
]
