"""Invoice App: clients, invoices, validation and report exports."""

__version__ = "1.0.0"
