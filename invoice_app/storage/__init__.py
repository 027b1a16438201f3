"""Local storage module."""

from .metadata import MetadataManager, migrate_legacy_clients, sanitize_client

__all__ = ["MetadataManager", "migrate_legacy_clients", "sanitize_client"]
