"""
Build and Runtime Configuration

Build metadata, environment-driven feature flags and runtime settings.
Values are read from INVOICE_APP_* environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional


class BuildEnvironment(str, Enum):
    """Build environment types."""

    DEBUG = "debug"
    PROFILE = "profile"
    RELEASE = "release"


class BuildConfig:
    """Static build information."""

    APP_NAME = "Invoice App"
    APP_VERSION = "1.0.0"
    BUILD_NUMBER = "1"
    STORAGE_VERSION = 1

    ENABLED_FEATURES = frozenset({
        "pdf_export",
        "csv_export",
        "json_export",
        "excel_export",
        "client_management",
        "data_validation",
    })

    @staticmethod
    def environment() -> BuildEnvironment:
        raw = os.getenv("INVOICE_APP_ENV", BuildEnvironment.RELEASE.value)
        try:
            return BuildEnvironment(raw.strip().lower())
        except ValueError:
            return BuildEnvironment.RELEASE

    @classmethod
    def is_debug(cls) -> bool:
        return cls.environment() == BuildEnvironment.DEBUG

    @classmethod
    def is_release(cls) -> bool:
        return cls.environment() == BuildEnvironment.RELEASE

    @classmethod
    def is_feature_enabled(cls, feature: str) -> bool:
        return feature in cls.ENABLED_FEATURES

    @classmethod
    def creator(cls) -> str:
        return f"{cls.APP_NAME} v{cls.APP_VERSION}"


# =============================================================================
# Feature Flags
# =============================================================================

FeatureFlagKey = Literal["dark_mode", "advanced_reports", "ai_suggestions"]

_FEATURE_FLAG_DEFAULTS: dict[str, tuple[str, bool]] = {
    "dark_mode": ("INVOICE_APP_FEATURE_DARK_MODE", True),
    "advanced_reports": ("INVOICE_APP_FEATURE_ADVANCED_REPORTS", False),
    "ai_suggestions": ("INVOICE_APP_FEATURE_AI_SUGGESTIONS", False),
}


def _normalize_bool(value: Optional[str], default: bool) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


@lru_cache(maxsize=None)
def get_feature_flags() -> dict[str, bool]:
    """Return the cached feature flag state sourced from the environment."""
    return {
        key: _normalize_bool(os.getenv(env_var), default)
        for key, (env_var, default) in _FEATURE_FLAG_DEFAULTS.items()
    }


def is_feature_enabled(flag: FeatureFlagKey) -> bool:
    return get_feature_flags()[flag]


def refresh_feature_flag_cache() -> None:
    """Invalidate cached feature flag values (useful for tests)."""
    get_feature_flags.cache_clear()


# =============================================================================
# Runtime Settings
# =============================================================================

@dataclass(frozen=True)
class AppSettings:
    """Runtime settings for the storage layer and the web API."""

    data_dir: Path
    log_level: str = "INFO"
    payment_terms_days: int = 30
    invoice_prefix: str = "INV"

    @classmethod
    def from_env(cls) -> "AppSettings":
        terms = os.getenv("INVOICE_APP_PAYMENT_TERMS_DAYS", "30")
        try:
            payment_terms_days = max(int(terms), 0)
        except ValueError:
            payment_terms_days = 30

        return cls(
            data_dir=Path(os.getenv("INVOICE_APP_DATA_DIR", "data")),
            log_level=os.getenv("INVOICE_APP_LOG_LEVEL", "INFO").upper(),
            payment_terms_days=payment_terms_days,
            invoice_prefix=os.getenv("INVOICE_APP_INVOICE_PREFIX", "INV"),
        )


def get_app_settings() -> AppSettings:
    return AppSettings.from_env()
