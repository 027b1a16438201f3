"""Application configuration module."""

from .build_config import (
    AppSettings,
    BuildConfig,
    BuildEnvironment,
    get_app_settings,
    get_feature_flags,
    is_feature_enabled,
    refresh_feature_flag_cache,
)
from .security_config import (
    FileSecurityConfig,
    PrivacyConfig,
    SecurityConfig,
)

__all__ = [
    "AppSettings",
    "BuildConfig",
    "BuildEnvironment",
    "get_app_settings",
    "get_feature_flags",
    "is_feature_enabled",
    "refresh_feature_flag_cache",
    "FileSecurityConfig",
    "PrivacyConfig",
    "SecurityConfig",
]
