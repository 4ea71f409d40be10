"""Configuration package."""

from personal_ledger.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    LedgerSettings,
    Settings,
    StatusTransitionPolicy,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "LedgerSettings",
    "Settings",
    "StatusTransitionPolicy",
    "get_settings",
    "validate_all_settings",
]
