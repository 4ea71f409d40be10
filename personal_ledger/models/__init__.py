"""
Data Models Package

This package contains all Pydantic models used by the Personal Ledger.
All data flowing through the engine must conform to these schemas.
"""

from personal_ledger.models.entry import (
    BalanceSummary,
    Entry,
    EntryFilter,
    EntryStatus,
    EntryType,
    User,
    ValidationIssue,
)
from personal_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entry models
    "BalanceSummary",
    "Entry",
    "EntryFilter",
    "EntryStatus",
    "EntryType",
    "User",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
