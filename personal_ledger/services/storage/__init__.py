"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the persistent backend; the in-memory adapters back the
tests and local runs.
"""

from personal_ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    EntryRepository,
    NotFoundError,
    StorageError,
    UserDirectory,
)
from personal_ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryEntryRepository,
    InMemoryUserDirectory,
)
from personal_ledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsEntryRepository,
    GoogleSheetsUserDirectory,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "EntryRepository",
    "UserDirectory",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryEntryRepository",
    "InMemoryUserDirectory",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsEntryRepository",
    "GoogleSheetsUserDirectory",
]
