"""Services package."""

from personal_ledger.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    EntryRepository,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsEntryRepository,
    GoogleSheetsUserDirectory,
    InMemoryAuditStorage,
    InMemoryEntryRepository,
    InMemoryUserDirectory,
    NotFoundError,
    StorageError,
    UserDirectory,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "EntryRepository",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsEntryRepository",
    "GoogleSheetsUserDirectory",
    "InMemoryAuditStorage",
    "InMemoryEntryRepository",
    "InMemoryUserDirectory",
    "NotFoundError",
    "StorageError",
    "UserDirectory",
]
