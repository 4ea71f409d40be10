"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep ledger rules decoupled from storage implementation

The interface is intentionally small - we're not building a full ORM.
Just the operations the lifecycle manager and the balance aggregator need.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional
from uuid import UUID

from personal_ledger.models.audit import AuditEvent
from personal_ledger.models.entry import Entry, EntryFilter, EntryType, User


class EntryRepository(ABC):
    """
    Abstract interface for entry storage operations.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    def insert(self, entry: Entry) -> Entry:
        """
        Persist a new entry.

        Returns:
            The stored entry, with its id assigned

        Raises:
            StorageError: If the write fails
        """

    @abstractmethod
    def update(self, entry: Entry) -> Entry:
        """
        Overwrite the stored entry that has the same id.

        Raises:
            NotFoundError: If no entry has this id
            StorageError: If the write fails
        """

    @abstractmethod
    def delete(self, entry: Entry) -> None:
        """Remove the stored entry that has the same id."""

    @abstractmethod
    def find_by_id(self, entry_id: int) -> Optional[Entry]:
        """
        Retrieve an entry by its id.

        Returns:
            The entry if found, None otherwise
        """

    @abstractmethod
    def find_by_example(self, template: EntryFilter) -> list[Entry]:
        """
        List entries matching every criterion set on the template.

        Unset template fields match anything.
        """

    @abstractmethod
    def sum_by_owner_and_type(
        self,
        owner_id: int,
        entry_type: EntryType,
    ) -> Decimal:
        """
        Sum the values of one user's entries of one type.

        Returns:
            The total, Decimal("0") when nothing matches
        """


class UserDirectory(ABC):
    """
    Read-only lookups of users.

    The ledger never creates or authenticates users.
    """

    @abstractmethod
    def exists(self, user_id: int) -> bool:
        """Check whether a user with this id exists."""

    @abstractmethod
    def find_by_id(self, user_id: int) -> Optional[User]:
        """Retrieve a user by id, None when unknown."""

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by email, None when unknown."""

    def exists_by_email(self, email: str) -> bool:
        """Check whether a user with this email exists."""
        return self.find_by_email(email) is not None


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a correlation ID, in chronological order."""

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get all events for a specific entity, in chronological order."""

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
