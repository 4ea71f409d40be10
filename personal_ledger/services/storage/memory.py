"""
In-Memory Storage Implementation

Used by the tests and for local runs when Google Sheets isn't configured.
Entries are deep-copied on the way in and out, so callers never share
state with the store.
"""

import threading
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from personal_ledger.models.audit import AuditEvent
from personal_ledger.models.entry import Entry, EntryFilter, EntryType, User
from personal_ledger.services.storage.filtering import filter_entries, sum_values
from personal_ledger.services.storage.interface import (
    AuditStorageInterface,
    EntryRepository,
    NotFoundError,
    UserDirectory,
)


class InMemoryEntryRepository(EntryRepository):
    """Entry storage backed by a dict keyed by id."""

    def __init__(self, entries: Optional[Iterable[Entry]] = None):
        self._entries: dict[int, Entry] = {}
        self._next_id = 1
        self._lock = threading.Lock()
        for entry in entries or []:
            self.insert(entry)

    def insert(self, entry: Entry) -> Entry:
        with self._lock:
            stored = entry.model_copy(deep=True)
            stored.id = self._next_id
            self._next_id += 1
            self._entries[stored.id] = stored
            return stored.model_copy(deep=True)

    def update(self, entry: Entry) -> Entry:
        with self._lock:
            current = self._entries.get(entry.id)
            if current is None:
                raise NotFoundError(f"Entry not found: {entry.id}")
            stored = entry.model_copy(deep=True)
            # Registration time is immutable once stored
            stored.registered_at = current.registered_at
            self._entries[stored.id] = stored
            return stored.model_copy(deep=True)

    def delete(self, entry: Entry) -> None:
        with self._lock:
            self._entries.pop(entry.id, None)

    def find_by_id(self, entry_id: int) -> Optional[Entry]:
        with self._lock:
            stored = self._entries.get(entry_id)
            return stored.model_copy(deep=True) if stored is not None else None

    def find_by_example(self, template: EntryFilter) -> list[Entry]:
        with self._lock:
            return [
                entry.model_copy(deep=True)
                for entry in filter_entries(self._entries.values(), template)
            ]

    def sum_by_owner_and_type(
        self,
        owner_id: int,
        entry_type: EntryType,
    ) -> Decimal:
        with self._lock:
            return sum_values(self._entries.values(), owner_id, entry_type)

    def __len__(self) -> int:
        return len(self._entries)


class InMemoryUserDirectory(UserDirectory):
    """User lookups over a fixed list of users."""

    def __init__(self, users: Optional[Iterable[User]] = None):
        self._users: dict[int, User] = {
            user.id: user for user in (users or []) if user.id is not None
        }

    def add(self, user: User) -> None:
        if user.id is None:
            raise ValueError("Users need an id to be listed in the directory")
        self._users[user.id] = user

    def exists(self, user_id: int) -> bool:
        return user_id in self._users

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        for user in self._users.values():
            if user.email and user.email.lower() == wanted:
                return user
        return None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()

    def append_event(self, event: AuditEvent) -> bool:
        with self._lock:
            self._events.append(event)
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        with self._lock:
            events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        with self._lock:
            events = [
                e for e in self._events
                if e.entity_type == entity_type and e.entity_id == entity_id
            ]
        return sorted(events, key=lambda e: e.timestamp)

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        with self._lock:
            events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
