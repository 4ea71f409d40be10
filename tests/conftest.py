"""
Shared fixtures for the Personal Ledger tests.

No real storage is touched: repositories are either the in-memory
adapters or MagicMocks built from the abstract interface.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from personal_ledger.config import get_settings
from personal_ledger.models.entry import Entry, EntryStatus, EntryType, User
from personal_ledger.services.storage import (
    EntryRepository,
    InMemoryAuditStorage,
    InMemoryEntryRepository,
)


def make_entry(**overrides) -> Entry:
    """A valid, unsaved entry; override any field."""
    fields = dict(
        description="salary",
        month=1,
        year=2019,
        value=Decimal("10"),
        type=EntryType.INCOME,
        status=EntryStatus.PENDING,
        owner=User(id=1, email="user@email.com"),
    )
    fields.update(overrides)
    return Entry(**fields)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; never leak them between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_repository() -> MagicMock:
    return MagicMock(spec=EntryRepository)


@pytest.fixture
def repository() -> InMemoryEntryRepository:
    return InMemoryEntryRepository()


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()
