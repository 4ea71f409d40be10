"""
Component Wiring for the Personal Ledger

This module ties the engine to its collaborators:
1. Storage (Google Sheets when configured, in-memory otherwise)
2. Audit logging
3. The lifecycle manager and the balance aggregator on top of them

DESIGN DECISION: Callers (UI, API, scripts) never build storage themselves.
They ask for components here, so swapping the backend touches one place.
"""

from typing import NamedTuple, Optional

import structlog

from personal_ledger.audit import AuditLogger, configure_logging
from personal_ledger.config import get_settings
from personal_ledger.entries import EntryLifecycleManager
from personal_ledger.queries import BalanceAggregator
from personal_ledger.services.storage import (
    EntryRepository,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsEntryRepository,
    GoogleSheetsUserDirectory,
    InMemoryAuditStorage,
    InMemoryEntryRepository,
    InMemoryUserDirectory,
    UserDirectory,
)

logger = structlog.get_logger(__name__)


class LedgerComponents(NamedTuple):
    """Everything a caller needs to work with the ledger."""
    lifecycle: EntryLifecycleManager
    balances: BalanceAggregator
    repository: EntryRepository
    users: UserDirectory
    audit_logger: AuditLogger
    sheets_client: Optional[GoogleSheetsClient]


def create_ledger_components(
    use_storage: bool = True,
) -> LedgerComponents:
    """
    Factory function to create all ledger components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run fully in memory.
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    sheets_client = None
    storage_error: Optional[Exception] = None
    repository: EntryRepository
    users: UserDirectory

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            sheets_client.connect()
            repository = GoogleSheetsEntryRepository(sheets_client)
            users = GoogleSheetsUserDirectory(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            storage_error = e
            use_storage = False

    if not use_storage:
        repository = InMemoryEntryRepository()
        users = InMemoryUserDirectory()
        audit_logger = AuditLogger(InMemoryAuditStorage())

    if storage_error is not None:
        audit_logger.log_error(
            error_type=type(storage_error).__name__,
            error_message=str(storage_error),
            details={"fallback": "in_memory"},
        )

    lifecycle = EntryLifecycleManager(
        repository,
        audit_logger=audit_logger,
        transition_policy=settings.ledger.status_transition_policy,
    )
    balances = BalanceAggregator(repository, audit_logger=audit_logger)

    return LedgerComponents(
        lifecycle=lifecycle,
        balances=balances,
        repository=repository,
        users=users,
        audit_logger=audit_logger,
        sheets_client=sheets_client,
    )
