"""
Entry Lifecycle Manager

Orchestrates create, update, delete and status changes of ledger entries.

DESIGN DECISION: The manager enforces the boundaries:
- Nothing reaches storage without passing the EntryValidator
- Update, delete and status changes refuse entries that were never saved
- Every write is exactly one repository call (no batching, no caching)
- Storage errors propagate unchanged; there are no retries here

The manager keeps no entry state between calls. Correctness of concurrent
writes to the same entry belongs to the repository.
"""

from datetime import datetime, timezone
from typing import Optional, Union
from uuid import UUID

import structlog

from personal_ledger.audit import AuditLogger
from personal_ledger.config import StatusTransitionPolicy, get_settings
from personal_ledger.models.entry import Entry, EntryFilter, EntryStatus
from personal_ledger.services.storage import EntryRepository
from personal_ledger.validation import EntryValidator

logger = structlog.get_logger(__name__)


class PreconditionViolation(Exception):
    """
    An operation that needs a saved entry got one without an id.

    This is an integration error, not a user-facing validation problem.
    """

    def __init__(self, operation: str):
        super().__init__(f"Cannot {operation} an entry that has not been saved")
        self.operation = operation


class InvalidStatusTransition(Exception):
    """The configured policy forbids this status change."""

    def __init__(self, current: Optional[EntryStatus], requested: EntryStatus):
        current_label = current.value if current else "unset"
        super().__init__(
            f"Status cannot change from {current_label} to {requested.value}"
        )
        self.current = current
        self.requested = requested


# Forward-only state machine: PENDING settles or cancels, nothing else moves
_FORWARD_TRANSITIONS: dict[EntryStatus, set[EntryStatus]] = {
    EntryStatus.PENDING: {EntryStatus.SETTLED, EntryStatus.CANCELED},
    EntryStatus.SETTLED: set(),
    EntryStatus.CANCELED: set(),
}


def is_transition_allowed(
    current: Optional[EntryStatus],
    requested: EntryStatus,
    policy: StatusTransitionPolicy,
) -> bool:
    """Check a status change against a transition policy."""
    if policy == StatusTransitionPolicy.ALLOW_ALL:
        return True
    current = current or EntryStatus.PENDING
    return requested == current or requested in _FORWARD_TRANSITIONS[current]


class EntryLifecycleManager:
    """
    Entry point for every change to a user's ledger.

    Usage:
        manager = EntryLifecycleManager(repository)
        saved = manager.create(entry)
        manager.change_status(saved, EntryStatus.SETTLED)
    """

    def __init__(
        self,
        repository: EntryRepository,
        validator: Optional[EntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        transition_policy: Optional[StatusTransitionPolicy] = None,
    ):
        self._repository = repository
        self._validator = validator or EntryValidator()
        self._audit_logger = audit_logger
        self._transition_policy = (
            transition_policy or get_settings().ledger.status_transition_policy
        )

    @property
    def transition_policy(self) -> StatusTransitionPolicy:
        return self._transition_policy

    def _require_id(
        self,
        entry: Entry,
        operation: str,
        correlation_id: Optional[UUID],
    ) -> None:
        if entry.id is None:
            logger.error("entry_precondition_violated", operation=operation)
            if self._audit_logger:
                self._audit_logger.log_precondition_violated(
                    operation=operation,
                    correlation_id=correlation_id,
                )
            raise PreconditionViolation(operation)

    def _validate(
        self,
        entry: Entry,
        operation: str,
        correlation_id: Optional[UUID],
    ) -> None:
        error = self._validator.validate(entry)
        if error is None:
            return

        logger.info(
            "entry_validation_failed",
            operation=operation,
            field=error.field,
            message=error.message,
        )
        if self._audit_logger:
            self._audit_logger.log_validation_failed(
                operation=operation,
                field=error.field,
                message=error.message,
                entry_id=entry.id,
                correlation_id=correlation_id,
            )
        raise error

    def create(
        self,
        entry: Entry,
        correlation_id: Optional[UUID] = None,
    ) -> Entry:
        """
        Validate and persist a new entry.

        Unset status defaults to PENDING and the registration time is
        stamped here, once.

        Raises:
            EntryValidationError: The entry broke a rule; storage untouched
        """
        self._validate(entry, "create", correlation_id)

        if entry.status is None:
            entry.status = EntryStatus.PENDING
        if entry.registered_at is None:
            entry.registered_at = datetime.now(timezone.utc)

        saved = self._repository.insert(entry)

        logger.info("entry_created", entry_id=saved.id, owner_id=saved.owner_id)
        if self._audit_logger:
            self._audit_logger.log_entry_created(
                entry_id=saved.id,
                owner_id=saved.owner_id,
                entry_type=saved.type.value,
                value=str(saved.value),
                correlation_id=correlation_id,
            )
        return saved

    def update(
        self,
        entry: Entry,
        correlation_id: Optional[UUID] = None,
    ) -> Entry:
        """
        Validate and overwrite a saved entry.

        Raises:
            PreconditionViolation: The entry has no id
            EntryValidationError: The entry broke a rule; storage untouched
        """
        self._require_id(entry, "update", correlation_id)
        self._validate(entry, "update", correlation_id)

        saved = self._repository.update(entry)

        logger.info("entry_updated", entry_id=saved.id)
        if self._audit_logger:
            self._audit_logger.log_entry_updated(
                entry_id=saved.id,
                correlation_id=correlation_id,
            )
        return saved

    def delete(
        self,
        entry: Entry,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Remove a saved entry.

        Raises:
            PreconditionViolation: The entry has no id
        """
        self._require_id(entry, "delete", correlation_id)

        self._repository.delete(entry)

        logger.info("entry_deleted", entry_id=entry.id)
        if self._audit_logger:
            self._audit_logger.log_entry_deleted(
                entry_id=entry.id,
                correlation_id=correlation_id,
            )

    def change_status(
        self,
        entry: Entry,
        new_status: EntryStatus,
        correlation_id: Optional[UUID] = None,
    ) -> Entry:
        """
        Set a new status and save it through the full update path.

        The entry is re-validated like any other update.

        Raises:
            PreconditionViolation: The entry has no id
            InvalidStatusTransition: The transition policy forbids the change
            EntryValidationError: The entry broke a rule
        """
        self._require_id(entry, "change the status of", correlation_id)

        old_status = entry.status
        if not is_transition_allowed(old_status, new_status, self._transition_policy):
            if self._audit_logger:
                self._audit_logger.log_status_transition_rejected(
                    entry_id=entry.id,
                    old_status=old_status.value if old_status else None,
                    new_status=new_status.value,
                    correlation_id=correlation_id,
                )
            raise InvalidStatusTransition(old_status, new_status)

        entry.status = new_status
        saved = self.update(entry, correlation_id=correlation_id)

        if self._audit_logger:
            self._audit_logger.log_status_changed(
                entry_id=entry.id,
                old_status=old_status.value if old_status else None,
                new_status=new_status.value,
                correlation_id=correlation_id,
            )
        return saved

    def find_by_id(self, entry_id: int) -> Optional[Entry]:
        """Look up an entry; None when it doesn't exist."""
        return self._repository.find_by_id(entry_id)

    def search(self, template: Union[EntryFilter, Entry]) -> list[Entry]:
        """
        List entries matching the set fields of a template.

        An Entry may be passed as the template; only its non-null
        fields become criteria.
        """
        if isinstance(template, Entry):
            template = EntryFilter.from_entry(template)
        return list(self._repository.find_by_example(template))
