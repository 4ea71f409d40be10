"""
Audit Logger

DESIGN DECISION: Every write to the ledger is logged.
This provides:
1. Complete traceability of entry changes
2. Debugging capability when writes are refused
3. A history users can inspect

The audit logger:
- Gracefully handles storage failures (auditing never breaks a write)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from personal_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from personal_ledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structured logs to stderr at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("personal_ledger.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_entry_created(
        self,
        entry_id: Optional[int],
        owner_id: Optional[int],
        entry_type: str,
        value: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log entry creation."""
        self.log(AuditEventBuilder.entry_created(
            entry_id=entry_id,
            owner_id=owner_id,
            entry_type=entry_type,
            value=value,
            correlation_id=correlation_id,
        ))

    def log_entry_updated(
        self,
        entry_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log entry update."""
        self.log(AuditEventBuilder.entry_updated(
            entry_id=entry_id,
            correlation_id=correlation_id,
        ))

    def log_entry_deleted(
        self,
        entry_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log entry deletion."""
        self.log(AuditEventBuilder.entry_deleted(
            entry_id=entry_id,
            correlation_id=correlation_id,
        ))

    def log_status_changed(
        self,
        entry_id: int,
        old_status: Optional[str],
        new_status: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a status change."""
        self.log(AuditEventBuilder.status_changed(
            entry_id=entry_id,
            old_status=old_status,
            new_status=new_status,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        operation: str,
        field: str,
        message: str,
        entry_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a write refused by validation."""
        self.log(AuditEventBuilder.validation_failed(
            operation=operation,
            field=field,
            message=message,
            entry_id=entry_id,
            correlation_id=correlation_id,
        ))

    def log_precondition_violated(
        self,
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a write attempted on an unsaved entry."""
        self.log(AuditEventBuilder.precondition_violated(
            operation=operation,
            correlation_id=correlation_id,
        ))

    def log_status_transition_rejected(
        self,
        entry_id: int,
        old_status: Optional[str],
        new_status: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a status change refused by the transition policy."""
        self.log(AuditEventBuilder.status_transition_rejected(
            entry_id=entry_id,
            old_status=old_status,
            new_status=new_status,
            correlation_id=correlation_id,
        ))

    def log_balance_computed(
        self,
        owner_id: int,
        income: str,
        expense: str,
        net: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a balance summary."""
        self.log(AuditEventBuilder.balance_computed(
            owner_id=owner_id,
            income=income,
            expense=expense,
            net=net,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action and pass it through
    every call that belongs to it.
    """
    return uuid4()
