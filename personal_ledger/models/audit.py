"""
Audit Models for the Personal Ledger

Every change to a user's entries is logged for audit purposes.
This provides:
1. Traceability of every create, update, delete and status change
2. Debugging information when a write is refused
3. Ability to reconstruct the history of an entry

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Entry lifecycle
    ENTRY_CREATED = "entry_created"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_DELETED = "entry_deleted"
    ENTRY_STATUS_CHANGED = "entry_status_changed"

    # Refused writes
    VALIDATION_FAILED = "validation_failed"
    PRECONDITION_VIOLATED = "precondition_violated"
    STATUS_TRANSITION_REJECTED = "status_transition_rejected"

    # Reads
    BALANCE_COMPUTED = "balance_computed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Entity ids are kept as strings because storage assigns
    integer ids to entries and users.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'entry', 'user')"
    )
    entity_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entry_created(entry_id, owner_id, "income", "500")
        event = AuditEventBuilder.validation_failed("create", "month", "invalid month")
    """

    @staticmethod
    def entry_created(
        entry_id: Optional[int],
        owner_id: Optional[int],
        entry_type: str,
        value: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_CREATED,
            entity_type="entry",
            entity_id=str(entry_id) if entry_id is not None else None,
            correlation_id=correlation_id,
            description=f"Entry created: {entry_type} of {value}",
            details={
                "owner_id": owner_id,
                "type": entry_type,
                "value": value,
            },
        )

    @staticmethod
    def entry_updated(
        entry_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_UPDATED,
            entity_type="entry",
            entity_id=str(entry_id),
            correlation_id=correlation_id,
            description=f"Entry {entry_id} updated",
        )

    @staticmethod
    def entry_deleted(
        entry_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_DELETED,
            entity_type="entry",
            entity_id=str(entry_id),
            correlation_id=correlation_id,
            description=f"Entry {entry_id} deleted",
        )

    @staticmethod
    def status_changed(
        entry_id: int,
        old_status: Optional[str],
        new_status: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_STATUS_CHANGED,
            entity_type="entry",
            entity_id=str(entry_id),
            correlation_id=correlation_id,
            description=f"Entry {entry_id} status: {old_status} -> {new_status}",
            details={
                "old_status": old_status,
                "new_status": new_status,
            },
        )

    @staticmethod
    def validation_failed(
        operation: str,
        field: str,
        message: str,
        entry_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="entry",
            entity_id=str(entry_id) if entry_id is not None else None,
            correlation_id=correlation_id,
            description=f"Entry {operation} refused: {message}",
            details={
                "operation": operation,
                "field": field,
            },
            error_message=message,
        )

    @staticmethod
    def precondition_violated(
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRECONDITION_VIOLATED,
            severity=AuditSeverity.ERROR,
            entity_type="entry",
            correlation_id=correlation_id,
            description=f"Entry {operation} called on an unsaved entry",
            details={"operation": operation},
        )

    @staticmethod
    def status_transition_rejected(
        entry_id: int,
        old_status: Optional[str],
        new_status: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATUS_TRANSITION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="entry",
            entity_id=str(entry_id),
            correlation_id=correlation_id,
            description=f"Status change {old_status} -> {new_status} rejected",
            details={
                "old_status": old_status,
                "new_status": new_status,
            },
        )

    @staticmethod
    def balance_computed(
        owner_id: int,
        income: str,
        expense: str,
        net: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_COMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="user",
            entity_id=str(owner_id),
            correlation_id=correlation_id,
            description=f"Balance computed for user {owner_id}: {net}",
            details={
                "income": income,
                "expense": expense,
                "net": net,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
