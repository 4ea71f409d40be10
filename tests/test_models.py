"""
Tests for the Personal Ledger

Test strategy:
1. Unit tests for individual components (models, validator, aggregator)
2. Lifecycle tests against mocked and in-memory repositories
3. No real API calls in tests (Google Sheets is faked)
"""

import pytest
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

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


class TestEntryModels:
    """Tests for entry-related Pydantic models."""

    def test_entry_defaults(self):
        """Test that a new entry has no id, status or registration time."""
        entry = Entry(description="salary")
        assert entry.id is None
        assert entry.status is None
        assert entry.registered_at is None
        assert entry.is_persisted is False

    def test_entry_accepts_invalid_candidates(self):
        """Test that invalid values are left for the validator to report."""
        entry = Entry(month=0, year=199, value=Decimal("-5"))
        assert entry.month == 0
        assert entry.year == 199
        assert entry.value == Decimal("-5")

    def test_entry_value_is_decimal(self):
        entry = Entry(value="10.50")
        assert entry.value == Decimal("10.50")

    def test_owner_id(self):
        assert Entry(owner=User(id=4)).owner_id == 4
        assert Entry(owner=User()).owner_id is None
        assert Entry().owner_id is None

    def test_user_strips_whitespace(self):
        user = User(id=1, email="  user@email.com  ")
        assert user.email == "user@email.com"

    def test_enum_values(self):
        assert EntryType("income") == EntryType.INCOME
        assert EntryType.EXPENSE.value == "expense"
        assert [s.value for s in EntryStatus] == ["pending", "settled", "canceled"]


class TestEntryFilter:
    """Tests for the filter-by-example template."""

    def test_criteria_only_has_set_fields(self):
        template = EntryFilter(month=2, type=EntryType.EXPENSE)
        assert template.criteria() == {"month": 2, "type": EntryType.EXPENSE}

    def test_empty_template(self):
        assert EntryFilter().criteria() == {}

    def test_from_entry(self):
        entry = Entry(
            id=3,
            description="rent",
            year=2024,
            owner=User(id=9, email="x@email.com"),
            status=EntryStatus.PENDING,
        )
        template = EntryFilter.from_entry(entry)
        assert template.criteria() == {
            "id": 3,
            "description": "rent",
            "year": 2024,
            "status": EntryStatus.PENDING,
            "owner_id": 9,
        }


class TestSupportModels:
    """Tests for validation and balance models."""

    def test_validation_issue_severity(self):
        issue = ValidationIssue(field="month", issue_type="out_of_range", message="invalid month")
        assert issue.severity == "error"

    def test_validation_issue_rejects_unknown_severity(self):
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")

    def test_balance_summary_defaults(self):
        summary = BalanceSummary(owner_id=1)
        assert summary.income == summary.expense == summary.net == Decimal("0")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.ENTRY_CREATED,
            description="Entry created",
        )
        assert event.event_type == AuditEventType.ENTRY_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.ENTRY_DELETED,
            description="Entry deleted",
            entity_type="entry",
            entity_id="12",
            details={"owner_id": 1},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "entry_deleted"
        assert log_dict["entity_id"] == "12"
        assert log_dict["details"]["owner_id"] == 1

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            description="Entry create refused: invalid month",
            error_message="invalid month",
        )
        row = event.to_sheets_row()
        assert len(row) == 10
        assert row[2] == "validation_failed"
        assert row[9] == "invalid month"

    def test_builder_entry_created(self):
        """Test AuditEventBuilder.entry_created."""
        correlation_id = uuid4()
        event = AuditEventBuilder.entry_created(
            entry_id=5,
            owner_id=1,
            entry_type="income",
            value="500",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.ENTRY_CREATED
        assert event.entity_id == "5"
        assert event.correlation_id == correlation_id
        assert event.details == {"owner_id": 1, "type": "income", "value": "500"}

    def test_builder_validation_failed(self):
        """Test AuditEventBuilder.validation_failed."""
        event = AuditEventBuilder.validation_failed(
            operation="update",
            field="value",
            message="invalid value",
            entry_id=2,
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.error_message == "invalid value"
        assert event.entity_id == "2"

    def test_builder_status_changed(self):
        event = AuditEventBuilder.status_changed(
            entry_id=2, old_status="pending", new_status="settled"
        )
        assert event.details == {"old_status": "pending", "new_status": "settled"}
        assert isinstance(event.timestamp, datetime)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
