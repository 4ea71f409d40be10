"""
Tests for the entry lifecycle manager.

The repository is a MagicMock built from the abstract interface so each
test can assert exactly which storage calls were (or were not) made.
"""

from datetime import timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

from conftest import make_entry
from personal_ledger.audit import AuditLogger
from personal_ledger.config import StatusTransitionPolicy
from personal_ledger.entries import (
    EntryLifecycleManager,
    InvalidStatusTransition,
    PreconditionViolation,
    is_transition_allowed,
)
from personal_ledger.models.audit import AuditEventType
from personal_ledger.models.entry import EntryFilter, EntryStatus, EntryType
from personal_ledger.services.storage import StorageError
from personal_ledger.validation import EntryValidationError


@pytest.fixture
def manager(mock_repository) -> EntryLifecycleManager:
    return EntryLifecycleManager(
        mock_repository,
        transition_policy=StatusTransitionPolicy.ALLOW_ALL,
    )


def _saved(**overrides):
    overrides.setdefault("id", 1)
    return make_entry(**overrides)


class TestCreate:
    """Tests for EntryLifecycleManager.create."""

    def test_saves_valid_entry(self, manager, mock_repository):
        """Test that a valid entry is inserted and the stored copy returned."""
        entry = make_entry(status=None)
        stored = _saved(status=EntryStatus.PENDING)
        mock_repository.insert.return_value = stored

        result = manager.create(entry)

        assert result.id == 1
        assert result.status == EntryStatus.PENDING
        mock_repository.insert.assert_called_once_with(entry)

    def test_defaults_status_to_pending(self, manager, mock_repository):
        """Test that an unset status becomes PENDING before insert."""
        entry = make_entry(status=None)
        mock_repository.insert.side_effect = lambda e: e.model_copy(update={"id": 7})

        result = manager.create(entry)

        assert result.status == EntryStatus.PENDING

    def test_keeps_explicit_status(self, manager, mock_repository):
        entry = make_entry(status=EntryStatus.SETTLED)
        mock_repository.insert.side_effect = lambda e: e.model_copy(update={"id": 7})

        assert manager.create(entry).status == EntryStatus.SETTLED

    def test_stamps_registration_time(self, manager, mock_repository):
        """Test that the registration time is set once at creation."""
        entry = make_entry()
        mock_repository.insert.side_effect = lambda e: e.model_copy(update={"id": 7})

        result = manager.create(entry)

        assert result.registered_at is not None
        assert result.registered_at.tzinfo == timezone.utc

    def test_does_not_insert_invalid_entry(self, manager, mock_repository):
        """Test that validation failure never reaches storage."""
        entry = make_entry(description="")

        with pytest.raises(EntryValidationError, match="invalid description"):
            manager.create(entry)

        mock_repository.insert.assert_not_called()

    def test_storage_error_propagates_without_retry(self, manager, mock_repository):
        """Test that storage failures are raised unchanged, once."""
        mock_repository.insert.side_effect = StorageError("sheet unavailable")

        with pytest.raises(StorageError, match="sheet unavailable"):
            manager.create(make_entry())

        assert mock_repository.insert.call_count == 1


class TestUpdate:
    """Tests for EntryLifecycleManager.update."""

    def test_updates_saved_entry(self, manager, mock_repository):
        entry = _saved()
        mock_repository.update.return_value = entry

        result = manager.update(entry)

        assert result is entry
        mock_repository.update.assert_called_once_with(entry)

    def test_refuses_unsaved_entry(self, manager, mock_repository):
        """Test that an entry without id raises PreconditionViolation."""
        entry = make_entry()

        with pytest.raises(PreconditionViolation):
            manager.update(entry)

        mock_repository.update.assert_not_called()

    def test_precondition_checked_before_validation(self, manager, mock_repository):
        """Test that a missing id is reported even on an invalid entry."""
        entry = make_entry(description=None)

        with pytest.raises(PreconditionViolation):
            manager.update(entry)

    def test_precondition_is_not_a_validation_error(self):
        assert not issubclass(PreconditionViolation, EntryValidationError)

    def test_refuses_invalid_entry(self, manager, mock_repository):
        entry = _saved(value=Decimal("0"))

        with pytest.raises(EntryValidationError, match="invalid value"):
            manager.update(entry)

        mock_repository.update.assert_not_called()


class TestDelete:
    """Tests for EntryLifecycleManager.delete."""

    def test_deletes_saved_entry(self, manager, mock_repository):
        entry = _saved()

        manager.delete(entry)

        mock_repository.delete.assert_called_once_with(entry)

    def test_refuses_unsaved_entry(self, manager, mock_repository):
        entry = make_entry()

        with pytest.raises(PreconditionViolation):
            manager.delete(entry)

        mock_repository.delete.assert_not_called()


class TestChangeStatus:
    """Tests for EntryLifecycleManager.change_status."""

    def test_sets_status_and_updates_once(self, manager, mock_repository):
        """Test that the new status is saved through one update."""
        entry = _saved(status=EntryStatus.PENDING)
        mock_repository.update.side_effect = lambda e: e

        with patch.object(manager, "update", wraps=manager.update) as update_spy:
            result = manager.change_status(entry, EntryStatus.SETTLED)

        assert entry.status == EntryStatus.SETTLED
        assert result.status == EntryStatus.SETTLED
        update_spy.assert_called_once()
        mock_repository.update.assert_called_once_with(entry)

    def test_refuses_unsaved_entry(self, manager, mock_repository):
        entry = make_entry()

        with pytest.raises(PreconditionViolation):
            manager.change_status(entry, EntryStatus.SETTLED)

        mock_repository.update.assert_not_called()

    def test_revalidates_entry(self, manager, mock_repository):
        """Test that a status change goes through validation."""
        entry = _saved(month=13)

        with pytest.raises(EntryValidationError, match="invalid month"):
            manager.change_status(entry, EntryStatus.CANCELED)

        mock_repository.update.assert_not_called()

    def test_allow_all_permits_going_back_to_pending(self, manager, mock_repository):
        entry = _saved(status=EntryStatus.SETTLED)
        mock_repository.update.side_effect = lambda e: e

        manager.change_status(entry, EntryStatus.PENDING)

        assert entry.status == EntryStatus.PENDING

    def test_forward_only_rejects_going_back(self, mock_repository):
        """Test that the forward-only policy refuses SETTLED -> PENDING."""
        manager = EntryLifecycleManager(
            mock_repository,
            transition_policy=StatusTransitionPolicy.FORWARD_ONLY,
        )
        entry = _saved(status=EntryStatus.SETTLED)

        with pytest.raises(InvalidStatusTransition):
            manager.change_status(entry, EntryStatus.PENDING)

        assert entry.status == EntryStatus.SETTLED
        mock_repository.update.assert_not_called()

    def test_forward_only_allows_settling(self, mock_repository):
        manager = EntryLifecycleManager(
            mock_repository,
            transition_policy=StatusTransitionPolicy.FORWARD_ONLY,
        )
        entry = _saved(status=EntryStatus.PENDING)
        mock_repository.update.side_effect = lambda e: e

        result = manager.change_status(entry, EntryStatus.SETTLED)

        assert result.status == EntryStatus.SETTLED

    def test_policy_defaults_to_settings(self, mock_repository, monkeypatch):
        monkeypatch.setenv("LEDGER_STATUS_TRANSITION_POLICY", "forward_only")

        manager = EntryLifecycleManager(mock_repository)

        assert manager.transition_policy == StatusTransitionPolicy.FORWARD_ONLY


class TestTransitionPolicy:
    """Tests for is_transition_allowed."""

    @pytest.mark.parametrize("current", list(EntryStatus) + [None])
    @pytest.mark.parametrize("requested", list(EntryStatus))
    def test_allow_all(self, current, requested):
        assert is_transition_allowed(current, requested, StatusTransitionPolicy.ALLOW_ALL)

    @pytest.mark.parametrize(
        "current,requested,allowed",
        [
            (EntryStatus.PENDING, EntryStatus.SETTLED, True),
            (EntryStatus.PENDING, EntryStatus.CANCELED, True),
            (EntryStatus.PENDING, EntryStatus.PENDING, True),
            (None, EntryStatus.SETTLED, True),
            (EntryStatus.SETTLED, EntryStatus.PENDING, False),
            (EntryStatus.SETTLED, EntryStatus.CANCELED, False),
            (EntryStatus.CANCELED, EntryStatus.PENDING, False),
            (EntryStatus.CANCELED, EntryStatus.SETTLED, False),
            (EntryStatus.SETTLED, EntryStatus.SETTLED, True),
        ],
    )
    def test_forward_only(self, current, requested, allowed):
        policy = StatusTransitionPolicy.FORWARD_ONLY
        assert is_transition_allowed(current, requested, policy) is allowed


class TestReads:
    """Tests for find_by_id and search."""

    def test_find_by_id_returns_entry(self, manager, mock_repository):
        entry = _saved()
        mock_repository.find_by_id.return_value = entry

        assert manager.find_by_id(1) is entry
        mock_repository.find_by_id.assert_called_once_with(1)

    def test_find_by_id_returns_none_when_absent(self, manager, mock_repository):
        mock_repository.find_by_id.return_value = None

        assert manager.find_by_id(1) is None

    def test_search_passes_template_through(self, manager, mock_repository):
        entry = _saved()
        template = EntryFilter(owner_id=1, type=EntryType.INCOME)
        mock_repository.find_by_example.return_value = [entry]

        result = manager.search(template)

        assert result == [entry]
        mock_repository.find_by_example.assert_called_once_with(template)

    def test_search_accepts_entry_as_template(self, manager, mock_repository):
        """Test that only the non-null fields of an entry become criteria."""
        mock_repository.find_by_example.return_value = []
        entry = make_entry(month=None, value=None, status=None)

        manager.search(entry)

        template = mock_repository.find_by_example.call_args.args[0]
        assert isinstance(template, EntryFilter)
        assert template.criteria() == {
            "description": "salary",
            "year": 2019,
            "type": EntryType.INCOME,
            "owner_id": 1,
        }

    def test_search_materializes_results(self, manager, mock_repository):
        mock_repository.find_by_example.return_value = iter([_saved(), _saved(id=2)])

        result = manager.search(EntryFilter())

        assert isinstance(result, list)
        assert [e.id for e in result] == [1, 2]


class TestAuditing:
    """Tests for audit events emitted by the manager."""

    @pytest.fixture
    def audited_manager(self, mock_repository, audit_storage):
        return EntryLifecycleManager(
            mock_repository,
            audit_logger=AuditLogger(audit_storage),
            transition_policy=StatusTransitionPolicy.FORWARD_ONLY,
        )

    def _event_types(self, audit_storage):
        return [e.event_type for e in audit_storage.get_recent_events()]

    def test_create_is_audited(self, audited_manager, mock_repository, audit_storage):
        mock_repository.insert.side_effect = lambda e: e.model_copy(update={"id": 3})

        audited_manager.create(make_entry())

        events = audit_storage.get_events_by_entity("entry", "3")
        assert [e.event_type for e in events] == [AuditEventType.ENTRY_CREATED]

    def test_validation_failure_is_audited(self, audited_manager, audit_storage):
        with pytest.raises(EntryValidationError):
            audited_manager.create(make_entry(year=199))

        (event,) = audit_storage.get_recent_events()
        assert event.event_type == AuditEventType.VALIDATION_FAILED
        assert event.error_message == "invalid year"
        assert event.details["field"] == "year"

    def test_precondition_violation_is_audited(self, audited_manager, audit_storage):
        with pytest.raises(PreconditionViolation):
            audited_manager.delete(make_entry())

        assert self._event_types(audit_storage) == [AuditEventType.PRECONDITION_VIOLATED]

    def test_status_change_is_audited(self, audited_manager, mock_repository, audit_storage):
        mock_repository.update.side_effect = lambda e: e

        audited_manager.change_status(_saved(), EntryStatus.SETTLED)

        assert set(self._event_types(audit_storage)) == {
            AuditEventType.ENTRY_UPDATED,
            AuditEventType.ENTRY_STATUS_CHANGED,
        }

    def test_rejected_transition_is_audited(self, audited_manager, audit_storage):
        with pytest.raises(InvalidStatusTransition):
            audited_manager.change_status(
                _saved(status=EntryStatus.CANCELED), EntryStatus.PENDING
            )

        assert self._event_types(audit_storage) == [
            AuditEventType.STATUS_TRANSITION_REJECTED
        ]


class TestWithInMemoryRepository:
    """End-to-end lifecycle against the in-memory adapter."""

    def test_full_lifecycle(self, repository):
        manager = EntryLifecycleManager(
            repository,
            transition_policy=StatusTransitionPolicy.FORWARD_ONLY,
        )

        saved = manager.create(make_entry(status=None, description="Monthly Salary"))
        assert saved.id is not None
        assert saved.status == EntryStatus.PENDING

        registered_at = saved.registered_at
        saved.description = "Salary (January)"
        updated = manager.update(saved)
        assert updated.description == "Salary (January)"
        assert updated.registered_at == registered_at

        settled = manager.change_status(updated, EntryStatus.SETTLED)
        assert manager.find_by_id(saved.id).status == EntryStatus.SETTLED
        assert settled.status == EntryStatus.SETTLED

        found = manager.search(EntryFilter(description="JANUARY"))
        assert [e.id for e in found] == [saved.id]

        manager.delete(settled)
        assert manager.find_by_id(saved.id) is None
