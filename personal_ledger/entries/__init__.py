"""Entry lifecycle package."""

from personal_ledger.entries.lifecycle import (
    EntryLifecycleManager,
    InvalidStatusTransition,
    PreconditionViolation,
    is_transition_allowed,
)

__all__ = [
    "EntryLifecycleManager",
    "InvalidStatusTransition",
    "PreconditionViolation",
    "is_transition_allowed",
]
