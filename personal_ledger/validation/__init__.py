"""Entry validation package."""

from personal_ledger.validation.validator import (
    MIN_YEAR,
    EntryValidationError,
    EntryValidator,
    validate_entry,
)

__all__ = ["MIN_YEAR", "EntryValidationError", "EntryValidator", "validate_entry"]
