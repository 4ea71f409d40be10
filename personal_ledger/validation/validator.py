"""
Entry Validation

DESIGN DECISION: Rules run in a strict, fixed order and the first
failing rule is the only one reported:

1. description  - present and not blank
2. month        - between 1 and 12
3. year         - four digits or more (>= 1900)
4. owner        - present and carrying an id
5. value        - present, finite and greater than zero
6. type         - present

WHY ONE ERROR:
The caller shows one actionable message at a time. Tests and UIs rely on
getting the same message for the same input.

IMPORTANT: Validation NEVER fixes anything and never touches storage.
"""

from decimal import Decimal
from typing import Callable, Optional

from personal_ledger.models.entry import Entry, ValidationIssue

MIN_YEAR = 1900


class EntryValidationError(Exception):
    """
    An entry broke a business rule.

    Carries exactly one issue, the first rule violated. The message is
    meant for end users.
    """

    def __init__(self, issue: ValidationIssue):
        super().__init__(issue.message)
        self.issue = issue

    @property
    def field(self) -> str:
        return self.issue.field

    @property
    def message(self) -> str:
        return self.issue.message


def _has_description(entry: Entry) -> bool:
    return entry.description is not None and entry.description.strip() != ""


def _has_valid_month(entry: Entry) -> bool:
    return entry.month is not None and 1 <= entry.month <= 12


def _has_valid_year(entry: Entry) -> bool:
    return entry.year is not None and entry.year >= MIN_YEAR


def _has_owner(entry: Entry) -> bool:
    return entry.owner is not None and entry.owner.id is not None


def _has_positive_value(entry: Entry) -> bool:
    value = entry.value
    if value is None:
        return False
    if isinstance(value, Decimal) and not value.is_finite():
        return False
    return value > 0


def _has_type(entry: Entry) -> bool:
    return entry.type is not None


# (check, field, issue_type, message) - order matters
_RULES: list[tuple[Callable[[Entry], bool], str, str, str]] = [
    (_has_description, "description", "missing", "invalid description"),
    (_has_valid_month, "month", "out_of_range", "invalid month"),
    (_has_valid_year, "year", "out_of_range", "invalid year"),
    (_has_owner, "owner", "missing", "invalid user"),
    (_has_positive_value, "value", "invalid_value", "invalid value"),
    (_has_type, "type", "missing", "missing entry type"),
]


class EntryValidator:
    """Checks a candidate entry against the ordered business rules."""

    def validate(self, entry: Entry) -> Optional[EntryValidationError]:
        """
        Run the rules in order.

        Returns:
            The error for the first rule violated, None if the entry is valid
        """
        for check, field, issue_type, message in _RULES:
            if not check(entry):
                return EntryValidationError(ValidationIssue(
                    field=field,
                    issue_type=issue_type,
                    message=message,
                ))
        return None

    def ensure_valid(self, entry: Entry) -> None:
        """Raise EntryValidationError if the entry breaks any rule."""
        error = self.validate(entry)
        if error is not None:
            raise error


def validate_entry(entry: Entry) -> Optional[EntryValidationError]:
    """Shortcut for EntryValidator().validate(entry)."""
    return EntryValidator().validate(entry)
