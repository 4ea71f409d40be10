"""
Filter-by-example matching shared by the bundled storage adapters.

A template's criteria are combined with AND. Text criteria match
case-insensitively by containment, everything else by equality.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Iterable

from personal_ledger.models.entry import Entry, EntryFilter, EntryType


def _field_value(entry: Entry, field: str) -> Any:
    if field == "owner_id":
        return entry.owner_id
    return getattr(entry, field)


def _criterion_matches(actual: Any, expected: Any) -> bool:
    if actual is None:
        return False
    if isinstance(expected, str) and not isinstance(expected, Enum):
        return expected.lower() in str(actual).lower()
    return actual == expected


def entry_matches(entry: Entry, template: EntryFilter) -> bool:
    """Check one entry against every criterion set on the template."""
    return all(
        _criterion_matches(_field_value(entry, field), expected)
        for field, expected in template.criteria().items()
    )


def filter_entries(entries: Iterable[Entry], template: EntryFilter) -> list[Entry]:
    """Matching entries ordered by id."""
    matched = [entry for entry in entries if entry_matches(entry, template)]
    matched.sort(key=lambda e: e.id if e.id is not None else 0)
    return matched


def sum_values(
    entries: Iterable[Entry],
    owner_id: int,
    entry_type: EntryType,
) -> Decimal:
    """Total value of one owner's entries of one type."""
    return sum(
        (
            entry.value
            for entry in entries
            if entry.owner_id == owner_id
            and entry.type == entry_type
            and entry.value is not None
        ),
        Decimal("0"),
    )
