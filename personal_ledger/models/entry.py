"""
Core Data Models for the Personal Ledger

These models define the shapes of everything flowing through the engine:
1. Entries (incomes and expenses) and the users that own them
2. Filter templates for searching entries by example
3. Validation issues reported back to the caller
4. Balance summaries

DESIGN DECISION: Entry fields carry NO pydantic constraints.
A candidate entry must be able to exist in an invalid state so that the
EntryValidator can report exactly one, ordered, human-readable problem.
Putting ranges on the model would surface a bag of pydantic errors instead.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class EntryType(str, Enum):
    """
    Classification of an entry.

    The type decides the sign of the entry in a balance.
    The stored value is always positive.
    """
    INCOME = "income"
    EXPENSE = "expense"


class EntryStatus(str, Enum):
    """
    Settlement state of an entry.

    New entries start as PENDING. Whether they may move back to PENDING
    is decided by the configured StatusTransitionPolicy.
    """
    PENDING = "pending"    # Not yet settled
    SETTLED = "settled"    # Confirmed
    CANCELED = "canceled"  # Voided


# =============================================================================
# USER REFERENCE
# =============================================================================

class User(BaseModel):
    """
    Reference to the user owning an entry.

    The ledger only checks that the reference exists and has an id.
    Registration and authentication live elsewhere.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[int] = None
    email: Optional[str] = None
    name: Optional[str] = None


# =============================================================================
# CORE ENTRY MODEL
# =============================================================================

class Entry(BaseModel):
    """
    A single income or expense record ("lançamento").

    CRITICAL: An entry without an id has never been persisted.
    Update, delete and status changes refuse such entries.
    """

    id: Optional[int] = Field(
        default=None,
        description="Assigned by storage on first persist"
    )
    description: Optional[str] = None
    month: Optional[int] = None
    year: Optional[int] = None
    value: Optional[Decimal] = Field(
        default=None,
        description="Always positive; the type decides the sign"
    )
    type: Optional[EntryType] = None
    status: Optional[EntryStatus] = None
    owner: Optional[User] = None
    registered_at: Optional[datetime] = Field(
        default=None,
        description="Set once at creation, never changed afterwards"
    )

    @property
    def owner_id(self) -> Optional[int]:
        """Id of the owning user, if any."""
        return self.owner.id if self.owner else None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None


# =============================================================================
# FILTER-BY-EXAMPLE TEMPLATE
# =============================================================================

class EntryFilter(BaseModel):
    """
    Template for searching entries by example.

    Only the fields that are set become criteria. The storage layer
    decides how each criterion is matched (e.g. case-insensitive text
    containment); the engine never interprets the template itself.
    """

    id: Optional[int] = None
    description: Optional[str] = None
    month: Optional[int] = None
    year: Optional[int] = None
    value: Optional[Decimal] = None
    type: Optional[EntryType] = None
    status: Optional[EntryStatus] = None
    owner_id: Optional[int] = None

    def criteria(self) -> dict[str, Any]:
        """Return only the fields that were set to a value."""
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_entry(cls, entry: Entry) -> "EntryFilter":
        """Build a template from the non-null fields of an entry."""
        return cls(
            id=entry.id,
            description=entry.description,
            month=entry.month,
            year=entry.year,
            value=entry.value,
            type=entry.type,
            status=entry.status,
            owner_id=entry.owner_id,
        )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


# =============================================================================
# BALANCE MODELS
# =============================================================================

class BalanceSummary(BaseModel):
    """Per-type totals and the net balance of one user."""

    owner_id: int
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    net: Decimal = Decimal("0")
    computed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
