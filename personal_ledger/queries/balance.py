"""
Balance Aggregation

DESIGN DECISION: Totals are computed by the repository's aggregate query.
This module only composes them:

    net balance = sum(INCOME values) - sum(EXPENSE values)

Stored values are always positive, so the entry type alone decides the
sign. A user with no entries has a balance of zero, never an error.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from personal_ledger.audit import AuditLogger
from personal_ledger.models.entry import BalanceSummary, EntryType
from personal_ledger.services.storage import EntryRepository

ZERO = Decimal("0")


class BalanceAggregator:
    """
    Computes a user's balances from stored entries.

    GUARANTEES:
    - Only returns totals coming from storage
    - Zero when nothing matches
    - Exact decimal arithmetic
    """

    def __init__(
        self,
        repository: EntryRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger

    def balance_by_type(self, owner_id: int, entry_type: EntryType) -> Decimal:
        """Total value of one user's entries of one type."""
        total = self._repository.sum_by_owner_and_type(owner_id, entry_type)
        return Decimal(total) if total is not None else ZERO

    def net_balance(self, owner_id: int) -> Decimal:
        """Incomes minus expenses for one user."""
        income = self.balance_by_type(owner_id, EntryType.INCOME)
        expense = self.balance_by_type(owner_id, EntryType.EXPENSE)
        return income - expense

    def summary(
        self,
        owner_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> BalanceSummary:
        """Both per-type totals and the net balance in one result."""
        income = self.balance_by_type(owner_id, EntryType.INCOME)
        expense = self.balance_by_type(owner_id, EntryType.EXPENSE)
        result = BalanceSummary(
            owner_id=owner_id,
            income=income,
            expense=expense,
            net=income - expense,
        )

        if self._audit_logger:
            self._audit_logger.log_balance_computed(
                owner_id=owner_id,
                income=str(result.income),
                expense=str(result.expense),
                net=str(result.net),
                correlation_id=correlation_id,
            )
        return result
