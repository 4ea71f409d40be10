"""Balance queries package."""

from personal_ledger.queries.balance import BalanceAggregator

__all__ = ["BalanceAggregator"]
