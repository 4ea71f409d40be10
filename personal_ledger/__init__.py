"""
Personal Ledger - Source Package

Tracks personal incomes and expenses ("lançamentos") per user, month
and year, and computes running balances per entry type.

DESIGN PRINCIPLES:
1. Validate before anything touches storage
2. One deterministic error message per invalid entry
3. No silent corrections
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Personal Ledger Team"
