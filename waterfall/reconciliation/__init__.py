"""
Balance tie-out against the external ledger.

Main API:
    verify_tie_out - Resolve a tenant's balances and compare them
    compute_tie_out - Compare a snapshot against given reported balances
"""

from .tie_out import (
    BalanceComparison,
    MissingOpeningTransactions,
    TieOutResult,
    compare_balances,
    compute_tie_out,
    expected_deferred_balance,
    expected_income,
    missing_opening_transactions,
    verify_tie_out,
)

__all__ = [
    "BalanceComparison",
    "MissingOpeningTransactions",
    "TieOutResult",
    "compare_balances",
    "compute_tie_out",
    "expected_deferred_balance",
    "expected_income",
    "missing_opening_transactions",
    "verify_tie_out",
]
