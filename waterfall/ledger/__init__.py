"""
Ledger integration: journal requests, collaborator protocols and posting.

Main API:
    post_adjustments - Post adjustment entries, halting on first failure
    post_period - Post one month's recognition in a single journal
    edit_contract - Calculate, post and persist a contract edit
"""

from .base import BalanceReader, EntryStore, LedgerPoster, TenantDirectory
from .journal import (
    BalanceResult,
    JournalLine,
    JournalRequest,
    PostingResult,
    build_adjustment_journal,
    build_recognition_journal,
    build_reversal_journal,
)
from .memory import InMemoryLedger, InMemoryRepository
from .posting import post_adjustments, post_period, remaining_deferred, reverse_contract
from .workflow import EditResult, apply_plan, cancel_contract, edit_contract

__all__ = [
    "BalanceReader",
    "BalanceResult",
    "EditResult",
    "EntryStore",
    "InMemoryLedger",
    "InMemoryRepository",
    "JournalLine",
    "JournalRequest",
    "LedgerPoster",
    "PostingResult",
    "TenantDirectory",
    "apply_plan",
    "build_adjustment_journal",
    "build_recognition_journal",
    "build_reversal_journal",
    "cancel_contract",
    "edit_contract",
    "post_adjustments",
    "post_period",
    "remaining_deferred",
    "reverse_contract",
]
