"""
Core enumeration types for the recognition engine.
"""

from enum import Enum


class ContractStatus(Enum):
    """Contract lifecycle states."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AdjustmentKind(Enum):
    """How an entry came to differ from the straight-line schedule."""

    RETROACTIVE = "retroactive"
    CATCH_UP = "catch_up"
    PROSPECTIVE = "prospective"
    NONE = "none"


class PostingSide(Enum):
    """Journal line side."""

    DEBIT = "debit"
    CREDIT = "credit"


class JournalEntryType(Enum):
    """Purpose of a journal posted to the external ledger."""

    RECOGNITION = "recognition"
    ADJUSTMENT = "adjustment"
    REVERSAL = "reversal"
