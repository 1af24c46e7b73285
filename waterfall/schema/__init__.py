"""
Contract, schedule entry and enumeration types.
"""

from .enums import AdjustmentKind, ContractStatus, JournalEntryType, PostingSide
from .models import Contract, ContractTerms, ScheduleEntry, Tenant

__all__ = [
    "AdjustmentKind",
    "Contract",
    "ContractStatus",
    "ContractTerms",
    "JournalEntryType",
    "PostingSide",
    "ScheduleEntry",
    "Tenant",
]
