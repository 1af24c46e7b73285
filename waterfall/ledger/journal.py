"""Journal requests exchanged with the external ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from waterfall.config import AccountMapping
from waterfall.errors import InvalidInput
from waterfall.schema.enums import JournalEntryType, PostingSide
from waterfall.schema.models import ScheduleEntry
from waterfall.utils.date import DateLike, month_end, to_date
from waterfall.utils.money import AmountLike, format_amount, money_sum, quantize


@dataclass(frozen=True)
class JournalLine:
    account: str
    side: PostingSide
    amount: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class JournalRequest:
    """A balanced journal entry to post.

    Attributes:
        entry_date: Transaction date (month end for recognition and adjustments)
        memo: Free text shown in the ledger
        lines: Debit and credit lines; amounts are always positive
        entry_type: Why the journal is posted
    """

    entry_date: date
    memo: str
    lines: Tuple[JournalLine, ...]
    entry_type: JournalEntryType = JournalEntryType.RECOGNITION

    @property
    def total_debits(self) -> Decimal:
        return money_sum(line.amount for line in self.lines if line.side == PostingSide.DEBIT)

    @property
    def total_credits(self) -> Decimal:
        return money_sum(line.amount for line in self.lines if line.side == PostingSide.CREDIT)

    @property
    def balanced(self) -> bool:
        return self.total_debits == self.total_credits


@dataclass(frozen=True)
class PostingResult:
    """Outcome reported by a ledger poster."""

    success: bool
    entry_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, entry_id: str) -> "PostingResult":
        return cls(True, entry_id=entry_id)

    @classmethod
    def failed(cls, error: str) -> "PostingResult":
        return cls(False, error=error)


@dataclass(frozen=True)
class BalanceResult:
    """Outcome reported by a balance reader."""

    success: bool
    balance: Optional[Decimal] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, balance: AmountLike) -> "BalanceResult":
        return cls(True, balance=quantize(balance))

    @classmethod
    def failed(cls, error: str) -> "BalanceResult":
        return cls(False, error=error)


def _two_line_journal(
    on_date: date,
    amount: Decimal,
    mapping: AccountMapping,
    memo: str,
    entry_type: JournalEntryType,
) -> JournalRequest:
    """
    Positive amounts move deferred revenue into income (debit liability,
    credit income); negative amounts move it back.
    """
    amount = quantize(amount)
    if amount == 0:
        raise InvalidInput("Cannot post a zero-amount journal")
    if amount > 0:
        debit, credit = mapping.liability_account, mapping.income_account
    else:
        debit, credit = mapping.income_account, mapping.liability_account
    value = abs(amount)
    return JournalRequest(
        entry_date=on_date,
        memo=memo,
        lines=(
            JournalLine(debit, PostingSide.DEBIT, value, memo),
            JournalLine(credit, PostingSide.CREDIT, value, memo),
        ),
        entry_type=entry_type,
    )


def build_adjustment_journal(entry: ScheduleEntry, mapping: AccountMapping) -> JournalRequest:
    """Journal correcting a posted period, dated at the period's month end."""
    memo = entry.reason or f"Revenue adjustment {format_amount(entry.amount)}"
    return _two_line_journal(
        month_end(entry.period), entry.amount, mapping, memo, JournalEntryType.ADJUSTMENT
    )


def build_recognition_journal(
    period: DateLike, amount: AmountLike, mapping: AccountMapping, memo: Optional[str] = None
) -> JournalRequest:
    """Monthly recognition journal: debit deferred revenue, credit revenue."""
    end = month_end(period)
    memo = memo or f"Revenue recognition {end.strftime('%b %Y')}"
    return _two_line_journal(end, quantize(amount), mapping, memo, JournalEntryType.RECOGNITION)


def build_reversal_journal(
    on_date: DateLike, remaining: AmountLike, mapping: AccountMapping, memo: str
) -> JournalRequest:
    """Reverse a deleted contract's remaining deferred balance."""
    return _two_line_journal(
        to_date(on_date), -quantize(remaining), mapping, memo, JournalEntryType.REVERSAL
    )
