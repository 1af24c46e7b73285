"""Recognized-to-date and deferred balance helpers over schedule entries."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from waterfall.errors import InvalidInput
from waterfall.schema.models import Contract, ScheduleEntry
from waterfall.utils.date import DateLike, to_date
from waterfall.utils.money import AmountLike, money_sum, quantize, to_decimal


def total_recognized(per_period_amount: AmountLike, periods_elapsed: int) -> Decimal:
    """Return per-period amount times the number of elapsed periods."""
    if periods_elapsed < 0:
        raise InvalidInput("Months elapsed cannot be negative")
    return quantize(to_decimal(per_period_amount) * periods_elapsed)


def deferred_revenue(total_amount: AmountLike, recognized_amount: AmountLike) -> Decimal:
    """Deferred = contract total - recognized."""
    return quantize(to_decimal(total_amount) - to_decimal(recognized_amount))


def recognized_to_date(
    contract_id: str,
    entries: Iterable[ScheduleEntry],
    through: DateLike,
    posted_only: bool = False,
) -> Decimal:
    """Cumulative recognition for one contract through ``through`` (inclusive).

    By default this is the schedule view and counts posted and unposted
    entries alike; ``posted_only`` restricts it to what the ledger has seen.
    """
    through_date: date = to_date(through)
    return money_sum(
        e.amount
        for e in entries
        if e.contract_id == contract_id
        and e.period <= through_date
        and (e.posted or not posted_only)
    )


def deferred_balance_for_period(
    contract: Contract, entries: Iterable[ScheduleEntry], period: DateLike
) -> Decimal:
    """Deferred balance remaining after ``period``'s recognition."""
    recognized = recognized_to_date(contract.id, entries, period)
    return deferred_revenue(contract.total_amount, recognized)
