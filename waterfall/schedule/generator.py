"""
Straight-line recognition schedule generation.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List

from waterfall.errors import InvalidInput
from waterfall.schema.models import Contract, ScheduleEntry
from waterfall.utils.date import DateLike, month_range
from waterfall.utils.money import AmountLike, quantize, to_cents

logger = logging.getLogger(__name__)


def _validate(total_amount: AmountLike, term_months: int) -> Decimal:
    if isinstance(term_months, bool) or not isinstance(term_months, int):
        raise InvalidInput(f"Term must be a whole number of months, got {term_months!r}")
    if term_months <= 0:
        raise InvalidInput("Term months must be greater than 0")
    amount = to_cents(total_amount)
    if amount <= 0:
        raise InvalidInput("Contract amount must be greater than 0")
    return amount


def split_evenly(total: Decimal, count: int) -> List[Decimal]:
    """Split ``total`` into ``count`` cent amounts; the last absorbs the remainder.

    Unlike :func:`generate_schedule` the total may be zero or negative, which
    happens when a contract is reduced below what is already recognized.
    """
    if count <= 0:
        raise InvalidInput("count must be positive")
    total = quantize(total)
    base = quantize(total / count)
    amounts = [base] * (count - 1)
    amounts.append(total - base * (count - 1))
    return amounts


def generate_schedule(total_amount: AmountLike, term_months: int) -> List[Decimal]:
    """
    Generate the straight-line amounts for a contract.

    Periods 1..N-1 recognize round(T / N, 2); the final period recognizes
    T - base * (N - 1), so the amounts always sum to T exactly.

    Args:
        total_amount: Contract total (> 0)
        term_months: Number of monthly periods (> 0)

    Returns:
        List of N amounts quantized to cents

    Raises:
        InvalidInput: If the amount or term is not positive, or the amount
            carries a fraction of a cent

    Examples:
        >>> generate_schedule("10000.00", 12)[-2:]
        [Decimal('833.33'), Decimal('833.37')]
    """
    amount = _validate(total_amount, term_months)
    amounts = split_evenly(amount, term_months)
    logger.debug(
        "Generated %s periods of %s (final %s) for total %s",
        term_months, amounts[0], amounts[-1], amount,
    )
    return amounts


def monthly_recognition(total_amount: AmountLike, term_months: int) -> Decimal:
    """Per-period straight-line amount, rounded to cents."""
    amount = _validate(total_amount, term_months)
    return quantize(amount / term_months)


def recognition_periods(start: DateLike, term_months: int) -> List[date]:
    """Period keys for a term starting in the month containing ``start``."""
    if term_months <= 0:
        raise InvalidInput("Term months must be greater than 0")
    return month_range(start, term_months)


def build_entries(contract: Contract) -> List[ScheduleEntry]:
    """Unposted schedule entries for a newly created contract."""
    amounts = generate_schedule(contract.total_amount, contract.term_months)
    periods = recognition_periods(contract.start_period, contract.term_months)
    return [
        ScheduleEntry(contract_id=contract.id, period=period, amount=amount)
        for period, amount in zip(periods, amounts)
    ]
