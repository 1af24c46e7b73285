"""
Posting schedule entries to the external ledger.

Postings are sequential and each one commits on its own. A failure halts the
sequence; everything committed before it is reported back to the caller,
never retried or rolled back here.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from waterfall.config import AccountMapping
from waterfall.errors import ExternalPostingFailed, InvalidInput
from waterfall.schema.models import Contract, ScheduleEntry
from waterfall.utils.date import DateLike, month_end, month_start, to_date
from waterfall.utils.money import CENT, money_sum

from .base import EntryStore, LedgerPoster
from .journal import (
    JournalRequest,
    PostingResult,
    build_adjustment_journal,
    build_recognition_journal,
    build_reversal_journal,
)

logger = logging.getLogger(__name__)


def _submit(poster: LedgerPoster, request: JournalRequest) -> PostingResult:
    """Post one journal, turning a raised client error into a failed result."""
    try:
        return poster.post_journal(request)
    except Exception as exc:
        logger.error("Ledger client raised while posting %s: %s", request.entry_date, exc)
        return PostingResult.failed(str(exc) or exc.__class__.__name__)


def post_adjustments(
    adjustments: Iterable[ScheduleEntry],
    poster: LedgerPoster,
    mapping: AccountMapping,
    posted_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[ScheduleEntry]:
    """
    Post adjustment entries one at a time in period order.

    Args:
        adjustments: Unposted adjustment entries from an AdjustmentPlan
        poster: External ledger client
        mapping: Liability and income accounts of the tenant
        posted_by: User recorded on the posted entries
        now: Posting timestamp (defaults to the current time)

    Returns:
        Posted copies of the entries, carrying their external references

    Raises:
        ExternalPostingFailed: On the first failed posting; holds the
            entries committed before it
    """
    now = now or datetime.now()
    committed: List[ScheduleEntry] = []

    for entry in sorted(adjustments, key=lambda e: e.period):
        request = build_adjustment_journal(entry, mapping)
        result = _submit(poster, request)
        if not result.success:
            logger.error(
                "Adjustment posting failed for %s after %s committed: %s",
                entry.period.isoformat(), len(committed), result.error,
            )
            raise ExternalPostingFailed(
                entry.period,
                result.error or "unknown error",
                committed_ids=[e.external_ref for e in committed],
                committed_entries=committed,
            )
        committed.append(entry.mark_posted(result.entry_id, posted_by, now))
        logger.info(
            "Posted adjustment %s for %s as %s",
            entry.amount, entry.period.isoformat(), result.entry_id,
        )

    return committed


def post_period(
    entries: Iterable[ScheduleEntry],
    period: DateLike,
    poster: LedgerPoster,
    mapping: AccountMapping,
    store: Optional[EntryStore] = None,
    posted_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[ScheduleEntry]:
    """
    Post one month's recognition for every contract in a single journal.

    Args:
        entries: Schedule entries of the tenant (any months)
        period: Any date in the month to post
        poster: External ledger client
        mapping: Liability and income accounts of the tenant
        store: When given, the posted entries are written back through it
        posted_by: User recorded on the posted entries
        now: Posting timestamp (defaults to the current time)

    Returns:
        The month's entries marked posted

    Raises:
        InvalidInput: If the month has no entries or is already posted
        ExternalPostingFailed: If the ledger rejects the journal
    """
    month = month_start(period)
    label = month.strftime("%b %Y")
    in_month = [e for e in entries if e.period == month and not e.is_adjustment]
    if not in_month:
        raise InvalidInput(f"No schedules found for this month ({label})")

    pending = [e for e in in_month if not e.posted]
    if not pending:
        raise InvalidInput(f"Month already posted ({label})")

    amount = money_sum(e.amount for e in pending)
    request = build_recognition_journal(month, amount, mapping)
    result = _submit(poster, request)
    if not result.success:
        logger.error("Recognition posting failed for %s: %s", label, result.error)
        raise ExternalPostingFailed(month, result.error or "unknown error")

    now = now or datetime.now()
    posted = [e.mark_posted(result.entry_id, posted_by, now) for e in pending]
    if store is not None:
        posted = [store.update_one(e) for e in posted]
    logger.info(
        "Posted %s recognition for %s across %s contract(s) as %s",
        amount, label, len(posted), result.entry_id,
    )
    return posted


def remaining_deferred(contract: Contract, entries: Sequence[ScheduleEntry]) -> Decimal:
    """Contract total less every posted amount, adjustments included."""
    recognized = money_sum(
        e.amount for e in entries if e.contract_id == contract.id and e.posted
    )
    return contract.total_amount - recognized


def reverse_contract(
    contract: Contract,
    entries: Sequence[ScheduleEntry],
    poster: LedgerPoster,
    mapping: AccountMapping,
    on_date: Optional[DateLike] = None,
    memo: Optional[str] = None,
) -> Optional[PostingResult]:
    """
    Reverse the deferred balance still held for a contract being deleted.

    Nothing is posted when less than a cent remains.

    Returns:
        The successful PostingResult, or None if nothing was posted

    Raises:
        ExternalPostingFailed: If the ledger rejects the reversal
    """
    remaining = remaining_deferred(contract, entries)
    if remaining <= CENT:
        logger.debug("%s: nothing to reverse (%s remaining)", contract.id, remaining)
        return None

    reversal_date = to_date(on_date) if on_date is not None else date.today()
    label = contract.reference or contract.id
    request = build_reversal_journal(
        reversal_date,
        remaining,
        mapping,
        memo or f"Reversal of deferred revenue for deleted contract {label}",
    )
    result = _submit(poster, request)
    if not result.success:
        logger.error("Reversal failed for %s: %s", label, result.error)
        raise ExternalPostingFailed(month_end(reversal_date), result.error or "unknown error")
    logger.info("Reversed %s deferred for %s as %s", remaining, label, result.entry_id)
    return result
