"""Schedule recalculation for edited contracts.

The calculator never changes a posted entry. Depending on the mode it either
books correcting entries against posted periods (retroactive) or moves the
whole variance into unposted periods (catch-up, prospective). In every mode
posted + adjustments + new unposted sums to the new contract total exactly.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from waterfall.config import DEFAULT_SETTINGS, RecognitionSettings
from waterfall.errors import CatchUpTargetInvalid, ModeNotApplicable, NoRemainingPeriods
from waterfall.schedule.generator import generate_schedule, recognition_periods, split_evenly
from waterfall.schema.enums import AdjustmentKind
from waterfall.schema.models import ContractTerms, ScheduleEntry
from waterfall.utils.money import money_sum

from .modes import AdjustmentMode, CatchUp, Prospective, Regenerate, Retroactive
from .plan import AdjustmentPlan, ScheduleSnapshot

logger = logging.getLogger(__name__)


def _label(terms: ContractTerms, contract_id: str) -> str:
    return terms.reference or contract_id


def remaining_periods(snapshot: ScheduleSnapshot, periods: Sequence[date]) -> List[date]:
    """Periods of the new schedule that have not been posted."""
    posted = snapshot.posted_periods
    return [p for p in periods if p not in posted]


def validate_mode(
    mode: AdjustmentMode, snapshot: ScheduleSnapshot, remaining: Sequence[date]
) -> None:
    """
    Check that ``mode`` fits the contract's posting state.

    Runs before any amount is computed, so a rejected edit has no partial result.

    Raises:
        ModeNotApplicable: Regenerate with posted periods, or retroactive and
            prospective without any
        NoRemainingPeriods: Catch-up or prospective with nothing left unposted
        CatchUpTargetInvalid: Target posted or outside the new schedule
    """
    posted_count = len(snapshot.posted)
    name = mode.kind.value

    if isinstance(mode, Regenerate):
        if posted_count > 0:
            raise ModeNotApplicable(
                name,
                f"cannot regenerate the schedule when {posted_count} posted period(s) exist",
            )
        return

    if isinstance(mode, (Retroactive, Prospective)) and posted_count == 0:
        raise ModeNotApplicable(
            name, "requires at least one posted period; use none to regenerate"
        )

    if isinstance(mode, (CatchUp, Prospective)) and not remaining:
        raise NoRemainingPeriods(name)

    if isinstance(mode, CatchUp):
        target = mode.target_period
        if target in snapshot.posted_periods:
            raise CatchUpTargetInvalid(target, "period is already posted")
        if target not in remaining:
            raise CatchUpTargetInvalid(
                target, "catch-up month must be an unposted month of the new schedule"
            )


def calculate_adjustment(
    contract_id: str,
    entries: Iterable[ScheduleEntry],
    terms: ContractTerms,
    mode: AdjustmentMode,
    settings: Optional[RecognitionSettings] = None,
) -> AdjustmentPlan:
    """
    Recalculate a contract's schedule for new terms.

    Args:
        contract_id: Contract being edited
        entries: Snapshot of all the contract's existing entries
        terms: New total, term and start period
        mode: How to treat already-posted periods
        settings: Threshold overrides (defaults to DEFAULT_SETTINGS)

    Returns:
        AdjustmentPlan with replacement unposted entries and any adjustment
        entries to post

    Raises:
        ModeNotApplicable, NoRemainingPeriods, CatchUpTargetInvalid: See validate_mode
        InvalidInput: If the snapshot is inconsistent

    Examples:
        >>> plan = calculate_adjustment(
        ...     "c-1", entries, ContractTerms.of("15000", 12, "2024-01-01"), Retroactive()
        ... )
        >>> plan.projected_total
        Decimal('15000.00')
    """
    settings = settings or DEFAULT_SETTINGS
    snapshot = ScheduleSnapshot.partition(entries)
    periods = recognition_periods(terms.start_period, terms.term_months)
    remaining = remaining_periods(snapshot, periods)

    validate_mode(mode, snapshot, remaining)

    schedule = dict(zip(periods, generate_schedule(terms.total_amount, terms.term_months)))
    logger.debug(
        "Recalculating %s with mode=%s: %s posted, %s remaining, total %s",
        contract_id, mode.kind.value, len(snapshot.posted), len(remaining),
        terms.total_amount,
    )

    if isinstance(mode, Retroactive):
        plan = _retroactive(contract_id, snapshot, terms, schedule, remaining, settings)
    elif isinstance(mode, CatchUp):
        plan = _catch_up(contract_id, snapshot, terms, schedule, remaining, mode)
    elif isinstance(mode, Prospective):
        plan = _prospective(contract_id, snapshot, terms, remaining)
    else:
        plan = _regenerate(contract_id, snapshot, terms, schedule)

    if plan.projected_total != terms.total_amount:
        # Only reachable with an adjustment threshold of a cent or more.
        logger.warning(
            "Plan for %s totals %s, contract total is %s",
            contract_id, plan.projected_total, terms.total_amount,
        )
    return plan


def _plan(
    contract_id: str,
    mode: AdjustmentMode,
    snapshot: ScheduleSnapshot,
    terms: ContractTerms,
    new_entries: List[ScheduleEntry],
    adjustments: Sequence[ScheduleEntry] = (),
    review_periods: Sequence[date] = (),
) -> AdjustmentPlan:
    return AdjustmentPlan(
        contract_id=contract_id,
        mode=mode,
        terms=terms,
        per_period_amount=terms.per_period_amount,
        recognized_before=snapshot.recognized_total,
        new_entries=tuple(new_entries),
        adjustments=tuple(adjustments),
        replaced_entry_ids=tuple(e.id for e in snapshot.unposted if e.id is not None),
        review_periods=tuple(review_periods),
    )


def _retroactive(
    contract_id: str,
    snapshot: ScheduleSnapshot,
    terms: ContractTerms,
    schedule: Dict[date, Decimal],
    remaining: Sequence[date],
    settings: RecognitionSettings,
) -> AdjustmentPlan:
    label = _label(terms, contract_id)
    adjustments: List[ScheduleEntry] = []

    for entry in snapshot.posted:
        effective = snapshot.effective_amount(entry)
        new_amount = schedule.get(entry.period)
        if new_amount is None:
            # Period dropped out of the new term: reverse everything booked for it.
            delta = -effective
            reason = f"Date change - month removed from schedule ({label})"
        else:
            delta = new_amount - effective
            reason = f"Contract amount correction ({label})"

        if abs(delta) <= settings.adjustment_threshold:
            continue
        adjustments.append(
            ScheduleEntry(
                contract_id=contract_id,
                period=entry.period,
                amount=delta,
                is_adjustment=True,
                adjusts_entry_id=entry.id,
                adjustment_kind=AdjustmentKind.RETROACTIVE,
                reason=reason,
            )
        )

    last_posted = snapshot.last_posted_period
    new_entries: List[ScheduleEntry] = []
    review: List[date] = []
    for period in remaining:
        reason = None
        if last_posted is not None and period < last_posted:
            reason = f"New past month - requires manual review ({label})"
            review.append(period)
        new_entries.append(
            ScheduleEntry(
                contract_id=contract_id,
                period=period,
                amount=schedule[period],
                reason=reason,
            )
        )

    if review:
        logger.warning(
            "%s: %s new period(s) precede posted history and need review: %s",
            label, len(review), ", ".join(p.isoformat() for p in review),
        )
    logger.debug("%s: %s retroactive adjustment(s)", label, len(adjustments))
    return _plan(
        contract_id, Retroactive(), snapshot, terms, new_entries, adjustments, review
    )


def _catch_up(
    contract_id: str,
    snapshot: ScheduleSnapshot,
    terms: ContractTerms,
    schedule: Dict[date, Decimal],
    remaining: Sequence[date],
    mode: CatchUp,
) -> AdjustmentPlan:
    label = _label(terms, contract_id)
    target = mode.target_period
    steady = money_sum(schedule[p] for p in remaining if p != target)
    # Whatever the ledger has not yet seen, less the steady periods, lands in the target.
    catch_up_amount = terms.total_amount - snapshot.recognized_total - steady

    if catch_up_amount < 0:
        logger.warning(
            "%s: catch-up amount for %s is negative (%s)",
            label, target.isoformat(), catch_up_amount,
        )

    new_entries: List[ScheduleEntry] = []
    for period in remaining:
        if period == target:
            new_entries.append(
                ScheduleEntry(
                    contract_id=contract_id,
                    period=period,
                    amount=catch_up_amount,
                    adjustment_kind=AdjustmentKind.CATCH_UP,
                    reason=f"Catch-up adjustment for contract {label}",
                )
            )
        else:
            new_entries.append(
                ScheduleEntry(contract_id=contract_id, period=period, amount=schedule[period])
            )

    logger.debug(
        "%s: catch-up of %s in %s (normal amount %s)",
        label, catch_up_amount, target.isoformat(), schedule[target],
    )
    return _plan(contract_id, mode, snapshot, terms, new_entries)


def _prospective(
    contract_id: str,
    snapshot: ScheduleSnapshot,
    terms: ContractTerms,
    remaining: Sequence[date],
) -> AdjustmentPlan:
    label = _label(terms, contract_id)
    remaining_total = terms.total_amount - snapshot.recognized_total
    if remaining_total < 0:
        logger.warning(
            "%s: new total %s is below recognized %s; remaining periods go negative",
            label, terms.total_amount, snapshot.recognized_total,
        )

    amounts = split_evenly(remaining_total, len(remaining))
    new_entries = [
        ScheduleEntry(
            contract_id=contract_id,
            period=period,
            amount=amount,
            adjustment_kind=AdjustmentKind.PROSPECTIVE,
            reason=f"Prospective adjustment for contract {label}",
        )
        for period, amount in zip(remaining, amounts)
    ]
    logger.debug(
        "%s: spreading %s over %s period(s)", label, remaining_total, len(remaining)
    )
    return _plan(contract_id, Prospective(), snapshot, terms, new_entries)


def _regenerate(
    contract_id: str,
    snapshot: ScheduleSnapshot,
    terms: ContractTerms,
    schedule: Dict[date, Decimal],
) -> AdjustmentPlan:
    new_entries = [
        ScheduleEntry(contract_id=contract_id, period=period, amount=amount)
        for period, amount in schedule.items()
    ]
    return _plan(contract_id, Regenerate(), snapshot, terms, new_entries)
