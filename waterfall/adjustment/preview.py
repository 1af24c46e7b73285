"""Read-only summary of what an edit would change."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from waterfall.config import RecognitionSettings
from waterfall.schedule.generator import generate_schedule, recognition_periods
from waterfall.schema.enums import AdjustmentKind
from waterfall.schema.models import Contract, ContractTerms, ScheduleEntry

from .calculator import calculate_adjustment
from .modes import AdjustmentMode, CatchUp
from .plan import AdjustmentPlan, ScheduleSnapshot


@dataclass(frozen=True)
class AffectedPeriod:
    """A posted period whose recognized amount the edit corrects."""

    period: date
    old_amount: Decimal
    new_amount: Decimal
    difference: Decimal


@dataclass(frozen=True)
class CatchUpDetails:
    period: date
    normal_amount: Decimal
    catch_up_amount: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class EditPreview:
    old_terms: ContractTerms
    new_terms: ContractTerms
    old_per_period_amount: Decimal
    new_per_period_amount: Decimal
    affected_periods: Tuple[AffectedPeriod, ...]
    catch_up: Optional[CatchUpDetails]
    plan: AdjustmentPlan


def preview_edit(
    contract: Contract,
    entries: Iterable[ScheduleEntry],
    terms: ContractTerms,
    mode: AdjustmentMode,
    settings: Optional[RecognitionSettings] = None,
) -> EditPreview:
    """Compute the plan for an edit and describe it without applying anything."""
    entries = list(entries)
    plan = calculate_adjustment(contract.id, entries, terms, mode, settings)
    snapshot = ScheduleSnapshot.partition(entries)
    by_id = {e.id: e for e in snapshot.posted}

    affected = []
    for adjustment in plan.adjustments:
        original = by_id.get(adjustment.adjusts_entry_id)
        old_amount = (
            snapshot.effective_amount(original) if original is not None else Decimal("0.00")
        )
        affected.append(
            AffectedPeriod(
                period=adjustment.period,
                old_amount=old_amount,
                new_amount=old_amount + adjustment.amount,
                difference=adjustment.amount,
            )
        )

    catch_up = None
    if isinstance(mode, CatchUp):
        normal = dict(
            zip(
                recognition_periods(terms.start_period, terms.term_months),
                generate_schedule(terms.total_amount, terms.term_months),
            )
        )[mode.target_period]
        target_entry = next(
            e for e in plan.new_entries if e.adjustment_kind == AdjustmentKind.CATCH_UP
        )
        catch_up = CatchUpDetails(
            period=mode.target_period,
            normal_amount=normal,
            catch_up_amount=target_entry.amount - normal,
            total_amount=target_entry.amount,
        )

    return EditPreview(
        old_terms=contract.terms,
        new_terms=terms,
        old_per_period_amount=contract.per_period_amount,
        new_per_period_amount=plan.per_period_amount,
        affected_periods=tuple(affected),
        catch_up=catch_up,
        plan=plan,
    )
