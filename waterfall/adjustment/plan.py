"""Inputs and outputs of the adjustment calculator."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from waterfall.errors import InvalidInput
from waterfall.schema.models import ContractTerms, ScheduleEntry
from waterfall.utils.money import money_sum

from .modes import AdjustmentMode


@dataclass(frozen=True)
class ScheduleSnapshot:
    """A contract's existing entries split by role.

    Attributes:
        posted: Posted non-adjustment entries, by period
        unposted: Unposted non-adjustment entries, by period
        adjustments: Adjustment entries (audit history)
    """

    posted: Tuple[ScheduleEntry, ...]
    unposted: Tuple[ScheduleEntry, ...]
    adjustments: Tuple[ScheduleEntry, ...]

    @classmethod
    def partition(cls, entries: Iterable[ScheduleEntry]) -> "ScheduleSnapshot":
        """
        Split entries, rejecting two non-adjustment entries for the same period.

        Raises:
            InvalidInput: If entries belong to several contracts or a period repeats
        """
        entries = list(entries)
        contract_ids = {e.contract_id for e in entries}
        if len(contract_ids) > 1:
            raise InvalidInput(f"Entries span several contracts: {sorted(contract_ids)}")

        seen: Dict[date, ScheduleEntry] = {}
        posted: List[ScheduleEntry] = []
        unposted: List[ScheduleEntry] = []
        adjustments: List[ScheduleEntry] = []
        for entry in entries:
            if entry.is_adjustment:
                adjustments.append(entry)
                continue
            if entry.period in seen:
                raise InvalidInput(
                    f"Duplicate schedule entry for {entry.period.isoformat()}"
                )
            seen[entry.period] = entry
            (posted if entry.posted else unposted).append(entry)

        def by_period(e: ScheduleEntry):
            return e.period

        return cls(
            posted=tuple(sorted(posted, key=by_period)),
            unposted=tuple(sorted(unposted, key=by_period)),
            adjustments=tuple(sorted(adjustments, key=by_period)),
        )

    @property
    def posted_periods(self) -> FrozenSet[date]:
        return frozenset(e.period for e in self.posted)

    @property
    def last_posted_period(self) -> Optional[date]:
        return self.posted[-1].period if self.posted else None

    def effective_amount(self, entry: ScheduleEntry) -> Decimal:
        """Posted amount plus every adjustment already booked against it."""
        corrections = self._corrections().get(entry.id, [])
        return money_sum([entry.amount, *corrections])

    @property
    def recognized_total(self) -> Decimal:
        """Everything the ledger has seen: posted entries and adjustments."""
        return money_sum(
            [*(e.amount for e in self.posted), *(a.amount for a in self.adjustments)]
        )

    def _corrections(self) -> Dict[Optional[str], List[Decimal]]:
        result: Dict[Optional[str], List[Decimal]] = defaultdict(list)
        for adjustment in self.adjustments:
            if adjustment.adjusts_entry_id is not None:
                result[adjustment.adjusts_entry_id].append(adjustment.amount)
        return result


@dataclass(frozen=True)
class AdjustmentPlan:
    """Result of recalculating a contract's schedule.

    The plan is applied by the caller as one unit: delete the unposted entries
    listed in ``replaced_entry_ids``, insert ``new_entries``, then post and
    insert ``adjustments``.

    Attributes:
        contract_id: Contract the plan belongs to
        mode: Mode the plan was computed with
        terms: New contract terms
        per_period_amount: New straight-line amount per period
        recognized_before: Posted amounts plus existing adjustments
        new_entries: Replacement unposted entries
        adjustments: Correcting entries still to be posted externally
        replaced_entry_ids: Existing unposted entries to delete
        review_periods: New unposted periods that fall before posted history
    """

    contract_id: str
    mode: AdjustmentMode
    terms: ContractTerms
    per_period_amount: Decimal
    recognized_before: Decimal
    new_entries: Tuple[ScheduleEntry, ...]
    adjustments: Tuple[ScheduleEntry, ...] = ()
    replaced_entry_ids: Tuple[str, ...] = ()
    review_periods: Tuple[date, ...] = ()

    @property
    def unposted_total(self) -> Decimal:
        return money_sum(e.amount for e in self.new_entries)

    @property
    def adjustment_total(self) -> Decimal:
        return money_sum(a.amount for a in self.adjustments)

    @property
    def projected_total(self) -> Decimal:
        """Recognized + adjustments + new unposted; equals the new contract total."""
        return money_sum(
            [self.recognized_before, self.adjustment_total, self.unposted_total]
        )

