"""
Contract edit workflow.

Ties the calculator to the collaborators: fetch the snapshot, compute the
plan, post its adjustments, then persist the replacement schedule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional, Sequence

from waterfall.adjustment import AdjustmentMode, AdjustmentPlan, calculate_adjustment
from waterfall.config import AccountMapping, RecognitionSettings
from waterfall.errors import ExternalPostingFailed, NotConfigured
from waterfall.schema.enums import ContractStatus
from waterfall.schema.models import Contract, ContractTerms, ScheduleEntry

from .base import EntryStore, LedgerPoster
from .posting import post_adjustments

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditResult:
    """Outcome of an applied contract edit."""

    contract: Contract
    plan: AdjustmentPlan
    inserted: List[ScheduleEntry]
    posted_adjustments: List[ScheduleEntry]

    @property
    def external_ids(self) -> List[str]:
        return [e.external_ref for e in self.posted_adjustments if e.external_ref]


def apply_plan(
    store: EntryStore,
    plan: AdjustmentPlan,
    posted_adjustments: Sequence[ScheduleEntry] = (),
) -> List[ScheduleEntry]:
    """Replace the unposted schedule and record posted adjustments."""
    deleted = store.delete_unposted(plan.contract_id)
    inserted = store.insert_many([*plan.new_entries, *posted_adjustments])
    logger.info(
        "Applied %s plan to %s: %s removed, %s inserted",
        plan.mode.kind.value, plan.contract_id, deleted, len(inserted),
    )
    return inserted


def edit_contract(
    contract: Contract,
    terms: ContractTerms,
    mode: AdjustmentMode,
    store: EntryStore,
    poster: Optional[LedgerPoster] = None,
    mapping: Optional[AccountMapping] = None,
    posted_by: Optional[str] = None,
    settings: Optional[RecognitionSettings] = None,
    now: Optional[datetime] = None,
) -> EditResult:
    """
    Apply new terms to a contract.

    Args:
        contract: Contract being edited
        terms: New total, term and start period
        mode: Adjustment mode for posted periods
        store: Entry persistence
        poster: Ledger client, needed only when the plan has adjustments
        mapping: Tenant accounts, needed only when the plan has adjustments
        posted_by: User recorded on posted adjustments
        settings: Threshold overrides
        now: Posting timestamp

    Returns:
        EditResult with the updated contract and persisted entries

    Raises:
        NotConfigured: If adjustments must be posted but no poster or
            mapping was given
        ExternalPostingFailed: If an adjustment fails to post; the ones
            committed before it are persisted first
    """
    entries = store.fetch_entries(contract.id)
    plan = calculate_adjustment(contract.id, entries, terms, mode, settings)

    posted: List[ScheduleEntry] = []
    if plan.adjustments:
        missing = [
            name
            for name, value in (("poster", poster), ("mapping", mapping))
            if value is None
        ]
        if missing:
            raise NotConfigured(missing)
        try:
            posted = post_adjustments(plan.adjustments, poster, mapping, posted_by, now)
        except ExternalPostingFailed as exc:
            if exc.committed_entries:
                store.insert_many(list(exc.committed_entries))
            logger.error(
                "Edit of %s halted at %s; %s committed adjustment(s) recorded",
                contract.id, exc.period.isoformat(), len(exc.committed_entries),
            )
            raise

    inserted = apply_plan(store, plan, posted)
    return EditResult(
        contract=contract.with_terms(terms),
        plan=plan,
        inserted=inserted,
        posted_adjustments=posted,
    )


def cancel_contract(contract: Contract, store: EntryStore) -> Contract:
    """Mark a contract cancelled, dropping its unposted schedule.

    Posted history stays in place for audit.
    """
    removed = store.delete_unposted(contract.id)
    logger.info("Cancelled %s; %s unposted entries removed", contract.id, removed)
    return replace(contract, status=ContractStatus.CANCELLED)
