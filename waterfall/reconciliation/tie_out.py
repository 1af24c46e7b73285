"""
Tie-out of internal balances against the external ledger.

The engine's view of a tenant (contracts and posted schedule entries) implies
a deferred revenue liability at a date and revenue recognized so far that
year. The verifier compares both figures with what the ledger reports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from waterfall.config import DEFAULT_SETTINGS, AccountMapping, RecognitionSettings
from waterfall.errors import BalanceUnavailable, NotFound
from waterfall.ledger.base import BalanceReader, TenantDirectory
from waterfall.ledger.journal import BalanceResult
from waterfall.schema.enums import ContractStatus
from waterfall.schema.models import Contract, ScheduleEntry
from waterfall.utils.date import DateLike, to_date, year_start
from waterfall.utils.money import AmountLike, format_amount, money_sum, quantize, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceComparison:
    """Expected against reported for one account."""

    expected: Decimal
    reported: Decimal
    difference: Decimal
    matches: bool


@dataclass(frozen=True)
class MissingOpeningTransactions:
    """Contracts whose opening transaction was never posted to the ledger."""

    count: int
    total_amount: Decimal
    contract_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TieOutResult:
    """
    Outcome of a tie-out.

    Attributes:
        as_of: Tie-out date
        liability: Deferred revenue comparison (point in time)
        income: Revenue comparison (year to date)
        overall_matches: True when both comparisons match
        missing_opening: Diagnostic on contracts without an opening transaction
        possible_causes: Explanations offered when the liability is off
        liability_account: Account reference the liability was read from
        income_account: Account reference the income was read from
    """

    as_of: date
    liability: BalanceComparison
    income: BalanceComparison
    overall_matches: bool
    missing_opening: MissingOpeningTransactions
    possible_causes: Tuple[str, ...] = ()
    liability_account: Optional[str] = None
    income_account: Optional[str] = None


def _active(contracts: Iterable[Contract]) -> List[Contract]:
    return [c for c in contracts if c.status != ContractStatus.CANCELLED]


def expected_deferred_balance(
    contracts: Iterable[Contract], entries: Iterable[ScheduleEntry], as_of: DateLike
) -> Decimal:
    """
    Deferred revenue the ledger should carry at ``as_of``.

    Each contract contributes its total less everything posted against it
    (adjustments included) for periods up to ``as_of``. Cancelled contracts
    are left out.
    """
    as_of = to_date(as_of)
    contracts = _active(contracts)
    ids = {c.id for c in contracts}
    posted = money_sum(
        e.amount for e in entries if e.contract_id in ids and e.posted and e.period <= as_of
    )
    return money_sum(c.total_amount for c in contracts) - posted


def expected_income(entries: Iterable[ScheduleEntry], as_of: DateLike) -> Decimal:
    """Posted recognition from the start of ``as_of``'s year through ``as_of``."""
    as_of = to_date(as_of)
    start = year_start(as_of)
    return money_sum(e.amount for e in entries if e.posted and start <= e.period <= as_of)


def compare_balances(
    expected: AmountLike,
    reported: AmountLike,
    tolerance: AmountLike = DEFAULT_SETTINGS.tie_out_tolerance,
) -> BalanceComparison:
    """
    Compare two balances.

    Examples:
        >>> compare_balances("18000.00", "18000.50").difference
        Decimal('0.50')
    """
    expected = quantize(expected)
    reported = quantize(reported)
    difference = abs(expected - reported)
    return BalanceComparison(
        expected=expected,
        reported=reported,
        difference=difference,
        matches=difference <= to_decimal(tolerance),
    )


def missing_opening_transactions(contracts: Iterable[Contract]) -> MissingOpeningTransactions:
    missing = [c for c in _active(contracts) if not c.opening_posted]
    return MissingOpeningTransactions(
        count=len(missing),
        total_amount=money_sum(c.total_amount for c in missing),
        contract_ids=tuple(c.id for c in missing),
    )


def compute_tie_out(
    contracts: Sequence[Contract],
    entries: Sequence[ScheduleEntry],
    as_of: DateLike,
    reported_liability: AmountLike,
    reported_income: AmountLike,
    settings: Optional[RecognitionSettings] = None,
) -> TieOutResult:
    """
    Tie out a snapshot of contracts and entries against reported balances.

    Pure: the same snapshot and reported figures always give the same result.

    Args:
        contracts: Every contract of the tenant
        entries: Every schedule entry of the tenant
        as_of: Tie-out date
        reported_liability: Deferred revenue balance reported at ``as_of``
        reported_income: Revenue reported from the year start through ``as_of``
        settings: Tolerance override

    Returns:
        TieOutResult
    """
    settings = settings or DEFAULT_SETTINGS
    as_of = to_date(as_of)
    tolerance = settings.tie_out_tolerance

    liability = compare_balances(
        expected_deferred_balance(contracts, entries, as_of), reported_liability, tolerance
    )
    income = compare_balances(expected_income(entries, as_of), reported_income, tolerance)
    missing = missing_opening_transactions(contracts)

    causes: List[str] = []
    if not liability.matches and missing.count > 0:
        causes.append(
            f"{missing.count} contract(s) totaling {format_amount(missing.total_amount)} "
            "have no opening transaction posted to the ledger"
        )

    return TieOutResult(
        as_of=as_of,
        liability=liability,
        income=income,
        overall_matches=liability.matches and income.matches,
        missing_opening=missing,
        possible_causes=tuple(causes),
    )


def _reported(result: BalanceResult, account: str) -> Decimal:
    if not result.success or result.balance is None:
        raise BalanceUnavailable(account, result.error or "no balance returned")
    return result.balance


def verify_tie_out(
    tenant_id: str,
    as_of: DateLike,
    directory: TenantDirectory,
    reader: BalanceReader,
    settings: Optional[RecognitionSettings] = None,
) -> TieOutResult:
    """
    Tie out a tenant against its ledger.

    Args:
        tenant_id: Tenant to verify
        as_of: Tie-out date
        directory: Source of the tenant, its contracts and entries
        reader: External ledger balance reader
        settings: Tolerance override

    Returns:
        TieOutResult naming the accounts that were read

    Raises:
        NotFound: If the tenant does not exist
        NotConfigured: If the tenant's account mapping is incomplete
        BalanceUnavailable: If the ledger cannot report a balance
    """
    as_of = to_date(as_of)
    tenant = directory.get_tenant(tenant_id)
    if tenant is None:
        raise NotFound("Tenant", tenant_id)
    mapping = AccountMapping.from_dict(tenant.account_mapping)

    reported_liability = _reported(
        reader.balance_as_of(mapping.liability_account, as_of), mapping.liability_account
    )
    reported_income = _reported(
        reader.balance_between(mapping.income_account, year_start(as_of), as_of),
        mapping.income_account,
    )

    result = compute_tie_out(
        directory.list_contracts(tenant_id),
        directory.list_entries(tenant_id),
        as_of,
        reported_liability,
        reported_income,
        settings,
    )
    result = replace(
        result,
        liability_account=mapping.liability_account,
        income_account=mapping.income_account,
    )

    if result.overall_matches:
        logger.info("Tie-out for %s as of %s matches", tenant_id, as_of.isoformat())
    else:
        logger.warning(
            "Tie-out mismatch for %s as of %s: liability off by %s, income off by %s",
            tenant_id, as_of.isoformat(),
            result.liability.difference, result.income.difference,
        )
    return result
