"""
Waterfall reports as pandas DataFrames.

Rows are contracts and columns are periods. Amounts stay ``Decimal`` (object
dtype) so totals match the schedule to the cent; arithmetic is done before
the frame is built.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from waterfall.schema.enums import ContractStatus
from waterfall.schema.models import Contract, ScheduleEntry
from waterfall.utils.date import DateLike, month_range, month_start, months_between
from waterfall.utils.money import ZERO, format_amount, money_sum

logger = logging.getLogger(__name__)

TOTAL_LABEL = "Total"
INDEX_NAMES = ["contract", "reference"]


def _select(
    contracts: Iterable[Contract], include_cancelled: bool
) -> List[Contract]:
    return [
        c for c in contracts
        if include_cancelled or c.status != ContractStatus.CANCELLED
    ]


def _columns(
    contracts: Sequence[Contract],
    entries: Sequence[ScheduleEntry],
    start: Optional[DateLike],
    end: Optional[DateLike],
) -> List[date]:
    ids = {c.id for c in contracts}
    periods = [e.period for e in entries if e.contract_id in ids]
    if not periods and (start is None or end is None):
        return []
    first = month_start(start) if start is not None else min(periods)
    last = month_start(end) if end is not None else max(periods)
    if last < first:
        return []
    return month_range(first, months_between(first, last) + 1)


def _recognized_by_period(
    contracts: Sequence[Contract], entries: Sequence[ScheduleEntry], posted_only: bool
) -> Dict[str, Dict[date, List[Decimal]]]:
    ids = {c.id for c in contracts}
    amounts: Dict[str, Dict[date, List[Decimal]]] = defaultdict(lambda: defaultdict(list))
    for entry in entries:
        if entry.contract_id in ids and (entry.posted or not posted_only):
            amounts[entry.contract_id][entry.period].append(entry.amount)
    return amounts


def _frame(
    contracts: Sequence[Contract], rows: Dict[str, List[Decimal]], columns: List[date]
) -> pd.DataFrame:
    # Rows are keyed by contract id; references need not be unique.
    keys = list(dict.fromkeys((c.id, c.reference) for c in contracts if c.id in rows))
    index = pd.MultiIndex.from_tuples(keys, names=INDEX_NAMES)
    data = {
        column: [rows[contract_id][i] for contract_id, _ in keys]
        for i, column in enumerate(columns)
    }
    frame = pd.DataFrame(data, index=index, columns=columns, dtype=object)
    frame.columns.name = "period"
    return frame


def _waterfall_rows(
    contracts: Sequence[Contract],
    entries: Sequence[ScheduleEntry],
    columns: List[date],
    posted_only: bool,
) -> Tuple[Dict[str, List[Decimal]], Dict[str, List[Decimal]]]:
    """Recognized and deferred amounts per contract id, aligned to ``columns``."""
    amounts = _recognized_by_period(contracts, entries, posted_only)
    recognized: Dict[str, List[Decimal]] = {}
    deferred: Dict[str, List[Decimal]] = {}
    first = columns[0] if columns else None

    for contract in contracts:
        by_period = amounts.get(contract.id, {})
        # Recognition before the first column still reduces the deferred balance.
        running = money_sum(
            amount
            for period, values in by_period.items()
            if first is not None and period < first
            for amount in values
        )
        row, balances = [], []
        for period in columns:
            value = money_sum(by_period.get(period, ()))
            running += value
            row.append(value)
            balances.append(contract.total_amount - running)
        recognized[contract.id] = row
        deferred[contract.id] = balances

    return recognized, deferred


def waterfall_frame(
    contracts: Iterable[Contract],
    entries: Iterable[ScheduleEntry],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    posted_only: bool = False,
    include_cancelled: bool = False,
) -> pd.DataFrame:
    """
    Recognized amount per contract and period.

    Args:
        contracts: Contracts to report
        entries: Their schedule entries; adjustments are added to their period
        start: First period column (defaults to the earliest entry)
        end: Last period column (defaults to the latest entry)
        posted_only: Report only what has been posted to the ledger
        include_cancelled: Keep cancelled contracts in the report

    Returns:
        DataFrame indexed by (contract id, reference) with one column per period
    """
    contracts = _select(contracts, include_cancelled)
    entries = list(entries)
    columns = _columns(contracts, entries, start, end)
    recognized, _ = _waterfall_rows(contracts, entries, columns, posted_only)
    logger.debug("Waterfall for %s contract(s) over %s period(s)", len(contracts), len(columns))
    return _frame(contracts, recognized, columns)


def deferred_frame(
    contracts: Iterable[Contract],
    entries: Iterable[ScheduleEntry],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    posted_only: bool = False,
    include_cancelled: bool = False,
) -> pd.DataFrame:
    """Deferred balance per contract after each period's recognition."""
    contracts = _select(contracts, include_cancelled)
    entries = list(entries)
    columns = _columns(contracts, entries, start, end)
    _, deferred = _waterfall_rows(contracts, entries, columns, posted_only)
    return _frame(contracts, deferred, columns)


def summary_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Collapse a waterfall or deferred frame into a single totals row."""
    totals = [money_sum(frame[column]) for column in frame.columns]
    label = (TOTAL_LABEL,) + ("",) * (frame.index.nlevels - 1)
    index = pd.MultiIndex.from_tuples([label], names=frame.index.names)
    return pd.DataFrame([totals], index=index, columns=frame.columns, dtype=object)


def _cell(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return format_amount(ZERO)
    return format_amount(value)


def export_csv(frame: pd.DataFrame, path_or_buf=None) -> Optional[str]:
    """
    Write a report frame as CSV with two-decimal amounts and YYYY-MM headers.

    Returns:
        The CSV text when ``path_or_buf`` is None, otherwise None
    """
    text = pd.DataFrame(
        {
            c.strftime("%Y-%m") if isinstance(c, date) else str(c): frame[c].map(_cell)
            for c in frame.columns
        },
        index=frame.index,
    )
    return text.to_csv(path_or_buf)
