"""
In-memory collaborator implementations.

Useful for testing, previews, or local runs without a database or ledger.
"""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
from uuid import uuid4

from waterfall.errors import InvalidInput, NotFound
from waterfall.schema.enums import PostingSide
from waterfall.schema.models import Contract, ScheduleEntry, Tenant
from waterfall.utils.money import AmountLike, money_sum, to_decimal

from .journal import BalanceResult, JournalRequest, PostingResult

logger = logging.getLogger(__name__)


class InMemoryLedger:
    """
    Ledger that keeps posted journals in a list.

    Balances are credit-normal (credits minus debits), which suits both the
    deferred revenue liability and the revenue income account.
    """

    def __init__(
        self,
        opening_balances: Optional[Mapping[str, AmountLike]] = None,
        prefix: str = "JE",
    ):
        """
        Initialize ledger.

        Args:
            opening_balances: Balance per account before any posted journal
            prefix: Prefix of generated external entry ids
        """
        self.opening_balances: Dict[str, Decimal] = {
            account: to_decimal(amount) for account, amount in (opening_balances or {}).items()
        }
        self.prefix = prefix
        self.journals: List[JournalRequest] = []
        self.entry_ids: List[str] = []
        self._failures: Dict[date, str] = {}
        self._unavailable: Dict[str, str] = {}

    def fail_on(self, entry_date: date, reason: str = "Ledger rejected entry") -> None:
        """Reject every journal dated ``entry_date``."""
        self._failures[entry_date] = reason

    def make_unavailable(self, account: str, reason: str = "Ledger unavailable") -> None:
        """Fail every balance read for ``account``."""
        self._unavailable[account] = reason

    def post_journal(self, request: JournalRequest) -> PostingResult:
        if not request.balanced:
            return PostingResult.failed("Journal entry is not balanced")
        reason = self._failures.get(request.entry_date)
        if reason is not None:
            logger.debug("Rejecting journal dated %s: %s", request.entry_date, reason)
            return PostingResult.failed(reason)
        entry_id = f"{self.prefix}-{len(self.journals) + 1}"
        self.journals.append(request)
        self.entry_ids.append(entry_id)
        return PostingResult.ok(entry_id)

    def _activity(self, account: str, start: Optional[date], end: date) -> Decimal:
        amounts = []
        for journal in self.journals:
            if journal.entry_date > end or (start is not None and journal.entry_date < start):
                continue
            for line in journal.lines:
                if line.account != account:
                    continue
                amounts.append(line.amount if line.side == PostingSide.CREDIT else -line.amount)
        return money_sum(amounts)

    def balance_as_of(self, account: str, as_of: date) -> BalanceResult:
        if account in self._unavailable:
            return BalanceResult.failed(self._unavailable[account])
        opening = self.opening_balances.get(account, Decimal(0))
        return BalanceResult.ok(opening + self._activity(account, None, as_of))

    def balance_between(self, account: str, start: date, end: date) -> BalanceResult:
        if account in self._unavailable:
            return BalanceResult.failed(self._unavailable[account])
        return BalanceResult.ok(self._activity(account, start, end))


class InMemoryRepository:
    """
    Entry store and tenant directory backed by dictionaries.

    Enforces the schedule invariants a database would: a posted entry's
    amount never changes and a (contract, period) holds one non-adjustment entry.
    """

    def __init__(self):
        self.tenants: Dict[str, Tenant] = {}
        self.contracts: Dict[str, Contract] = {}
        self.entries: Dict[str, ScheduleEntry] = {}

    def add_tenant(self, tenant: Tenant) -> Tenant:
        self.tenants[tenant.id] = tenant
        return tenant

    def save_contract(self, contract: Contract) -> Contract:
        self.contracts[contract.id] = contract
        return contract

    # TenantDirectory

    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        return self.tenants.get(tenant_id)

    def list_contracts(self, tenant_id: str) -> List[Contract]:
        return [c for c in self.contracts.values() if c.tenant_id == tenant_id]

    def list_entries(self, tenant_id: str) -> List[ScheduleEntry]:
        contract_ids = {c.id for c in self.list_contracts(tenant_id)}
        return self._sorted(e for e in self.entries.values() if e.contract_id in contract_ids)

    # EntryStore

    def fetch_entries(self, contract_id: str) -> List[ScheduleEntry]:
        return self._sorted(e for e in self.entries.values() if e.contract_id == contract_id)

    def insert_many(self, entries: Sequence[ScheduleEntry]) -> List[ScheduleEntry]:
        stored = []
        for entry in entries:
            if not entry.is_adjustment:
                clash = self._regular_entry(entry.contract_id, entry.period)
                if clash is not None:
                    raise InvalidInput(
                        f"Contract {entry.contract_id} already has an entry for "
                        f"{entry.period.isoformat()}"
                    )
            saved = replace(entry, id=entry.id or uuid4().hex)
            self.entries[saved.id] = saved
            stored.append(replace(saved))
        return stored

    def delete_unposted(self, contract_id: str) -> int:
        doomed = [
            key
            for key, e in self.entries.items()
            if e.contract_id == contract_id and not e.posted and not e.is_adjustment
        ]
        for key in doomed:
            del self.entries[key]
        return len(doomed)

    def update_one(self, entry: ScheduleEntry) -> ScheduleEntry:
        current = self.entries.get(entry.id) if entry.id else None
        if current is None:
            raise NotFound("Schedule entry", str(entry.id))
        if current.posted and current.amount != entry.amount:
            raise InvalidInput(f"Posted entry {entry.id} amount cannot change")
        self.entries[entry.id] = replace(entry)
        return entry

    def delete_contract(self, contract_id: str) -> int:
        """Remove a contract together with its whole entry history."""
        self.contracts.pop(contract_id, None)
        doomed = [key for key, e in self.entries.items() if e.contract_id == contract_id]
        for key in doomed:
            del self.entries[key]
        return len(doomed)

    def _regular_entry(self, contract_id: str, period: date) -> Optional[ScheduleEntry]:
        for e in self.entries.values():
            if e.contract_id == contract_id and e.period == period and not e.is_adjustment:
                return e
        return None

    @staticmethod
    def _sorted(entries: Iterable[ScheduleEntry]) -> List[ScheduleEntry]:
        ordered = sorted(entries, key=lambda e: (e.contract_id, e.period, e.is_adjustment))
        return [replace(e) for e in ordered]
