"""
Collaborator interfaces.

The engine reaches the external ledger and the persistence layer only
through these protocols; concrete clients are supplied by the caller.
"""

from datetime import date
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from waterfall.schema.models import Contract, ScheduleEntry, Tenant

from .journal import BalanceResult, JournalRequest, PostingResult


@runtime_checkable
class LedgerPoster(Protocol):
    """
    Posts journal entries to the external ledger.

    Each successful call commits externally and cannot be rolled back by
    the engine.
    """

    def post_journal(self, request: JournalRequest) -> PostingResult:
        """
        Post one journal entry.

        Args:
            request: Balanced journal to post

        Returns:
            PostingResult with the external entry id, or the failure reason
        """
        ...


@runtime_checkable
class BalanceReader(Protocol):
    """Reads account balances reported by the external ledger."""

    def balance_as_of(self, account: str, as_of: date) -> BalanceResult:
        """Point-in-time balance (balance sheet accounts)."""
        ...

    def balance_between(self, account: str, start: date, end: date) -> BalanceResult:
        """Net activity over a period (profit and loss accounts)."""
        ...


@runtime_checkable
class EntryStore(Protocol):
    """
    Persistence for schedule entries.

    Callers applying an adjustment plan must run delete_unposted and
    insert_many inside one transaction.
    """

    def fetch_entries(self, contract_id: str) -> List[ScheduleEntry]:
        ...

    def insert_many(self, entries: Sequence[ScheduleEntry]) -> List[ScheduleEntry]:
        """Insert entries, returning them with ids assigned."""
        ...

    def delete_unposted(self, contract_id: str) -> int:
        """Delete the contract's unposted non-adjustment entries; return the count."""
        ...

    def update_one(self, entry: ScheduleEntry) -> ScheduleEntry:
        ...


@runtime_checkable
class TenantDirectory(Protocol):
    """Read access to a tenant's contracts and entries."""

    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        ...

    def list_contracts(self, tenant_id: str) -> List[Contract]:
        ...

    def list_entries(self, tenant_id: str) -> List[ScheduleEntry]:
        ...
