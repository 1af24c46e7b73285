"""
Shared fixtures: sample contracts, schedules with posted history, and
in-memory ledger collaborators.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from waterfall.config import AccountMapping
from waterfall.ledger.memory import InMemoryLedger, InMemoryRepository
from waterfall.schedule import build_entries
from waterfall.schema import Contract, ScheduleEntry, Tenant

POSTED_AT = datetime(2024, 6, 30, 12, 0)


def _with_history(contract, posted=0):
    entries = build_entries(contract)
    result = []
    for index, entry in enumerate(entries, start=1):
        entry.id = f"{contract.id}-e{index}"
        if index <= posted:
            entry = entry.mark_posted(f"JE-{contract.id}-{index}", "tester", POSTED_AT)
        result.append(entry)
    return result


@pytest.fixture
def contract():
    """12,000.00 over twelve months from January 2024 (1,000.00 a month)."""
    return Contract(
        id="c-1",
        total_amount=Decimal("12000.00"),
        start_period=date(2024, 1, 1),
        term_months=12,
        reference="INV-001",
        customer_name="Acme Corp",
        tenant_id="t-1",
    )


@pytest.fixture
def make_schedule():
    """Factory: schedule entries with ids, the first ``posted`` of them posted."""
    return _with_history


@pytest.fixture
def posted_three(contract):
    """The sample contract with January to March posted."""
    return _with_history(contract, posted=3)


@pytest.fixture
def mapping():
    return AccountMapping(liability_account="2400", income_account="4000")


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def repository(contract, mapping):
    """Repository holding one tenant and the sample contract's full schedule."""
    repo = InMemoryRepository()
    repo.add_tenant(
        Tenant(
            id="t-1",
            name="Tenant One",
            account_mapping={
                "deferredRevenueAccountId": mapping.liability_account,
                "revenueAccountId": mapping.income_account,
            },
        )
    )
    repo.save_contract(contract)
    repo.insert_many(build_entries(contract))
    return repo


@pytest.fixture
def posted_repository(repository, contract):
    """The repository with the sample contract's January to March marked posted."""
    for entry in repository.fetch_entries(contract.id)[:3]:
        repository.update_one(entry.mark_posted(f"JE-{entry.period:%m}", "tester", POSTED_AT))
    return repository


def entry_total(entries):
    return sum((e.amount for e in entries), Decimal(0))


@pytest.fixture
def total_of():
    """Sum helper for lists of ScheduleEntry."""
    return entry_total


@pytest.fixture
def adjustment():
    """Factory: an unposted adjustment entry for a period."""

    def make(period, amount, adjusts="c-1-e1"):
        return ScheduleEntry(
            contract_id="c-1",
            period=period,
            amount=Decimal(amount),
            is_adjustment=True,
            adjusts_entry_id=adjusts,
            reason="Contract amount correction (INV-001)",
        )

    return make
