"""Tests for tying out internal balances against the ledger."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from waterfall.config import AccountMapping
from waterfall.errors import BalanceUnavailable, NotConfigured, NotFound
from waterfall.ledger import InMemoryLedger, InMemoryRepository, post_period
from waterfall.reconciliation import (
    compare_balances,
    compute_tie_out,
    expected_deferred_balance,
    expected_income,
    verify_tie_out,
)
from waterfall.schedule import build_entries
from waterfall.schema import Contract, ContractStatus, Tenant

AS_OF = date(2024, 6, 30)
MAPPING = {"deferredRevenueAccountId": "2400", "revenueAccountId": "4000"}


def _contracts():
    """30,000.00 in total; both contracts recognize 1,000.00 a month."""
    return [
        Contract("a", Decimal("12000"), date(2024, 1, 1), 12, reference="INV-A", tenant_id="t-1"),
        Contract("b", Decimal("18000"), date(2024, 1, 1), 18, reference="INV-B", tenant_id="t-1"),
    ]


def _posted_through_june(contracts):
    entries = []
    for contract in contracts:
        for entry in build_entries(contract):
            if entry.period <= date(2024, 6, 1):
                entry = entry.mark_posted("JE", "tester", datetime(2024, 7, 1))
            entries.append(entry)
    return entries


@pytest.fixture
def tenant_books():
    """Repository and ledger for tenant t-1 with January to June posted."""
    repo = InMemoryRepository()
    repo.add_tenant(Tenant("t-1", "Tenant One", dict(MAPPING)))
    for contract in _contracts():
        repo.save_contract(contract)
        repo.insert_many(build_entries(contract))

    ledger = InMemoryLedger(opening_balances={"2400": Decimal("30000.00")})
    mapping = AccountMapping.from_dict(MAPPING)
    for month in range(1, 7):
        post_period(repo.list_entries("t-1"), date(2024, month, 1), ledger, mapping, store=repo)
    return repo, ledger


class TestExpectedBalances:
    def test_expected_liability(self):
        contracts = _contracts()
        entries = _posted_through_june(contracts)
        assert expected_deferred_balance(contracts, entries, AS_OF) == Decimal("18000.00")

    def test_unposted_entries_do_not_reduce_liability(self):
        contracts = _contracts()
        entries = _posted_through_june(contracts)
        for entry in entries:
            entry.posted = False
        assert expected_deferred_balance(contracts, entries, AS_OF) == Decimal("30000.00")

    def test_cancelled_contracts_excluded(self):
        contracts = _contracts()
        contracts.append(
            Contract("c", Decimal("5000"), date(2024, 1, 1), 5, status=ContractStatus.CANCELLED)
        )
        entries = _posted_through_june(contracts[:2])
        assert expected_deferred_balance(contracts, entries, AS_OF) == Decimal("18000.00")

    def test_income_is_year_to_date(self):
        contracts = _contracts()
        entries = _posted_through_june(contracts)
        prior_year = build_entries(
            Contract("old", Decimal("1200"), date(2023, 1, 1), 12)
        )
        entries += [e.mark_posted("JE-old", None, datetime(2023, 12, 31)) for e in prior_year]

        assert expected_income(entries, AS_OF) == Decimal("12000.00")
        assert expected_income(entries, "2024-03-31") == Decimal("6000.00")

    def test_posted_adjustments_count(self, adjustment):
        contracts = [Contract("c-1", Decimal("12000"), date(2024, 1, 1), 12)]
        entries = _posted_through_june(contracts)
        correction = adjustment(date(2024, 1, 1), "250").mark_posted("JE-9", None, AS_OF)
        entries.append(correction)
        assert expected_deferred_balance(contracts, entries, AS_OF) == Decimal("5750.00")


class TestCompareBalances:
    def test_exact_match(self):
        result = compare_balances("18000", "18000.00")
        assert result.matches and result.difference == Decimal("0.00")

    def test_half_dollar_off(self):
        result = compare_balances("18000.00", "18000.50")
        assert not result.matches
        assert result.difference == Decimal("0.50")

    def test_one_cent_is_within_tolerance(self):
        assert compare_balances("18000.00", "17999.99").matches

    def test_custom_tolerance(self):
        assert compare_balances("100", "101", tolerance="1.00").matches


class TestComputeTieOut:
    """Pure tie-out over a snapshot."""

    def test_matching_books(self):
        contracts = _contracts()
        entries = _posted_through_june(contracts)
        result = compute_tie_out(contracts, entries, AS_OF, "18000", "12000")

        assert result.overall_matches
        assert result.liability.difference == Decimal("0.00")
        assert result.income.difference == Decimal("0.00")
        assert result.possible_causes == ()

    def test_liability_mismatch(self):
        contracts = _contracts()
        entries = _posted_through_june(contracts)
        result = compute_tie_out(contracts, entries, AS_OF, "18000.50", "12000")

        assert not result.liability.matches
        assert result.liability.difference == Decimal("0.50")
        assert result.income.matches
        assert not result.overall_matches

    def test_missing_opening_listed_as_possible_cause(self):
        contracts = _contracts()
        contracts[1].opening_posted = False
        entries = _posted_through_june(contracts)
        result = compute_tie_out(contracts, entries, AS_OF, "6000", "12000")

        assert result.missing_opening.count == 1
        assert result.missing_opening.total_amount == Decimal("18000.00")
        assert result.missing_opening.contract_ids == ("b",)
        assert len(result.possible_causes) == 1
        assert "18000.00" in result.possible_causes[0]

    def test_missing_opening_not_blamed_when_liability_matches(self):
        contracts = _contracts()
        contracts[1].opening_posted = False
        entries = _posted_through_june(contracts)
        result = compute_tie_out(contracts, entries, AS_OF, "18000", "12000")

        assert result.overall_matches
        assert result.missing_opening.count == 1
        assert result.possible_causes == ()

    def test_repeatable(self):
        contracts = _contracts()
        entries = _posted_through_june(contracts)
        first = compute_tie_out(contracts, entries, AS_OF, "18000.50", "11999")
        second = compute_tie_out(contracts, entries, AS_OF, "18000.50", "11999")
        assert first == second


class TestVerifyTieOut:
    """Tie-out through the tenant directory and balance reader."""

    def test_books_tie_out(self, tenant_books):
        repo, ledger = tenant_books
        result = verify_tie_out("t-1", AS_OF, repo, ledger)

        assert result.overall_matches
        assert result.liability.reported == Decimal("18000.00")
        assert result.income.reported == Decimal("12000.00")
        assert (result.liability_account, result.income_account) == ("2400", "4000")

    def test_ledger_drift_is_reported(self, tenant_books):
        repo, _ = tenant_books
        drifted = InMemoryLedger(opening_balances={"2400": "18000.50"})
        result = verify_tie_out("t-1", AS_OF, repo, drifted)

        assert not result.overall_matches
        assert result.liability.difference == Decimal("0.50")

    def test_unknown_tenant(self, tenant_books):
        repo, ledger = tenant_books
        with pytest.raises(NotFound):
            verify_tie_out("missing", AS_OF, repo, ledger)

    def test_incomplete_mapping(self, tenant_books):
        repo, ledger = tenant_books
        repo.add_tenant(Tenant("t-2", "No Income", {"deferredRevenueAccountId": "2400"}))
        with pytest.raises(NotConfigured) as excinfo:
            verify_tie_out("t-2", AS_OF, repo, ledger)
        assert excinfo.value.missing == ("income_account",)

    def test_unmapped_tenant(self, tenant_books):
        repo, ledger = tenant_books
        repo.add_tenant(Tenant("t-3", "Never Connected"))
        with pytest.raises(NotConfigured):
            verify_tie_out("t-3", AS_OF, repo, ledger)

    def test_unavailable_balance(self, tenant_books):
        repo, ledger = tenant_books
        ledger.make_unavailable("2400", "Token expired")
        with pytest.raises(BalanceUnavailable, match="Token expired"):
            verify_tie_out("t-1", AS_OF, repo, ledger)
