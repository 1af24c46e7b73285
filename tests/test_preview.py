"""Tests for edit previews."""

from datetime import date
from decimal import Decimal

from waterfall.adjustment import CatchUp, Prospective, Retroactive, preview_edit
from waterfall.schema import ContractTerms


class TestPreviewEdit:
    def test_retroactive_lists_affected_periods(self, contract, posted_three):
        terms = ContractTerms.of("15000", 12, "2024-01-01", "INV-001")
        preview = preview_edit(contract, posted_three, terms, Retroactive())

        assert preview.old_per_period_amount == Decimal("1000.00")
        assert preview.new_per_period_amount == Decimal("1250.00")
        assert [p.period for p in preview.affected_periods] == [
            date(2024, 1, 1),
            date(2024, 2, 1),
            date(2024, 3, 1),
        ]
        first = preview.affected_periods[0]
        assert (first.old_amount, first.new_amount, first.difference) == (
            Decimal("1000.00"),
            Decimal("1250.00"),
            Decimal("250.00"),
        )
        assert preview.catch_up is None

    def test_catch_up_details(self, contract, posted_three):
        terms = ContractTerms.of("15000", 12, "2024-01-01", "INV-001")
        preview = preview_edit(contract, posted_three, terms, CatchUp(date(2024, 4, 1)))

        assert preview.affected_periods == ()
        assert preview.catch_up.period == date(2024, 4, 1)
        assert preview.catch_up.normal_amount == Decimal("1250.00")
        assert preview.catch_up.catch_up_amount == Decimal("750.00")
        assert preview.catch_up.total_amount == Decimal("2000.00")

    def test_preview_leaves_entries_untouched(self, contract, posted_three):
        before = [(e.id, e.amount, e.posted) for e in posted_three]
        terms = ContractTerms.of("9000", 12, "2024-01-01")
        preview = preview_edit(contract, posted_three, terms, Prospective())

        assert preview.plan.projected_total == Decimal("9000.00")
        assert [(e.id, e.amount, e.posted) for e in posted_three] == before
        assert preview.old_terms == contract.terms
