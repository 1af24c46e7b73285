"""Tests for recalculating edited contracts."""

from datetime import date
from decimal import Decimal

import pytest

from waterfall.adjustment import (
    CatchUp,
    Prospective,
    Regenerate,
    Retroactive,
    ScheduleSnapshot,
    calculate_adjustment,
    parse_mode,
    remaining_periods,
    validate_mode,
)
from waterfall.config import RecognitionSettings
from waterfall.errors import (
    CatchUpTargetInvalid,
    InvalidInput,
    ModeNotApplicable,
    NoRemainingPeriods,
)
from waterfall.schema import AdjustmentKind, Contract, ContractTerms


def _terms(total, term=12, start="2024-01-01"):
    return ContractTerms.of(total, term, start, reference="INV-001")


def _final_total(entries, plan):
    """Posted history plus everything the plan adds."""
    snapshot = ScheduleSnapshot.partition(entries)
    return snapshot.recognized_total + plan.adjustment_total + plan.unposted_total


class TestRetroactive:
    """Corrections against posted periods, regenerated unposted periods."""

    def test_increase_corrects_each_posted_period(self, posted_three):
        plan = calculate_adjustment("c-1", posted_three, _terms("15000"), Retroactive())

        assert [a.amount for a in plan.adjustments] == [Decimal("250.00")] * 3
        assert [a.adjusts_entry_id for a in plan.adjustments] == ["c-1-e1", "c-1-e2", "c-1-e3"]
        assert all(a.is_adjustment and not a.posted for a in plan.adjustments)
        assert all(a.adjustment_kind == AdjustmentKind.RETROACTIVE for a in plan.adjustments)
        assert plan.adjustments[0].reason == "Contract amount correction (INV-001)"

        assert len(plan.new_entries) == 9
        assert all(e.amount == Decimal("1250.00") for e in plan.new_entries)
        assert plan.projected_total == Decimal("15000.00")

    def test_unchanged_periods_get_no_adjustment(self, posted_three):
        plan = calculate_adjustment("c-1", posted_three, _terms("12000"), Retroactive())
        assert plan.adjustments == ()
        assert plan.projected_total == Decimal("12000.00")

    def test_replaced_entries_are_the_unposted_ones(self, posted_three):
        plan = calculate_adjustment("c-1", posted_three, _terms("15000"), Retroactive())
        assert plan.replaced_entry_ids == tuple(f"c-1-e{i}" for i in range(4, 13))

    def test_removed_period_is_fully_reversed(self, posted_three):
        """Shortening to two months drops March, which was posted."""
        plan = calculate_adjustment("c-1", posted_three, _terms("12000", term=2), Retroactive())

        by_period = {a.period: a for a in plan.adjustments}
        assert by_period[date(2024, 3, 1)].amount == Decimal("-1000.00")
        assert by_period[date(2024, 3, 1)].reason.startswith(
            "Date change - month removed from schedule"
        )
        assert by_period[date(2024, 1, 1)].amount == Decimal("5000.00")
        assert by_period[date(2024, 2, 1)].amount == Decimal("5000.00")
        assert plan.new_entries == ()
        assert _final_total(posted_three, plan) == Decimal("12000.00")

    def test_earlier_start_flags_periods_for_review(self, posted_three):
        plan = calculate_adjustment(
            "c-1", posted_three, _terms("12000", start="2023-11-01"), Retroactive()
        )

        assert plan.review_periods == (date(2023, 11, 1), date(2023, 12, 1))
        flagged = [e for e in plan.new_entries if e.reason]
        assert [e.period for e in flagged] == [date(2023, 11, 1), date(2023, 12, 1)]
        assert flagged[0].reason == "New past month - requires manual review (INV-001)"
        assert plan.projected_total == Decimal("12000.00")

    def test_existing_adjustments_count_toward_posted_amount(
        self, posted_three, adjustment
    ):
        """A second edit corrects against the amount already adjusted."""
        history = posted_three + [
            adjustment(date(2024, m, 1), "250.00", adjusts=f"c-1-e{m}") for m in (1, 2, 3)
        ]
        for entry in history[-3:]:
            entry.posted = True

        plan = calculate_adjustment("c-1", history, _terms("12000"), Retroactive())

        assert plan.recognized_before == Decimal("3750.00")
        assert [a.amount for a in plan.adjustments] == [Decimal("-250.00")] * 3
        assert _final_total(history, plan) == Decimal("12000.00")

    def test_rounded_schedule_still_sums_exactly(self, make_schedule):
        contract = Contract("c-2", Decimal("10000.00"), date(2024, 1, 1), 12)
        entries = make_schedule(contract, posted=3)

        plan = calculate_adjustment("c-2", entries, _terms("10000", term=10), Retroactive())

        assert [a.amount for a in plan.adjustments] == [Decimal("166.67")] * 3
        assert _final_total(entries, plan) == Decimal("10000.00")

    def test_coarse_threshold_skips_small_deltas(self, make_schedule):
        contract = Contract("c-2", Decimal("10000.00"), date(2024, 1, 1), 12)
        entries = make_schedule(contract, posted=3)
        settings = RecognitionSettings(adjustment_threshold=Decimal("0.05"))

        plan = calculate_adjustment(
            "c-2", entries, _terms("10000.36"), Retroactive(), settings
        )

        assert plan.adjustments == ()

    def test_requires_posted_periods(self, contract, make_schedule):
        with pytest.raises(ModeNotApplicable):
            calculate_adjustment("c-1", make_schedule(contract), _terms("15000"), Retroactive())


class TestCatchUp:
    """The whole variance lands in one unposted period."""

    def test_catch_up_in_next_period(self, posted_three):
        mode = CatchUp(date(2024, 4, 1))
        plan = calculate_adjustment("c-1", posted_three, _terms("15000"), mode)

        target = next(e for e in plan.new_entries if e.period == date(2024, 4, 1))
        assert target.amount == Decimal("2000.00")
        assert target.adjustment_kind == AdjustmentKind.CATCH_UP
        assert not target.is_adjustment
        assert target.reason == "Catch-up adjustment for contract INV-001"

        others = [e for e in plan.new_entries if e is not target]
        assert all(e.amount == Decimal("1250.00") for e in others)
        assert plan.adjustments == ()
        assert plan.projected_total == Decimal("15000.00")

    def test_target_may_be_mid_month(self, posted_three):
        plan = calculate_adjustment(
            "c-1", posted_three, _terms("15000"), CatchUp(date(2024, 6, 20))
        )
        assert plan.projected_total == Decimal("15000.00")

    def test_decrease_can_go_negative(self, posted_three):
        plan = calculate_adjustment(
            "c-1", posted_three, _terms("6000"), CatchUp(date(2024, 4, 1))
        )
        target = plan.new_entries[0]
        assert target.amount == Decimal("-1000.00")
        assert plan.projected_total == Decimal("6000.00")

    def test_allowed_without_posted_periods(self, contract, make_schedule):
        plan = calculate_adjustment(
            "c-1", make_schedule(contract), _terms("15000"), CatchUp(date(2024, 1, 1))
        )
        assert plan.new_entries[0].amount == Decimal("1250.00")
        assert plan.projected_total == Decimal("15000.00")

    def test_posted_target_rejected(self, posted_three):
        with pytest.raises(CatchUpTargetInvalid, match="already posted"):
            calculate_adjustment(
                "c-1", posted_three, _terms("15000"), CatchUp(date(2024, 2, 1))
            )

    def test_target_outside_schedule_rejected(self, posted_three):
        with pytest.raises(CatchUpTargetInvalid):
            calculate_adjustment(
                "c-1", posted_three, _terms("15000"), CatchUp(date(2025, 6, 1))
            )

    def test_fully_posted_contract_has_no_remaining_periods(self, contract, make_schedule):
        entries = make_schedule(contract, posted=12)
        with pytest.raises(NoRemainingPeriods):
            calculate_adjustment("c-1", entries, _terms("15000"), CatchUp(date(2024, 12, 1)))


class TestProspective:
    """The variance is spread over the remaining periods."""

    def test_spreads_remaining_total(self, posted_three):
        plan = calculate_adjustment("c-1", posted_three, _terms("15000"), Prospective())

        amounts = [e.amount for e in plan.new_entries]
        assert amounts[:8] == [Decimal("1333.33")] * 8
        assert amounts[-1] == Decimal("1333.36")
        assert all(e.adjustment_kind == AdjustmentKind.PROSPECTIVE for e in plan.new_entries)
        assert plan.projected_total == Decimal("15000.00")

    def test_requires_posted_periods(self, contract, make_schedule):
        with pytest.raises(ModeNotApplicable):
            calculate_adjustment("c-1", make_schedule(contract), _terms("15000"), Prospective())

    def test_requires_remaining_periods(self, contract, make_schedule):
        entries = make_schedule(contract, posted=12)
        with pytest.raises(NoRemainingPeriods):
            calculate_adjustment("c-1", entries, _terms("15000"), Prospective())


class TestRegenerate:
    def test_rebuilds_whole_schedule(self, contract, make_schedule):
        entries = make_schedule(contract)
        plan = calculate_adjustment("c-1", entries, _terms("6000", term=6), Regenerate())

        assert [e.amount for e in plan.new_entries] == [Decimal("1000.00")] * 6
        assert len(plan.replaced_entry_ids) == 12
        assert plan.adjustments == ()

    def test_rejected_with_posted_periods(self, posted_three):
        with pytest.raises(ModeNotApplicable, match="3 posted"):
            calculate_adjustment("c-1", posted_three, _terms("15000"), Regenerate())


class TestSnapshot:
    def test_duplicate_period_rejected(self, contract, make_schedule):
        entries = make_schedule(contract)
        entries.append(entries[0])
        with pytest.raises(InvalidInput, match="Duplicate"):
            calculate_adjustment("c-1", entries, _terms("15000"), Regenerate())

    def test_mixed_contracts_rejected(self, contract, make_schedule):
        other = Contract("c-9", Decimal("100"), date(2024, 1, 1), 1)
        entries = make_schedule(contract) + make_schedule(other)
        with pytest.raises(InvalidInput):
            ScheduleSnapshot.partition(entries)

    def test_partition_orders_by_period(self, posted_three):
        snapshot = ScheduleSnapshot.partition(list(reversed(posted_three)))
        assert snapshot.last_posted_period == date(2024, 3, 1)
        assert snapshot.unposted[0].period == date(2024, 4, 1)


class TestParseMode:
    def test_catch_up_normalizes_target(self):
        assert parse_mode("catch_up", "2024-04-15") == CatchUp(date(2024, 4, 1))

    @pytest.mark.parametrize(
        "name, expected",
        [("retroactive", Retroactive()), ("prospective", Prospective()), ("none", Regenerate())],
    )
    def test_named_modes(self, name, expected):
        assert parse_mode(name) == expected

    def test_catch_up_requires_target(self):
        with pytest.raises(InvalidInput, match="catch-up month"):
            parse_mode("catch_up")

    def test_target_only_for_catch_up(self):
        with pytest.raises(InvalidInput):
            parse_mode("retroactive", "2024-04-01")

    def test_unknown_mode(self):
        with pytest.raises(InvalidInput, match="Unknown adjustment mode"):
            parse_mode("sideways")


class TestValidateMode:
    """Mode checks run before any amount is computed."""

    def test_catch_up_target_must_be_remaining(self, posted_three):
        snapshot = ScheduleSnapshot.partition(posted_three)
        periods = [date(2024, m, 1) for m in range(1, 13)]
        remaining = remaining_periods(snapshot, periods)

        assert remaining[0] == date(2024, 4, 1)
        validate_mode(CatchUp(date(2024, 4, 1)), snapshot, remaining)
        with pytest.raises(CatchUpTargetInvalid):
            validate_mode(CatchUp(date(2025, 1, 1)), snapshot, remaining)

    def test_prospective_without_remaining_periods(self, posted_three):
        snapshot = ScheduleSnapshot.partition(posted_three)
        with pytest.raises(NoRemainingPeriods):
            validate_mode(Prospective(), snapshot, [])
