"""
Unit tests for the 30-day recency rule.

Tests cover:
- Most recent referral is always internal
- 30-day boundary
- Reversal when a newer referral closes the gap
- Idempotence and input-order independence
"""

import pytest

from commission_engine.services.referral import plan_classification


THRESHOLD = 30


def apply(rows, result):
    """Apply a plan to referral rows in place."""
    for row in rows:
        if row.id in result.marked_external:
            row.external = True
        if row.id in result.reverted_internal:
            row.external = False


class TestPlanClassification:
    """Test classification decisions on in-memory rows."""

    def test_no_referrals(self):
        result = plan_classification("property", 1, [], THRESHOLD)
        assert result.total == 0
        assert result.most_recent_id is None
        assert not result.changed
        assert result.message == "No referrals to process"

    def test_single_referral_stays_internal(self, make_referral):
        rows = [make_referral(1, 0)]
        result = plan_classification("property", 1, rows, THRESHOLD)
        assert result.most_recent_id == 1
        assert not result.changed

    def test_referral_40_days_older_marked_external(self, make_referral):
        rows = [make_referral(1, 0), make_referral(2, 40)]
        result = plan_classification("property", 1, rows, THRESHOLD)

        assert result.most_recent_id == 2
        assert result.marked_external == [1]
        assert result.reverted_internal == []

    def test_newer_anchor_keeps_lapsed_and_recent_flags(self, make_referral):
        rows = [
            make_referral(1, 0, external=True),
            make_referral(2, 40),
            make_referral(3, 45),
        ]
        result = plan_classification("property", 1, rows, THRESHOLD)
        apply(rows, result)

        flags = {row.id: row.external for row in rows}
        assert flags == {1: True, 2: False, 3: False}
        # Nothing flips: day 0 was already external, day 40 is 5 days back
        assert not result.changed

    def test_reversal_when_newer_referral_closes_gap(self, make_referral):
        # Referral 2 was external relative to an older anchor layout
        rows = [
            make_referral(1, 0, external=True),
            make_referral(2, 40, external=True),
            make_referral(3, 45),
        ]
        result = plan_classification("property", 1, rows, THRESHOLD)
        assert result.reverted_internal == [2]
        assert result.marked_external == []

    def test_exactly_30_days_is_external(self, make_referral):
        rows = [make_referral(1, 0), make_referral(2, 30)]
        result = plan_classification("property", 1, rows, THRESHOLD)
        assert result.marked_external == [1]

    def test_just_under_30_days_is_internal(self, make_referral):
        rows = [make_referral(1, 0, external=True), make_referral(2, 29.999)]
        result = plan_classification("property", 1, rows, THRESHOLD)
        assert result.reverted_internal == [1]

    def test_external_anchor_is_forced_internal(self, make_referral):
        rows = [make_referral(1, 0), make_referral(2, 10, external=True)]
        result = plan_classification("property", 1, rows, THRESHOLD)
        assert result.most_recent_id == 2
        assert result.reverted_internal == [2]

    def test_ties_on_date_use_highest_id_as_anchor(self, make_referral):
        rows = [make_referral(5, 10), make_referral(7, 10, external=True)]
        result = plan_classification("lead", 3, rows, THRESHOLD)
        assert result.most_recent_id == 7
        assert result.reverted_internal == [7]

    def test_input_order_does_not_matter(self, make_referral):
        rows = [make_referral(2, 40), make_referral(1, 0), make_referral(3, 5)]
        result = plan_classification("property", 1, rows, THRESHOLD)
        assert result.most_recent_id == 2
        assert sorted(result.marked_external) == [1, 3]

    def test_idempotent(self, make_referral):
        rows = [make_referral(1, 0), make_referral(2, 20), make_referral(3, 60)]
        first = plan_classification("property", 1, rows, THRESHOLD)
        apply(rows, first)
        second = plan_classification("property", 1, rows, THRESHOLD)

        assert first.changed
        assert not second.changed
        assert [row.external for row in rows] == [True, True, False]

    def test_custom_threshold(self, make_referral):
        rows = [make_referral(1, 0), make_referral(2, 8)]
        result = plan_classification("property", 1, rows, threshold_days=7)
        assert result.marked_external == [1]

    def test_rows_are_not_mutated(self, make_referral):
        rows = [make_referral(1, 0), make_referral(2, 40)]
        plan_classification("property", 1, rows, THRESHOLD)
        assert rows[0].external is False

    @pytest.mark.parametrize(
        "marked,reverted,expected",
        [
            ([1], [], "Marked 1 referral(s) as external"),
            ([], [2, 3], "Reverted 2 referral(s) to internal"),
        ],
    )
    def test_message(self, make_referral, marked, reverted, expected):
        result = plan_classification("property", 1, [make_referral(9, 0)], THRESHOLD)
        result.marked_external.extend(marked)
        result.reverted_internal.extend(reverted)
        assert result.message == expected
