"""
Unit Tests for the Weakness Analyzer and Aggregator

These tests verify:
- Weak-item filter and ordering per category
- Activity weakness ranking with failure tie-break
- Multi-snapshot averaging and window dispatch
"""

from datetime import date

import pytest

from numberland.analytics.aggregator import aggregate, analyze_window
from numberland.analytics.weakness_analyzer import analyze_weaknesses, get_weak_items, get_weakest_activities
from numberland.models.progress import ActivityLabel, ActivityStats, Category


# ============================================================================
# Single Snapshot
# ============================================================================


class TestWeakItems:

    def test_completed_high_score_item_is_not_weak(self, stars_item) -> None:
        items = {"4": stars_item("4", 85, completed=True)}

        assert get_weak_items(Category.NUMBERS, items) == []

    def test_incomplete_high_score_item_is_weak(self, stars_item) -> None:
        items = {"4": stars_item("4", 95, completed=False)}

        weak = get_weak_items(Category.NUMBERS, items)

        assert [w.item_name for w in weak] == ["4"]

    def test_completed_low_score_item_is_weak(self, stars_item) -> None:
        items = {"4": stars_item("4", 60, completed=True)}

        assert len(get_weak_items(Category.NUMBERS, items)) == 1

    def test_sorted_by_score_then_completion_rate(self, make_item) -> None:
        items = {
            "x": make_item("x", total_stars=10, total_stars_achieved=5, tracing_count=2, tracing_complete_count=1),
            "y": make_item("y", total_stars=10, total_stars_achieved=5, tracing_count=2, tracing_complete_count=0),
            "z": make_item("z", total_stars=10, total_stars_achieved=2),
        }

        weak = get_weak_items(Category.SHAPES, items)

        assert [w.item_name for w in weak] == ["z", "y", "x"]

    def test_truncated_to_top_n(self, stars_item) -> None:
        items = {str(n): stars_item(str(n), n * 5) for n in range(1, 9)}

        weak = get_weak_items(Category.NUMBERS, items, top_n=3)

        assert [w.item_name for w in weak] == ["1", "2", "3"]

    def test_weak_item_carries_item_metrics(self, make_item) -> None:
        items = {
            "Red": make_item(
                "Red",
                tracing_count=2,
                tracing_complete_count=1,
                tracing_total_time=30.0,
                total_stars=6,
                total_stars_achieved=3,
            )
        }

        weak = get_weak_items(Category.COLORS, items)[0]

        assert weak.category == Category.COLORS
        assert weak.total_attempts == 2
        assert weak.total_time_spent == 30.0
        assert weak.weakest_activity == ActivityLabel.TRACING
        assert weak.completion_rate == pytest.approx(25.0)


class TestWeakestActivities:

    def test_only_attempted_labels_included(self, make_item, make_snapshot) -> None:
        snapshot = make_snapshot({Category.NUMBERS: [make_item("1", hearing=ActivityStats(count=2, fail_count=1))]})

        weaknesses = get_weakest_activities(snapshot)

        assert [w.activity_type for w in weaknesses] == [ActivityLabel.HEARING]
        assert weaknesses[0].average_success_rate == 50.0

    def test_sums_across_categories(self, make_item, make_snapshot) -> None:
        snapshot = make_snapshot({
            Category.NUMBERS: [make_item("1", counting=ActivityStats(count=2, fail_count=2, total_time=8.0))],
            Category.COLORS: [make_item("Red", counting=ActivityStats(count=2, fail_count=0, total_time=4.0))],
        })

        weakness = get_weakest_activities(snapshot)[0]

        assert weakness.total_attempts == 4
        assert weakness.total_failures == 2
        assert weakness.average_success_rate == 50.0
        assert weakness.average_time == 3.0

    def test_equal_rates_ordered_by_more_failures(self, make_item, make_snapshot) -> None:
        snapshot = make_snapshot({Category.NUMBERS: [
            make_item(
                "1",
                hearing=ActivityStats(count=2, fail_count=1),
                counting=ActivityStats(count=10, fail_count=5),
            )
        ]})

        weaknesses = get_weakest_activities(snapshot)

        assert [w.activity_type for w in weaknesses] == [ActivityLabel.COUNTING, ActivityLabel.HEARING]

    def test_empty_snapshot_gives_empty_analysis(self, make_snapshot) -> None:
        analysis = analyze_weaknesses(make_snapshot())

        assert analysis.is_empty
        assert set(analysis.weak_items) == set(Category)


# ============================================================================
# Aggregation
# ============================================================================


class TestAggregate:

    @pytest.fixture
    def three_days(self, stars_item, make_item, make_snapshot):
        return [
            make_snapshot(
                {Category.NUMBERS: [stars_item("5", score)]},
                day=date(2024, 3, day),
            )
            for day, score in [(10, 40), (11, 60), (12, 80)]
        ]

    def test_item_scores_are_averaged(self, three_days) -> None:
        analysis = aggregate(three_days)

        weak = analysis.for_category(Category.NUMBERS)
        assert len(weak) == 1
        assert weak[0].overall_score == pytest.approx(60.0)

    def test_total_attempts_counts_contributing_snapshots(self, three_days) -> None:
        weak = aggregate(three_days).for_category(Category.NUMBERS)[0]

        assert weak.total_attempts == 3

    def test_weakest_activity_taken_from_latest_day(self, stars_item, make_item, make_snapshot) -> None:
        older = make_snapshot(
            {Category.NUMBERS: [make_item("5", hearing=ActivityStats(count=1, fail_count=1))]},
            day=date(2024, 3, 10),
        )
        newer = make_snapshot(
            {Category.NUMBERS: [make_item("5", counting=ActivityStats(count=1, fail_count=1))]},
            day=date(2024, 3, 11),
        )

        weak = aggregate([newer, older]).for_category(Category.NUMBERS)[0]

        assert weak.weakest_activity == ActivityLabel.COUNTING

    def test_items_sorted_by_mean_score(self, stars_item, make_snapshot) -> None:
        snapshots = [
            make_snapshot({Category.SHAPES: [stars_item("Star", 50), stars_item("Oval", 20)]}, day=date(2024, 3, 10)),
            make_snapshot({Category.SHAPES: [stars_item("Star", 50), stars_item("Oval", 40)]}, day=date(2024, 3, 11)),
        ]

        weak = aggregate(snapshots).for_category(Category.SHAPES)

        assert [w.item_name for w in weak] == ["Oval", "Star"]

    def test_activity_rates_are_averaged(self, make_item, make_snapshot) -> None:
        snapshots = [
            make_snapshot(
                {Category.NUMBERS: [make_item("1", counting=ActivityStats(count=4, fail_count=fails))]},
                day=date(2024, 3, day),
            )
            for day, fails in [(10, 4), (11, 2)]
        ]

        weakness = aggregate(snapshots).weakest_activities[0]

        assert weakness.activity_type == ActivityLabel.COUNTING
        assert weakness.average_success_rate == pytest.approx(25.0)
        assert weakness.total_attempts == 2


class TestAnalyzeWindow:

    def test_no_snapshots_is_empty(self) -> None:
        assert analyze_window([]).is_empty

    def test_single_snapshot_analyzed_directly(self, make_item, make_snapshot) -> None:
        snapshot = make_snapshot({Category.NUMBERS: [make_item("1", tracing_count=4, tracing_total_time=20.0)]})

        weak = analyze_window([snapshot]).for_category(Category.NUMBERS)[0]

        # Direct analysis keeps real attempt counts and time
        assert weak.total_attempts == 4
        assert weak.total_time_spent == 20.0
