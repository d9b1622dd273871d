"""
Unit Tests for the Scoring Engine

Covers zero-division safety, score bounds, the weakest-activity tie order
and the tracing-then-quiz scenario end to end.
"""

from datetime import date

import pytest

from numberland.analytics import scoring
from numberland.analytics.weakness_analyzer import analyze_weaknesses
from numberland.models.events import QuizDetail, QuizEvent, TracingEvent
from numberland.models.progress import ActivityLabel, ActivityStats, Category, ItemProgress, QuizType, Snapshot
from numberland.progress.updater import apply_quiz, apply_tracing


class TestEmptyItem:
    """An item with every counter at zero."""

    def test_scores_are_zero(self) -> None:
        item = ItemProgress(item_name="7")

        assert scoring.overall_score(item) == 0.0
        assert scoring.completion_rate(item) == 0.0

    def test_weakest_activity_defaults_to_tracing(self) -> None:
        item = ItemProgress(item_name="7")

        assert scoring.weakest_activity(item) == ActivityLabel.TRACING

    def test_untried_activities_read_as_perfect(self) -> None:
        rates = scoring.activity_success_rates(ItemProgress(item_name="7"))

        assert list(rates) == list(ActivityLabel)
        assert set(rates.values()) == {100.0}


class TestOverallScore:

    def test_unweighted_mean_of_attempted_components(self) -> None:
        item = ItemProgress(
            item_name="B",
            total_stars=10,
            total_stars_achieved=5,  # 50
            quiz_count=4,
            quiz_fail_count=0,  # 100
            counting=ActivityStats(count=4, fail_count=0),  # 100
        )

        assert scoring.overall_score(item) == pytest.approx(250 / 3)

    def test_single_attempt_style_weighs_like_frequent_one(self) -> None:
        item = ItemProgress(
            item_name="B",
            quiz_count=101,
            quiz_fail_count=1,
            counting=ActivityStats(count=100, fail_count=0),
            hearing=ActivityStats(count=1, fail_count=1),
        )

        expected = ((100 / 101 * 100) + 100 + 0) / 3
        assert scoring.overall_score(item) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "fields",
        [
            {"total_stars": 3, "total_stars_achieved": 3},
            {"quiz_count": 5, "quiz_fail_count": 5},
            {"quiz_count": 2, "quiz_fail_count": 1, "bubble_pop": ActivityStats(count=2, fail_count=1)},
            {"tracing_count": 9, "total_stars": 27, "total_stars_achieved": 0},
        ],
    )
    def test_bounded_between_0_and_100(self, fields) -> None:
        score = scoring.overall_score(ItemProgress(item_name="x", **fields))

        assert 0.0 <= score <= 100.0


class TestWeakestActivity:

    def test_lowest_attempted_rate_wins(self) -> None:
        item = ItemProgress(
            item_name="Red",
            tracing_count=2,
            tracing_complete_count=2,
            hearing=ActivityStats(count=4, fail_count=1),
            counting=ActivityStats(count=4, fail_count=3),
        )

        assert scoring.weakest_activity(item) == ActivityLabel.COUNTING

    def test_ties_resolved_by_label_order(self) -> None:
        item = ItemProgress(
            item_name="Red",
            figure_to_text=ActivityStats(count=2, fail_count=2),
            object_recognition=ActivityStats(count=1, fail_count=1),
        )

        assert scoring.weakest_activity(item) == ActivityLabel.OBJECT_RECOGNITION


class TestCompletionRate:

    def test_halves_tracing_and_quiz_rates(self) -> None:
        item = ItemProgress(
            item_name="a",
            tracing_count=4,
            tracing_complete_count=2,
            quiz_count=2,
            quiz_fail_count=0,
        )

        assert scoring.completion_rate(item) == pytest.approx(75.0)

    def test_missing_quiz_counts_as_zero(self) -> None:
        item = ItemProgress(item_name="a", tracing_count=2, tracing_complete_count=2)

        assert scoring.completion_rate(item) == pytest.approx(50.0)


def test_totals_exclude_style_counters() -> None:
    item = ItemProgress(
        item_name="a",
        tracing_count=2,
        tracing_complete_count=1,
        tracing_total_time=10.0,
        quiz_count=3,
        quiz_fail_count=1,
        quiz_total_time=6.0,
        counting=ActivityStats(count=3, fail_count=1, total_time=6.0),
    )

    assert scoring.total_attempts(item) == 5
    assert scoring.total_time_spent(item) == 16.0
    assert scoring.total_successes(item) == 3


# ============================================================================
# End to End
# ============================================================================


def test_tracing_then_failed_counting_quiz() -> None:
    snapshot = Snapshot(user_id="child-1", period_start=date(2024, 3, 15))
    trace = TracingEvent(
        category=Category.NUMBERS,
        item_label="3",
        completed=False,
        stars_achieved=1,
        max_stars=3,
        total_time=70.0,
    )
    for _ in range(3):
        apply_tracing(snapshot, trace)

    item = apply_quiz(
        snapshot,
        QuizEvent(
            category=Category.NUMBERS,
            item_label="3",
            quiz_details=[QuizDetail(type=QuizType.COUNTING, lives_remaining=0, total_lives=3, score=30)],
        ),
    )

    assert item.tracing_count == 3
    assert item.tracing_complete_count == 0
    assert item.completed is False
    assert item.quiz_count == 1
    assert item.quiz_fail_count == 1
    assert scoring.overall_score(item) == pytest.approx(100 / 9)
    # Tracing and Counting are both 0%; Tracing comes first
    assert scoring.weakest_activity(item) == ActivityLabel.TRACING

    weak = analyze_weaknesses(snapshot).for_category(Category.NUMBERS)
    assert [w.item_name for w in weak] == ["3"]
