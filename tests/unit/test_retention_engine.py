"""
Unit tests for the retention engine.

Covers the forgetting curve, urgency, queue scoring and the interval and
stability updates applied after each attempt.
"""

import math
from datetime import timedelta

import pytest
from conftest import make_entry, make_record

from study_scheduler.study.retention_engine import (
    MAX_INTERVAL,
    MIN_INTERVAL,
    ScheduleBounds,
    calculate_retention,
    calculate_urgency,
    next_interval,
    score_review_queue,
    update_stability,
)


def _hours(delta: timedelta) -> float:
    return delta.total_seconds() / 3600


class TestRetention:
    def test_never_practiced_has_zero_retention(self, now):
        assert calculate_retention(None, 1.0, now) == 0.0

    def test_just_practiced_has_full_retention(self, now):
        assert calculate_retention(now, 1.0, now) == pytest.approx(1.0)

    def test_one_stability_period_decays_to_one_over_e(self, now):
        retention = calculate_retention(now - timedelta(days=2), 2.0, now)
        assert retention == pytest.approx(math.exp(-1))

    def test_stability_is_floored_at_half_a_day(self, now):
        # 12 hours at the 0.5-day floor is exactly one stability period
        retention = calculate_retention(now - timedelta(hours=12), 0.1, now)
        assert retention == pytest.approx(math.exp(-1))

    def test_retention_stays_within_unit_interval(self, now):
        future = now + timedelta(hours=6)
        assert calculate_retention(future, 1.0, now) == 1.0
        assert 0.0 <= calculate_retention(now - timedelta(days=400), 0.5, now) <= 1.0

    def test_non_increasing_in_elapsed_time(self, now):
        retentions = [
            calculate_retention(now - timedelta(hours=h), 1.5, now) for h in range(0, 501, 5)
        ]
        assert all(later <= earlier for earlier, later in zip(retentions, retentions[1:]))

    def test_non_decreasing_in_stability(self, now):
        last_practiced = now - timedelta(hours=36)
        retentions = [
            calculate_retention(last_practiced, s, now) for s in [0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0]
        ]
        assert all(later >= earlier for earlier, later in zip(retentions, retentions[1:]))


class TestUrgency:
    def test_not_yet_due_is_forgetting_gap_only(self, now):
        assert calculate_urgency(0.7, now + timedelta(hours=3), now) == pytest.approx(0.3)

    def test_one_day_overdue_doubles_urgency(self, now):
        assert calculate_urgency(0.7, now - timedelta(hours=24), now) == pytest.approx(0.6)

    def test_full_retention_is_never_urgent(self, now):
        assert calculate_urgency(1.0, now - timedelta(days=10), now) == 0.0


class TestScoreReviewQueue:
    def test_sorted_by_urgency_and_flags_due(self, gmat_graph, now):
        mastery = {
            "arithmetic": make_record(
                "arithmetic", 0.6, last_practiced_at=now - timedelta(days=3)
            ),
            "algebra": make_record("algebra", 0.6, last_practiced_at=now - timedelta(hours=1)),
        }
        entries = [
            make_entry("algebra", now + timedelta(hours=5)),
            make_entry("arithmetic", now - timedelta(hours=12)),
        ]

        scored = score_review_queue(entries, mastery, gmat_graph, now)

        assert [r.topic_id for r in scored] == ["arithmetic", "algebra"]
        assert scored[0].is_due is True
        assert scored[1].is_due is False
        assert scored[0].urgency > scored[1].urgency

    def test_due_at_exact_instant(self, gmat_graph, now):
        scored = score_review_queue([make_entry("algebra", now)], {}, gmat_graph, now)
        assert scored[0].is_due is True

    def test_missing_mastery_record_scores_zero_retention(self, gmat_graph, now):
        scored = score_review_queue([make_entry("geometry", now)], {}, gmat_graph, now)
        assert scored[0].retention == 0.0
        assert scored[0].urgency == pytest.approx(1.0)

    def test_unknown_topic_is_skipped(self, gmat_graph, now):
        entries = [make_entry("calculus", now), make_entry("algebra", now)]
        scored = score_review_queue(entries, {}, gmat_graph, now)
        assert [r.topic_id for r in scored] == ["algebra"]

    def test_stored_urgency_is_ignored(self, gmat_graph, now):
        entry = make_entry("algebra", now + timedelta(hours=1))
        entry.urgency = 99.0
        scored = score_review_queue([entry], {}, gmat_graph, now)
        assert scored[0].urgency == pytest.approx(1.0)


class TestNextInterval:
    def test_high_accuracy_scaled_by_mastery(self):
        # 4h x 2.5 x (1 + 0.5 x 0.1)
        interval = next_interval(timedelta(hours=4), 0.95, 0.5)
        assert _hours(interval) == pytest.approx(10.5)

    @pytest.mark.parametrize(
        "accuracy, expected_hours",
        [
            (0.9, 20.0),
            (0.7, 12.0),
            (0.5, 8.0),
            (0.3, 4.0),
        ],
    )
    def test_accuracy_bands(self, accuracy, expected_hours):
        interval = next_interval(timedelta(hours=8), accuracy, 0.0)
        assert _hours(interval) == pytest.approx(expected_hours)

    def test_very_poor_accuracy_resets_to_default(self):
        interval = next_interval(timedelta(days=20), 0.1, 0.0)
        assert interval == timedelta(hours=4)

    def test_clamped_to_minimum(self):
        interval = next_interval(timedelta(minutes=30), 0.4, 0.0)
        assert interval == MIN_INTERVAL

    def test_clamped_to_maximum(self):
        interval = next_interval(timedelta(days=80), 1.0, 1.0)
        assert interval == MAX_INTERVAL

    def test_custom_bounds(self):
        bounds = ScheduleBounds(
            min_interval=timedelta(hours=1),
            max_interval=timedelta(days=7),
            default_interval=timedelta(hours=2),
        )
        assert next_interval(timedelta(days=5), 0.95, 0.0, bounds) == timedelta(days=7)
        assert next_interval(timedelta(days=5), 0.0, 0.0, bounds) == timedelta(hours=2)


class TestUpdateStability:
    def test_first_success_uses_full_learning_rate(self):
        assert update_stability(1.0, 0.9, 0) == pytest.approx(1.9)

    def test_failure_shrinks_stability(self):
        # rate 1/sqrt(4) = 0.5
        assert update_stability(1.0, 0.2, 3) == pytest.approx(0.6)

    def test_never_below_half_a_day(self):
        assert update_stability(0.6, 0.0, 0) == 0.5

    def test_learning_rate_floor(self):
        # 1/sqrt(201) < 0.1, so the 0.1 floor applies
        assert update_stability(2.0, 1.0, 200) == pytest.approx(2.1)

    def test_success_threshold_is_inclusive(self):
        assert update_stability(1.0, 0.7, 0) > 1.0
        assert update_stability(1.0, 0.69, 0) < 1.0
