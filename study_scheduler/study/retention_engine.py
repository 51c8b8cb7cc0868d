"""
Retention Engine - Forgetting Curve and Review Scheduling.

Implements the memory side of the scheduler:
1. Retention - R = e^(-t/S), exponential decay since last practice
2. Urgency - (1 - R) scaled by days overdue
3. Interval updates - piecewise multiplier on session accuracy
4. Stability updates - diminishing-returns learning rate

Every function takes the reference instant explicitly; nothing here reads
the wall clock.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from study_scheduler.core.models import (
    MasteryRecord,
    ReviewQueueEntry,
    ScoredReview,
    TopicGraph,
)

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_INTERVAL = timedelta(hours=4)
MIN_INTERVAL = timedelta(minutes=30)
MAX_INTERVAL = timedelta(days=90)

MIN_STABILITY = 0.5  # Days
HOURS_PER_DAY = 24

# (accuracy floor, interval multiplier); below the last floor the interval resets
INTERVAL_MULTIPLIERS = (
    (0.9, 2.5),
    (0.7, 1.5),
    (0.5, 1.0),
    (0.3, 0.5),
)
MASTERY_INTERVAL_BONUS = 0.1
STABILITY_SUCCESS_THRESHOLD = 0.7


@dataclass(frozen=True)
class ScheduleBounds:
    """Interval limits for review scheduling."""
    min_interval: timedelta = MIN_INTERVAL
    max_interval: timedelta = MAX_INTERVAL
    default_interval: timedelta = DEFAULT_INTERVAL

    def clamp(self, interval: timedelta) -> timedelta:
        return max(self.min_interval, min(self.max_interval, interval))


def _hours(delta: timedelta) -> float:
    return delta.total_seconds() / 3600


# =============================================================================
# RETENTION & URGENCY
# =============================================================================

def calculate_retention(
    last_practiced_at: datetime | None,
    stability_factor: float,
    now: datetime,
) -> float:
    """
    Calculate current recall probability.

    Formula: R = e^(-t/S)

    Where:
        t = hours since last practice
        S = stability factor (days) converted to hours

    Args:
        last_practiced_at: Last explicit practice, or None if never practiced
        stability_factor: Stability in days
        now: Reference instant

    Returns:
        Retention between 0 and 1 (0 for never-practiced topics)
    """
    if last_practiced_at is None:
        return 0.0

    stability_hours = max(stability_factor, MIN_STABILITY) * HOURS_PER_DAY
    elapsed_hours = _hours(now - last_practiced_at)
    retention = math.exp(-elapsed_hours / stability_hours)
    return max(0.0, min(1.0, retention))


def calculate_urgency(retention: float, scheduled_at: datetime, now: datetime) -> float:
    """
    Review urgency: (1 - retention) x overdue factor.

    The overdue factor is 1 + overdue_hours / 24, so urgency grows by the
    forgetting gap once per day overdue. Never negative.
    """
    overdue_hours = max(0.0, _hours(now - scheduled_at))
    overdue_factor = 1 + overdue_hours / HOURS_PER_DAY
    forgotten = 1 - max(0.0, min(1.0, retention))
    return forgotten * overdue_factor


def score_review_queue(
    entries: Iterable[ReviewQueueEntry],
    mastery: Mapping[str, MasteryRecord],
    graph: TopicGraph,
    now: datetime,
) -> list[ScoredReview]:
    """
    Recompute retention and urgency for every queue entry at one instant.

    Stored urgency is ignored. Entries whose topic is missing from the graph
    are skipped.

    Returns:
        Scored reviews sorted by urgency, highest first
    """
    scored = []
    skipped = 0

    for entry in entries:
        if entry.topic_id not in graph:
            skipped += 1
            logger.warning(f"Review queue entry for unknown topic {entry.topic_id} skipped")
            continue

        record = mastery.get(entry.topic_id)
        retention = (
            calculate_retention(record.last_practiced_at, record.stability_factor, now)
            if record is not None
            else 0.0
        )
        scored.append(
            ScoredReview(
                topic_id=entry.topic_id,
                scheduled_at=entry.scheduled_at,
                interval=entry.interval,
                retention=retention,
                urgency=calculate_urgency(retention, entry.scheduled_at, now),
                is_due=now >= entry.scheduled_at,
            )
        )

    scored.sort(key=lambda r: r.urgency, reverse=True)
    logger.debug(
        f"Scored {len(scored)} reviews ({sum(r.is_due for r in scored)} due, {skipped} skipped)"
    )
    return scored


# =============================================================================
# INTERVAL & STABILITY UPDATES
# =============================================================================

def next_interval(
    current: timedelta,
    accuracy_score: float,
    mastery_level: float,
    bounds: ScheduleBounds | None = None,
) -> timedelta:
    """
    Compute the next review interval from session accuracy.

    Score thresholds:
    - 0.9+      -> interval x 2.5
    - 0.7-0.9   -> interval x 1.5
    - 0.5-0.7   -> unchanged
    - 0.3-0.5   -> interval x 0.5
    - < 0.3     -> reset to the default interval

    The result is scaled by (1 + mastery x 0.1) and clamped to the bounds.
    """
    bounds = bounds or ScheduleBounds()

    interval = bounds.default_interval
    for floor, multiplier in INTERVAL_MULTIPLIERS:
        if accuracy_score >= floor:
            interval = current * multiplier
            break

    interval = interval * (1 + mastery_level * MASTERY_INTERVAL_BONUS)
    return bounds.clamp(interval)


def next_review_at(interval: timedelta, now: datetime) -> datetime:
    return now + interval


def update_stability(current: float, accuracy_score: float, practice_count: int) -> float:
    """
    Update the stability factor after a practice session.

    Learning rate decreases with practice: max(0.1, 1/sqrt(n + 1)).
    Success (>= 0.7) lengthens the forgetting curve, failure shortens it,
    never below 0.5 days.
    """
    learning_rate = max(0.1, 1 / math.sqrt(max(practice_count, 0) + 1))

    if accuracy_score >= STABILITY_SUCCESS_THRESHOLD:
        updated = current + learning_rate * accuracy_score
    else:
        updated = current - learning_rate * (1 - accuracy_score)

    return max(MIN_STABILITY, updated)
