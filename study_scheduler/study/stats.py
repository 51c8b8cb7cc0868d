"""
Learner statistics.

Summarizes attempt history and mastery state for progress displays:
accuracy (overall and 7-day), due reviews, average mastery, day streak,
recent error breakdown and per-section performance.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from loguru import logger

from study_scheduler.core.enums import ErrorType, Section
from study_scheduler.core.models import Attempt, LearnerSnapshot


@dataclass(frozen=True)
class SectionStats:
    section: Section
    total: int
    correct: int

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0


@dataclass
class LearnerStats:
    total_attempts: int = 0
    overall_accuracy: float = 0.0
    accuracy_7d: float = 0.0
    due_count: int = 0
    avg_mastery: float = 0.0
    streak_days: int = 0
    error_breakdown: dict[ErrorType, int] = field(default_factory=dict)
    sections: list[SectionStats] = field(default_factory=list)


def compute_streak(days_practiced: Iterable[date], today: date) -> int:
    """Consecutive days with at least one attempt, ending today."""
    practiced = set(days_practiced)
    streak = 0
    check = today
    while check in practiced:
        streak += 1
        check -= timedelta(days=1)
    return streak


def compute_learner_stats(
    attempts: Iterable[Attempt],
    snapshot: LearnerSnapshot,
    now: datetime,
) -> LearnerStats:
    """
    Compute progress statistics.

    Args:
        attempts: Full attempt history
        snapshot: Topics, mastery records and review queue
        now: Reference instant

    Returns:
        LearnerStats
    """
    attempts = list(attempts)
    stats = LearnerStats(total_attempts=len(attempts))

    if attempts:
        stats.overall_accuracy = sum(a.is_correct for a in attempts) / len(attempts)

    week_ago = now - timedelta(days=7)
    recent = [a for a in attempts if a.created_at >= week_ago]
    if recent:
        stats.accuracy_7d = sum(a.is_correct for a in recent) / len(recent)

    month_ago = now - timedelta(days=30)
    errors = Counter(
        a.error_type
        for a in attempts
        if a.created_at >= month_ago and not a.is_correct and a.error_type is not None
    )
    stats.error_breakdown = dict(errors)

    stats.due_count = sum(
        1
        for entry in snapshot.review_queue
        if entry.topic_id in snapshot.graph and now >= entry.scheduled_at
    )

    if snapshot.mastery:
        levels = [m.level for m in snapshot.mastery.values()]
        stats.avg_mastery = sum(levels) / len(levels)

    stats.streak_days = compute_streak((a.created_at.date() for a in attempts), now.date())

    totals: Counter[Section] = Counter()
    correct: Counter[Section] = Counter()
    orphaned = 0
    for attempt in attempts:
        topic = snapshot.graph.get(attempt.topic_id)
        if topic is None:
            orphaned += 1
            continue
        totals[topic.section] += 1
        if attempt.is_correct:
            correct[topic.section] += 1

    if orphaned:
        logger.warning(f"{orphaned} attempts reference unknown topics; excluded from section stats")

    stats.sections = [
        SectionStats(section=section, total=totals[section], correct=correct[section])
        for section in Section
    ]
    return stats
