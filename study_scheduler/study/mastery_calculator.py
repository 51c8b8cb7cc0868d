"""
Mastery Calculator.

Maintains a bounded skill estimate per topic with an exponential moving
average:

    level' = level + alpha * (score - level)

Two update strengths:
- Explicit practice: alpha = 0.3, counts toward practice_count
- Implicit credit (FIRe): alpha = 0.1, practice_count unchanged

Rolling accuracy windows (7d / 30d) return 0.0 when the window is empty.
That value means "no signal", not "struggling"; consumers of accuracy_7d
should look at practice_count before reading it as poor performance.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from study_scheduler.core.enums import MasteryStage
from study_scheduler.core.models import Attempt, MasteryRecord

EXPLICIT_ALPHA = 0.3
IMPLICIT_ALPHA = 0.1

SHORT_WINDOW_DAYS = 7
LONG_WINDOW_DAYS = 30


@dataclass(frozen=True)
class MasteryUpdate:
    """Next-state tuple produced by one attempt."""

    level: float
    stage: MasteryStage
    practice_count: int
    accuracy_7d: float
    accuracy_30d: float
    avg_time_ms: int


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def get_mastery_stage(level: float) -> MasteryStage:
    return MasteryStage.from_level(level)


def update_mastery_level(current: float, score: float, alpha: float = EXPLICIT_ALPHA) -> float:
    """
    Move the level toward the attempt score.

    Args:
        current: Current level (0-1)
        score: Attempt score, 1.0 correct / 0.0 wrong, or a FIRe-weighted score
        alpha: Learning rate

    Returns:
        New level clamped to [0, 1]
    """
    return _clamp01(current + alpha * (score - current))


def calculate_rolling_accuracy(
    attempts: Iterable[Attempt],
    window_days: int,
    now: datetime,
) -> float:
    """Share of correct attempts created within the last ``window_days``."""
    window_start = now - timedelta(days=window_days)
    in_window = [a for a in attempts if a.created_at >= window_start]
    if not in_window:
        return 0.0
    return sum(1 for a in in_window if a.is_correct) / len(in_window)


def compute_mastery_update(
    current: MasteryRecord | None,
    attempt: Attempt,
    recent_attempts: Iterable[Attempt],
    now: datetime,
    implicit: bool = False,
) -> MasteryUpdate:
    """
    Compute the full mastery update for one attempt.

    Args:
        current: Existing record, or None for a topic never practiced
        attempt: The new attempt (not yet included in ``recent_attempts``)
        recent_attempts: Prior attempts on the topic, any age
        now: Reference instant for the accuracy windows
        implicit: True for credit that did not come from explicit practice

    Returns:
        MasteryUpdate with level, stage, counts, accuracies and average time
    """
    current = current or MasteryRecord(topic_id=attempt.topic_id)
    alpha = IMPLICIT_ALPHA if implicit else EXPLICIT_ALPHA
    score = 1.0 if attempt.is_correct else 0.0

    level = update_mastery_level(current.level, score, alpha)
    practice_count = current.practice_count + (0 if implicit else 1)

    history = [*recent_attempts, attempt]
    accuracy_7d = calculate_rolling_accuracy(history, SHORT_WINDOW_DAYS, now)
    accuracy_30d = calculate_rolling_accuracy(history, LONG_WINDOW_DAYS, now)

    if implicit:
        avg_time_ms = current.avg_time_ms
    elif current.practice_count == 0:
        avg_time_ms = attempt.time_spent_ms
    else:
        total = current.avg_time_ms * current.practice_count + attempt.time_spent_ms
        avg_time_ms = round(total / (current.practice_count + 1))

    return MasteryUpdate(
        level=level,
        stage=get_mastery_stage(level),
        practice_count=practice_count,
        accuracy_7d=accuracy_7d,
        accuracy_30d=accuracy_30d,
        avg_time_ms=avg_time_ms,
    )
