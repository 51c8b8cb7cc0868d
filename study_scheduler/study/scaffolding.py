"""
Support level selection.

Mastery picks a base level; poor recent accuracy ramps support back up so a
mastered topic that starts slipping gets more guidance again.
"""

from __future__ import annotations

from study_scheduler.core.enums import SupportLevel
from study_scheduler.core.models import MasteryRecord

MIN_RECENT_ATTEMPTS = 3


def support_level(
    mastery_level: float,
    recent_accuracy: float | None = None,
    recent_attempt_count: int = 0,
) -> SupportLevel:
    """
    Support level from mastery and recent accuracy.

    Args:
        mastery_level: Topic mastery (0-1)
        recent_accuracy: Recent accuracy (0-1), None if unknown
        recent_attempt_count: Attempts behind ``recent_accuracy``

    Returns:
        SupportLevel, HEAVY (1) through INDEPENDENT (4)
    """
    if mastery_level < 0.3:
        level = 1
    elif mastery_level < 0.5:
        level = 2
    elif mastery_level < 0.75:
        level = 3
    else:
        level = 4

    # Needs 3+ attempts to avoid reacting to noise
    if recent_accuracy is not None and recent_attempt_count >= MIN_RECENT_ATTEMPTS:
        if recent_accuracy < 0.4:
            level = max(1, level - 2)
        elif recent_accuracy < 0.6:
            level = max(1, level - 1)

    return SupportLevel(level)


def support_for_record(record: MasteryRecord | None) -> SupportLevel:
    """Support level for a topic; no record means maximum support."""
    if record is None:
        return SupportLevel.HEAVY
    return support_level(record.level, record.accuracy_7d, record.practice_count)
