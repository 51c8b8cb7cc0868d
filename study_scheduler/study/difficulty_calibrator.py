"""
Difficulty Calibrator - Optimal Learning Zone.

Keeps recent accuracy inside the 70-85% band:
- < 70% correct  -> too hard, step down (or review prerequisites at EASY)
- 70-85%         -> optimal zone, hold
- > 85% correct  -> too easy, step up (or advance topics at HARD)
"""

from __future__ import annotations

from dataclasses import dataclass

from study_scheduler.core.enums import Difficulty

OPTIMAL_ACCURACY_MIN = 0.70
OPTIMAL_ACCURACY_MAX = 0.85
MIN_PRACTICE_FOR_CALIBRATION = 5


@dataclass(frozen=True)
class DifficultyRecommendation:
    recommended: Difficulty
    reason: str
    in_optimal_zone: bool


def _pct(value: float) -> str:
    return f"{round(value * 100)}%"


def recommend_difficulty(
    current: Difficulty,
    recent_accuracy: float,
    practice_count: int,
    accuracy_min: float = OPTIMAL_ACCURACY_MIN,
    accuracy_max: float = OPTIMAL_ACCURACY_MAX,
) -> DifficultyRecommendation:
    """
    Recommend a difficulty level from recent accuracy.

    Args:
        current: Difficulty currently in use
        recent_accuracy: Recent accuracy (0-1)
        practice_count: Explicit attempts on the topic

    Returns:
        DifficultyRecommendation with level, reason and zone flag
    """
    if practice_count < MIN_PRACTICE_FOR_CALIBRATION:
        return DifficultyRecommendation(
            recommended=current,
            reason="Not enough data yet - keep practicing at current level",
            in_optimal_zone=True,
        )

    if recent_accuracy > accuracy_max:
        if current.is_hardest:
            return DifficultyRecommendation(
                recommended=current,
                reason=(
                    f"Already at hardest level with {_pct(recent_accuracy)} accuracy"
                    " - consider advancing topics"
                ),
                in_optimal_zone=False,
            )
        return DifficultyRecommendation(
            recommended=current.harder(),
            reason=(
                f"Accuracy {_pct(recent_accuracy)} exceeds {_pct(accuracy_max)}"
                " - ready for harder questions"
            ),
            in_optimal_zone=False,
        )

    if recent_accuracy < accuracy_min:
        if current.is_easiest:
            return DifficultyRecommendation(
                recommended=current,
                reason=(
                    f"Already at easiest level with {_pct(recent_accuracy)} accuracy"
                    " - review prerequisite topics"
                ),
                in_optimal_zone=False,
            )
        return DifficultyRecommendation(
            recommended=current.easier(),
            reason=(
                f"Accuracy {_pct(recent_accuracy)} below {_pct(accuracy_min)}"
                " - review at easier level first"
            ),
            in_optimal_zone=False,
        )

    return DifficultyRecommendation(
        recommended=current,
        reason=(
            f"Accuracy {_pct(recent_accuracy)} is in the optimal "
            f"{_pct(accuracy_min)}-{_pct(accuracy_max)} learning zone"
        ),
        in_optimal_zone=True,
    )
