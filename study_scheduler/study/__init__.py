"""
Study math.

Provides:
- Retention and urgency scoring, interval and stability updates
- Mastery EMA and rolling accuracy
- Difficulty calibration and support levels
- Section interleaving
- Learner statistics
"""

from study_scheduler.study.difficulty_calibrator import recommend_difficulty
from study_scheduler.study.interleaver import interleave_by_section
from study_scheduler.study.mastery_calculator import compute_mastery_update
from study_scheduler.study.retention_engine import (
    ScheduleBounds,
    calculate_retention,
    calculate_urgency,
    next_interval,
    score_review_queue,
    update_stability,
)
from study_scheduler.study.scaffolding import support_level
from study_scheduler.study.stats import compute_learner_stats

__all__ = [
    "ScheduleBounds",
    "calculate_retention",
    "calculate_urgency",
    "compute_learner_stats",
    "compute_mastery_update",
    "interleave_by_section",
    "next_interval",
    "recommend_difficulty",
    "score_review_queue",
    "support_level",
    "update_stability",
]
