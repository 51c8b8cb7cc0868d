"""
Adaptive layer: task selection, prerequisite credit, attempt recording,
study plan assembly and study sessions.
"""

from study_scheduler.adaptive.attempt_recorder import AttemptOutcome, AttemptRecorder
from study_scheduler.adaptive.credit_propagator import FireCredit, compute_fire_credits
from study_scheduler.adaptive.recommendation import StudyPlan, StudyPlanner
from study_scheduler.adaptive.study_sessions import StudySessionManager, select_session_questions
from study_scheduler.adaptive.task_selector import SelectorConfig, TaskSelector

__all__ = [
    "AttemptOutcome",
    "AttemptRecorder",
    "FireCredit",
    "SelectorConfig",
    "StudyPlan",
    "StudyPlanner",
    "StudySessionManager",
    "TaskSelector",
    "compute_fire_credits",
    "select_session_questions",
]
