"""Domain records, enums and the learner store contract."""

from study_scheduler.core.enums import (
    Difficulty,
    ErrorType,
    MasteryStage,
    Section,
    SessionStatus,
    SessionType,
    SupportLevel,
    TaskType,
)
from study_scheduler.core.models import (
    Attempt,
    LearnerSnapshot,
    MasteryRecord,
    Question,
    ReviewQueueEntry,
    ScoredReview,
    StudySession,
    TaskRecommendation,
    Topic,
    TopicGraph,
)
from study_scheduler.core.store import SessionStore, StudyStore

__all__ = [
    "Attempt",
    "Difficulty",
    "ErrorType",
    "LearnerSnapshot",
    "MasteryRecord",
    "MasteryStage",
    "Question",
    "ReviewQueueEntry",
    "ScoredReview",
    "Section",
    "SessionStatus",
    "SessionStore",
    "SessionType",
    "StudySession",
    "StudyStore",
    "SupportLevel",
    "TaskRecommendation",
    "TaskType",
    "Topic",
    "TopicGraph",
]
