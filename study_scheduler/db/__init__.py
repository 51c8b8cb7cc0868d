"""Database layer for the learner store."""

from study_scheduler.db.database import get_engine, init_db, session_scope
from study_scheduler.db.repository import QuestionNotFoundError, SqlQuestionPicker, SqlStudyStore

__all__ = [
    "QuestionNotFoundError",
    "SqlQuestionPicker",
    "SqlStudyStore",
    "get_engine",
    "init_db",
    "session_scope",
]
