"""
Persistence collaborator interface.

The scheduler core never performs I/O. The attempt-recording boundary talks
to storage through this protocol; writes replace whole records.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from study_scheduler.core.enums import SessionStatus
from study_scheduler.core.models import (
    Attempt,
    LearnerSnapshot,
    MasteryRecord,
    Question,
    ReviewQueueEntry,
    StudySession,
)


class StudyStore(Protocol):
    """Read/write access to topics, mastery, review queue and attempts."""

    def get_prerequisites(self, topic_id: str) -> list[str]:
        """Direct prerequisite ids. Must be side-effect free."""
        ...

    def get_mastery(self, topic_id: str) -> MasteryRecord | None: ...

    def save_mastery(self, record: MasteryRecord) -> None: ...

    def get_review_entry(self, topic_id: str) -> ReviewQueueEntry | None: ...

    def save_review_entry(self, entry: ReviewQueueEntry) -> None: ...

    def add_attempt(self, attempt: Attempt) -> None: ...

    def list_attempts(self, topic_id: str, since: datetime) -> list[Attempt]:
        """Attempts on a topic created at or after ``since``."""
        ...

    def load_snapshot(self) -> LearnerSnapshot: ...


class SessionStore(Protocol):
    """Storage used to start and finish study sessions."""

    def load_snapshot(self) -> LearnerSnapshot: ...

    def list_questions(self, topic_id: str | None = None) -> list[Question]: ...

    def add_session(self, study_session: StudySession) -> None: ...

    def get_session(self, session_id: str) -> StudySession: ...

    def list_session_attempts(self, session_id: str) -> list[Attempt]: ...

    def close_session(
        self,
        session_id: str,
        status: SessionStatus,
        correct_count: int,
        total_time_ms: int,
        finished_at: datetime,
    ) -> StudySession:
        """Write final totals; raises if the session is not IN_PROGRESS."""
        ...
