"""
SQLAlchemy implementation of the learner store.

Maps rows to the scheduler's plain records and back. Writes replace whole
records (merge by primary key). SQLite hands back naive datetimes, so every
timestamp read from the database is normalized to UTC.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from study_scheduler.core.enums import Difficulty, SessionStatus, SupportLevel
from study_scheduler.core.models import (
    Attempt,
    LearnerSnapshot,
    MasteryRecord,
    Question,
    ReviewQueueEntry,
    StudySession,
    Topic,
    TopicGraph,
)
from study_scheduler.db.models import (
    AttemptRow,
    QuestionRow,
    ReviewQueueRow,
    SessionQuestionRow,
    StudySessionRow,
    TopicMasteryRow,
    TopicRow,
    topic_prerequisites,
)
from study_scheduler.quiz.question_picker import RECENT_CORRECT_WINDOW, choose_question


class QuestionNotFoundError(LookupError):
    """Raised when an attempt references a question that does not exist."""


class SessionNotFoundError(LookupError):
    """Raised when a study session id does not exist."""


class SessionClosedError(ValueError):
    """Raised when finishing or recording into a session that is no longer in progress."""


def _utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _interval_ms(interval: timedelta) -> int:
    return round(interval.total_seconds() * 1000)


class SqlStudyStore:
    """Learner store backed by a SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Topics & questions
    # ------------------------------------------------------------------

    def add_topics(self, topics: Iterable[Topic]) -> None:
        """Insert topics, then their prerequisite edges."""
        topics = list(topics)
        rows = {
            topic.id: self.session.merge(
                TopicRow(id=topic.id, name=topic.name, section=topic.section)
            )
            for topic in topics
        }

        for topic in topics:
            prerequisites = []
            for prereq_id in topic.prerequisites:
                prereq = rows.get(prereq_id) or self.session.get(TopicRow, prereq_id)
                if prereq is None:
                    logger.warning(f"Topic {topic.id} lists unknown prerequisite {prereq_id}")
                    continue
                prerequisites.append(prereq)
            rows[topic.id].prerequisites = prerequisites
        self.session.flush()

    def add_questions(self, questions: Iterable[Question]) -> None:
        for question in questions:
            self.session.merge(
                QuestionRow(id=question.id, topic_id=question.topic_id, difficulty=question.difficulty)
            )
        self.session.flush()

    def get_question(self, question_id: str) -> Question:
        row = self.session.get(QuestionRow, question_id)
        if row is None:
            raise QuestionNotFoundError(f"Question {question_id} not found")
        return Question(id=row.id, topic_id=row.topic_id, difficulty=row.difficulty)

    def list_questions(self, topic_id: str | None = None) -> list[Question]:
        stmt = select(QuestionRow).order_by(QuestionRow.id)
        if topic_id is not None:
            stmt = stmt.where(QuestionRow.topic_id == topic_id)
        return [
            Question(id=row.id, topic_id=row.topic_id, difficulty=row.difficulty)
            for row in self.session.scalars(stmt)
        ]

    def get_prerequisites(self, topic_id: str) -> list[str]:
        stmt = select(topic_prerequisites.c.prerequisite_id).where(
            topic_prerequisites.c.topic_id == topic_id
        )
        return list(self.session.scalars(stmt))

    def load_graph(self) -> TopicGraph:
        rows = self.session.scalars(
            select(TopicRow)
            .options(selectinload(TopicRow.prerequisites), selectinload(TopicRow.unlocks))
            .order_by(TopicRow.id)
            .execution_options(populate_existing=True)
        )
        return TopicGraph(
            Topic(
                id=row.id,
                name=row.name,
                section=row.section,
                prerequisites=tuple(p.id for p in row.prerequisites),
                unlocks=tuple(u.id for u in row.unlocks),
            )
            for row in rows
        )

    # ------------------------------------------------------------------
    # Mastery
    # ------------------------------------------------------------------

    @staticmethod
    def _to_mastery(row: TopicMasteryRow) -> MasteryRecord:
        return MasteryRecord(
            topic_id=row.topic_id,
            level=row.level,
            stage=row.stage,
            practice_count=row.practice_count,
            accuracy_7d=row.accuracy_7d,
            accuracy_30d=row.accuracy_30d,
            avg_time_ms=row.avg_time_ms,
            stability_factor=row.stability_factor,
            last_practiced_at=_utc(row.last_practiced_at),
            next_review_at=_utc(row.next_review_at),
        )

    def get_mastery(self, topic_id: str) -> MasteryRecord | None:
        row = self.session.get(TopicMasteryRow, topic_id)
        return self._to_mastery(row) if row is not None else None

    def save_mastery(self, record: MasteryRecord) -> None:
        self.session.merge(
            TopicMasteryRow(
                topic_id=record.topic_id,
                level=record.level,
                stage=record.stage,
                practice_count=record.practice_count,
                accuracy_7d=record.accuracy_7d,
                accuracy_30d=record.accuracy_30d,
                avg_time_ms=record.avg_time_ms,
                stability_factor=record.stability_factor,
                last_practiced_at=record.last_practiced_at,
                next_review_at=record.next_review_at,
            )
        )
        self.session.flush()

    def list_mastery(self) -> dict[str, MasteryRecord]:
        rows = self.session.scalars(select(TopicMasteryRow))
        return {row.topic_id: self._to_mastery(row) for row in rows}

    # ------------------------------------------------------------------
    # Review queue
    # ------------------------------------------------------------------

    @staticmethod
    def _to_entry(row: ReviewQueueRow) -> ReviewQueueEntry:
        return ReviewQueueEntry(
            topic_id=row.topic_id,
            scheduled_at=_utc(row.scheduled_at),
            interval=timedelta(milliseconds=row.interval_ms),
            urgency=row.urgency,
        )

    def get_review_entry(self, topic_id: str) -> ReviewQueueEntry | None:
        row = self.session.get(ReviewQueueRow, topic_id)
        return self._to_entry(row) if row is not None else None

    def save_review_entry(self, entry: ReviewQueueEntry) -> None:
        self.session.merge(
            ReviewQueueRow(
                topic_id=entry.topic_id,
                scheduled_at=entry.scheduled_at,
                interval_ms=_interval_ms(entry.interval),
                urgency=entry.urgency,
            )
        )
        self.session.flush()

    def list_review_queue(self) -> list[ReviewQueueEntry]:
        return [self._to_entry(row) for row in self.session.scalars(select(ReviewQueueRow))]

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------

    @staticmethod
    def _to_attempt(row: AttemptRow) -> Attempt:
        return Attempt(
            id=row.id,
            question_id=row.question_id,
            topic_id=row.topic_id,
            is_correct=row.is_correct,
            time_spent_ms=row.time_spent_ms,
            created_at=_utc(row.created_at),
            error_type=row.error_type,
            support_level=SupportLevel(row.support_level),
            hints_used=row.hints_used,
            session_id=row.session_id,
        )

    def add_attempt(self, attempt: Attempt) -> None:
        self.session.add(
            AttemptRow(
                id=attempt.id,
                question_id=attempt.question_id,
                topic_id=attempt.topic_id,
                is_correct=attempt.is_correct,
                time_spent_ms=attempt.time_spent_ms,
                error_type=attempt.error_type,
                support_level=int(attempt.support_level),
                hints_used=attempt.hints_used,
                session_id=attempt.session_id,
                created_at=attempt.created_at,
            )
        )
        self.session.flush()

    def list_attempts(self, topic_id: str, since: datetime) -> list[Attempt]:
        rows = self.session.scalars(
            select(AttemptRow)
            .where(AttemptRow.topic_id == topic_id)
            .order_by(AttemptRow.created_at)
        )
        # Compared in Python: SQLite stores naive timestamps
        return [a for a in map(self._to_attempt, rows) if a.created_at >= since]

    def list_all_attempts(self) -> list[Attempt]:
        rows = self.session.scalars(select(AttemptRow).order_by(AttemptRow.created_at))
        return [self._to_attempt(row) for row in rows]

    # ------------------------------------------------------------------
    # Study sessions
    # ------------------------------------------------------------------

    @staticmethod
    def _to_session(row: StudySessionRow) -> StudySession:
        return StudySession(
            id=row.id,
            session_type=row.session_type,
            question_ids=tuple(q.question_id for q in row.questions),
            started_at=_utc(row.started_at),
            status=row.status,
            section=row.section,
            difficulty=row.difficulty,
            time_limit_ms=row.time_limit_ms,
            correct_count=row.correct_count,
            total_time_ms=row.total_time_ms,
            finished_at=_utc(row.finished_at),
        )

    def add_session(self, study_session: StudySession) -> None:
        row = StudySessionRow(
            id=study_session.id,
            session_type=study_session.session_type,
            section=study_session.section,
            difficulty=study_session.difficulty,
            total_questions=study_session.total_questions,
            time_limit_ms=study_session.time_limit_ms,
            status=study_session.status,
            correct_count=study_session.correct_count,
            total_time_ms=study_session.total_time_ms,
            started_at=study_session.started_at,
            finished_at=study_session.finished_at,
        )
        row.questions = [
            SessionQuestionRow(question_id=question_id, order_index=index)
            for index, question_id in enumerate(study_session.question_ids)
        ]
        self.session.add(row)
        self.session.flush()

    def _get_session_row(self, session_id: str) -> StudySessionRow:
        row = self.session.get(StudySessionRow, session_id)
        if row is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return row

    def get_session(self, session_id: str) -> StudySession:
        return self._to_session(self._get_session_row(session_id))

    def list_session_attempts(self, session_id: str) -> list[Attempt]:
        rows = self.session.scalars(
            select(AttemptRow)
            .where(AttemptRow.session_id == session_id)
            .order_by(AttemptRow.created_at)
        )
        return [self._to_attempt(row) for row in rows]

    def close_session(
        self,
        session_id: str,
        status: SessionStatus,
        correct_count: int,
        total_time_ms: int,
        finished_at: datetime,
    ) -> StudySession:
        """Write final totals. Only IN_PROGRESS sessions can be closed."""
        row = self._get_session_row(session_id)
        if row.status is not SessionStatus.IN_PROGRESS:
            raise SessionClosedError(f"Session {session_id} is already {row.status.value}")
        row.status = status
        row.correct_count = correct_count
        row.total_time_ms = total_time_ms
        row.finished_at = finished_at
        self.session.flush()
        return self._to_session(row)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def load_snapshot(self) -> LearnerSnapshot:
        snapshot = LearnerSnapshot(
            graph=self.load_graph(),
            mastery=self.list_mastery(),
            review_queue=self.list_review_queue(),
        )
        logger.debug(
            f"Loaded snapshot: {len(snapshot.graph)} topics, {len(snapshot.mastery)} mastery "
            f"records, {len(snapshot.review_queue)} queue entries"
        )
        return snapshot


class SqlQuestionPicker:
    """Question picker reading the bank and attempt history from the store."""

    def __init__(
        self,
        store: SqlStudyStore,
        now: datetime,
        recent_window: timedelta = RECENT_CORRECT_WINDOW,
    ):
        self.store = store
        self.now = now
        self.recent_window = recent_window

    def pick_question(
        self,
        topic_id: str,
        difficulty: Difficulty,
        exclude_ids: Iterable[str] = (),
    ) -> str | None:
        questions = self.store.list_questions(topic_id)
        attempts = self.store.list_attempts(topic_id, datetime.min.replace(tzinfo=UTC))
        return choose_question(
            questions,
            attempts,
            topic_id,
            difficulty,
            self.now,
            exclude_ids=exclude_ids,
            recent_window=self.recent_window,
        )
