"""
Study sessions.

A session freezes an ordered list of questions at start:
- PRACTICE, REVIEW and WARMUP sessions take the planner's recommendations
- EXAM_SIM sessions draw a random sample from the bank
- Any session whose recommendations resolve to nothing falls back to the
  random sample, filtered by section and difficulty when given

Finishing a session totals the attempts recorded against it.
"""
from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from datetime import datetime
from uuid import uuid4

from loguru import logger

from study_scheduler.adaptive.recommendation import StudyPlanner
from study_scheduler.core.enums import Difficulty, Section, SessionStatus, SessionType
from study_scheduler.core.models import Attempt, LearnerSnapshot, Question, StudySession
from study_scheduler.core.store import SessionStore


class NoSessionQuestionsError(ValueError):
    """Raised when neither recommendations nor the bank yield any question."""


def random_session_questions(
    questions: Iterable[Question],
    snapshot: LearnerSnapshot,
    count: int,
    rng: random.Random,
    section: Section | None = None,
    difficulty: Difficulty | None = None,
) -> list[str]:
    """Shuffle the filtered bank and take up to ``count`` question ids."""
    pool = []
    for question in questions:
        if difficulty is not None and question.difficulty is not difficulty:
            continue
        if section is not None:
            topic = snapshot.graph.get(question.topic_id)
            if topic is None or topic.section is not section:
                continue
        pool.append(question.id)

    rng.shuffle(pool)
    return pool[:count]


def select_session_questions(
    planner: StudyPlanner,
    snapshot: LearnerSnapshot,
    questions: Sequence[Question],
    count: int,
    now: datetime,
    session_type: SessionType = SessionType.PRACTICE,
    section: Section | None = None,
    difficulty: Difficulty | None = None,
    rng: random.Random | None = None,
) -> list[str]:
    """
    Choose the ordered question ids for a new session.

    Args:
        planner: Study planner used for non-exam sessions
        snapshot: Learner state at ``now``
        questions: Whole question bank, for the random fallback
        count: Number of questions wanted (at least 1)
        now: Reference instant
        session_type: EXAM_SIM skips the planner
        section: Random fallback filter
        difficulty: Random fallback filter
        rng: Random source for the fallback

    Returns:
        Distinct question ids, possibly fewer than ``count``

    Raises:
        ValueError: If count is below 1
        NoSessionQuestionsError: If no question can be selected
    """
    if count < 1:
        raise ValueError(f"Session needs at least 1 question, got {count}")

    selected: list[str] = []
    if session_type is not SessionType.EXAM_SIM:
        plan = planner.get_next_tasks(snapshot, count, now)
        selected = [t.question_id for t in plan.tasks if t.question_id]

    if not selected:
        logger.info(f"Random question selection for {session_type.value} session")
        selected = random_session_questions(
            questions, snapshot, count, rng or random.Random(), section, difficulty
        )

    if not selected:
        raise NoSessionQuestionsError("No questions match the criteria")
    return selected


def summarize_attempts(attempts: Iterable[Attempt]) -> tuple[int, int]:
    """Correct count and total time in milliseconds."""
    correct = 0
    total_ms = 0
    for attempt in attempts:
        correct += attempt.is_correct
        total_ms += attempt.time_spent_ms
    return correct, total_ms


class StudySessionManager:
    """Starts and finishes study sessions against a session store."""

    def __init__(self, store: SessionStore, planner: StudyPlanner):
        self.store = store
        self.planner = planner

    def start(
        self,
        count: int,
        now: datetime,
        session_type: SessionType = SessionType.PRACTICE,
        section: Section | None = None,
        difficulty: Difficulty | None = None,
        time_limit_ms: int | None = None,
        rng: random.Random | None = None,
    ) -> StudySession:
        question_ids = select_session_questions(
            self.planner,
            self.store.load_snapshot(),
            self.store.list_questions(),
            count,
            now,
            session_type=session_type,
            section=section,
            difficulty=difficulty,
            rng=rng,
        )
        study_session = StudySession(
            id=str(uuid4()),
            session_type=session_type,
            question_ids=tuple(question_ids),
            started_at=now,
            section=section,
            difficulty=difficulty,
            time_limit_ms=time_limit_ms,
        )
        self.store.add_session(study_session)
        logger.info(
            f"Started {session_type.value} session {study_session.id} "
            f"with {study_session.total_questions}/{count} questions"
        )
        return study_session

    def finish(
        self,
        session_id: str,
        now: datetime,
        status: SessionStatus = SessionStatus.COMPLETED,
    ) -> StudySession:
        """Close a session with totals from its recorded attempts."""
        if status is SessionStatus.IN_PROGRESS:
            raise ValueError("A finished session must be COMPLETED or ABANDONED")

        correct, total_ms = summarize_attempts(self.store.list_session_attempts(session_id))
        study_session = self.store.close_session(session_id, status, correct, total_ms, now)
        logger.info(
            f"Session {session_id} {status.value.lower()}: "
            f"{correct}/{study_session.total_questions} correct in {total_ms} ms"
        )
        return study_session
