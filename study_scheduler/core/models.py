"""
Domain records for the study scheduler.

All records are plain dataclasses. Topics live in a TopicGraph arena keyed
by id; edges are id references, never nested objects, so several dependents
can share one prerequisite.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from loguru import logger

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


@dataclass(frozen=True)
class Topic:
    """A node in the prerequisite DAG."""

    id: str
    name: str
    section: Section
    prerequisites: tuple[str, ...] = ()
    unlocks: tuple[str, ...] = ()


class TopicGraph:
    """
    Prerequisite graph stored as an adjacency map.

    Dependents are the union of each topic's declared ``unlocks`` and the
    inverse of every prerequisite edge, so callers may supply either side.
    """

    def __init__(self, topics: Iterable[Topic] = ()):
        self._topics: dict[str, Topic] = {}
        self._dependents: dict[str, list[str]] = {}
        for topic in topics:
            self._topics[topic.id] = topic

        for topic in self._topics.values():
            for unlocked in topic.unlocks:
                self._link(topic.id, unlocked)
            for prereq in topic.prerequisites:
                self._link(prereq, topic.id)

    def _link(self, prereq_id: str, dependent_id: str) -> None:
        dependents = self._dependents.setdefault(prereq_id, [])
        if dependent_id not in dependents:
            dependents.append(dependent_id)

    def __contains__(self, topic_id: object) -> bool:
        return topic_id in self._topics

    def __iter__(self) -> Iterator[Topic]:
        return iter(self._topics.values())

    def __len__(self) -> int:
        return len(self._topics)

    def get(self, topic_id: str) -> Topic | None:
        return self._topics.get(topic_id)

    def prerequisites_of(self, topic_id: str) -> tuple[str, ...]:
        """Direct prerequisite ids; empty for unknown topics."""
        topic = self._topics.get(topic_id)
        if topic is None:
            logger.debug(f"Prerequisite lookup for unknown topic {topic_id}")
            return ()
        return topic.prerequisites

    def dependents_of(self, topic_id: str) -> tuple[str, ...]:
        """Topics that list ``topic_id`` as a prerequisite."""
        return tuple(self._dependents.get(topic_id, ()))


@dataclass
class MasteryRecord:
    """Per-topic learner state. Absence of a record means level 0."""

    topic_id: str
    level: float = 0.0
    stage: MasteryStage = MasteryStage.UNKNOWN
    practice_count: int = 0
    accuracy_7d: float = 0.0
    accuracy_30d: float = 0.0
    avg_time_ms: int = 0
    stability_factor: float = 1.0  # Days; >= 0.5
    last_practiced_at: datetime | None = None
    next_review_at: datetime | None = None


@dataclass
class ReviewQueueEntry:
    """Stored review schedule for a practiced topic."""

    topic_id: str
    scheduled_at: datetime
    interval: timedelta
    urgency: float = 0.0  # Last stored value; recomputed at read time


@dataclass(frozen=True)
class ScoredReview:
    """A review-queue entry with retention and urgency computed for one instant."""

    topic_id: str
    scheduled_at: datetime
    interval: timedelta
    retention: float
    urgency: float
    is_due: bool


@dataclass(frozen=True)
class Attempt:
    """An immutable practice fact."""

    id: str
    question_id: str
    topic_id: str
    is_correct: bool
    time_spent_ms: int
    created_at: datetime
    error_type: ErrorType | None = None
    support_level: SupportLevel = SupportLevel.HEAVY
    hints_used: int = 0
    session_id: str | None = None


@dataclass(frozen=True)
class Question:
    id: str
    topic_id: str
    difficulty: Difficulty


@dataclass
class TaskRecommendation:
    """One recommended study task. Not persisted."""

    task_type: TaskType
    topic_id: str
    topic_name: str
    section: Section
    difficulty: Difficulty
    support_level: SupportLevel
    reason: str
    priority: float
    question_id: str | None = None  # Resolved later by a question picker
    consolidates: tuple[str, ...] = field(default_factory=tuple)


@dataclass
class LearnerSnapshot:
    """Fully materialized learner state for one recommendation request."""

    graph: TopicGraph
    mastery: dict[str, MasteryRecord] = field(default_factory=dict)
    review_queue: list[ReviewQueueEntry] = field(default_factory=list)


@dataclass
class StudySession:
    """
    A fixed, ordered set of questions answered in one sitting.

    Questions are frozen at start. Totals are filled in when the session
    is finished, from the attempts recorded against it.
    """

    id: str
    session_type: SessionType
    question_ids: tuple[str, ...]
    started_at: datetime
    status: SessionStatus = SessionStatus.IN_PROGRESS
    section: Section | None = None
    difficulty: Difficulty | None = None
    time_limit_ms: int | None = None
    correct_count: int = 0
    total_time_ms: int = 0
    finished_at: datetime | None = None

    @property
    def total_questions(self) -> int:
        return len(self.question_ids)
