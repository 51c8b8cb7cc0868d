"""
Question Picker.

Resolves a (topic, difficulty) recommendation to a concrete question:
- Skips questions answered correctly within the last 48 hours
- Prefers unattempted questions
- Falls back to previously incorrect questions, least attempted first
- Falls back to any remaining question
- Steps difficulty down HARD -> MEDIUM -> EASY, never up
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from typing import Protocol

from loguru import logger

from study_scheduler.core.enums import Difficulty
from study_scheduler.core.models import Attempt, Question

RECENT_CORRECT_WINDOW = timedelta(hours=48)


class QuestionPicker(Protocol):
    """Collaborator that turns a recommendation into a question id."""

    def pick_question(
        self,
        topic_id: str,
        difficulty: Difficulty,
        exclude_ids: Iterable[str] = (),
    ) -> str | None: ...


def choose_question(
    questions: Sequence[Question],
    attempts: Sequence[Attempt],
    topic_id: str,
    difficulty: Difficulty,
    now: datetime,
    exclude_ids: Iterable[str] = (),
    recent_window: timedelta = RECENT_CORRECT_WINDOW,
) -> str | None:
    """
    Pick the best question for a topic and difficulty.

    Args:
        questions: Candidate question bank (any topic)
        attempts: Attempt history used for recency and correctness
        topic_id: Target topic
        difficulty: Requested difficulty; easier levels are tried next
        now: Reference instant for the recent-correct window
        exclude_ids: Questions that must not be returned
        recent_window: Correct answers inside this window exclude a question

    Returns:
        Question id, or None when no level has an eligible question
    """
    excluded = set(exclude_ids)
    cutoff = now - recent_window

    attempt_counts = Counter(a.question_id for a in attempts)
    missed = {a.question_id for a in attempts if not a.is_correct}
    recent_correct = {
        a.question_id for a in attempts if a.is_correct and a.created_at >= cutoff
    }

    for level in difficulty.fallbacks():
        pool = [
            q
            for q in questions
            if q.topic_id == topic_id
            and q.difficulty is level
            and q.id not in excluded
            and q.id not in recent_correct
        ]
        if not pool:
            continue

        unattempted = [q for q in pool if attempt_counts[q.id] == 0]
        if unattempted:
            return unattempted[0].id

        incorrect = sorted(
            (q for q in pool if q.id in missed),
            key=lambda q: attempt_counts[q.id],
        )
        if incorrect:
            return incorrect[0].id

        return pool[0].id

    logger.debug(f"No question available for topic {topic_id} at {difficulty.value} or easier")
    return None


class BankQuestionPicker:
    """In-memory picker over a fixed question bank and attempt history."""

    def __init__(
        self,
        questions: Iterable[Question],
        attempts: Iterable[Attempt],
        now: datetime,
        recent_window: timedelta = RECENT_CORRECT_WINDOW,
    ):
        self.questions = list(questions)
        self.attempts = list(attempts)
        self.now = now
        self.recent_window = recent_window

    def pick_question(
        self,
        topic_id: str,
        difficulty: Difficulty,
        exclude_ids: Iterable[str] = (),
    ) -> str | None:
        return choose_question(
            self.questions,
            self.attempts,
            topic_id,
            difficulty,
            self.now,
            exclude_ids=exclude_ids,
            recent_window=self.recent_window,
        )
