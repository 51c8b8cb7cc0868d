"""
Unit tests for study sessions.

Question selection for each session type, the random fallback, and the
totals written when a session is finished. Uses an in-memory store.
"""

import random
from dataclasses import replace

import pytest
from conftest import make_attempt

from study_scheduler.adaptive.recommendation import StudyPlanner
from study_scheduler.adaptive.study_sessions import (
    NoSessionQuestionsError,
    StudySessionManager,
    random_session_questions,
    select_session_questions,
    summarize_attempts,
)
from study_scheduler.adaptive.task_selector import TaskSelector
from study_scheduler.core.enums import Difficulty, Section, SessionStatus, SessionType
from study_scheduler.core.models import LearnerSnapshot
from study_scheduler.quiz.question_picker import BankQuestionPicker


def planner(questions, now):
    return StudyPlanner(TaskSelector(), BankQuestionPicker(questions, [], now))


class MemorySessionStore:
    """In-memory session store for testing."""

    def __init__(self, snapshot, questions):
        self.snapshot = snapshot
        self.questions = list(questions)
        self.sessions = {}
        self.attempts = []

    def load_snapshot(self):
        return self.snapshot

    def list_questions(self, topic_id=None):
        return [q for q in self.questions if topic_id is None or q.topic_id == topic_id]

    def add_session(self, study_session):
        self.sessions[study_session.id] = study_session

    def get_session(self, session_id):
        if session_id not in self.sessions:
            raise LookupError(session_id)
        return self.sessions[session_id]

    def list_session_attempts(self, session_id):
        return [a for a in self.attempts if a.session_id == session_id]

    def close_session(self, session_id, status, correct_count, total_time_ms, finished_at):
        current = self.get_session(session_id)
        if current.status is not SessionStatus.IN_PROGRESS:
            raise ValueError(f"Session {session_id} is already {current.status.value}")
        closed = replace(
            current,
            status=status,
            correct_count=correct_count,
            total_time_ms=total_time_ms,
            finished_at=finished_at,
        )
        self.sessions[session_id] = closed
        return closed


class TestSelectSessionQuestions:
    def test_practice_uses_recommendations(self, gmat_graph, question_bank, now):
        ids = select_session_questions(
            planner(question_bank, now), LearnerSnapshot(gmat_graph), question_bank, 5, now
        )

        assert sorted(ids) == [
            "arithmetic-easy-1",
            "critical-reasoning-easy-1",
            "data-sufficiency-easy-1",
        ]

    def test_exam_sim_skips_recommendations(self, gmat_graph, question_bank, now):
        ids = select_session_questions(
            planner(question_bank, now),
            LearnerSnapshot(gmat_graph),
            question_bank,
            10,
            now,
            session_type=SessionType.EXAM_SIM,
            rng=random.Random(7),
        )

        assert len(ids) == 10
        assert len(set(ids)) == 10
        assert set(ids) <= {q.id for q in question_bank}

    def test_exam_sim_is_reproducible_with_seeded_rng(self, gmat_graph, question_bank, now):
        def pick(seed):
            return select_session_questions(
                planner(question_bank, now),
                LearnerSnapshot(gmat_graph),
                question_bank,
                8,
                now,
                session_type=SessionType.EXAM_SIM,
                rng=random.Random(seed),
            )

        assert pick(3) == pick(3)

    def test_falls_back_to_random_when_nothing_resolves(self, gmat_graph, question_bank, now):
        # Only a locked topic has questions, so no recommendation resolves
        bank = [q for q in question_bank if q.topic_id == "word-problems"]

        ids = select_session_questions(
            planner(bank, now), LearnerSnapshot(gmat_graph), bank, 4, now, rng=random.Random(1)
        )

        assert len(ids) == 4
        assert all(i.startswith("word-problems-") for i in ids)

    def test_no_questions_raises(self, gmat_graph, now):
        with pytest.raises(NoSessionQuestionsError, match="No questions match the criteria"):
            select_session_questions(planner([], now), LearnerSnapshot(gmat_graph), [], 3, now)

    def test_count_must_be_positive(self, gmat_graph, question_bank, now):
        with pytest.raises(ValueError):
            select_session_questions(
                planner(question_bank, now), LearnerSnapshot(gmat_graph), question_bank, 0, now
            )


class TestRandomSessionQuestions:
    def test_section_filter(self, gmat_graph, question_bank):
        ids = random_session_questions(
            question_bank,
            LearnerSnapshot(gmat_graph),
            20,
            random.Random(0),
            section=Section.VERBAL_REASONING,
        )

        assert len(ids) == 6
        assert all(i.startswith("critical-reasoning-") for i in ids)

    def test_difficulty_filter(self, gmat_graph, question_bank):
        ids = random_session_questions(
            question_bank, LearnerSnapshot(gmat_graph), 50, random.Random(0), difficulty=Difficulty.HARD
        )

        assert len(ids) == 14
        assert all("-hard-" in i for i in ids)

    def test_unknown_topic_excluded_by_section_filter(self, gmat_graph, question_bank):
        bank = [replace(question_bank[0], id="orphan-1", topic_id="calculus")]

        ids = random_session_questions(
            bank, LearnerSnapshot(gmat_graph), 5, random.Random(0), section=Section.QUANTITATIVE_REASONING
        )

        assert ids == []


class TestSummarizeAttempts:
    def test_counts_correct_and_sums_time(self):
        attempts = [
            make_attempt("algebra", True, time_spent_ms=30_000),
            make_attempt("algebra", False, question_id="q2", time_spent_ms=45_000),
            make_attempt("ratios", True, time_spent_ms=15_000),
        ]

        assert summarize_attempts(attempts) == (2, 90_000)

    def test_empty(self):
        assert summarize_attempts([]) == (0, 0)


class TestStudySessionManager:
    @pytest.fixture
    def store(self, gmat_graph, question_bank):
        return MemorySessionStore(LearnerSnapshot(gmat_graph), question_bank)

    @pytest.fixture
    def manager(self, store, question_bank, now):
        return StudySessionManager(store, planner(question_bank, now))

    def test_start_persists_ordered_questions(self, manager, store, now):
        study_session = manager.start(3, now, time_limit_ms=600_000)

        assert store.sessions[study_session.id] == study_session
        assert study_session.status is SessionStatus.IN_PROGRESS
        assert study_session.session_type is SessionType.PRACTICE
        assert study_session.total_questions == 3
        assert study_session.started_at == now
        assert study_session.time_limit_ms == 600_000

    def test_finish_totals_session_attempts(self, manager, store, now):
        study_session = manager.start(3, now)
        first, second = study_session.question_ids[:2]
        store.attempts = [
            make_attempt("arithmetic", True, question_id=first, time_spent_ms=20_000, session_id=study_session.id),
            make_attempt("algebra", False, question_id=second, time_spent_ms=40_000, session_id=study_session.id),
            make_attempt("ratios", True, question_id="elsewhere", time_spent_ms=99_000),
        ]

        finished = manager.finish(study_session.id, now)

        assert finished.status is SessionStatus.COMPLETED
        assert finished.correct_count == 1
        assert finished.total_time_ms == 60_000
        assert finished.finished_at == now

    def test_abandon(self, manager, now):
        study_session = manager.start(2, now, session_type=SessionType.WARMUP)

        finished = manager.finish(study_session.id, now, SessionStatus.ABANDONED)

        assert finished.status is SessionStatus.ABANDONED

    def test_finish_rejects_in_progress_status(self, manager, now):
        study_session = manager.start(2, now)

        with pytest.raises(ValueError):
            manager.finish(study_session.id, now, SessionStatus.IN_PROGRESS)

    def test_finish_twice_raises(self, manager, now):
        study_session = manager.start(2, now)
        manager.finish(study_session.id, now)

        with pytest.raises(ValueError, match="already COMPLETED"):
            manager.finish(study_session.id, now)
