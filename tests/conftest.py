"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from study_scheduler.core.enums import Difficulty, Section  # noqa: E402
from study_scheduler.core.models import (  # noqa: E402
    Attempt,
    MasteryRecord,
    Question,
    ReviewQueueEntry,
    Topic,
    TopicGraph,
)
from study_scheduler.study.mastery_calculator import get_mastery_stage  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (require database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


NOW = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)

QR = Section.QUANTITATIVE_REASONING
VR = Section.VERBAL_REASONING
DI = Section.DATA_INSIGHTS


# ============================================================================
# Builders
# ============================================================================


def make_record(topic_id: str, level: float = 0.0, **kwargs) -> MasteryRecord:
    """Mastery record with a stage consistent with its level."""
    return MasteryRecord(topic_id=topic_id, level=level, stage=get_mastery_stage(level), **kwargs)


def make_attempt(
    topic_id: str,
    is_correct: bool,
    created_at: datetime = NOW,
    question_id: str | None = None,
    time_spent_ms: int = 60_000,
    **kwargs,
) -> Attempt:
    question_id = question_id or f"q-{topic_id}"
    return Attempt(
        id=f"a-{question_id}-{created_at.isoformat()}-{is_correct}",
        question_id=question_id,
        topic_id=topic_id,
        is_correct=is_correct,
        time_spent_ms=time_spent_ms,
        created_at=created_at,
        **kwargs,
    )


def make_entry(topic_id: str, scheduled_at: datetime, interval: timedelta = timedelta(hours=4)):
    return ReviewQueueEntry(topic_id=topic_id, scheduled_at=scheduled_at, interval=interval)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """Fixed reference instant for time-dependent tests."""
    return NOW


@pytest.fixture
def gmat_topics():
    """
    Small GMAT-style prerequisite DAG.

    Arithmetic -> Algebra, Ratios & Proportions
    Algebra + Ratios -> Word Problems
    Arithmetic -> Geometry
    Critical Reasoning, Data Sufficiency have no prerequisites
    """
    return [
        Topic("arithmetic", "Arithmetic", QR),
        Topic("algebra", "Algebra", QR, prerequisites=("arithmetic",)),
        Topic("ratios", "Ratios & Proportions", QR, prerequisites=("arithmetic",)),
        Topic("word-problems", "Word Problems", QR, prerequisites=("algebra", "ratios")),
        Topic("geometry", "Geometry", QR, prerequisites=("arithmetic",)),
        Topic("critical-reasoning", "Critical Reasoning", VR),
        Topic("data-sufficiency", "Data Sufficiency", DI),
    ]


@pytest.fixture
def gmat_graph(gmat_topics):
    return TopicGraph(gmat_topics)


@pytest.fixture
def question_bank():
    """Two questions per difficulty for every topic in the GMAT fixture."""
    topics = [
        "arithmetic",
        "algebra",
        "ratios",
        "word-problems",
        "geometry",
        "critical-reasoning",
        "data-sufficiency",
    ]
    return [
        Question(id=f"{topic}-{difficulty.value.lower()}-{n}", topic_id=topic, difficulty=difficulty)
        for topic in topics
        for difficulty in Difficulty
        for n in (1, 2)
    ]
