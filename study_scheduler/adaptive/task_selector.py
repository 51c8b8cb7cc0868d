"""
Task Selector.

Decides what the learner should study next from a full snapshot:
- Prerequisite gating (topics locked until every prerequisite is PROFICIENT)
- Consolidation (one topic whose FIRe credit reviews several due topics)
- Due reviews by urgency, with a 60% review soft floor
- New-topic gate (a large review backlog blocks new learning)
- Knowledge frontier ordered by downstream unlocks, then section balance
- Section interleaving
"""
from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from loguru import logger

from study_scheduler.adaptive.credit_propagator import MAX_DEPTH, prerequisite_ancestors
from study_scheduler.core.enums import Difficulty, TaskType
from study_scheduler.core.models import (
    MasteryRecord,
    ScoredReview,
    TaskRecommendation,
    Topic,
    TopicGraph,
)
from study_scheduler.study.difficulty_calibrator import (
    MIN_PRACTICE_FOR_CALIBRATION,
    recommend_difficulty,
)
from study_scheduler.study.interleaver import interleave_by_section
from study_scheduler.study.scaffolding import support_for_record

UNLOCK_THRESHOLD = 0.5  # PROFICIENT
FRONTIER_THRESHOLD = 0.3  # Below DEVELOPING
CONSOLIDATION_MIN_LEVEL = 0.3


@dataclass
class SelectorConfig:
    """Configuration for task selection."""
    consolidation_min_due: int = 3
    consolidation_min_covered: int = 2
    consolidation_bonus: float = 0.2
    review_ratio: float = 0.6
    new_topic_gate: int = 5
    max_depth: int = MAX_DEPTH


@dataclass(frozen=True)
class ConsolidationCandidate:
    topic: Topic
    consolidates: tuple[str, ...]
    avg_urgency: float
    priority: float


# ============================================================================
# Gating & Frontier
# ============================================================================


def _level(mastery: Mapping[str, MasteryRecord], topic_id: str) -> float:
    record = mastery.get(topic_id)
    return record.level if record is not None else 0.0


def is_topic_unlocked(topic: Topic, mastery: Mapping[str, MasteryRecord]) -> bool:
    """A topic is unlocked when every prerequisite is at least PROFICIENT."""
    return all(
        prereq_id in mastery and mastery[prereq_id].level >= UNLOCK_THRESHOLD
        for prereq_id in topic.prerequisites
    )


def compute_knowledge_frontier(
    graph: TopicGraph,
    mastery: Mapping[str, MasteryRecord],
) -> list[Topic]:
    """Unlocked topics still UNKNOWN or INTRODUCED."""
    return [
        topic
        for topic in graph
        if is_topic_unlocked(topic, mastery) and _level(mastery, topic.id) < FRONTIER_THRESHOLD
    ]


def prioritize_frontier(
    frontier: Iterable[Topic],
    graph: TopicGraph,
    mastery: Mapping[str, MasteryRecord],
) -> list[Topic]:
    """
    Order frontier topics for new learning.

    Primary: more downstream unlocks first. Tiebreaker: the section with the
    fewest practiced topics first.
    """
    section_practiced: Counter = Counter()
    for record in mastery.values():
        topic = graph.get(record.topic_id)
        if topic is not None and record.practice_count > 0:
            section_practiced[topic.section] += 1

    return sorted(
        frontier,
        key=lambda t: (-len(graph.dependents_of(t.id)), section_practiced[t.section]),
    )


# ============================================================================
# Consolidation
# ============================================================================


def find_consolidation_candidates(
    due_topic_ids: Sequence[str],
    graph: TopicGraph,
    mastery: Mapping[str, MasteryRecord],
    urgency: Mapping[str, float],
    config: SelectorConfig | None = None,
) -> list[ConsolidationCandidate]:
    """
    Find topics whose practice would implicitly review 2+ due topics.

    Only attempted when at least ``consolidation_min_due`` topics are due.
    Candidates must be DEVELOPING or better and not due themselves.
    """
    config = config or SelectorConfig()
    if len(due_topic_ids) < config.consolidation_min_due:
        return []

    due = set(due_topic_ids)
    candidates = []

    for topic in graph:
        if topic.id in due:
            continue
        if _level(mastery, topic.id) < CONSOLIDATION_MIN_LEVEL:
            continue

        ancestors = prerequisite_ancestors(topic.id, graph, config.max_depth)
        covered = tuple(topic_id for topic_id in due_topic_ids if topic_id in ancestors)
        if len(covered) < config.consolidation_min_covered:
            continue

        avg_urgency = sum(urgency.get(topic_id, 0.0) for topic_id in covered) / len(covered)
        candidates.append(
            ConsolidationCandidate(
                topic=topic,
                consolidates=covered,
                avg_urgency=avg_urgency,
                priority=avg_urgency + config.consolidation_bonus,
            )
        )

    return sorted(candidates, key=lambda c: c.priority, reverse=True)


# ============================================================================
# Per-topic parameters
# ============================================================================


def difficulty_for_topic(record: MasteryRecord | None) -> Difficulty:
    """EASY until enough practice, then calibrated from MEDIUM."""
    if record is None or record.practice_count < MIN_PRACTICE_FOR_CALIBRATION:
        return Difficulty.EASY
    return recommend_difficulty(
        Difficulty.MEDIUM, record.accuracy_7d, record.practice_count
    ).recommended


# ============================================================================
# Selector
# ============================================================================


class TaskSelector:
    """
    Multi-stage greedy task selection.

    Stages, each bounded by the remaining slot budget:
    1. Consolidation tasks (only with 3+ due reviews)
    2. Due reviews not covered by a consolidation, by urgency
    3. Gate: 5+ outstanding reviews block new topics
    4. New topics from the knowledge frontier (EASY)
    5. Section interleaving
    """

    def __init__(self, config: SelectorConfig | None = None):
        self.config = config or SelectorConfig()

    def select_next_tasks(
        self,
        graph: TopicGraph,
        mastery: Mapping[str, MasteryRecord],
        reviews: Iterable[ScoredReview],
        count: int = 5,
        new_topic_filter: str | None = None,
    ) -> list[TaskRecommendation]:
        """
        Select up to ``count`` tasks.

        Args:
            graph: Full topic graph
            mastery: Mastery records keyed by topic id
            reviews: Review queue scored at the request instant
            count: Maximum number of tasks
            new_topic_filter: When set, only this topic may become a NEW_TOPIC task

        Returns:
            Tasks in study order
        """
        tasks: list[TaskRecommendation] = []
        if count <= 0:
            return tasks

        due_reviews = []
        for review in reviews:
            if review.topic_id not in graph:
                logger.warning(f"Review for unknown topic {review.topic_id} skipped")
                continue
            if review.is_due:
                due_reviews.append(review)
        due_reviews.sort(key=lambda r: r.urgency, reverse=True)

        due_ids = [r.topic_id for r in due_reviews]
        urgency = {r.topic_id: r.urgency for r in due_reviews}

        # 1. Consolidation
        covered: set[str] = set()
        candidates = find_consolidation_candidates(due_ids, graph, mastery, urgency, self.config)
        for candidate in candidates:
            if len(tasks) >= count:
                break
            tasks.append(self._consolidation_task(candidate, mastery))
            covered.update(candidate.consolidates)

        # 2. Remaining due reviews
        remaining_due = [r for r in due_reviews if r.topic_id not in covered]
        review_quota = max(
            len(remaining_due),
            math.ceil((count - len(tasks)) * self.config.review_ratio),
        )
        reviews_added = 0
        for review in remaining_due:
            if len(tasks) >= count or reviews_added >= review_quota:
                break
            tasks.append(self._review_task(review, graph, mastery))
            reviews_added += 1

        # 3. Gate
        outstanding = len(due_reviews) - len(covered)
        if outstanding >= self.config.new_topic_gate:
            logger.info(f"{outstanding} reviews outstanding; new topics held back")
        elif len(tasks) < count:
            # 4. New topics
            scheduled = {t.topic_id for t in tasks}
            frontier = [
                t for t in compute_knowledge_frontier(graph, mastery) if t.id not in scheduled
            ]
            if new_topic_filter is not None:
                frontier = [t for t in frontier if t.id == new_topic_filter]
            for topic in prioritize_frontier(frontier, graph, mastery):
                if len(tasks) >= count:
                    break
                tasks.append(self._new_topic_task(topic, mastery))

        # 5. Interleave
        ordered = interleave_by_section(tasks)
        logger.debug(
            f"Selected {len(ordered)} tasks: "
            f"{sum(t.task_type is TaskType.CONSOLIDATION for t in ordered)} consolidation, "
            f"{sum(t.task_type is TaskType.REVIEW for t in ordered)} review, "
            f"{sum(t.task_type is TaskType.NEW_TOPIC for t in ordered)} new"
        )
        return ordered

    def _consolidation_task(
        self,
        candidate: ConsolidationCandidate,
        mastery: Mapping[str, MasteryRecord],
    ) -> TaskRecommendation:
        topic = candidate.topic
        record = mastery.get(topic.id)
        return TaskRecommendation(
            task_type=TaskType.CONSOLIDATION,
            topic_id=topic.id,
            topic_name=topic.name,
            section=topic.section,
            difficulty=difficulty_for_topic(record),
            support_level=support_for_record(record),
            reason=f"Review {len(candidate.consolidates)} topics at once via {topic.name}",
            priority=candidate.priority,
            consolidates=candidate.consolidates,
        )

    def _review_task(
        self,
        review: ScoredReview,
        graph: TopicGraph,
        mastery: Mapping[str, MasteryRecord],
    ) -> TaskRecommendation:
        topic = graph.get(review.topic_id)
        record = mastery.get(review.topic_id)
        return TaskRecommendation(
            task_type=TaskType.REVIEW,
            topic_id=topic.id,
            topic_name=topic.name,
            section=topic.section,
            difficulty=difficulty_for_topic(record),
            support_level=support_for_record(record),
            reason=f"Review: {topic.name} retention at {round(review.retention * 100)}%",
            priority=review.urgency,
        )

    def _new_topic_task(
        self,
        topic: Topic,
        mastery: Mapping[str, MasteryRecord],
    ) -> TaskRecommendation:
        return TaskRecommendation(
            task_type=TaskType.NEW_TOPIC,
            topic_id=topic.id,
            topic_name=topic.name,
            section=topic.section,
            difficulty=Difficulty.EASY,
            support_level=support_for_record(mastery.get(topic.id)),
            reason=f"Learn: {topic.name} - prerequisites met",
            priority=0.0,
        )
