"""
FIRe - Fractional Implicit Repetition.

When a learner answers a topic correctly, its prerequisite ancestors get a
share of the credit without being practiced explicitly:

    weight = 0.5 ** depth

- Direct prerequisite: 50%
- Two levels up: 25%
- Three levels up: 12.5%

Traversal is breadth-first over an explicit visited set. Each ancestor is
credited once, at the depth where it is first reached (its shortest path),
and nothing beyond ``max_depth`` is visited. The visited set also contains
an accidental cycle.
"""
from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace

from loguru import logger

from study_scheduler.core.models import MasteryRecord, TopicGraph
from study_scheduler.study.mastery_calculator import (
    IMPLICIT_ALPHA,
    get_mastery_stage,
    update_mastery_level,
)

FIRE_BASE_WEIGHT = 0.5
MAX_DEPTH = 4


@dataclass(frozen=True)
class FireCredit:
    """Implicit credit for one prerequisite ancestor."""
    topic_id: str
    weight: float
    depth: int


def compute_fire_credits(
    topic_id: str,
    get_prerequisites: Callable[[str], Iterable[str]],
    max_depth: int = MAX_DEPTH,
    base_weight: float = FIRE_BASE_WEIGHT,
) -> list[FireCredit]:
    """
    Compute FIRe credits for every reachable prerequisite ancestor.

    Args:
        topic_id: Topic that was practiced; never credited itself
        get_prerequisites: Returns direct prerequisite ids for a topic.
            Must be idempotent and side-effect free.
        max_depth: Deepest level credited; deeper nodes are not visited
        base_weight: Weight base, raised to the depth

    Returns:
        Credits in breadth-first order
    """
    credits: list[FireCredit] = []
    visited = {topic_id}
    queue: deque[tuple[str, int]] = deque([(topic_id, 0)])

    while queue:
        current, depth = queue.popleft()
        if depth >= max_depth:
            continue

        for prereq_id in get_prerequisites(current):
            if prereq_id in visited:
                continue
            visited.add(prereq_id)
            credits.append(
                FireCredit(topic_id=prereq_id, weight=base_weight ** (depth + 1), depth=depth + 1)
            )
            queue.append((prereq_id, depth + 1))

    return credits


def prerequisite_ancestors(
    topic_id: str,
    graph: TopicGraph,
    max_depth: int = MAX_DEPTH,
) -> set[str]:
    """All prerequisite ancestors of a topic up to ``max_depth``."""
    return {c.topic_id for c in compute_fire_credits(topic_id, graph.prerequisites_of, max_depth)}


def apply_fire_credits(
    credits: Iterable[FireCredit],
    mastery: Mapping[str, MasteryRecord],
    attempt_score: float = 1.0,
) -> list[MasteryRecord]:
    """
    Apply implicit credit to existing mastery records.

    Topics the learner has never touched (no record) get nothing: implicit
    credit cannot bootstrap a topic. Practice count and average time are
    left unchanged.

    Returns:
        Updated copies of the credited records
    """
    updated = []
    for credit in credits:
        record = mastery.get(credit.topic_id)
        if record is None:
            logger.debug(f"FIRe skipped {credit.topic_id}: no mastery record")
            continue

        level = update_mastery_level(record.level, attempt_score * credit.weight, IMPLICIT_ALPHA)
        updated.append(replace(record, level=level, stage=get_mastery_stage(level)))

    return updated
