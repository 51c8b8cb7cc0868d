"""
Attempt recording boundary.

The single mutating entry point. For each attempt, in order:
1. Persist the attempt fact
2. Update mastery for the attempt's topic (record created lazily)
3. Update stability and the review interval; persist the queue entry
4. On a correct attempt only, propagate FIRe credit to prerequisites

Callers serialize attempts per learner; the recorder does no locking.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from loguru import logger

from study_scheduler.adaptive.credit_propagator import (
    MAX_DEPTH,
    FireCredit,
    apply_fire_credits,
    compute_fire_credits,
)
from study_scheduler.core.models import Attempt, MasteryRecord, ReviewQueueEntry
from study_scheduler.core.store import StudyStore
from study_scheduler.study.mastery_calculator import LONG_WINDOW_DAYS, compute_mastery_update
from study_scheduler.study.retention_engine import (
    ScheduleBounds,
    next_interval,
    next_review_at,
    update_stability,
)


@dataclass
class AttemptOutcome:
    """State written by one recorded attempt."""
    mastery: MasteryRecord
    review_entry: ReviewQueueEntry
    credits: list[FireCredit] = field(default_factory=list)
    credited: list[MasteryRecord] = field(default_factory=list)


class AttemptRecorder:
    """Applies one attempt to the learner store."""

    def __init__(
        self,
        store: StudyStore,
        bounds: ScheduleBounds | None = None,
        max_depth: int = MAX_DEPTH,
    ):
        self.store = store
        self.bounds = bounds or ScheduleBounds()
        self.max_depth = max_depth

    def record_attempt(self, attempt: Attempt, now: datetime) -> AttemptOutcome:
        """
        Record an attempt and update every derived record.

        Args:
            attempt: The attempt fact, carrying its topic id
            now: Reference instant for windows and scheduling

        Returns:
            AttemptOutcome with the new mastery record, queue entry and FIRe credits
        """
        topic_id = attempt.topic_id
        history = self.store.list_attempts(topic_id, now - timedelta(days=LONG_WINDOW_DAYS))
        self.store.add_attempt(attempt)

        current = self.store.get_mastery(topic_id)
        if current is None:
            logger.info(f"First attempt on topic {topic_id}; creating mastery record")
            current = MasteryRecord(topic_id=topic_id)

        update = compute_mastery_update(current, attempt, history, now)

        stability = update_stability(
            current.stability_factor, update.accuracy_7d, update.practice_count
        )
        previous = self.store.get_review_entry(topic_id)
        base_interval = previous.interval if previous is not None else self.bounds.default_interval
        interval = next_interval(base_interval, update.accuracy_7d, update.level, self.bounds)
        scheduled_at = next_review_at(interval, now)

        record = MasteryRecord(
            topic_id=topic_id,
            level=update.level,
            stage=update.stage,
            practice_count=update.practice_count,
            accuracy_7d=update.accuracy_7d,
            accuracy_30d=update.accuracy_30d,
            avg_time_ms=update.avg_time_ms,
            stability_factor=stability,
            last_practiced_at=now,
            next_review_at=scheduled_at,
        )
        self.store.save_mastery(record)

        entry = ReviewQueueEntry(
            topic_id=topic_id,
            scheduled_at=scheduled_at,
            interval=interval,
            urgency=0.0,
        )
        self.store.save_review_entry(entry)

        logger.info(
            f"Attempt on {topic_id}: {'correct' if attempt.is_correct else 'incorrect'}, "
            f"mastery {current.level:.2f} -> {record.level:.2f} ({record.stage.value}), "
            f"next review in {interval}"
        )

        outcome = AttemptOutcome(mastery=record, review_entry=entry)
        if attempt.is_correct:
            outcome.credits, outcome.credited = self._propagate_credit(topic_id)
        return outcome

    def _propagate_credit(self, topic_id: str) -> tuple[list[FireCredit], list[MasteryRecord]]:
        credits = compute_fire_credits(topic_id, self.store.get_prerequisites, self.max_depth)

        existing = {}
        for credit in credits:
            record = self.store.get_mastery(credit.topic_id)
            if record is not None:
                existing[credit.topic_id] = record

        credited = apply_fire_credits(credits, existing)
        for record in credited:
            self.store.save_mastery(record)

        if credits:
            logger.debug(
                f"FIRe from {topic_id}: {len(credits)} ancestors reached, {len(credited)} credited"
            )
        return credits, credited
