"""
Recommendation boundary.

"Get next N tasks": score the review queue at one instant, run the task
selector, resolve each task to a question, and summarize the plan. Tasks
without an available question are dropped; fewer tasks than requested is a
normal outcome.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from study_scheduler.adaptive.task_selector import TaskSelector, compute_knowledge_frontier
from study_scheduler.core.enums import TaskType
from study_scheduler.core.models import LearnerSnapshot, ScoredReview, TaskRecommendation
from study_scheduler.quiz.question_picker import QuestionPicker
from study_scheduler.study.retention_engine import score_review_queue


@dataclass
class StudyPlan:
    """Resolved tasks plus summary counts."""
    tasks: list[TaskRecommendation] = field(default_factory=list)
    due_count: int = 0  # Whole queue, regardless of any topic filter
    frontier_count: int = 0
    consolidation_count: int = 0
    review_percentage: int = 0
    reviews: list[ScoredReview] = field(default_factory=list)


class StudyPlanner:
    """Builds study plans from learner snapshots."""

    def __init__(self, selector: TaskSelector, picker: QuestionPicker):
        self.selector = selector
        self.picker = picker

    def get_next_tasks(
        self,
        snapshot: LearnerSnapshot,
        count: int,
        now: datetime,
        topic_id: str | None = None,
        exclude_question_ids: Iterable[str] = (),
    ) -> StudyPlan:
        """
        Recommend the next tasks.

        Args:
            snapshot: Topics, mastery and review queue
            count: Maximum number of tasks
            now: Single reference instant for the whole computation
            topic_id: Optional filter scoping reviews and new topics to one topic
            exclude_question_ids: Questions that must not be assigned to any task

        Returns:
            StudyPlan with resolved tasks and summary counts
        """
        reviews = score_review_queue(snapshot.review_queue, snapshot.mastery, snapshot.graph, now)
        scoped = [r for r in reviews if r.topic_id == topic_id] if topic_id else reviews

        selected = self.selector.select_next_tasks(
            snapshot.graph,
            snapshot.mastery,
            scoped,
            count,
            new_topic_filter=topic_id,
        )

        resolved: list[TaskRecommendation] = []
        used_questions: list[str] = list(exclude_question_ids)
        for task in selected:
            question_id = task.question_id or self.picker.pick_question(
                task.topic_id, task.difficulty, used_questions
            )
            if question_id is None:
                logger.info(f"No question for {task.task_type.value} task on {task.topic_id}; dropped")
                continue
            task.question_id = question_id
            used_questions.append(question_id)
            resolved.append(task)

        review_tasks = sum(1 for t in resolved if t.task_type.is_review)
        plan = StudyPlan(
            tasks=resolved,
            due_count=sum(1 for r in reviews if r.is_due),
            frontier_count=len(compute_knowledge_frontier(snapshot.graph, snapshot.mastery)),
            consolidation_count=sum(
                1 for t in resolved if t.task_type is TaskType.CONSOLIDATION
            ),
            review_percentage=round(review_tasks / len(resolved) * 100) if resolved else 0,
            reviews=scoped,
        )

        logger.info(
            f"Study plan: {len(plan.tasks)}/{count} tasks, {plan.due_count} due, "
            f"{plan.frontier_count} on frontier, {plan.review_percentage}% review"
        )
        return plan
