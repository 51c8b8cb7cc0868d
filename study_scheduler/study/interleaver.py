"""
Section Interleaver.

Reorders a task list so consecutive tasks come from different sections
where possible. Interleaved (not blocked) practice reduces interference
between same-domain problems.

Algorithm:
1. Start with the highest-priority task
2. Repeatedly take the first remaining task whose section differs from the
   previous one
3. If only same-section tasks remain, take them in priority order
"""
from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from study_scheduler.core.models import TaskRecommendation


def interleave_by_section(tasks: Sequence[TaskRecommendation]) -> list[TaskRecommendation]:
    """
    Interleave tasks by section.

    Args:
        tasks: Tasks in selection order

    Returns:
        New list in study order
    """
    if len(tasks) <= 1:
        return list(tasks)

    # Stable sort keeps selection order among equal priorities
    remaining = sorted(tasks, key=lambda t: t.priority, reverse=True)
    result = [remaining.pop(0)]

    while remaining:
        last_section = result[-1].section
        index = next(
            (i for i, task in enumerate(remaining) if task.section != last_section),
            0,
        )
        result.append(remaining.pop(index))

    adjacent_repeats = sum(
        1 for prev, cur in zip(result, result[1:]) if prev.section == cur.section
    )
    if adjacent_repeats:
        logger.debug(f"Interleaving left {adjacent_repeats} same-section neighbours")

    return result
