"""Goal progress derivation."""
import math
from datetime import datetime, timezone
from typing import Optional

from habitflow.models.goal import Goal, GoalStatus


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves going up.

    Examples:
        >>> round_half_up(12.5)
        13
        >>> round_half_up(12.4)
        12
    """
    return math.floor(value + 0.5)


def subtask_progress(completed: int, total: int) -> int:
    """Percentage of completed sub-tasks, rounded half up."""
    # floor(100 * completed / total + 1/2) in integer arithmetic
    return (200 * completed + total) // (2 * total)


def derive_progress(goal: Goal, now: Optional[datetime] = None) -> Goal:
    """
    Recompute a goal's cached progress and apply the automatic completion.

    Progress is only recomputed when the goal has sub-tasks; otherwise the
    last explicit value is kept. A goal that is in progress and reaches 100
    becomes completed and gets completed_at stamped. No other status is
    changed here.

    Args:
        goal: Goal with its current sub-tasks
        now: Completion timestamp (defaults to now)

    Returns:
        Updated copy of the goal
    """
    updates = {}

    progress = goal.progress
    if goal.sub_tasks:
        done = sum(1 for task in goal.sub_tasks if task.is_completed)
        progress = subtask_progress(done, len(goal.sub_tasks))
        updates["progress"] = progress

    if progress == 100 and goal.status == GoalStatus.IN_PROGRESS:
        updates["status"] = GoalStatus.COMPLETED
        updates["completed_at"] = now or datetime.now(timezone.utc)

    if not updates:
        return goal
    return goal.model_copy(update=updates)
