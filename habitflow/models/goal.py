"""Goal model definitions."""
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class GoalCategory(str, Enum):
    """Goal categories."""

    CAREER = "career"
    HEALTH = "health"
    FINANCE = "finance"
    PERSONAL = "personal"
    EDUCATION = "education"
    RELATIONSHIP = "relationship"
    OTHER = "other"


class GoalPriority(str, Enum):
    """Goal priority. Goals may be critical; sub-tasks may not."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SubTaskPriority(str, Enum):
    """Sub-task priority (narrower than GoalPriority)."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GoalStatus(str, Enum):
    """Goal lifecycle states."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def coerce_subtask_priority(value: Any) -> Optional[SubTaskPriority]:
    """Map a raw priority onto SubTaskPriority, or None if it isn't one."""
    if isinstance(value, SubTaskPriority):
        return value
    try:
        return SubTaskPriority(value)
    except ValueError:
        return None


class SubTask(BaseModel):
    """Checklist item belonging to a goal."""

    id: str
    title: str
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    due_date: Optional[date] = None
    priority: SubTaskPriority = SubTaskPriority.MEDIUM
    order: int = 0


class SubTaskCreate(BaseModel):
    """Sub-task creation model. Unknown priorities fall back to medium."""

    title: str = Field(min_length=1)
    due_date: Optional[date] = None
    priority: SubTaskPriority = SubTaskPriority.MEDIUM

    @field_validator("priority", mode="before")
    @classmethod
    def default_unknown_priority(cls, value):
        return coerce_subtask_priority(value) or SubTaskPriority.MEDIUM


class SubTaskUpdate(BaseModel):
    """
    Sub-task update model.

    When is_completed is present only the completion state changes;
    otherwise title and priority are applied. An unknown priority is ignored.
    """

    title: Optional[str] = Field(default=None, min_length=1)
    is_completed: Optional[bool] = None
    priority: Optional[SubTaskPriority] = None

    @field_validator("priority", mode="before")
    @classmethod
    def drop_unknown_priority(cls, value):
        if value is None:
            return None
        return coerce_subtask_priority(value)


class Milestone(BaseModel):
    """Dated checkpoint on the way to a goal."""

    title: str
    target_date: date
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    description: str = ""


class GoalBase(BaseModel):
    """Base goal fields."""

    title: str = Field(min_length=1, max_length=150)
    description: str = Field(default="", max_length=1000)
    icon: str = "🎯"
    color: str = "#10b981"
    category: GoalCategory = GoalCategory.PERSONAL
    priority: GoalPriority = GoalPriority.MEDIUM
    status: GoalStatus = GoalStatus.NOT_STARTED
    progress: int = Field(default=0, ge=0, le=100)
    start_date: date
    target_date: date
    milestones: list[Milestone] = Field(default_factory=list)
    linked_habits: list[str] = Field(default_factory=list)
    notes: str = ""


class GoalCreate(GoalBase):
    """Goal creation model."""

    sub_tasks: list[SubTaskCreate] = Field(default_factory=list)


class GoalUpdate(BaseModel):
    """Goal update model - all fields optional."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = Field(default=None, max_length=1000)
    icon: Optional[str] = None
    color: Optional[str] = None
    category: Optional[GoalCategory] = None
    priority: Optional[GoalPriority] = None
    status: Optional[GoalStatus] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    start_date: Optional[date] = None
    target_date: Optional[date] = None
    milestones: Optional[list[Milestone]] = None
    linked_habits: Optional[list[str]] = None
    notes: Optional[str] = None
    is_archived: Optional[bool] = None


class Goal(GoalBase):
    """Full goal model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    sub_tasks: list[SubTask] = Field(default_factory=list)
    completed_at: Optional[datetime] = None
    is_archived: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}
