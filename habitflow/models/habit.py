"""Habit model definitions."""
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, Field, field_validator


class HabitCategory(str, Enum):
    """Habit categories."""

    HEALTH = "health"
    FITNESS = "fitness"
    MINDFULNESS = "mindfulness"
    LEARNING = "learning"
    PRODUCTIVITY = "productivity"
    SOCIAL = "social"
    FINANCE = "finance"
    OTHER = "other"


class FrequencyType(str, Enum):
    """How often a habit is scheduled."""

    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"


class TargetType(str, Enum):
    """What a completion measures."""

    BOOLEAN = "boolean"
    COUNT = "count"
    DURATION = "duration"


class Frequency(BaseModel):
    """Schedule rule. Weekday indexes run 0 (Sunday) to 6 (Saturday)."""

    type: FrequencyType = FrequencyType.DAILY
    days_of_week: list[Annotated[int, Field(ge=0, le=6)]] = Field(default_factory=list)
    times_per_week: int = Field(default=7, ge=1, le=7)


class Target(BaseModel):
    """Measurable target for a habit."""

    type: TargetType = TargetType.BOOLEAN
    value: float = 1
    unit: str = ""


class Reminder(BaseModel):
    """Daily reminder settings."""

    enabled: bool = False
    time: str = Field(default="08:00", pattern=r"^\d{2}:\d{2}$")


class Completion(BaseModel):
    """
    A single dated completion record.

    The date is kept as the stored YYYY-MM-DD string so that records with a
    bad or missing date survive a round trip instead of failing the whole
    habit.
    """

    date: Optional[str] = None
    completed_at: Optional[datetime] = None
    note: str = ""
    value: float = 1

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        # Datetimes from restored documents become ISO days; anything else
        # unusable is kept as None and skipped by the date helpers.
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, str):
            return value
        return None


class StreakState(BaseModel):
    """Streak derived from a habit's completions."""

    current: int = Field(default=0, ge=0)
    longest: int = Field(default=0, ge=0)
    last_completed_date: Optional[date] = None


class HabitBase(BaseModel):
    """Base habit fields."""

    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    icon: str = "⭐"
    color: str = "#f59e0b"
    category: HabitCategory = HabitCategory.OTHER
    frequency: Frequency = Field(default_factory=Frequency)
    target: Target = Field(default_factory=Target)
    reminder: Reminder = Field(default_factory=Reminder)
    order: int = 0


class HabitCreate(HabitBase):
    """Habit creation model."""

    start_date: Optional[date] = None


class HabitUpdate(BaseModel):
    """
    Habit update model - all fields optional.

    Completions and streak are not editable here; they only change through
    the completion toggle.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    icon: Optional[str] = None
    color: Optional[str] = None
    category: Optional[HabitCategory] = None
    frequency: Optional[Frequency] = None
    target: Optional[Target] = None
    reminder: Optional[Reminder] = None
    is_archived: Optional[bool] = None
    order: Optional[int] = None


class CompletionToggle(BaseModel):
    """Request body for toggling a completion. Date defaults to today."""

    completion_date: Optional[date] = Field(default=None, alias="date")
    note: str = ""
    value: float = 1

    model_config = {"populate_by_name": True}


class Habit(HabitBase):
    """Full habit model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    completions: list[Completion] = Field(default_factory=list)
    streak: StreakState = Field(default_factory=StreakState)
    completion_rate: int = 0
    is_archived: bool = False
    start_date: str
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class TodayHabit(Habit):
    """Habit scheduled for today with its completion state."""

    is_completed_today: bool = False
    today_completion: Optional[Completion] = None


class ToggleResult(BaseModel):
    """Result of toggling a completion."""

    habit: Habit
    is_completed: bool
