"""Aggregate models computed on demand (never persisted)."""
from datetime import date

from pydantic import BaseModel, Field


class CalendarHabit(BaseModel):
    """Habit reference shown on a calendar day."""

    id: str
    name: str
    icon: str
    color: str


class CalendarDay(BaseModel):
    """Completions for one calendar day."""

    date: str
    completed: int = 0
    total: int = 0
    habits: list[CalendarHabit] = Field(default_factory=list)


class CalendarMonth(BaseModel):
    """Calendar response for a month, keyed by YYYY-MM-DD."""

    year: int
    month: int
    data: dict[str, CalendarDay]


class DaySummary(BaseModel):
    """One point of the trailing series."""

    date: str
    completed: int
    total: int


class CategoryStats(BaseModel):
    """Habit count and lifetime completion count for a category."""

    count: int = 0
    completions: int = 0


class TrailingStats(BaseModel):
    """Dashboard statistics over a trailing window ending today."""

    total_habits: int = 0
    completed_today: int = 0
    total_streaks: int = 0
    longest_streak: int = 0
    series: list[DaySummary] = Field(default_factory=list)
    by_category: dict[str, CategoryStats] = Field(default_factory=dict)


class ActiveGoalSummary(BaseModel):
    """In-progress goal line in a progress report."""

    id: str
    title: str
    icon: str
    progress: int
    target_date: date
    days_left: int

    @property
    def is_overdue(self) -> bool:
        return self.days_left < 0


class TopStreak(BaseModel):
    """Habit line in a progress report's top streaks."""

    id: str
    name: str
    icon: str
    category: str
    current: int


class ProgressReport(BaseModel):
    """Summary of a user's habits and goals for sharing."""

    sender_name: str
    report_date: date
    total_habits: int
    habits_completed_today: int
    active_goals: list[ActiveGoalSummary] = Field(default_factory=list)
    completed_goals: int = 0
    avg_progress: int = 0
    top_streaks: list[TopStreak] = Field(default_factory=list)
    message: str = ""
    text: str = ""
