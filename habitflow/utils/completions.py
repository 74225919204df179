"""Completion log operations."""
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from habitflow.models.habit import Completion
from habitflow.utils.dates import parse_day
from habitflow.utils.progress import round_half_up

COMPLETION_RATE_WINDOW_DAYS = 30


def toggle_completion(
    completions: list[Completion],
    day: date,
    note: str = "",
    value: float = 1,
    completed_at: Optional[datetime] = None,
) -> tuple[list[Completion], bool]:
    """
    Add a completion for a day, or remove it if the day is already logged.

    Returns a new list; the input is left untouched. Every record for the
    day is removed so a log never holds two records for one date.

    Args:
        completions: Current completion log
        day: Day to toggle
        note: Note stored on a new record
        value: Measured value stored on a new record
        completed_at: Timestamp for a new record (defaults to now)

    Returns:
        Tuple of (new completion log, True if the day is now completed)
    """
    remaining = [c for c in completions if parse_day(c.date) != day]
    if len(remaining) != len(completions):
        return remaining, False

    record = Completion(
        date=day.isoformat(),
        completed_at=completed_at or datetime.now(timezone.utc),
        note=note,
        value=value,
    )
    return [*completions, record], True


def completion_on(completions: list[Completion], day: date) -> Optional[Completion]:
    """Record logged for a day, if any."""
    for completion in completions:
        if parse_day(completion.date) == day:
            return completion
    return None


def completion_rate(completions: list[Completion], today: date) -> int:
    """Percentage of the last 30 days covered by completion records."""
    since = today - timedelta(days=COMPLETION_RATE_WINDOW_DAYS)
    recent = 0
    for completion in completions:
        day = parse_day(completion.date)
        if day is not None and day >= since:
            recent += 1
    return round_half_up(100 * recent / COMPLETION_RATE_WINDOW_DAYS)
