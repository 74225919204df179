"""Trailing-window dashboard statistics."""
from datetime import date, timedelta
from typing import Optional

from habitflow.models.habit import Habit
from habitflow.models.stats import CategoryStats, DaySummary, TrailingStats
from habitflow.utils.dates import completion_days, iter_days, utc_today
from habitflow.utils.streak import compute_streak


def build_trailing_stats(
    habits: list[Habit],
    window_days: int = 30,
    today: Optional[date] = None,
) -> TrailingStats:
    """
    Statistics for the window_days days ending today, oldest day first.

    Each day's total is the number of habits given, with no schedule
    filtering; the monthly calendar is the schedule-aware view. Category
    completion counts cover each habit's whole history, not just the
    window. Streak totals are recomputed from completions rather than read
    from the cached streak.

    Args:
        habits: The user's non-archived habits
        window_days: Length of the series
        today: Last day of the window (defaults to the UTC server date)

    Returns:
        TrailingStats with exactly window_days series entries
    """
    if today is None:
        today = utc_today()

    done_days = [completion_days(habit.completions) for habit in habits]

    series = []
    if window_days > 0:
        start = today - timedelta(days=window_days - 1)
        for day in iter_days(start, today):
            series.append(DaySummary(
                date=day.isoformat(),
                completed=sum(1 for days in done_days if day in days),
                total=len(habits),
            ))

    by_category: dict[str, CategoryStats] = {}
    for habit in habits:
        entry = by_category.setdefault(habit.category.value, CategoryStats())
        entry.count += 1
        entry.completions += len(habit.completions)

    streaks = [compute_streak(habit.completions, today) for habit in habits]

    return TrailingStats(
        total_habits=len(habits),
        completed_today=sum(1 for days in done_days if today in days),
        total_streaks=sum(streak.current for streak in streaks),
        longest_streak=max((streak.longest for streak in streaks), default=0),
        series=series,
        by_category=by_category,
    )
