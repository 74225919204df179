"""Monthly calendar aggregation across a user's habits."""
from habitflow.models.habit import Habit
from habitflow.models.stats import CalendarDay, CalendarHabit
from habitflow.utils.dates import completion_days, is_scheduled, iter_days, month_bounds


def build_calendar(habits: list[Habit], year: int, month: int) -> dict[str, CalendarDay]:
    """
    Per-day completion summary for every day of a month.

    total counts the habits scheduled that day. completed counts the
    distinct habits with a completion that day, whether or not they were
    scheduled, so it can exceed total.

    Args:
        habits: The user's habits
        year: Calendar year
        month: Month, 1-12

    Returns:
        Mapping of YYYY-MM-DD to CalendarDay, in date order
    """
    start, end = month_bounds(year, month)
    done_days = [completion_days(habit.completions) for habit in habits]

    summary = {}
    for day in iter_days(start, end):
        completed = [
            CalendarHabit(id=habit.id, name=habit.name, icon=habit.icon, color=habit.color)
            for habit, days in zip(habits, done_days)
            if day in days
        ]
        key = day.isoformat()
        summary[key] = CalendarDay(
            date=key,
            completed=len(completed),
            total=sum(1 for habit in habits if is_scheduled(habit.frequency, day)),
            habits=completed,
        )
    return summary
