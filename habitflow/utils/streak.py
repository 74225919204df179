"""Streak calculation from a habit's completion log.

Pure functions only: callers load the habit, pass its completions in and
persist the returned StreakState as the habit's cached streak.
"""
from datetime import date
from typing import Optional

from habitflow.models.habit import StreakState
from habitflow.utils.dates import completion_days, utc_today

# Days without a completion a streak survives before it resets. With 1, a
# streak is still current today if the last completion was yesterday.
STREAK_GRACE_DAYS = 1


def _longest_run(days_desc: list[date]) -> int:
    """Longest run of consecutive days in a descending, distinct list."""
    longest = 1
    run = 1
    for newer, older in zip(days_desc, days_desc[1:]):
        if (newer - older).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
    return longest


def _current_run(days_desc: list[date], today: date) -> int:
    """Consecutive days ending at the latest completion, if it is recent enough."""
    gap = (today - days_desc[0]).days
    if gap < 0 or gap > STREAK_GRACE_DAYS:
        return 0

    current = 1
    for newer, older in zip(days_desc, days_desc[1:]):
        if (newer - older).days != 1:
            break
        current += 1
    return current


def compute_streak(completions, today: Optional[date] = None) -> StreakState:
    """
    Derive current streak, longest streak and last completed day.

    Args:
        completions: Completion records (models or dicts with a "date")
        today: Reference day (defaults to the UTC server date)

    Returns:
        StreakState with longest >= current

    Examples:
        >>> from datetime import date
        >>> compute_streak([{"date": "2024-05-09"}], today=date(2024, 5, 10))
        StreakState(current=1, longest=1, last_completed_date=datetime.date(2024, 5, 9))
    """
    if today is None:
        today = utc_today()

    days_desc = sorted(completion_days(completions), reverse=True)
    if not days_desc:
        return StreakState()

    current = _current_run(days_desc, today)
    longest = max(_longest_run(days_desc), current)

    return StreakState(
        current=current,
        longest=longest,
        last_completed_date=days_desc[0],
    )
