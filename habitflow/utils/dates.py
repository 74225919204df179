"""Calendar-day helpers shared by the streak and aggregation code."""
import calendar
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional

from habitflow.models.habit import Frequency, FrequencyType

logger = logging.getLogger(__name__)


def utc_today() -> date:
    """Server clock date in UTC, used whenever no reference day is given."""
    return datetime.now(timezone.utc).date()


def parse_day(value) -> Optional[date]:
    """
    Parse a completion date into a calendar day.

    Accepts date objects, datetimes (time of day is dropped) and
    YYYY-MM-DD strings. Anything else yields None.

    Examples:
        >>> parse_day("2024-03-05")
        datetime.date(2024, 3, 5)
        >>> parse_day("03/05/2024") is None
        True
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def weekday_index(day: date) -> int:
    """Weekday with Sunday as 0 and Saturday as 6."""
    return (day.weekday() + 1) % 7


def is_scheduled(frequency: Frequency, day: date) -> bool:
    """
    Whether a habit with this frequency is due on the given day.

    Weekly habits are due on their listed weekdays. Custom habits are
    treated as due every day.
    """
    if frequency.type == FrequencyType.WEEKLY:
        return weekday_index(day) in frequency.days_of_week
    return True


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day from start to end, both inclusive."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month."""
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days_in_month)


def completion_days(completions) -> set[date]:
    """
    Distinct calendar days present in a completion log.

    Records whose date cannot be parsed are skipped with a warning so that
    one bad record never breaks a whole dashboard.
    """
    days = set()
    for completion in completions:
        raw = getattr(completion, "date", None)
        if raw is None and isinstance(completion, dict):
            raw = completion.get("date")
        day = parse_day(raw)
        if day is None:
            logger.warning("Skipping completion with malformed date: %r", raw)
            continue
        days.add(day)
    return days
