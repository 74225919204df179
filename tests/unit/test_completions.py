"""Tests for completion log operations."""
from datetime import date, datetime, timedelta, timezone

from habitflow.models.habit import Completion
from habitflow.utils.completions import completion_on, completion_rate, toggle_completion
from habitflow.utils.streak import compute_streak

TODAY = date(2024, 5, 15)


def log(*offsets):
    return [Completion(date=(TODAY - timedelta(days=n)).isoformat()) for n in offsets]


class TestToggleCompletion:
    """Tests for toggle_completion."""

    def test_adds_missing_day(self):
        stamp = datetime(2024, 5, 15, 7, 30, tzinfo=timezone.utc)

        completions, added = toggle_completion(log(1), TODAY, note="felt good", value=2, completed_at=stamp)

        assert added is True
        assert len(completions) == 2
        record = completions[-1]
        assert record.date == "2024-05-15"
        assert record.note == "felt good"
        assert record.value == 2
        assert record.completed_at == stamp

    def test_defaults_completed_at_to_now(self):
        completions, _ = toggle_completion([], TODAY)
        assert completions[0].completed_at is not None

    def test_removes_existing_day(self):
        completions, added = toggle_completion(log(0, 1), TODAY)

        assert added is False
        assert [c.date for c in completions] == ["2024-05-14"]

    def test_removes_every_record_for_the_day(self):
        completions, added = toggle_completion(log(0, 0, 2), TODAY)

        assert added is False
        assert [c.date for c in completions] == ["2024-05-13"]

    def test_does_not_mutate_input(self):
        original = log(1)

        toggle_completion(original, TODAY)

        assert len(original) == 1

    def test_toggle_twice_restores_log_and_streak(self):
        original = log(1, 2, 3)
        before = compute_streak(original, TODAY)

        added_log, added = toggle_completion(original, TODAY)
        assert added
        assert compute_streak(added_log, TODAY).current == 4

        restored, added = toggle_completion(added_log, TODAY)

        assert not added
        assert [c.date for c in restored] == [c.date for c in original]
        assert compute_streak(restored, TODAY) == before


class TestCompletionOn:
    """Tests for completion_on."""

    def test_found(self):
        record = completion_on(log(0, 1), TODAY)
        assert record is not None
        assert record.date == "2024-05-15"

    def test_missing(self):
        assert completion_on(log(1), TODAY) is None


class TestCompletionRate:
    """Tests for completion_rate."""

    def test_empty(self):
        assert completion_rate([], TODAY) == 0

    def test_half_the_window(self):
        assert completion_rate(log(*range(15)), TODAY) == 50

    def test_old_records_do_not_count(self):
        assert completion_rate(log(31, 45, 90), TODAY) == 0

    def test_rounds_half_up(self):
        # 1 of 30 days is 3.33 percent
        assert completion_rate(log(0), TODAY) == 3
