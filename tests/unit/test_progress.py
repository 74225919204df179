"""Tests for goal progress derivation."""
from datetime import date, datetime, timezone

import pytest

from habitflow.models.goal import Goal, GoalStatus, SubTask
from habitflow.utils.progress import derive_progress, round_half_up, subtask_progress

NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


def make_goal(done_flags, status=GoalStatus.IN_PROGRESS, progress=0):
    return Goal(
        _id="goal123",
        user_id="user123",
        title="Run a Half Marathon",
        status=status,
        progress=progress,
        start_date=date(2024, 1, 1),
        target_date=date(2024, 6, 30),
        sub_tasks=[
            SubTask(id=f"t{i}", title=f"Task {i}", is_completed=done)
            for i, done in enumerate(done_flags)
        ],
        created_at=NOW,
        updated_at=NOW,
    )


class TestRounding:
    """Tests for the rounding helpers."""

    @pytest.mark.parametrize("completed,total,expected", [
        (0, 4, 0),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),
        (3, 8, 38),
        (4, 4, 100),
    ])
    def test_subtask_progress(self, completed, total, expected):
        assert subtask_progress(completed, total) == expected

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2


class TestDeriveProgress:
    """Tests for derive_progress."""

    def test_half_done(self):
        goal = derive_progress(make_goal([True, True, False, False]), NOW)

        assert goal.progress == 50
        assert goal.status == GoalStatus.IN_PROGRESS
        assert goal.completed_at is None

    def test_three_of_four(self):
        goal = derive_progress(make_goal([True, True, True, False]), NOW)

        assert goal.progress == 75
        assert goal.status == GoalStatus.IN_PROGRESS

    def test_all_done_completes_goal(self):
        goal = derive_progress(make_goal([True, True, True, True]), NOW)

        assert goal.progress == 100
        assert goal.status == GoalStatus.COMPLETED
        assert goal.completed_at == NOW

    def test_on_hold_goal_is_not_completed(self):
        goal = derive_progress(make_goal([True, True], status=GoalStatus.ON_HOLD), NOW)

        assert goal.progress == 100
        assert goal.status == GoalStatus.ON_HOLD
        assert goal.completed_at is None

    def test_not_started_goal_is_not_completed(self):
        goal = derive_progress(make_goal([True], status=GoalStatus.NOT_STARTED), NOW)

        assert goal.status == GoalStatus.NOT_STARTED

    def test_progress_kept_without_subtasks(self):
        original = make_goal([], progress=40)

        goal = derive_progress(original, NOW)

        assert goal.progress == 40
        assert goal is original

    def test_manual_100_without_subtasks_completes(self):
        goal = derive_progress(make_goal([], progress=100), NOW)

        assert goal.status == GoalStatus.COMPLETED
        assert goal.completed_at == NOW

    def test_input_is_not_modified(self):
        original = make_goal([True, False], progress=0)

        derive_progress(original, NOW)

        assert original.progress == 0

    def test_idempotent(self):
        once = derive_progress(make_goal([True, True, True]), NOW)
        twice = derive_progress(once, NOW)

        assert (twice.progress, twice.status) == (once.progress, once.status)
