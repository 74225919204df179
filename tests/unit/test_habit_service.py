"""Tests for HabitService."""
import pytest
from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

TODAY = date(2024, 5, 15)


def habit_doc(**overrides):
    """Stored habit document."""
    doc = {
        "_id": ObjectId(),
        "user_id": "user123",
        "name": "Morning Meditation",
        "description": "",
        "icon": "🧘",
        "color": "#8b5cf6",
        "category": "mindfulness",
        "frequency": {"type": "daily", "days_of_week": [], "times_per_week": 7},
        "completions": [],
        "streak": {"current": 0, "longest": 0, "last_completed_date": None},
        "is_archived": False,
        "start_date": "2024-01-01",
        "order": 0,
        "created_at": datetime.now(),
        "updated_at": datetime.now(),
    }
    doc.update(overrides)
    return doc


def completions_ago(*offsets):
    return [
        {"date": (TODAY - timedelta(days=n)).isoformat(), "note": "", "value": 1}
        for n in offsets
    ]


def make_db(habit_docs=None):
    """Mock database with habits and users collections."""
    mock_habits = AsyncMock()
    mock_users = AsyncMock()

    mock_cursor = MagicMock()
    mock_cursor.sort.return_value = mock_cursor
    mock_cursor.to_list = AsyncMock(return_value=habit_docs or [])
    mock_habits.find = MagicMock(return_value=mock_cursor)

    # Echo the $set back the way return_document=True would
    def apply_set(filter_doc, update, return_document=False):
        return {**mock_habits.find_one.return_value, **update["$set"]}
    mock_habits.find_one_and_update.side_effect = apply_set

    mock_db = MagicMock()
    mock_db.__getitem__.side_effect = {"habits": mock_habits, "users": mock_users}.__getitem__
    return mock_db, mock_habits, mock_users


@pytest.mark.asyncio
class TestHabitServiceCreate:
    """Tests for creating habits."""

    async def test_create_habit_success(self):
        """New habits start with an empty log and a zero streak."""
        from habitflow.services.habit_service import HabitService
        from habitflow.models.habit import HabitCreate

        mock_db, mock_habits, _ = make_db()
        mock_habits.insert_one.return_value = AsyncMock(inserted_id=ObjectId())

        service = HabitService(mock_db)
        habit = await service.create_habit(
            user_id="user123",
            habit_create=HabitCreate(
                name="Read 30 Pages",
                category="learning",
                start_date=date(2024, 5, 1),
            ),
        )

        assert habit.name == "Read 30 Pages"
        assert habit.category.value == "learning"
        assert habit.start_date == "2024-05-01"
        assert habit.completions == []
        assert habit.streak.current == 0
        assert habit.is_archived is False

        insert_doc = mock_habits.insert_one.call_args[0][0]
        assert insert_doc["user_id"] == "user123"
        assert insert_doc["category"] == "learning"

    async def test_create_habit_defaults_start_date(self):
        """start_date defaults to today."""
        from habitflow.services.habit_service import HabitService
        from habitflow.models.habit import HabitCreate
        from habitflow.utils.dates import utc_today

        mock_db, mock_habits, _ = make_db()
        mock_habits.insert_one.return_value = AsyncMock(inserted_id=ObjectId())

        habit = await HabitService(mock_db).create_habit("user123", HabitCreate(name="Walk"))

        assert habit.start_date == utc_today().isoformat()


@pytest.mark.asyncio
class TestHabitServiceLookup:
    """Tests for reading, updating and deleting habits."""

    async def test_get_habit_invalid_id(self):
        """A malformed ID is rejected."""
        from habitflow.services.habit_service import HabitService

        mock_db, _, _ = make_db()

        with pytest.raises(ValueError, match="Invalid habit ID format"):
            await HabitService(mock_db).get_habit("user123", "not-an-id")

    async def test_get_habit_not_found(self):
        """Another user's or a missing habit is not found."""
        from habitflow.services.habit_service import HabitService

        mock_db, mock_habits, _ = make_db()
        mock_habits.find_one.return_value = None

        with pytest.raises(ValueError, match="Habit not found"):
            await HabitService(mock_db).get_habit("user123", str(ObjectId()))

        query = mock_habits.find_one.call_args[0][0]
        assert query["user_id"] == "user123"

    async def test_list_habits_filters(self):
        """Listing filters by archive flag and category."""
        from habitflow.services.habit_service import HabitService

        mock_db, mock_habits, _ = make_db([habit_doc()])

        habits = await HabitService(mock_db).list_habits("user123", archived=True, category="fitness")

        assert len(habits) == 1
        query = mock_habits.find.call_args[0][0]
        assert query == {"user_id": "user123", "is_archived": True, "category": "fitness"}

    async def test_update_habit_ignores_unset_fields(self):
        """Only the provided fields are written."""
        from habitflow.services.habit_service import HabitService
        from habitflow.models.habit import HabitUpdate

        mock_db, mock_habits, _ = make_db()
        mock_habits.find_one.return_value = habit_doc()

        habit = await HabitService(mock_db).update_habit(
            "user123", str(ObjectId()), HabitUpdate(name="Evening Meditation"),
        )

        assert habit.name == "Evening Meditation"
        update_doc = mock_habits.find_one_and_update.call_args[0][1]["$set"]
        assert set(update_doc) == {"name", "updated_at"}

    async def test_delete_habit_not_found(self):
        """Deleting a missing habit raises."""
        from habitflow.services.habit_service import HabitService

        mock_db, mock_habits, _ = make_db()
        mock_habits.delete_one.return_value = MagicMock(deleted_count=0)

        with pytest.raises(ValueError, match="Habit not found"):
            await HabitService(mock_db).delete_habit("user123", str(ObjectId()))


@pytest.mark.asyncio
class TestHabitServiceToggle:
    """Tests for toggling completions."""

    async def test_toggle_adds_completion_and_updates_streak(self):
        """Completing today extends yesterday's streak."""
        from habitflow.services.habit_service import HabitService
        from habitflow.models.habit import CompletionToggle

        mock_db, mock_habits, mock_users = make_db()
        doc = habit_doc(completions=completions_ago(1, 2))
        mock_habits.find_one.return_value = doc

        result = await HabitService(mock_db).toggle_completion(
            "user123", str(doc["_id"]), CompletionToggle(note="calm"), today=TODAY,
        )

        assert result.is_completed is True
        assert result.habit.streak.current == 3
        assert result.habit.streak.longest == 3
        assert result.habit.completions[-1].date == "2024-05-15"
        assert result.habit.completions[-1].note == "calm"

        user_update = mock_users.update_one.call_args[0][1]
        assert user_update["$inc"] == {"stats.total_habits_completed": 1}
        assert user_update["$max"] == {"stats.longest_streak": 3}

    async def test_toggle_removes_completion(self):
        """Toggling a completed day clears it."""
        from habitflow.services.habit_service import HabitService
        from habitflow.models.habit import CompletionToggle

        mock_db, mock_habits, mock_users = make_db()
        doc = habit_doc(completions=completions_ago(0, 1))
        mock_habits.find_one.return_value = doc

        result = await HabitService(mock_db).toggle_completion(
            "user123", str(doc["_id"]), CompletionToggle(), today=TODAY,
        )

        assert result.is_completed is False
        assert [c.date for c in result.habit.completions] == ["2024-05-14"]
        assert result.habit.streak.current == 1

        user_update = mock_users.update_one.call_args[0][1]
        assert "$inc" not in user_update

    async def test_toggle_past_day(self):
        """An explicit date toggles that day instead of today."""
        from habitflow.services.habit_service import HabitService
        from habitflow.models.habit import CompletionToggle

        mock_db, mock_habits, _ = make_db()
        doc = habit_doc(completions=completions_ago(0, 2))
        mock_habits.find_one.return_value = doc

        result = await HabitService(mock_db).toggle_completion(
            "user123", str(doc["_id"]), CompletionToggle(date=TODAY - timedelta(days=1)), today=TODAY,
        )

        assert result.is_completed is True
        assert result.habit.streak.current == 3

    async def test_toggle_twice_restores_state(self):
        """Two toggles of the same day leave the log as it was."""
        from habitflow.services.habit_service import HabitService
        from habitflow.models.habit import CompletionToggle

        mock_db, mock_habits, _ = make_db()
        doc = habit_doc(completions=completions_ago(1, 2))
        mock_habits.find_one.return_value = doc
        service = HabitService(mock_db)

        first = await service.toggle_completion("user123", str(doc["_id"]), CompletionToggle(), today=TODAY)
        mock_habits.find_one.return_value = {**doc, **mock_habits.find_one_and_update.call_args[0][1]["$set"]}
        second = await service.toggle_completion("user123", str(doc["_id"]), CompletionToggle(), today=TODAY)

        assert first.is_completed and not second.is_completed
        assert [c.date for c in second.habit.completions] == ["2024-05-14", "2024-05-13"]
        assert second.habit.streak.current == 2


@pytest.mark.asyncio
class TestHabitServiceViews:
    """Tests for today, stats and calendar views."""

    async def test_list_today_skips_unscheduled_weekly_habits(self):
        """Weekly habits only show on their weekdays."""
        from habitflow.services.habit_service import HabitService

        daily = habit_doc(name="Drink Water", completions=completions_ago(0))
        weekend = habit_doc(
            name="Call Family",
            frequency={"type": "weekly", "days_of_week": [0, 6], "times_per_week": 2},
        )
        mock_db, mock_habits, _ = make_db([daily, weekend])

        todays = await HabitService(mock_db).list_today("user123", today=TODAY)

        assert [h.name for h in todays] == ["Drink Water"]
        assert todays[0].is_completed_today is True
        assert todays[0].today_completion.date == "2024-05-15"
        assert mock_habits.find.call_args[0][0] == {"user_id": "user123", "is_archived": False}

    async def test_get_stats_window(self):
        """Stats have one series entry per window day."""
        from habitflow.services.habit_service import HabitService

        mock_db, _, _ = make_db([habit_doc(completions=completions_ago(0, 1))])

        stats = await HabitService(mock_db).get_stats("user123", window_days=7, today=TODAY)

        assert len(stats.series) == 7
        assert stats.completed_today == 1
        assert stats.total_streaks == 2

    async def test_get_calendar(self):
        """The calendar covers the whole month."""
        from habitflow.services.habit_service import HabitService

        mock_db, _, _ = make_db([habit_doc(completions=completions_ago(0))])

        calendar = await HabitService(mock_db).get_calendar("user123", 2024, 5)

        assert (calendar.year, calendar.month) == (2024, 5)
        assert len(calendar.data) == 31
        assert calendar.data["2024-05-15"].completed == 1


@pytest.mark.asyncio
class TestHabitServiceRecompute:
    """Tests for rebuilding cached streaks."""

    async def test_recompute_streaks_updates_stale_entries(self):
        """Only habits whose cached streak differs are rewritten."""
        from habitflow.services.habit_service import HabitService

        stale = habit_doc(
            completions=completions_ago(0, 1),
            streak={"current": 9, "longest": 9, "last_completed_date": "2024-05-15"},
        )
        fresh = habit_doc(
            completions=completions_ago(0),
            streak={"current": 1, "longest": 1, "last_completed_date": "2024-05-15"},
        )
        mock_db, mock_habits, _ = make_db()
        mock_cursor = MagicMock()
        mock_cursor.__aiter__.return_value = [stale, fresh]
        mock_habits.find = MagicMock(return_value=mock_cursor)

        changed = await HabitService(mock_db).recompute_streaks(today=TODAY)

        assert changed == 1
        filter_doc, update = mock_habits.update_one.call_args[0]
        assert filter_doc == {"_id": stale["_id"]}
        assert update["$set"]["streak"]["current"] == 2


@pytest.mark.asyncio
class TestHabitServiceDamagedRecords:
    """Stored completions with unusable dates don't break reads."""

    @pytest.mark.parametrize("record,expected_streak", [
        ({"date": None}, 1),
        ({"note": "no date"}, 1),
        ({"date": 20240514}, 1),
        ({"date": datetime(2024, 5, 14, 21, 30)}, 2),
    ])
    async def test_get_stats_with_damaged_completion(self, record, expected_streak):
        """Bad records are skipped; datetimes count as their day."""
        from habitflow.services.habit_service import HabitService

        doc = habit_doc(completions=[record, {"date": "2024-05-15"}])
        mock_db, _, _ = make_db([doc])

        stats = await HabitService(mock_db).get_stats("user123", window_days=30, today=TODAY)

        assert stats.completed_today == 1
        assert stats.total_streaks == expected_streak
        assert len(stats.series) == 30

    async def test_toggle_with_damaged_completion(self):
        """Toggling still works and keeps the damaged record."""
        from habitflow.services.habit_service import HabitService
        from habitflow.models.habit import CompletionToggle

        mock_db, mock_habits, _ = make_db()
        doc = habit_doc(completions=[{"date": None}, *completions_ago(1)])
        mock_habits.find_one.return_value = doc

        result = await HabitService(mock_db).toggle_completion(
            "user123", str(doc["_id"]), CompletionToggle(), today=TODAY,
        )

        assert result.is_completed is True
        assert result.habit.streak.current == 2
        assert [c.date for c in result.habit.completions] == [None, "2024-05-14", "2024-05-15"]
