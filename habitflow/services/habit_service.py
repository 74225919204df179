"""Habit service - habit storage, completion toggling and statistics."""
from datetime import date, datetime, timezone
from typing import Optional

from bson import ObjectId

from habitflow.models.habit import (
    CompletionToggle,
    Habit,
    HabitCreate,
    HabitUpdate,
    StreakState,
    TodayHabit,
    ToggleResult,
)
from habitflow.models.stats import CalendarMonth, TrailingStats
from habitflow.utils.completions import completion_on, completion_rate, toggle_completion
from habitflow.utils.dates import is_scheduled, utc_today
from habitflow.utils.month_calendar import build_calendar
from habitflow.utils.stats import build_trailing_stats
from habitflow.utils.streak import compute_streak


def user_filter(user_id: str) -> dict:
    """Query matching a user document by its ID."""
    if ObjectId.is_valid(user_id):
        return {"_id": ObjectId(user_id)}
    return {"_id": user_id}


class HabitService:
    """Service for handling habit operations."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.habits = db["habits"]
        self.users = db["users"]

    def _doc_to_habit(self, doc: dict, today: Optional[date] = None) -> Habit:
        """
        Convert database document to Habit model.

        The completion rate is derived here since it depends on the day
        the habit is read.
        """
        completions = doc.get("completions", [])
        habit = Habit(
            _id=str(doc["_id"]),
            user_id=doc["user_id"],
            name=doc["name"],
            description=doc.get("description", ""),
            icon=doc.get("icon", "⭐"),
            color=doc.get("color", "#f59e0b"),
            category=doc.get("category", "other"),
            frequency=doc.get("frequency") or {},
            target=doc.get("target") or {},
            reminder=doc.get("reminder") or {},
            completions=completions,
            streak=doc.get("streak") or StreakState(),
            is_archived=doc.get("is_archived", False),
            start_date=doc["start_date"],
            order=doc.get("order", 0),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )
        habit.completion_rate = completion_rate(habit.completions, today or utc_today())
        return habit

    def _habit_id(self, habit_id: str) -> ObjectId:
        try:
            return ObjectId(habit_id)
        except Exception:
            raise ValueError("Invalid habit ID format")

    async def _find_habit_doc(self, user_id: str, habit_id: str) -> dict:
        habit_doc = await self.habits.find_one({
            "_id": self._habit_id(habit_id),
            "user_id": user_id,
        })
        if not habit_doc:
            raise ValueError("Habit not found")
        return habit_doc

    async def _active_habits(self, user_id: str) -> list[Habit]:
        cursor = self.habits.find({"user_id": user_id, "is_archived": False})
        habit_docs = await cursor.to_list(length=None)
        return [self._doc_to_habit(doc) for doc in habit_docs]

    async def create_habit(
        self,
        user_id: str,
        habit_create: HabitCreate,
    ) -> Habit:
        """
        Create a new habit with an empty completion log.

        Args:
            user_id: User ID who owns the habit
            habit_create: Habit creation data

        Returns:
            Created habit
        """
        now = datetime.now(timezone.utc)
        start_date = habit_create.start_date or utc_today()

        habit_doc = {
            "user_id": user_id,
            **habit_create.model_dump(mode="json", exclude={"start_date"}),
            "completions": [],
            "streak": StreakState().model_dump(mode="json"),
            "is_archived": False,
            "start_date": start_date.isoformat(),
            "created_at": now,
            "updated_at": now,
        }

        result = await self.habits.insert_one(habit_doc)
        habit_doc["_id"] = result.inserted_id

        return self._doc_to_habit(habit_doc)

    async def list_habits(
        self,
        user_id: str,
        archived: bool = False,
        category: Optional[str] = None,
    ) -> list[Habit]:
        """
        List habits for a user, ordered by position then newest first.

        Args:
            user_id: User ID
            archived: List archived habits instead of active ones
            category: Optional category filter

        Returns:
            List of habits
        """
        query = {
            "user_id": user_id,
            "is_archived": archived,
        }
        if category:
            query["category"] = category

        cursor = self.habits.find(query).sort([("order", 1), ("created_at", -1)])
        habit_docs = await cursor.to_list(length=None)

        return [self._doc_to_habit(doc) for doc in habit_docs]

    async def get_habit(self, user_id: str, habit_id: str) -> Habit:
        """
        Get a single habit.

        Raises:
            ValueError: If habit not found or invalid ID format
        """
        return self._doc_to_habit(await self._find_habit_doc(user_id, habit_id))

    async def update_habit(
        self,
        user_id: str,
        habit_id: str,
        habit_update: HabitUpdate,
    ) -> Habit:
        """
        Update a habit's editable fields.

        Raises:
            ValueError: If habit not found or invalid ID format
        """
        existing = await self._find_habit_doc(user_id, habit_id)

        update_doc = habit_update.model_dump(mode="json", exclude_none=True)
        update_doc["updated_at"] = datetime.now(timezone.utc)

        updated_doc = await self.habits.find_one_and_update(
            {"_id": existing["_id"], "user_id": user_id},
            {"$set": update_doc},
            return_document=True,
        )

        return self._doc_to_habit(updated_doc)

    async def delete_habit(self, user_id: str, habit_id: str) -> dict:
        """
        Delete a habit and its completion log.

        Returns:
            Dictionary with deleted_count

        Raises:
            ValueError: If habit not found or invalid ID format
        """
        result = await self.habits.delete_one({
            "_id": self._habit_id(habit_id),
            "user_id": user_id,
        })
        if result.deleted_count == 0:
            raise ValueError("Habit not found")

        return {"deleted_count": result.deleted_count}

    async def toggle_completion(
        self,
        user_id: str,
        habit_id: str,
        toggle: CompletionToggle,
        today: Optional[date] = None,
    ) -> ToggleResult:
        """
        Mark a day complete, or clear it if it was already complete.

        The habit's streak is recomputed from the new completion log and
        saved with it. Adding a completion also bumps the user's lifetime
        counter, and the user's longest streak is raised if this habit beat
        it.

        Args:
            user_id: User ID
            habit_id: Habit ID
            toggle: Day (defaults to today), note and value
            today: Reference day for the streak (defaults to UTC today)

        Returns:
            Updated habit and whether the day is now completed

        Raises:
            ValueError: If habit not found or invalid ID format
        """
        today = today or utc_today()
        habit = self._doc_to_habit(await self._find_habit_doc(user_id, habit_id), today)

        completions, is_completed = toggle_completion(
            habit.completions,
            toggle.completion_date or today,
            note=toggle.note,
            value=toggle.value,
        )
        streak = compute_streak(completions, today)

        updated_doc = await self.habits.find_one_and_update(
            {"_id": ObjectId(habit.id), "user_id": user_id},
            {"$set": {
                "completions": [c.model_dump() for c in completions],
                "streak": streak.model_dump(mode="json"),
                "updated_at": datetime.now(timezone.utc),
            }},
            return_document=True,
        )

        user_update = {"$max": {"stats.longest_streak": streak.longest}}
        if is_completed:
            user_update["$inc"] = {"stats.total_habits_completed": 1}
        await self.users.update_one(user_filter(user_id), user_update)

        return ToggleResult(
            habit=self._doc_to_habit(updated_doc, today),
            is_completed=is_completed,
        )

    async def list_today(
        self,
        user_id: str,
        today: Optional[date] = None,
    ) -> list[TodayHabit]:
        """
        Active habits scheduled today, each with today's completion state.
        """
        today = today or utc_today()

        todays = []
        for habit in await self._active_habits(user_id):
            if not is_scheduled(habit.frequency, today):
                continue
            record = completion_on(habit.completions, today)
            todays.append(TodayHabit(
                **habit.model_dump(),
                is_completed_today=record is not None,
                today_completion=record,
            ))
        return todays

    async def get_stats(
        self,
        user_id: str,
        window_days: int = 30,
        today: Optional[date] = None,
    ) -> TrailingStats:
        """Trailing-window statistics across the user's active habits."""
        habits = await self._active_habits(user_id)
        return build_trailing_stats(habits, window_days=window_days, today=today)

    async def get_calendar(self, user_id: str, year: int, month: int) -> CalendarMonth:
        """Per-day summary of a month across the user's active habits."""
        habits = await self._active_habits(user_id)
        return CalendarMonth(
            year=year,
            month=month,
            data=build_calendar(habits, year, month),
        )

    async def recompute_streaks(
        self,
        user_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> int:
        """
        Rebuild cached streaks from completion logs.

        Args:
            user_id: Limit to one user (defaults to every user)
            today: Reference day (defaults to UTC today)

        Returns:
            Number of habits whose cached streak changed
        """
        today = today or utc_today()
        query = {"user_id": user_id} if user_id else {}

        changed = 0
        async for doc in self.habits.find(query):
            habit = self._doc_to_habit(doc, today)
            streak = compute_streak(habit.completions, today)
            if streak == habit.streak:
                continue
            await self.habits.update_one(
                {"_id": doc["_id"]},
                {"$set": {"streak": streak.model_dump(mode="json")}},
            )
            changed += 1
        return changed
