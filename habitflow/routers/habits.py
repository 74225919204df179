"""Habit router - habits, completions, stats and calendar."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from habitflow.config import settings
from habitflow.database import get_database
from habitflow.models.habit import (
    CompletionToggle,
    Habit,
    HabitCategory,
    HabitCreate,
    HabitUpdate,
    TodayHabit,
    ToggleResult,
)
from habitflow.models.stats import CalendarMonth, TrailingStats
from habitflow.routers.auth import get_current_user_id
from habitflow.services.habit_service import HabitService
from habitflow.utils.dates import utc_today


router = APIRouter(prefix="/habits", tags=["habits"])


# Fixed paths are declared before /{habit_id} so they are not read as IDs.

@router.get("/today", response_model=list[TodayHabit])
async def list_today(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Habits scheduled for today.

    - Weekly habits only appear on their listed weekdays
    - Each habit carries is_completed_today and today's record
    """
    service = HabitService(db)
    return await service.list_today(user_id=user_id)


@router.get("/stats", response_model=TrailingStats)
async def get_stats(
    window_days: Optional[int] = Query(None, ge=1, le=366, description="Days in the trailing series"),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Dashboard statistics over a trailing window ending today.

    - Series has exactly window_days entries, oldest first
    - Defaults to the configured window (30 days)
    """
    service = HabitService(db)
    return await service.get_stats(
        user_id=user_id,
        window_days=window_days or settings.stats_window_days,
    )


@router.get("/calendar", response_model=CalendarMonth)
async def get_calendar(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Per-day completion summary for a month.

    - Defaults to the current month
    - Every day of the month is present, including days with no completions
    """
    today = utc_today()
    service = HabitService(db)
    return await service.get_calendar(
        user_id=user_id,
        year=year or today.year,
        month=month or today.month,
    )


@router.get("", response_model=list[Habit])
async def list_habits(
    archived: bool = Query(False, description="List archived habits"),
    category: Optional[HabitCategory] = Query(None, description="Filter by category"),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    List habits for the authenticated user.

    - Sorted by order, then newest first
    """
    service = HabitService(db)
    return await service.list_habits(
        user_id=user_id,
        archived=archived,
        category=category.value if category else None,
    )


@router.post("", response_model=Habit, status_code=status.HTTP_201_CREATED)
async def create_habit(
    habit: HabitCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Create a new habit.

    - Starts with no completions and a zero streak
    - start_date defaults to today
    """
    service = HabitService(db)
    return await service.create_habit(user_id=user_id, habit_create=habit)


@router.get("/{habit_id}", response_model=Habit)
async def get_habit(
    habit_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get a single habit.

    - Returns 404 if the habit doesn't exist or isn't the user's
    """
    service = HabitService(db)
    try:
        return await service.get_habit(user_id=user_id, habit_id=habit_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{habit_id}", response_model=Habit)
async def update_habit(
    habit_id: str,
    habit_update: HabitUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Update a habit.

    - Completions and streak can't be edited here; use /complete
    - Returns 404 if habit not found
    """
    service = HabitService(db)
    try:
        return await service.update_habit(
            user_id=user_id,
            habit_id=habit_id,
            habit_update=habit_update,
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{habit_id}/complete", response_model=ToggleResult)
async def toggle_completion(
    habit_id: str,
    toggle: Optional[CompletionToggle] = None,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Toggle a day's completion.

    - Date defaults to today
    - Completing an already-completed day removes that completion
    - The streak is recomputed and saved with the completions
    """
    service = HabitService(db)
    try:
        return await service.toggle_completion(
            user_id=user_id,
            habit_id=habit_id,
            toggle=toggle or CompletionToggle(),
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{habit_id}")
async def delete_habit(
    habit_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Delete a habit and its history.

    - Hard delete (permanent)
    - Returns 404 if habit not found
    """
    service = HabitService(db)
    try:
        return await service.delete_habit(user_id=user_id, habit_id=habit_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
