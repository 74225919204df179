"""Goal router - API endpoints for goals and their sub-tasks."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from habitflow.database import get_database
from habitflow.models.goal import (
    Goal,
    GoalCategory,
    GoalCreate,
    GoalStatus,
    GoalUpdate,
    SubTaskCreate,
    SubTaskUpdate,
)
from habitflow.routers.auth import get_current_user_id
from habitflow.services.goal_service import GoalService


router = APIRouter(prefix="/goals", tags=["goals"])


@router.post("", response_model=Goal, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal: GoalCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Create a new goal.

    - Requires start_date and target_date
    - Progress is derived from any initial sub-tasks
    """
    service = GoalService(db)
    return await service.create_goal(user_id=user_id, goal_create=goal)


@router.get("", response_model=list[Goal])
async def list_goals(
    status: Optional[GoalStatus] = Query(None, description="Filter by status"),
    category: Optional[GoalCategory] = Query(None, description="Filter by category"),
    archived: bool = Query(False, description="List archived goals"),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    List goals for the authenticated user, newest first.
    """
    service = GoalService(db)
    return await service.list_goals(
        user_id=user_id,
        status=status.value if status else None,
        category=category.value if category else None,
        archived=archived,
    )


@router.get("/{goal_id}", response_model=Goal)
async def get_goal(
    goal_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get a single goal.

    - Returns 404 if goal not found
    """
    service = GoalService(db)
    try:
        return await service.get_goal(user_id=user_id, goal_id=goal_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{goal_id}", response_model=Goal)
async def update_goal(
    goal_id: str,
    goal_update: GoalUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Update a goal.

    - Progress is re-derived from sub-tasks when there are any
    - An in-progress goal reaching 100% becomes completed
    - Returns 404 if goal not found
    """
    service = GoalService(db)
    try:
        return await service.update_goal(
            user_id=user_id,
            goal_id=goal_id,
            goal_update=goal_update,
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{goal_id}")
async def delete_goal(
    goal_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Delete a goal.

    - Hard delete (permanent)
    - Returns 404 if goal not found
    """
    service = GoalService(db)
    try:
        return await service.delete_goal(user_id=user_id, goal_id=goal_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{goal_id}/subtasks", response_model=Goal, status_code=status.HTTP_201_CREATED)
async def add_subtask(
    goal_id: str,
    subtask: SubTaskCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Add a sub-task to a goal.

    - Priorities outside low/medium/high become medium
    """
    service = GoalService(db)
    try:
        return await service.add_subtask(
            user_id=user_id,
            goal_id=goal_id,
            subtask_create=subtask,
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{goal_id}/subtasks/{task_id}", response_model=Goal)
async def update_subtask(
    goal_id: str,
    task_id: str,
    subtask_update: SubTaskUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Toggle or edit a sub-task.

    - With is_completed, only the completion state changes
    - Returns 404 if goal or sub-task not found
    """
    service = GoalService(db)
    try:
        return await service.update_subtask(
            user_id=user_id,
            goal_id=goal_id,
            task_id=task_id,
            subtask_update=subtask_update,
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{goal_id}/subtasks/{task_id}", response_model=Goal)
async def delete_subtask(
    goal_id: str,
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Remove a sub-task from a goal.

    - Returns 404 if goal or sub-task not found
    """
    service = GoalService(db)
    try:
        return await service.delete_subtask(
            user_id=user_id,
            goal_id=goal_id,
            task_id=task_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
