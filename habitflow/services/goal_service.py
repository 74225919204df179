"""Goal service - goals, sub-tasks and derived progress."""
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId

from habitflow.models.goal import (
    Goal,
    GoalCreate,
    GoalStatus,
    GoalUpdate,
    SubTask,
    SubTaskCreate,
    SubTaskUpdate,
)
from habitflow.services.habit_service import user_filter
from habitflow.utils.progress import derive_progress

# Fields written back on every save; identity and ownership never change.
GOAL_FIELDS = (
    "title", "description", "icon", "color", "category", "priority",
    "status", "progress", "start_date", "target_date", "completed_at",
    "milestones", "linked_habits", "notes", "is_archived",
)


def _as_object_id(value: str):
    return ObjectId(value) if ObjectId.is_valid(value) else value


class GoalService:
    """Service for handling goal operations."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.goals = db["goals"]
        self.users = db["users"]

    def _doc_to_goal(self, doc: dict) -> Goal:
        """
        Convert database document to Goal model.

        Sub-task ObjectIds become string IDs.
        """
        sub_tasks = [
            SubTask(id=str(task["_id"]), **{k: v for k, v in task.items() if k != "_id"})
            for task in doc.get("sub_tasks", [])
        ]
        return Goal(
            _id=str(doc["_id"]),
            user_id=doc["user_id"],
            title=doc["title"],
            description=doc.get("description", ""),
            icon=doc.get("icon", "🎯"),
            color=doc.get("color", "#10b981"),
            category=doc.get("category", "personal"),
            priority=doc.get("priority", "medium"),
            status=doc.get("status", "not_started"),
            progress=doc.get("progress", 0),
            start_date=doc["start_date"],
            target_date=doc["target_date"],
            completed_at=doc.get("completed_at"),
            sub_tasks=sub_tasks,
            milestones=doc.get("milestones", []),
            linked_habits=doc.get("linked_habits", []),
            notes=doc.get("notes", ""),
            is_archived=doc.get("is_archived", False),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    def _goal_to_fields(self, goal: Goal) -> dict:
        """Document fields for a goal, excluding identity and timestamps."""
        data = goal.model_dump(mode="json", include=set(GOAL_FIELDS))
        data["completed_at"] = goal.completed_at
        data["sub_tasks"] = [
            {
                "_id": _as_object_id(task.id),
                **task.model_dump(mode="json", exclude={"id", "completed_at"}),
                "completed_at": task.completed_at,
            }
            for task in goal.sub_tasks
        ]
        return data

    def _goal_id(self, goal_id: str) -> ObjectId:
        try:
            return ObjectId(goal_id)
        except Exception:
            raise ValueError("Invalid goal ID format")

    async def _find_goal(self, user_id: str, goal_id: str) -> Goal:
        goal_doc = await self.goals.find_one({
            "_id": self._goal_id(goal_id),
            "user_id": user_id,
        })
        if not goal_doc:
            raise ValueError("Goal not found")
        return self._doc_to_goal(goal_doc)

    async def _save(self, user_id: str, before: Goal, after: Goal) -> Goal:
        """
        Derive progress and status, then persist the goal.

        Every goal write goes through here so the cached progress always
        matches the sub-tasks.
        """
        goal = derive_progress(after)

        updated_doc = await self.goals.find_one_and_update(
            {"_id": ObjectId(goal.id), "user_id": user_id},
            {"$set": {
                **self._goal_to_fields(goal),
                "updated_at": datetime.now(timezone.utc),
            }},
            return_document=True,
        )

        await self._count_completion(user_id, before.status, goal.status)
        return self._doc_to_goal(updated_doc)

    async def _count_completion(
        self,
        user_id: str,
        old_status: Optional[GoalStatus],
        new_status: GoalStatus,
    ) -> None:
        """Bump the user's completed-goal counter on entering completed."""
        if new_status == GoalStatus.COMPLETED and old_status != GoalStatus.COMPLETED:
            await self.users.update_one(
                user_filter(user_id),
                {"$inc": {"stats.goals_completed": 1}},
            )

    async def create_goal(
        self,
        user_id: str,
        goal_create: GoalCreate,
    ) -> Goal:
        """
        Create a new goal with its initial sub-tasks.

        Args:
            user_id: User ID who owns the goal
            goal_create: Goal creation data

        Returns:
            Created goal with derived progress
        """
        now = datetime.now(timezone.utc)
        goal_id = ObjectId()

        goal = Goal(
            _id=str(goal_id),
            user_id=user_id,
            **goal_create.model_dump(exclude={"sub_tasks"}),
            sub_tasks=[
                SubTask(id=str(ObjectId()), order=index, **task.model_dump())
                for index, task in enumerate(goal_create.sub_tasks)
            ],
            created_at=now,
            updated_at=now,
        )
        goal = derive_progress(goal, now)

        goal_doc = {
            "_id": goal_id,
            "user_id": user_id,
            **self._goal_to_fields(goal),
            "created_at": now,
            "updated_at": now,
        }
        await self.goals.insert_one(goal_doc)

        await self._count_completion(user_id, None, goal.status)
        return self._doc_to_goal(goal_doc)

    async def list_goals(
        self,
        user_id: str,
        status: Optional[str] = None,
        category: Optional[str] = None,
        archived: bool = False,
    ) -> list[Goal]:
        """
        List goals for a user, newest first.

        Args:
            user_id: User ID
            status: Optional status filter
            category: Optional category filter
            archived: List archived goals instead of active ones

        Returns:
            List of goals
        """
        query = {
            "user_id": user_id,
            "is_archived": archived,
        }
        if status:
            query["status"] = status
        if category:
            query["category"] = category

        cursor = self.goals.find(query).sort("created_at", -1)
        goal_docs = await cursor.to_list(length=None)

        return [self._doc_to_goal(doc) for doc in goal_docs]

    async def get_goal(self, user_id: str, goal_id: str) -> Goal:
        """
        Get a single goal.

        Raises:
            ValueError: If goal not found or invalid ID format
        """
        return await self._find_goal(user_id, goal_id)

    async def update_goal(
        self,
        user_id: str,
        goal_id: str,
        goal_update: GoalUpdate,
    ) -> Goal:
        """
        Update goal fields and re-derive progress.

        An explicit move to completed stamps completed_at if it is unset.

        Raises:
            ValueError: If goal not found or invalid ID format
        """
        existing = await self._find_goal(user_id, goal_id)

        changes = {
            name: getattr(goal_update, name)
            for name in goal_update.model_fields_set
            if getattr(goal_update, name) is not None
        }
        if changes.get("status") == GoalStatus.COMPLETED and existing.completed_at is None:
            changes["completed_at"] = datetime.now(timezone.utc)

        return await self._save(user_id, existing, existing.model_copy(update=changes))

    async def delete_goal(self, user_id: str, goal_id: str) -> dict:
        """
        Delete a goal.

        Returns:
            Dictionary with deleted_count

        Raises:
            ValueError: If goal not found or invalid ID format
        """
        result = await self.goals.delete_one({
            "_id": self._goal_id(goal_id),
            "user_id": user_id,
        })
        if result.deleted_count == 0:
            raise ValueError("Goal not found")

        return {"deleted_count": result.deleted_count}

    async def add_subtask(
        self,
        user_id: str,
        goal_id: str,
        subtask_create: SubTaskCreate,
    ) -> Goal:
        """
        Append a sub-task. Adding an open task lowers progress.

        Raises:
            ValueError: If goal not found or invalid ID format
        """
        existing = await self._find_goal(user_id, goal_id)

        task = SubTask(
            id=str(ObjectId()),
            order=len(existing.sub_tasks),
            **subtask_create.model_dump(),
        )
        updated = existing.model_copy(update={"sub_tasks": [*existing.sub_tasks, task]})

        return await self._save(user_id, existing, updated)

    async def update_subtask(
        self,
        user_id: str,
        goal_id: str,
        task_id: str,
        subtask_update: SubTaskUpdate,
    ) -> Goal:
        """
        Toggle or edit a sub-task.

        If is_completed is given only the completion state changes;
        otherwise title and priority are applied.

        Raises:
            ValueError: If goal or sub-task not found
        """
        existing = await self._find_goal(user_id, goal_id)

        sub_tasks = []
        found = False
        for task in existing.sub_tasks:
            if task.id != task_id:
                sub_tasks.append(task)
                continue

            found = True
            if subtask_update.is_completed is not None:
                changes = {
                    "is_completed": subtask_update.is_completed,
                    "completed_at": datetime.now(timezone.utc) if subtask_update.is_completed else None,
                }
            else:
                changes = {}
                if subtask_update.title is not None:
                    changes["title"] = subtask_update.title
                if subtask_update.priority is not None:
                    changes["priority"] = subtask_update.priority
            sub_tasks.append(task.model_copy(update=changes))

        if not found:
            raise ValueError("Subtask not found")

        updated = existing.model_copy(update={"sub_tasks": sub_tasks})
        return await self._save(user_id, existing, updated)

    async def delete_subtask(
        self,
        user_id: str,
        goal_id: str,
        task_id: str,
    ) -> Goal:
        """
        Remove a sub-task. Removing the last one leaves progress as it was.

        Raises:
            ValueError: If goal or sub-task not found
        """
        existing = await self._find_goal(user_id, goal_id)

        sub_tasks = [task for task in existing.sub_tasks if task.id != task_id]
        if len(sub_tasks) == len(existing.sub_tasks):
            raise ValueError("Subtask not found")

        updated = existing.model_copy(update={"sub_tasks": sub_tasks})
        return await self._save(user_id, existing, updated)

    async def recompute_progress(self, user_id: Optional[str] = None) -> int:
        """
        Rebuild cached progress and status from sub-tasks.

        Args:
            user_id: Limit to one user (defaults to every user)

        Returns:
            Number of goals whose cached fields changed
        """
        query = {"user_id": user_id} if user_id else {}

        changed = 0
        async for doc in self.goals.find(query):
            goal = self._doc_to_goal(doc)
            derived = derive_progress(goal)
            if (derived.progress, derived.status) == (goal.progress, goal.status):
                continue
            await self.goals.update_one(
                {"_id": doc["_id"]},
                {"$set": {
                    "progress": derived.progress,
                    "status": derived.status.value,
                    "completed_at": derived.completed_at,
                }},
            )
            changed += 1
        return changed
