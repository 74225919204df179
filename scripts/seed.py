"""Seed a demo account with habits, completion history and goals.

Usage:
    python scripts/seed.py \\
        --mongodb-url mongodb://localhost:27017 \\
        [--db-name habitflow] [--email demo@habitflow.dev] [--days 60] [--seed 7]
"""
import argparse
import asyncio
import random
import sys
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from habitflow.models.goal import GoalCreate, SubTaskCreate, SubTaskUpdate
from habitflow.models.habit import Completion, HabitCreate
from habitflow.services.auth_service import AuthService
from habitflow.services.goal_service import GoalService
from habitflow.services.habit_service import HabitService
from habitflow.utils.dates import utc_today
from habitflow.utils.streak import compute_streak

DEMO_PASSWORD = "password123"

# (name, icon, color, category, frequency, hit rate)
HABITS = [
    ("Morning Meditation", "🧘", "#8b5cf6", "mindfulness", {"type": "daily"}, 0.88),
    ("Run / Jog", "🏃", "#ef4444", "fitness", {"type": "weekly", "days_of_week": [1, 3, 5, 6], "times_per_week": 4}, 0.78),
    ("Read 30 Pages", "📚", "#3b82f6", "learning", {"type": "daily"}, 0.72),
    ("Drink 2L Water", "💧", "#06b6d4", "health", {"type": "daily"}, 0.92),
    ("Strength Training", "🏋️", "#f97316", "fitness", {"type": "weekly", "days_of_week": [1, 3, 5], "times_per_week": 3}, 0.75),
    ("Call Family / Friends", "🤝", "#ec4899", "social", {"type": "weekly", "days_of_week": [0, 6], "times_per_week": 2}, 0.8),
]

# (title, icon, category, priority, status, start offset, target offset, [(sub-task, done)])
GOALS = [
    ("Run a Half Marathon", "🏅", "health", "high", "in_progress", -60, 60, [
        ("Build base: run 5km without stopping", True),
        ("Complete a 10km run", True),
        ("Run 15km in training", False),
        ("Get proper running shoes fitted", True),
        ("Follow 12-week training plan", False),
    ]),
    ("Emergency Fund: $15,000", "💰", "finance", "critical", "in_progress", -120, 60, [
        ("Open high-yield savings account", True),
        ("Set up $500/month auto-transfer", True),
        ("Reach $10,000 milestone", True),
        ("Reach $15,000 goal", False),
    ]),
    ("Get AWS Solutions Architect Certified", "☁️", "career", "high", "not_started", 7, 90, [
        ("Enroll in a course", False),
        ("Take 3 practice exams", False),
        ("Pass the exam", False),
    ]),
]


def generate_completions(rng: random.Random, days: int, hit_rate: float, today: date) -> list[Completion]:
    """Random completion history over the last `days` days."""
    completions = []
    for offset in range(days, -1, -1):
        if rng.random() >= hit_rate:
            continue
        day = today - timedelta(days=offset)
        completions.append(Completion(
            date=day.isoformat(),
            completed_at=datetime.combine(day, time(hour=8), tzinfo=timezone.utc),
        ))
    return completions


async def seed(mongodb_url: str, db_name: str, email: str, days: int, rng_seed: int) -> None:
    """Recreate the demo user and its data."""
    client = AsyncIOMotorClient(mongodb_url)
    db = client[db_name]
    print(f"Connected to MongoDB: {db_name}")

    existing = await db["users"].find_one({"email": email})
    if existing:
        user_id = str(existing["_id"])
        await db["habits"].delete_many({"user_id": user_id})
        await db["goals"].delete_many({"user_id": user_id})
        await db["users"].delete_one({"_id": existing["_id"]})
        print(f"Removed existing demo user {email}")

    user = await AuthService(db).register_user(email=email, password=DEMO_PASSWORD, name="Alex Rivera")
    print(f"Created user {email}")

    rng = random.Random(rng_seed)
    today = utc_today()
    habit_service = HabitService(db)

    total_completed = 0
    longest_streak = 0
    print("\n=== Creating habits ===")
    for name, icon, color, category, frequency, hit_rate in HABITS:
        habit = await habit_service.create_habit(user.id, HabitCreate(
            name=name,
            icon=icon,
            color=color,
            category=category,
            frequency=frequency,
            start_date=today - timedelta(days=days),
        ))
        completions = generate_completions(rng, days, hit_rate, today)
        streak = compute_streak(completions, today)
        await db["habits"].update_one(
            {"_id": ObjectId(habit.id)},
            {"$set": {
                "completions": [c.model_dump() for c in completions],
                "streak": streak.model_dump(mode="json"),
            }},
        )
        total_completed += len(completions)
        longest_streak = max(longest_streak, streak.longest)
        print(f"  {name}: {len(completions)} completions, streak {streak.current}/{streak.longest}")

    goal_service = GoalService(db)
    print("\n=== Creating goals ===")
    for title, icon, category, priority, status, start, target, tasks in GOALS:
        goal = await goal_service.create_goal(user.id, GoalCreate(
            title=title,
            icon=icon,
            category=category,
            priority=priority,
            status=status,
            start_date=today + timedelta(days=start),
            target_date=today + timedelta(days=target),
            sub_tasks=[SubTaskCreate(title=task) for task, _ in tasks],
        ))
        for sub_task, (_, done) in zip(goal.sub_tasks, tasks):
            if done:
                goal = await goal_service.update_subtask(
                    user.id, goal.id, sub_task.id, SubTaskUpdate(is_completed=True),
                )
        print(f"  {title}: {goal.progress}% ({goal.status.value})")

    await db["users"].update_one(
        {"email": email},
        {"$set": {
            "stats.total_habits_completed": total_completed,
            "stats.longest_streak": longest_streak,
        }},
    )

    client.close()
    print(f"\nSeed complete! Login: {email} / {DEMO_PASSWORD}")


def main():
    parser = argparse.ArgumentParser(description="Seed a HabitFlow demo account")
    parser.add_argument("--mongodb-url", required=True, help="MongoDB connection URL")
    parser.add_argument("--db-name", default="habitflow", help="Database name")
    parser.add_argument("--email", default="demo@habitflow.dev", help="Demo account email")
    parser.add_argument("--days", type=int, default=60, help="Days of completion history")
    parser.add_argument("--seed", type=int, default=7, help="Random seed")
    args = parser.parse_args()

    asyncio.run(seed(args.mongodb_url, args.db_name, args.email, args.days, args.seed))


if __name__ == "__main__":
    main()
