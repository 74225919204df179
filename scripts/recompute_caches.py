"""Rebuild cached habit streaks and goal progress from source data.

Run after restoring a backup or importing documents, when the stored
streak/progress values can't be trusted.

Usage:
    python scripts/recompute_caches.py \\
        --mongodb-url mongodb://localhost:27017 \\
        [--db-name habitflow] [--user-id <user-id>] [--today YYYY-MM-DD]
"""
import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path
from typing import Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient
from habitflow.services.goal_service import GoalService
from habitflow.services.habit_service import HabitService


async def recompute(
    mongodb_url: str,
    db_name: str,
    user_id: Optional[str],
    today: Optional[date],
) -> None:
    """Recompute streaks and progress for one user or everyone."""
    client = AsyncIOMotorClient(mongodb_url)
    db = client[db_name]
    print(f"Connected to MongoDB: {db_name}")

    scope = f"user {user_id}" if user_id else "all users"
    print(f"\n=== Recomputing caches for {scope} ===")

    habits_changed = await HabitService(db).recompute_streaks(user_id=user_id, today=today)
    print(f"  Habit streaks updated: {habits_changed}")

    goals_changed = await GoalService(db).recompute_progress(user_id=user_id)
    print(f"  Goal progress updated: {goals_changed}")

    client.close()
    print("Done!")


def main():
    parser = argparse.ArgumentParser(description="Recompute derived habit and goal fields")
    parser.add_argument("--mongodb-url", required=True, help="MongoDB connection URL")
    parser.add_argument("--db-name", default="habitflow", help="Database name")
    parser.add_argument("--user-id", help="Only recompute this user's documents")
    parser.add_argument("--today", type=date.fromisoformat, help="Reference day for streaks")
    args = parser.parse_args()

    asyncio.run(recompute(args.mongodb_url, args.db_name, args.user_id, args.today))


if __name__ == "__main__":
    main()
