"""Report service - progress report summary for sharing."""
from datetime import date
from typing import Optional

from habitflow.models.goal import GoalStatus
from habitflow.models.stats import ActiveGoalSummary, ProgressReport, TopStreak
from habitflow.services.goal_service import GoalService
from habitflow.services.habit_service import HabitService, user_filter
from habitflow.utils.completions import completion_on
from habitflow.utils.dates import utc_today
from habitflow.utils.progress import round_half_up
from habitflow.utils.streak import compute_streak

RULE = "-" * 42


def render_plain_text(report: ProgressReport, recipient_name: str = "", message: str = "") -> str:
    """Plain ASCII rendering of a progress report."""
    lines = [
        "HABITFLOW PROGRESS REPORT",
        "=" * 42,
        "",
        f"Hello {recipient_name or 'there'},",
        f"Progress update from {report.sender_name}.",
        "",
        f"TODAY:      {report.habits_completed_today} of {report.total_habits} habits completed",
        f"GOALS AVG:  {report.avg_progress}%",
        f"COMPLETED:  {report.completed_goals} goals",
        "",
    ]

    if message:
        lines += [f'"{message}"', ""]

    if report.top_streaks:
        lines += ["TOP STREAKS", RULE]
        for habit in report.top_streaks:
            lines.append(f"  {habit.name} - {habit.current} day streak ({habit.category})")
        lines.append("")

    if report.active_goals:
        lines += ["ACTIVE GOALS", RULE]
        for goal in report.active_goals:
            due = "OVERDUE" if goal.is_overdue else f"{goal.days_left} days left"
            lines.append(f"  {goal.title}")
            lines.append(f"    Progress: {goal.progress}% | {due}")
        lines.append("")

    lines.append(RULE)
    lines.append(f"Generated {report.report_date.isoformat()}")
    return "\n".join(lines)


class ReportService:
    """Service for building progress reports."""

    def __init__(self, db, top_streaks: int = 5):
        """Initialize service with database connection."""
        self.db = db
        self.users = db["users"]
        self.habit_service = HabitService(db)
        self.goal_service = GoalService(db)
        self.top_streaks = top_streaks

    async def build_progress_report(
        self,
        user_id: str,
        recipient_name: str = "",
        message: str = "",
        today: Optional[date] = None,
    ) -> ProgressReport:
        """
        Summarize a user's active habits and goals.

        Streaks are recomputed from completions rather than read from the
        cached values.

        Args:
            user_id: User ID
            recipient_name: Name used in the greeting of the text rendering
            message: Personal note quoted in the text rendering
            today: Report day (defaults to UTC today)

        Returns:
            ProgressReport including its plain-text rendering

        Raises:
            ValueError: If user not found
        """
        today = today or utc_today()

        user_doc = await self.users.find_one(user_filter(user_id))
        if not user_doc:
            raise ValueError("User not found")

        habits = await self.habit_service.list_habits(user_id)
        goals = await self.goal_service.list_goals(user_id)

        streaks = []
        for habit in habits:
            streak = compute_streak(habit.completions, today)
            if streak.current > 0:
                streaks.append(TopStreak(
                    id=habit.id,
                    name=habit.name,
                    icon=habit.icon,
                    category=habit.category.value,
                    current=streak.current,
                ))
        streaks.sort(key=lambda s: s.current, reverse=True)

        active_goals = [
            ActiveGoalSummary(
                id=goal.id,
                title=goal.title,
                icon=goal.icon,
                progress=goal.progress,
                target_date=goal.target_date,
                days_left=(goal.target_date - today).days,
            )
            for goal in goals
            if goal.status == GoalStatus.IN_PROGRESS
        ]

        avg_progress = 0
        if goals:
            avg_progress = round_half_up(sum(g.progress for g in goals) / len(goals))

        report = ProgressReport(
            sender_name=user_doc["name"],
            report_date=today,
            total_habits=len(habits),
            habits_completed_today=sum(
                1 for habit in habits
                if completion_on(habit.completions, today) is not None
            ),
            active_goals=active_goals,
            completed_goals=sum(1 for g in goals if g.status == GoalStatus.COMPLETED),
            avg_progress=avg_progress,
            top_streaks=streaks[:self.top_streaks],
            message=message,
        )
        report.text = render_plain_text(report, recipient_name, message)
        return report
