"""Report router - progress report summary."""
from fastapi import APIRouter, Depends, HTTPException, Query

from habitflow.config import settings
from habitflow.database import get_database
from habitflow.models.stats import ProgressReport
from habitflow.routers.auth import get_current_user_id
from habitflow.services.report_service import ReportService


router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/progress", response_model=ProgressReport)
async def get_progress_report(
    recipient_name: str = Query("", description="Name for the greeting line"),
    message: str = Query("", max_length=1000, description="Personal note for the text body"),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Progress report for the authenticated user.

    - Habits completed today, goal averages, active goals and top streaks
    - Includes a plain-text rendering in the text field
    """
    service = ReportService(db, top_streaks=settings.report_top_streaks)
    try:
        return await service.build_progress_report(
            user_id=user_id,
            recipient_name=recipient_name,
            message=message,
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
