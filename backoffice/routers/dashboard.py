from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from backoffice.core.api_docs import error_responses
from backoffice.core.deps import get_db
from backoffice.core.security_current import get_current_admin
from backoffice.schemas.dashboard import DashboardStatsOut
from backoffice.services.dashboard_service import get_stats

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(get_current_admin)],
)


@router.get(
    "/stats",
    response_model=DashboardStatsOut,
    summary="Entity counts, optionally limited to a creation date range",
    responses=error_responses(400),
)
def dashboard_stats(
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="startDate must be on or before endDate")
    return get_stats(db, start_date=start_date, end_date=end_date)
