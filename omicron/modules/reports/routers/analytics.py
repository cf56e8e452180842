"""
Sales Analytics Router
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from omicron.common.date_ranges import RangeKind
from omicron.database.database import get_db
from ..services.analytics import AnalyticsService
from ..schemas import AnalyticsResponse


router = APIRouter(prefix="/reports/analytics", tags=["Reports"])


@router.get("", response_model=AnalyticsResponse)
def get_analytics(
    window: RangeKind = Query(RangeKind.DAY, description="Window for the seller ranking"),
    days: Optional[int] = Query(None, ge=1, le=90, description="Days in the trend series"),
    db: Session = Depends(get_db)
):
    """
    Sales analytics anchored to the current time.

    Returns today/week/month totals, the seller ranking for **window** and
    the daily trend for the last **days** days.
    """
    return AnalyticsResponse(**AnalyticsService(db).get_analytics(window=window, days=days))
