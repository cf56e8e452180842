"""
Cash Cut Reports Router
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from omicron.core.config import settings
from omicron.database.database import get_db
from ..services.cash_cut import CashCutService
from ..schemas import CashCutRequest, CashCutReport, CashCutOut, CashCutList


router = APIRouter(prefix="/reports/cash-cut", tags=["Reports"])


@router.post("", response_model=CashCutReport)
def get_cash_cut(
    cut_data: CashCutRequest,
    db: Session = Depends(get_db)
):
    """
    Compute a cash cut without saving it.

    - **reference_date** + **range_kind**: calendar window (local time zone)
    - **opening_cash** / **closing_cash**: amounts counted by the operator
    - **expenses**: cash paid out during the window

    Only active tickets count as sales; cancelled tickets are excluded.
    """
    report = CashCutService(db).compute_cash_cut(
        reference_date=cut_data.reference_date,
        range_kind=cut_data.range_kind,
        opening_cash=cut_data.opening_cash,
        closing_cash=cut_data.closing_cash,
        expenses=cut_data.expenses
    )
    return CashCutReport(**report)


@router.post("/save", response_model=CashCutOut, status_code=status.HTTP_201_CREATED)
def save_cash_cut(
    cut_data: CashCutRequest,
    db: Session = Depends(get_db)
):
    """Compute a cash cut and archive it with its resolved window."""
    return CashCutService(db).save_cash_cut(
        reference_date=cut_data.reference_date,
        range_kind=cut_data.range_kind,
        opening_cash=cut_data.opening_cash,
        closing_cash=cut_data.closing_cash,
        expenses=cut_data.expenses
    )


@router.get("/history", response_model=CashCutList)
def get_cash_cut_history(
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=1000, description="Number of records per page"),
    offset: int = Query(0, ge=0, description="Number of records to skip"),
    db: Session = Depends(get_db)
):
    result = CashCutService(db).list_cash_cuts(limit=limit, offset=offset)
    return CashCutList(**result)
