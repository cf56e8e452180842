"""
Pydantic schemas for Reports module

Request and response models for the cash cut and analytics endpoints.
Money values are returned as Decimal quantized to cents.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from omicron.common.date_ranges import RangeKind


# Cash cut schemas
class ExpenseIn(BaseModel):
    """Expense entered by the operator during a cash cut"""
    id: Optional[str] = Field(None, max_length=50, description="Client side identifier")
    description: str = Field(..., min_length=1, max_length=255, description="Expense concept")
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2, description="Expense amount")

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError('La descripción del gasto no puede estar vacía')
        return cleaned


class CashCutRequest(BaseModel):
    """Inputs for a cash reconciliation run"""
    reference_date: date = Field(..., description="Any date inside the window")
    range_kind: RangeKind = Field(RangeKind.DAY, description="day, week or month")
    opening_cash: Decimal = Field(Decimal("0"), ge=0, max_digits=15, decimal_places=2, description="Cash in the drawer at opening")
    closing_cash: Decimal = Field(Decimal("0"), ge=0, max_digits=15, decimal_places=2, description="Cash counted at closing")
    expenses: List[ExpenseIn] = Field(default=[])


class CashCutReport(BaseModel):
    """Computed cash cut; positive variance is a surplus, negative a shortfall"""
    label: str
    range_kind: RangeKind
    start: datetime = Field(description="Window start (local time)")
    end: datetime = Field(description="Window end (local time)")
    opening_cash: Decimal
    sales_in_range: Decimal = Field(description="Sum of active tickets in the window")
    sales_count: int
    expenses_total: Decimal
    expected_cash: Decimal
    closing_cash: Decimal
    variance: Decimal
    net_profit: Decimal


class ExpenseOut(BaseModel):
    id: Optional[str] = None
    description: str
    amount: Decimal


class CashCutOut(BaseModel):
    """Saved cash cut"""
    id: UUID
    reference_date: date
    range_kind: RangeKind
    label: str
    start_at: datetime = Field(description="Window start (UTC)")
    end_at: datetime = Field(description="Window end (UTC)")
    opening_cash: Decimal
    closing_cash: Decimal
    sales_in_range: Decimal
    sales_count: int
    expenses_total: Decimal
    expected_cash: Decimal
    variance: Decimal
    net_profit: Decimal
    expenses: List[ExpenseOut] = Field(default=[])
    created_at: datetime

    model_config = {"from_attributes": True}


class CashCutList(BaseModel):
    cash_cuts: List[CashCutOut]
    total: int
    limit: int
    offset: int


# Analytics schemas
class WindowTotals(BaseModel):
    """Fixed aggregates anchored to now"""
    today: Decimal
    week: Decimal
    month: Decimal
    today_count: int = Field(description="Active tickets sold today")


class SellerRankingEntry(BaseModel):
    seller: str
    total: Decimal
    count: int


class TrendPoint(BaseModel):
    day: date
    label: str = Field(description="Short weekday label")
    total: Decimal
    height: float = Field(description="Relative bar height between 0 and 1")


class AnalyticsResponse(BaseModel):
    window: RangeKind
    window_label: str
    totals: WindowTotals
    ranking: List[SellerRankingEntry]
    trend: List[TrendPoint]
