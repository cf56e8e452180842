"""
SQLAlchemy models for the Reports module

CashCut stores a reconciliation run exactly as it was computed: the operator
inputs, the resolved calendar window and the resulting figures. Sales are
never recomputed when reading a saved cut.
"""

from omicron.database.database import Base
from omicron.common.date_ranges import RangeKind, utcnow
from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, Enum, JSON, Uuid
from uuid import uuid4


class CashCut(Base):
    __tablename__ = "cash_cuts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    # Inputs
    reference_date = Column(Date, nullable=False, index=True)
    range_kind = Column(Enum(RangeKind), nullable=False)
    opening_cash = Column(Numeric(15, 2), nullable=False)
    closing_cash = Column(Numeric(15, 2), nullable=False)
    expenses = Column(JSON, nullable=False, default=list)  # [{id, description, amount}]

    # Resolved window (UTC, no tzinfo)
    label = Column(String(100), nullable=False)
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=False)

    # Figures
    sales_in_range = Column(Numeric(15, 2), nullable=False)
    sales_count = Column(Integer, nullable=False, default=0)
    expenses_total = Column(Numeric(15, 2), nullable=False)
    expected_cash = Column(Numeric(15, 2), nullable=False)
    variance = Column(Numeric(15, 2), nullable=False)
    net_profit = Column(Numeric(15, 2), nullable=False)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
