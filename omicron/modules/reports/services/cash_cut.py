"""
Cash Cut Reports Service

Reconciles the cash drawer for a calendar window:

    expected = opening + sales - expenses
    variance = closing - expected      (positive surplus, negative shortfall)
    net_profit = sales - expenses
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from omicron.common.date_ranges import RangeKind, resolve_range
from omicron.modules.cart.pricing import ZERO, to_money
from omicron.modules.reports.models import CashCut
from .base import BaseReportService

logger = logging.getLogger(__name__)


class CashCutService(BaseReportService):
    """Service for computing and archiving cash cuts"""

    def compute_cash_cut(
        self,
        reference_date: date,
        range_kind: RangeKind,
        opening_cash: Decimal,
        closing_cash: Decimal,
        expenses: Optional[List[Any]] = None
    ) -> Dict[str, Any]:
        """
        Compute a cash cut report.

        `expenses` items may be schemas or dicts with an `amount`. Only active
        tickets created inside the resolved window count as sales.
        """
        window = resolve_range(reference_date, range_kind)
        sales, sales_count = self._sum_window(window)

        expenses_total = sum(
            (to_money(_expense_field(expense, "amount")) for expense in (expenses or [])),
            ZERO
        )
        opening = to_money(opening_cash)
        closing = to_money(closing_cash)
        expected = to_money(opening + sales - expenses_total)

        return {
            "label": window.label,
            "range_kind": window.kind,
            "start": window.start,
            "end": window.end,
            "opening_cash": opening,
            "sales_in_range": sales,
            "sales_count": sales_count,
            "expenses_total": expenses_total,
            "expected_cash": expected,
            "closing_cash": closing,
            "variance": to_money(closing - expected),
            "net_profit": to_money(sales - expenses_total)
        }

    def save_cash_cut(
        self,
        reference_date: date,
        range_kind: RangeKind,
        opening_cash: Decimal,
        closing_cash: Decimal,
        expenses: Optional[List[Any]] = None
    ) -> CashCut:
        """Compute a cash cut and archive it with its resolved window"""
        report = self.compute_cash_cut(
            reference_date, range_kind, opening_cash, closing_cash, expenses
        )
        window = resolve_range(reference_date, range_kind)

        try:
            cash_cut = CashCut(
                reference_date=reference_date,
                range_kind=window.kind,
                opening_cash=report["opening_cash"],
                closing_cash=report["closing_cash"],
                expenses=[
                    {
                        "id": _expense_field(expense, "id"),
                        "description": _expense_field(expense, "description"),
                        "amount": str(to_money(_expense_field(expense, "amount")))
                    }
                    for expense in (expenses or [])
                ],
                label=window.label,
                start_at=window.start_utc,
                end_at=window.end_utc,
                sales_in_range=report["sales_in_range"],
                sales_count=report["sales_count"],
                expenses_total=report["expenses_total"],
                expected_cash=report["expected_cash"],
                variance=report["variance"],
                net_profit=report["net_profit"]
            )
            self.db.add(cash_cut)
            self.db.commit()
            self.db.refresh(cash_cut)

            logger.info(
                f"Cash cut saved: {window.label} sales={report['sales_in_range']} "
                f"variance={report['variance']}"
            )
            return cash_cut

        except Exception as e:
            self.db.rollback()
            logger.error(f"Error saving cash cut for {reference_date}: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error guardando corte de caja: {str(e)}"
            )

    def list_cash_cuts(self, limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        """Saved cash cuts, newest first"""
        query = self.db.query(CashCut).order_by(CashCut.created_at.desc())
        total = query.count()
        cash_cuts = query.offset(offset).limit(limit).all()

        return {
            "cash_cuts": cash_cuts,
            "total": total,
            "limit": limit,
            "offset": offset
        }


def _expense_field(expense: Any, name: str):
    if isinstance(expense, dict):
        return expense.get(name)
    return getattr(expense, name, None)
