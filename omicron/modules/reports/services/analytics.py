"""
Sales Analytics Service

Rolling totals, seller ranking and daily trend over active tickets, all
anchored to a single "now" so one refresh is internally consistent.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from omicron.core.config import settings
from omicron.common.date_ranges import (
    RangeKind, WEEKDAY_SHORT, end_of_day, last_days, local_day, local_midnight,
    resolve_range, to_utc_naive, utcnow
)
from omicron.modules.cart.pricing import ZERO, to_money
from .base import BaseReportService


class AnalyticsService(BaseReportService):
    """Service for sales analytics"""

    def __init__(self, db, now: Optional[datetime] = None):
        super().__init__(db)
        # UTC sin tzinfo o datetime con zona
        self.now = now or utcnow()

    def totals_by_window(self) -> Dict:
        """Today, this week and this month totals plus today's ticket count"""
        today, today_count = self._sum_window(resolve_range(self.now, RangeKind.DAY))
        week, _ = self._sum_window(resolve_range(self.now, RangeKind.WEEK))
        month, _ = self._sum_window(resolve_range(self.now, RangeKind.MONTH))

        return {
            "today": today,
            "week": week,
            "month": month,
            "today_count": today_count
        }

    def seller_ranking(self, window: RangeKind = RangeKind.DAY) -> List[Dict]:
        """
        Group active tickets in the window by seller, highest total first.

        Sellers with equal totals keep the order in which they first appear
        in the ledger (created_at, folio); sorted() is stable.
        """
        resolved = resolve_range(self.now, window)
        tickets = self._tickets_in_order(resolved.start_utc, resolved.end_utc)

        by_seller: Dict[str, Dict] = {}
        for ticket in tickets:
            entry = by_seller.setdefault(
                ticket.seller, {"seller": ticket.seller, "total": ZERO, "count": 0}
            )
            entry["total"] = to_money(entry["total"] + Decimal(ticket.total))
            entry["count"] += 1

        return sorted(by_seller.values(), key=lambda e: e["total"], reverse=True)

    def daily_trend(self, days: Optional[int] = None) -> List[Dict]:
        """Per-day totals for the last `days` local days, oldest first"""
        days = days or settings.TREND_DAYS
        series_days = last_days(days, self.now)

        start_utc = to_utc_naive(local_midnight(series_days[0]))
        end_utc = to_utc_naive(end_of_day(series_days[-1]))

        totals = {day: ZERO for day in series_days}
        for ticket in self._tickets_in_order(start_utc, end_utc):
            day = local_day(ticket.created_at)
            if day in totals:
                totals[day] = to_money(totals[day] + Decimal(ticket.total))

        peak = max(max(totals.values()), Decimal("1"))

        return [
            {
                "day": day,
                "label": WEEKDAY_SHORT[day.weekday()],
                "total": totals[day],
                "height": float(totals[day] / peak)
            }
            for day in series_days
        ]

    def get_analytics(self, window: RangeKind = RangeKind.DAY, days: Optional[int] = None) -> Dict:
        resolved = resolve_range(self.now, window)
        return {
            "window": resolved.kind,
            "window_label": resolved.label,
            "totals": self.totals_by_window(),
            "ranking": self.seller_ranking(resolved.kind),
            "trend": self.daily_trend(days)
        }
