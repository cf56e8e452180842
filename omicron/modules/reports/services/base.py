"""
Base service class for Reports module

Reports are read-only consumers of the ticket ledger. Every aggregate works
on ACTIVE tickets only: a cancelled sale never counts as income.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from omicron.common.date_ranges import ResolvedRange
from omicron.modules.cart.pricing import to_money
from omicron.modules.pos.models import Ticket, TicketStatus


class BaseReportService:
    """Base service class for all report services"""

    def __init__(self, db: Session):
        self.db = db

    def _get_active_ticket_query(self):
        """Get base query for tickets that still count as sales"""
        return self.db.query(Ticket).filter(Ticket.status == TicketStatus.ACTIVE)

    def _filter_window(self, query, start_utc: datetime, end_utc: datetime):
        return query.filter(
            Ticket.created_at >= start_utc,
            Ticket.created_at <= end_utc
        )

    def _sum_window(self, window: ResolvedRange) -> Tuple[Decimal, int]:
        """Sum and count of active tickets inside a calendar window"""
        total, count = self._filter_window(
            self.db.query(
                func.coalesce(func.sum(Ticket.total), 0),
                func.count(Ticket.id)
            ).filter(Ticket.status == TicketStatus.ACTIVE),
            window.start_utc,
            window.end_utc
        ).one()

        return to_money(total or 0), int(count or 0)

    def _tickets_in_order(self, start_utc: datetime, end_utc: datetime) -> List[Ticket]:
        """Active tickets in ledger order (created_at, folio)"""
        return self._filter_window(
            self._get_active_ticket_query(), start_utc, end_utc
        ).order_by(Ticket.created_at, Ticket.folio).all()
