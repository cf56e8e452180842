"""
Services package for Reports module
"""

from .cash_cut import CashCutService
from .analytics import AnalyticsService

__all__ = [
    "CashCutService",
    "AnalyticsService"
]
