"""
Routers package for Reports module
"""

from .cash_cut import router as cash_cut_router
from .analytics import router as analytics_router

__all__ = [
    "cash_cut_router",
    "analytics_router"
]
