"""
Reports Module

Cortes de caja y estadísticas de venta sobre el libro de tickets.

Architecture Pattern: Service Layer
- routers/ -> Endpoints FastAPI
- services/ -> Agregaciones sobre tickets activos
- schemas/ -> Modelos Pydantic de entrada y salida
- models.py -> Cortes de caja guardados (cash_cuts)
"""

from .routers import cash_cut_router, analytics_router

__all__ = [
    "cash_cut_router",
    "analytics_router"
]
