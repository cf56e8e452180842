"""
Routers FastAPI para el módulo POS (Point of Sale)

Define los endpoints REST para el libro de tickets:
- Historial con ventana de calendario y búsqueda
- Detalle de ticket
- Cancelación con devolución de stock
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session
from uuid import UUID

from omicron.core.config import settings
from omicron.common.date_ranges import RangeKind
from omicron.database.database import get_db
from omicron.modules.pos.schemas import TicketOut, TicketList, TicketCancelOut
from omicron.modules.pos.services import TicketService


tickets_router = APIRouter(prefix="/tickets", tags=["POS"])


@tickets_router.get("", response_model=TicketList)
def get_tickets(
    reference_date: Optional[date] = Query(None, alias="date", description="Fecha ancla de la ventana"),
    range_kind: Optional[RangeKind] = Query(None, alias="range", description="day, week o month"),
    search: Optional[str] = Query(None, max_length=100, description="Folio, vendedor o producto"),
    limit: int = Query(settings.MAX_PAGE_SIZE, ge=1, le=1000, description="Límite de resultados"),
    offset: int = Query(0, ge=0, description="Offset para paginación"),
    db: Session = Depends(get_db)
):
    """
    Historial de tickets, incluidos los cancelados.

    Query Parameters:
    - **date** + **range**: Ventana de calendario local (deben enviarse juntos)
    - **search**: Búsqueda por folio, vendedor o nombre de producto

    Ordenamiento: Más recientes primero
    """
    if (reference_date is None) != (range_kind is None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Los parámetros date y range deben enviarse juntos"
        )

    result = TicketService(db).list_tickets(
        reference_date=reference_date,
        range_kind=range_kind,
        search=search,
        limit=limit,
        offset=offset
    )
    return TicketList(**result)


@tickets_router.get("/{ticket_id}", response_model=TicketOut)
def get_ticket(
    ticket_id: UUID = Path(..., description="ID del ticket"),
    db: Session = Depends(get_db)
):
    return TicketService(db).get_ticket(ticket_id)


@tickets_router.put("/{ticket_id}/cancel", response_model=TicketCancelOut)
def cancel_ticket(
    ticket_id: UUID = Path(..., description="ID del ticket"),
    db: Session = Depends(get_db)
):
    """
    Cancelar venta y devolver los artículos al stock.

    - 404 si el ticket no existe
    - 409 si ya estaba cancelado (una segunda cancelación es un error, no un no-op)

    Los productos eliminados del catálogo se reportan en **warnings**.
    El ticket nunca se borra: queda en el historial como cancelado.
    """
    ticket, warnings = TicketService(db).cancel_ticket(ticket_id)
    return TicketCancelOut(ticket=ticket, warnings=warnings)
