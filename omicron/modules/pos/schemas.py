"""
Esquemas Pydantic para el módulo POS (Point of Sale)

Define la validación de datos de entrada y salida para:
- Checkout: Confirmación de la venta desde un carrito
- Ticket: Ventas confirmadas y su cancelación
"""

from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from omicron.modules.pos.models import PaymentMethod, TicketStatus


# ===== CHECKOUT =====

class CheckoutRequest(BaseModel):
    """Esquema para cobrar un carrito"""
    payment_method: PaymentMethod = Field(..., description="Método de pago")
    tendered_amount: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2, description="Monto recibido (obligatorio en efectivo)")
    seller: str = Field(..., min_length=1, max_length=100, description="Vendedor que realiza la venta")

    @field_validator('seller')
    @classmethod
    def validate_seller(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError('El vendedor no puede estar vacío')
        return cleaned


# ===== TICKETS =====

class TicketItemOut(BaseModel):
    product_id: Optional[UUID] = Field(None, description="ID del producto vendido")
    product_name: str = Field(description="Nombre del producto al momento de la venta")
    brand: str
    quantity: int
    unit_price: Decimal
    discount: Decimal
    line_total: Decimal

    model_config = {"from_attributes": True}


class TicketOut(BaseModel):
    id: UUID = Field(description="ID único del ticket")
    folio: str = Field(description="Folio visible del ticket")
    seller: str
    payment_method: PaymentMethod
    status: TicketStatus
    total: Decimal
    amount_received: Decimal
    change_due: Decimal
    created_at: datetime = Field(description="Fecha de la venta (UTC)")
    cancelled_at: Optional[datetime] = None
    items: List[TicketItemOut] = Field(default=[])

    model_config = {"from_attributes": True}


class TicketList(BaseModel):
    tickets: List[TicketOut]
    total: int
    limit: int
    offset: int


class TicketCancelOut(BaseModel):
    ticket: TicketOut
    warnings: List[str] = Field(default=[], description="Productos que no se pudieron reingresar al stock")
