"""
Esquemas Pydantic para el carrito de venta
"""

from pydantic import BaseModel, Field, model_validator
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime


class AddLineRequest(BaseModel):
    """Agregar producto al carrito"""
    product_id: UUID = Field(..., description="ID del producto")
    quantity: int = Field(1, ge=1, description="Unidades a agregar")


class SetQuantityRequest(BaseModel):
    """Fijar cantidad de una línea; valores menores a 1 se toman como 1"""
    quantity: int = Field(..., description="Nueva cantidad")


class DiscountRequest(BaseModel):
    """Descuento por línea, como monto o como porcentaje (solo uno)"""
    amount: Optional[Decimal] = Field(None, description="Descuento absoluto")
    percent: Optional[Decimal] = Field(None, max_digits=5, decimal_places=2, description="Descuento en porcentaje (0-100)")

    @model_validator(mode='after')
    def validate_one_of(self):
        if (self.amount is None) == (self.percent is None):
            raise ValueError('Indique el descuento como monto o como porcentaje')
        return self


class CartLineOut(BaseModel):
    product_id: UUID
    name: str
    brand: str
    unit_price: Decimal
    quantity: int
    discount: Decimal
    discount_percent: Decimal
    subtotal: Decimal
    total: Decimal

    model_config = {"from_attributes": True}


class CartOut(BaseModel):
    id: UUID = Field(description="ID del carrito")
    created_at: datetime
    lines: List[CartLineOut] = Field(default=[], description="Líneas en orden de captura")
    subtotal: Decimal = Field(description="Σ precio * cantidad")
    discount_total: Decimal = Field(description="Σ descuentos")
    total: Decimal = Field(description="max(0, subtotal - descuentos)")

    model_config = {"from_attributes": True}


class ChangeOut(BaseModel):
    total: Decimal
    tendered: Decimal
    change: Decimal
