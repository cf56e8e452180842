from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from enum import Enum


class StockFilter(str, Enum):
    ALL = "all"
    LOW = "low"    # 0 < stock < LOW_STOCK_THRESHOLD
    ZERO = "zero"  # Agotados


class ProductBase(BaseModel):
    brand: str = Field(..., min_length=1, max_length=100, description="Marca")
    model: str = Field(..., min_length=1, max_length=150, description="Modelo / nombre del artículo")
    type: str = Field("", max_length=100, description="Tipo de artículo")
    color: str = Field("", max_length=50, description="Color")
    category: str = Field("", max_length=100, description="Categoría")
    price: Decimal = Field(..., ge=0, max_digits=15, decimal_places=2, description="Precio unitario")
    scan_code: Optional[str] = Field(None, max_length=100, description="Código QR o de barras")

    @field_validator("brand", "model")
    @classmethod
    def strip_required(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("El campo no puede estar vacío")
        return cleaned


class ProductCreate(ProductBase):
    stock: int = Field(0, ge=0, description="Stock inicial")


class ProductUpdate(BaseModel):
    """El stock no se edita aquí; usar el endpoint de resurtido"""
    brand: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=150)
    type: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=50)
    category: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
    scan_code: Optional[str] = Field(None, max_length=100)


class RestockRequest(BaseModel):
    quantity: int = Field(..., gt=0, description="Unidades que ingresan al inventario")


class ProductOut(ProductBase):
    id: UUID
    stock: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProductList(BaseModel):
    products: List[ProductOut]
    total: int
    limit: int
    offset: int
