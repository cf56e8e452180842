from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from uuid import UUID

from omicron.core.config import settings
from omicron.database.database import get_db
from omicron.modules.catalog.schemas import (
    ProductCreate, ProductUpdate, ProductOut, ProductList, RestockRequest, StockFilter
)
from omicron.modules.catalog.service import CatalogService


products_router = APIRouter(prefix="/products", tags=["Products"])


@products_router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db)
):
    return CatalogService(db).create_product(product_data)


@products_router.get("", response_model=ProductList)
def get_products(
    stock: StockFilter = Query(StockFilter.ALL, description="all, low (por agotarse) o zero (agotados)"),
    limit: int = Query(settings.MAX_PAGE_SIZE, ge=1, le=1000, description="Límite de resultados"),
    offset: int = Query(0, ge=0, description="Offset para paginación"),
    db: Session = Depends(get_db)
):
    """
    Listar productos vigentes.

    El filtro **stock=low** arma la lista de resurtido: productos con
    existencias pero por debajo del umbral configurado.
    """
    result = CatalogService(db).list_products(stock_filter=stock, limit=limit, offset=offset)
    return ProductList(**result)


@products_router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: UUID = Path(..., description="ID del producto"),
    db: Session = Depends(get_db)
):
    return CatalogService(db).get_product(product_id)


@products_router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_data: ProductUpdate,
    product_id: UUID = Path(..., description="ID del producto"),
    db: Session = Depends(get_db)
):
    """Actualizar datos descriptivos y precio; el stock solo cambia por resurtido o venta."""
    return CatalogService(db).update_product(product_id, product_data)


@products_router.post("/{product_id}/restock", response_model=ProductOut)
def restock_product(
    restock_data: RestockRequest,
    product_id: UUID = Path(..., description="ID del producto"),
    db: Session = Depends(get_db)
):
    return CatalogService(db).restock(product_id, restock_data.quantity)


@products_router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: UUID = Path(..., description="ID del producto"),
    db: Session = Depends(get_db)
):
    CatalogService(db).delete_product(product_id)
