"""
Servicio del catálogo de productos

Único punto que modifica el stock. `adjust_stock` es atómico por producto:
una sola sentencia UPDATE condicional lee, valida y escribe el nuevo valor, de
modo que dos ventas simultáneas sobre el mismo artículo nunca dejan el stock
en negativo (la base de datos serializa la fila).

No hace commit de los ajustes: quien llama (venta, cancelación, resurtido)
define los límites de la transacción.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import update, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from omicron.core.config import settings
from omicron.common.exceptions import ProductNotFound, StockConflict
from omicron.modules.catalog.models import Product
from omicron.modules.catalog.schemas import ProductCreate, ProductUpdate, StockFilter

logger = logging.getLogger(__name__)


class CatalogService:
    """Servicio para productos y stock"""

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: UUID) -> Product:
        """Obtener producto vigente (no eliminado)"""
        product = self.db.query(Product).filter(
            Product.id == product_id,
            Product.deleted_at.is_(None)
        ).first()

        if not product:
            raise ProductNotFound()

        return product

    def adjust_stock(self, product_id: UUID, delta: int) -> int:
        """
        Sumar `delta` al stock del producto de forma atómica.

        Args:
            product_id: ID del producto
            delta: Negativo para ventas, positivo para cancelaciones y resurtidos

        Returns:
            Nuevo stock del producto

        Raises:
            ProductNotFound: el producto no existe o fue eliminado
            StockConflict: el ajuste dejaría el stock en negativo
        """
        result = self.db.execute(
            update(Product)
            .where(
                Product.id == product_id,
                Product.deleted_at.is_(None),
                Product.stock + delta >= 0
            )
            .values(stock=Product.stock + delta)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            exists = self.db.execute(
                select(Product.id).where(
                    Product.id == product_id,
                    Product.deleted_at.is_(None)
                )
            ).first()
            if not exists:
                raise ProductNotFound()
            raise StockConflict()

        new_stock = self.db.execute(
            select(Product.stock).where(Product.id == product_id)
        ).scalar_one()

        # Mantener la identidad en sesión alineada con la base
        cached = self.db.identity_map.get(self.db.identity_key(Product, product_id))
        if cached is not None:
            self.db.expire(cached, ["stock"])

        logger.debug(f"Stock adjusted for product {product_id}: delta={delta} -> {new_stock}")
        return new_stock

    # ===== ADMINISTRACIÓN DEL CATÁLOGO =====

    def create_product(self, product_data: ProductCreate) -> Product:
        """Crear producto"""
        try:
            product = Product(**product_data.model_dump())

            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)

            logger.info(f"Product created: {product.id} ({product.display_name}) stock={product.stock}")
            return product

        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Ya existe un producto con este código"
            )

    def list_products(self, stock_filter: StockFilter = StockFilter.ALL,
                      limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        """Listar productos vigentes con filtro de stock (lista de resurtido)"""
        query = self.db.query(Product).filter(Product.deleted_at.is_(None))

        if stock_filter == StockFilter.LOW:
            query = query.filter(
                Product.stock > 0,
                Product.stock < settings.LOW_STOCK_THRESHOLD
            )
        elif stock_filter == StockFilter.ZERO:
            query = query.filter(Product.stock == 0)

        query = query.order_by(Product.brand, Product.model)

        total = query.count()
        products = query.offset(offset).limit(limit).all()

        return {
            "products": products,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def update_product(self, product_id: UUID, product_data: ProductUpdate) -> Product:
        """Actualizar datos descriptivos y precio (nunca el stock)"""
        product = self.get_product(product_id)

        try:
            update_data = product_data.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if value is None and field != "scan_code":
                    continue
                setattr(product, field, value)

            self.db.commit()
            self.db.refresh(product)

            return product

        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Ya existe un producto con este código"
            )

    def restock(self, product_id: UUID, quantity: int) -> Product:
        """Ingresar unidades al inventario"""
        new_stock = self.adjust_stock(product_id, quantity)
        self.db.commit()

        logger.info(f"Product {product_id} restocked with {quantity} units -> {new_stock}")
        return self.get_product(product_id)

    def delete_product(self, product_id: UUID) -> bool:
        """Eliminar producto (soft delete); los tickets conservan sus snapshots"""
        product = self.get_product(product_id)

        product.deleted_at = datetime.now(timezone.utc)
        # Libera el código para reutilizarlo en otro artículo
        product.scan_code = None

        self.db.commit()

        logger.info(f"Product deleted: {product_id}")
        return True
