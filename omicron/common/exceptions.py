"""
Errores de negocio del punto de venta

Cada error es un HTTPException con un código estable (`code`) y un mensaje
corto para el operador de caja. Los servicios los lanzan directamente y los
routers los dejan propagar; el código viaja en el header X-Error-Code.

Ningún error es fatal para el proceso: todos son recuperables por el cliente.
"""

from typing import Optional

from fastapi import HTTPException, status


class POSError(HTTPException):
    """Error base del punto de venta"""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "pos_error"
    message: str = "Operación no permitida"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.message,
            headers={"X-Error-Code": self.code}
        )


# ===== NOT FOUND =====

class NotFound(POSError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    message = "Recurso no encontrado"


class ProductNotFound(NotFound):
    message = "Producto no encontrado"


class TicketNotFound(NotFound):
    message = "Ticket no encontrado"


class CartNotFound(NotFound):
    message = "Carrito no encontrado"


class LineNotFound(NotFound):
    message = "El producto no está en el carrito"


# ===== STOCK =====

class OutOfStock(POSError):
    status_code = status.HTTP_409_CONFLICT
    code = "out_of_stock"
    message = "No hay stock disponible"


class StockExceeded(POSError):
    status_code = status.HTTP_409_CONFLICT
    code = "stock_exceeded"
    message = "Stock insuficiente"


class StockConflict(POSError):
    """Se perdió la carrera contra otra venta al confirmar"""
    status_code = status.HTTP_409_CONFLICT
    code = "stock_conflict"
    message = "Stock insuficiente: otra venta tomó las unidades"


# ===== PAGOS / TICKETS / CARRITO =====

class InsufficientPayment(POSError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "insufficient_payment"
    message = "El monto recibido es menor al total"


class AlreadyCancelled(POSError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_cancelled"
    message = "El ticket ya está cancelado"


class InvalidDiscount(POSError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "invalid_discount"
    message = "El descuento excede el subtotal de la línea"


class EmptyCart(POSError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "empty_cart"
    message = "El carrito está vacío"
