"""
Routers FastAPI para el carrito de venta

Define los endpoints REST para:
- Ciclo de vida del carrito (crear, consultar, abandonar)
- Edición de líneas (agregar, cantidad, descuento, quitar)
- Cobro del carrito (checkout) → Ticket

Cada respuesta de edición devuelve el carrito con los totales recalculados.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from uuid import UUID

from omicron.database.database import get_db
from omicron.modules.cart.schemas import (
    AddLineRequest, SetQuantityRequest, DiscountRequest, CartOut, ChangeOut
)
from omicron.modules.cart.service import CartService, CartRegistry, get_cart_registry
from omicron.modules.pos.schemas import CheckoutRequest, TicketOut
from omicron.modules.pos.services import CheckoutService


carts_router = APIRouter(prefix="/carts", tags=["Cart"])


@carts_router.post("", response_model=CartOut, status_code=status.HTTP_201_CREATED)
def create_cart(registry: CartRegistry = Depends(get_cart_registry)):
    """Abrir un carrito nuevo para la sesión de caja."""
    return registry.create()


@carts_router.get("/{cart_id}", response_model=CartOut)
def get_cart(
    cart_id: UUID = Path(..., description="ID del carrito"),
    registry: CartRegistry = Depends(get_cart_registry)
):
    return registry.get(cart_id)


@carts_router.delete("/{cart_id}", status_code=status.HTTP_204_NO_CONTENT)
def abandon_cart(
    cart_id: UUID = Path(..., description="ID del carrito"),
    registry: CartRegistry = Depends(get_cart_registry)
):
    """Abandonar el carrito; no afecta el inventario."""
    registry.discard(cart_id)


@carts_router.post("/{cart_id}/lines", response_model=CartOut)
def add_to_cart(
    line_data: AddLineRequest,
    cart_id: UUID = Path(..., description="ID del carrito"),
    registry: CartRegistry = Depends(get_cart_registry),
    db: Session = Depends(get_db)
):
    """
    Agregar producto al carrito.

    - **product_id**: Producto a agregar
    - **quantity**: Unidades (por defecto 1)

    Si el producto ya está en el carrito se suma la cantidad.
    Errores: 409 si no hay stock o si se supera el stock disponible.
    """
    cart = registry.get(cart_id)
    return CartService(db).add_line(cart, line_data.product_id, line_data.quantity)


@carts_router.put("/{cart_id}/lines/{product_id}", response_model=CartOut)
def set_line_quantity(
    quantity_data: SetQuantityRequest,
    cart_id: UUID = Path(..., description="ID del carrito"),
    product_id: UUID = Path(..., description="ID del producto"),
    registry: CartRegistry = Depends(get_cart_registry),
    db: Session = Depends(get_db)
):
    cart = registry.get(cart_id)
    return CartService(db).set_quantity(cart, product_id, quantity_data.quantity)


@carts_router.put("/{cart_id}/lines/{product_id}/discount", response_model=CartOut)
def set_line_discount(
    discount_data: DiscountRequest,
    cart_id: UUID = Path(..., description="ID del carrito"),
    product_id: UUID = Path(..., description="ID del producto"),
    registry: CartRegistry = Depends(get_cart_registry),
    db: Session = Depends(get_db)
):
    """
    Aplicar descuento a una línea.

    - **amount**: Descuento absoluto, o
    - **percent**: Porcentaje del subtotal de la línea (se guarda como monto)

    Un descuento mayor al subtotal de la línea se rechaza con 422.
    """
    cart = registry.get(cart_id)
    service = CartService(db)
    if discount_data.amount is not None:
        return service.set_discount_amount(cart, product_id, discount_data.amount)
    return service.set_discount_percent(cart, product_id, discount_data.percent)


@carts_router.delete("/{cart_id}/lines/{product_id}", response_model=CartOut)
def remove_line(
    cart_id: UUID = Path(..., description="ID del carrito"),
    product_id: UUID = Path(..., description="ID del producto"),
    registry: CartRegistry = Depends(get_cart_registry),
    db: Session = Depends(get_db)
):
    cart = registry.get(cart_id)
    return CartService(db).remove_line(cart, product_id)


@carts_router.get("/{cart_id}/change", response_model=ChangeOut)
def preview_change(
    cart_id: UUID = Path(..., description="ID del carrito"),
    tendered: Decimal = Query(..., ge=0, max_digits=15, decimal_places=2, description="Monto recibido"),
    registry: CartRegistry = Depends(get_cart_registry)
):
    """Calcular el cambio a entregar sin cobrar."""
    cart = registry.get(cart_id)
    return ChangeOut(
        total=cart.total,
        tendered=tendered,
        change=CartService.change_due(cart, tendered)
    )


@carts_router.post("/{cart_id}/checkout", response_model=TicketOut, status_code=status.HTTP_201_CREATED)
def checkout_cart(
    checkout_data: CheckoutRequest,
    cart_id: UUID = Path(..., description="ID del carrito"),
    registry: CartRegistry = Depends(get_cart_registry),
    db: Session = Depends(get_db)
):
    """
    Cobrar el carrito y generar el ticket.

    - **payment_method**: cash, card o transfer
    - **tendered_amount**: Monto recibido (obligatorio en efectivo)
    - **seller**: Vendedor que registra la venta

    Validaciones:
    - En efectivo el monto recibido debe cubrir el total (400)
    - Todas las líneas deben tener stock al confirmar (409, sin cambios en inventario)

    El carrito se retira del registro mientras se cobra: un doble envío recibe 404.
    Si el cobro falla el carrito vuelve intacto; al confirmarse se destruye.
    """
    cart = registry.take(cart_id)
    try:
        return CheckoutService(db).checkout(
            cart=cart,
            payment_method=checkout_data.payment_method,
            tendered_amount=checkout_data.tendered_amount,
            seller=checkout_data.seller
        )
    except Exception:
        # El cobro no se confirmó: el carrito sigue disponible
        registry.restore(cart)
        raise
