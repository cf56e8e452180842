"""
Carrito de venta

El carrito es un objeto explícito con un único dueño (la sesión de caja que
lo creó). Vive en memoria del proceso dentro de CartRegistry y se destruye al
confirmar la venta o al abandonarlo.

Cada línea captura el precio al momento de agregarse, así que un cambio de
precio en el catálogo no altera un carrito abierto. El descuento se guarda
siempre como monto absoluto; el porcentaje solo es una forma de capturarlo y
mostrarlo.

Las operaciones que fallan dejan el carrito exactamente como estaba.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from omicron.common.date_ranges import utcnow
from omicron.common.exceptions import (
    CartNotFound, LineNotFound, OutOfStock, StockExceeded, InvalidDiscount
)
from omicron.modules.catalog.service import CatalogService
from omicron.modules.cart import pricing


@dataclass
class CartLine:
    """Línea del carrito con snapshot de precio"""
    product_id: UUID
    name: str
    brand: str
    unit_price: Decimal
    quantity: int
    discount: Decimal = pricing.ZERO

    @property
    def subtotal(self) -> Decimal:
        return pricing.line_subtotal(self.unit_price, self.quantity)

    @property
    def total(self) -> Decimal:
        return pricing.line_total(self.unit_price, self.quantity, self.discount)

    @property
    def discount_percent(self) -> Decimal:
        return pricing.discount_percent(self.unit_price, self.quantity, self.discount)


@dataclass
class Cart:
    """Colección ordenada de líneas indexada por producto"""
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    _lines: Dict[UUID, CartLine] = field(default_factory=dict, repr=False)

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_id: UUID) -> CartLine:
        line = self._lines.get(product_id)
        if line is None:
            raise LineNotFound()
        return line

    def find_line(self, product_id: UUID) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def put_line(self, line: CartLine) -> None:
        self._lines[line.product_id] = line

    def drop_line(self, product_id: UUID) -> None:
        self.get_line(product_id)
        del self._lines[product_id]

    @property
    def subtotal(self) -> Decimal:
        return pricing.calculate_totals(self.lines)["subtotal"]

    @property
    def discount_total(self) -> Decimal:
        return pricing.calculate_totals(self.lines)["discount_total"]

    @property
    def total(self) -> Decimal:
        return pricing.calculate_totals(self.lines)["total"]


class CartService:
    """Operaciones sobre el carrito; solo consulta el catálogo, nunca mueve stock"""

    def __init__(self, db: Session):
        self.catalog = CatalogService(db)

    def add_line(self, cart: Cart, product_id: UUID, quantity: int = 1) -> Cart:
        """
        Agregar un producto o sumar cantidad a su línea existente.

        Raises:
            OutOfStock: el producto no tiene existencias
            StockExceeded: la cantidad total supera el stock actual
        """
        product = self.catalog.get_product(product_id)

        if product.stock <= 0:
            raise OutOfStock()

        if quantity < 1:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="La cantidad debe ser mayor a cero"
            )

        existing = cart.find_line(product_id)
        new_quantity = (existing.quantity if existing else 0) + quantity

        if new_quantity > product.stock:
            raise StockExceeded("Stock máximo alcanzado en carrito")

        if existing:
            existing.quantity = new_quantity
        else:
            cart.put_line(CartLine(
                product_id=product.id,
                name=product.model,
                brand=product.brand,
                unit_price=pricing.to_money(product.price),
                quantity=new_quantity
            ))

        return cart

    def set_quantity(self, cart: Cart, product_id: UUID, quantity: int) -> Cart:
        """Fijar cantidad (mínimo 1) validando contra el stock actual"""
        line = cart.get_line(product_id)
        new_quantity = max(1, quantity)

        product = self.catalog.get_product(product_id)
        if new_quantity > product.stock:
            raise StockExceeded()

        if line.discount > pricing.line_subtotal(line.unit_price, new_quantity):
            raise InvalidDiscount("El descuento actual excede el nuevo subtotal de la línea")

        line.quantity = new_quantity
        return cart

    def set_discount_amount(self, cart: Cart, product_id: UUID, amount: Decimal) -> Cart:
        """Descuento absoluto; se rechaza (no se recorta) si excede el subtotal"""
        line = cart.get_line(product_id)
        amount = Decimal(str(amount))

        # Validar antes de redondear: montos enormes no caben en centavos
        if amount < 0:
            raise InvalidDiscount("El descuento no puede ser negativo")
        if amount > line.subtotal:
            raise InvalidDiscount()

        line.discount = pricing.to_money(amount)
        return cart

    def set_discount_percent(self, cart: Cart, product_id: UUID, percent: Decimal) -> Cart:
        """Convierte el porcentaje a monto absoluto y lo guarda"""
        line = cart.get_line(product_id)
        percent = Decimal(str(percent))

        if percent < 0 or percent > 100:
            raise InvalidDiscount("El porcentaje debe estar entre 0 y 100")

        line.discount = pricing.percent_to_discount(line.unit_price, line.quantity, percent)
        return cart

    def remove_line(self, cart: Cart, product_id: UUID) -> Cart:
        cart.drop_line(product_id)
        return cart

    @staticmethod
    def totals(cart: Cart) -> Dict[str, Decimal]:
        return pricing.calculate_totals(cart.lines)

    @staticmethod
    def change_due(cart: Cart, tendered: Decimal) -> Decimal:
        return pricing.change_due(cart.total, tendered)


class CartRegistry:
    """Carritos abiertos del proceso; el lock solo protege el diccionario"""

    def __init__(self):
        self._carts: Dict[UUID, Cart] = {}
        self._lock = threading.Lock()

    def create(self) -> Cart:
        cart = Cart()
        with self._lock:
            self._carts[cart.id] = cart
        return cart

    def get(self, cart_id: UUID) -> Cart:
        with self._lock:
            cart = self._carts.get(cart_id)
        if cart is None:
            raise CartNotFound()
        return cart

    def discard(self, cart_id: UUID) -> None:
        with self._lock:
            if self._carts.pop(cart_id, None) is None:
                raise CartNotFound()

    def take(self, cart_id: UUID) -> Cart:
        """Retirar el carrito para cobrarlo; un segundo cobro simultáneo ya no lo encuentra"""
        with self._lock:
            cart = self._carts.pop(cart_id, None)
        if cart is None:
            raise CartNotFound()
        return cart

    def restore(self, cart: Cart) -> None:
        """Devolver un carrito cuyo cobro falló"""
        with self._lock:
            self._carts[cart.id] = cart

    def __len__(self) -> int:
        with self._lock:
            return len(self._carts)


cart_registry = CartRegistry()


def get_cart_registry() -> CartRegistry:
    """Dependencia FastAPI (sobrescribible en tests)"""
    return cart_registry
