"""
Cálculos de precios del carrito

Funciones puras: no consultan la base de datos ni modifican el carrito.
Todos los importes se redondean a centavos con ROUND_HALF_UP (redondeo
comercial).
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_money(value) -> Decimal:
    """Normalizar cualquier número a Decimal con dos decimales"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def line_subtotal(unit_price: Decimal, quantity: int) -> Decimal:
    return to_money(Decimal(unit_price) * quantity)


def line_total(unit_price: Decimal, quantity: int, discount: Decimal) -> Decimal:
    """Total de la línea; el descuento ya fue validado contra el subtotal"""
    return to_money(line_subtotal(unit_price, quantity) - Decimal(discount))


def percent_to_discount(unit_price: Decimal, quantity: int, percent: Decimal) -> Decimal:
    """
    Convertir un porcentaje en el descuento absoluto que se almacena

    Args:
        unit_price: Precio unitario capturado en la línea
        quantity: Cantidad de la línea
        percent: Porcentaje entre 0 y 100

    Returns:
        round(precio * cantidad * porcentaje / 100) en centavos
    """
    return to_money(line_subtotal(unit_price, quantity) * Decimal(percent) / HUNDRED)


def discount_percent(unit_price: Decimal, quantity: int, discount: Decimal) -> Decimal:
    """Porcentaje equivalente al descuento almacenado (solo para mostrar)"""
    subtotal = line_subtotal(unit_price, quantity)
    if subtotal == 0:
        return ZERO
    return to_money(Decimal(discount) / subtotal * HUNDRED)


def calculate_totals(lines: Iterable) -> Dict[str, Decimal]:
    """
    Totales del carrito

    Args:
        lines: Objetos con `unit_price`, `quantity` y `discount`

    Returns:
        {"subtotal", "discount_total", "total"} con total = max(0, subtotal - descuentos)
    """
    subtotal = ZERO
    discount_total = ZERO

    for line in lines:
        subtotal += line_subtotal(line.unit_price, line.quantity)
        discount_total += to_money(line.discount)

    return {
        "subtotal": subtotal,
        "discount_total": discount_total,
        "total": max(ZERO, subtotal - discount_total)
    }


def change_due(total: Decimal, tendered: Decimal) -> Decimal:
    """Cambio a entregar: max(0, recibido - total)"""
    return max(ZERO, to_money(tendered) - to_money(total))
