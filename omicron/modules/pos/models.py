"""
Modelos SQLAlchemy para el módulo POS (Point of Sale)

Este módulo maneja el libro de ventas:
- Ticket: Venta confirmada, inmutable salvo la cancelación
- TicketItem: Líneas del ticket con snapshot de nombre, precio y descuento
- FolioSequence: Consecutivo de folios de ticket

Integración con inventario:
- Venta confirmada → descuenta stock
- Ticket cancelado → devuelve stock (el ticket nunca se borra)
"""

from omicron.database.database import Base
from omicron.common.date_ranges import utcnow
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Enum, Uuid
from sqlalchemy.orm import relationship
from uuid import uuid4
import enum


# ===== ENUMS =====

class TicketStatus(str, enum.Enum):
    """Estados del ticket; CANCELLED es terminal"""
    ACTIVE = "active"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"           # Efectivo
    CARD = "card"           # Tarjeta
    TRANSFER = "transfer"   # Transferencia


# ===== MODELOS =====

class Ticket(Base):
    """
    Venta confirmada

    total == Σ (cantidad * precio - descuento) de sus líneas. El único cambio
    permitido después de crearse es ACTIVE → CANCELLED.
    """
    __tablename__ = "tickets"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    folio = Column(String(30), nullable=False, unique=True, index=True)
    seller = Column(String(100), nullable=False, index=True)  # Etiqueta opaca del proveedor de identidad
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    status = Column(Enum(TicketStatus), nullable=False, default=TicketStatus.ACTIVE, index=True)

    # Montos
    total = Column(Numeric(15, 2), nullable=False)
    amount_received = Column(Numeric(15, 2), nullable=False)
    change_due = Column(Numeric(15, 2), nullable=False, default=0)

    # Fechas en UTC sin tzinfo
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    cancelled_at = Column(DateTime, nullable=True)

    # Relationships
    items = relationship(
        "TicketItem",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="TicketItem.position"
    )

    @property
    def is_active(self) -> bool:
        return self.status == TicketStatus.ACTIVE


class TicketItem(Base):
    """Línea de ticket; copia los datos del carrito, no referencias vivas"""
    __tablename__ = "ticket_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    ticket_id = Column(Uuid(as_uuid=True), ForeignKey("tickets.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    # Nulo solo si el producto ya no se puede referenciar
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id"), nullable=True, index=True)
    product_name = Column(String(150), nullable=False)
    brand = Column(String(100), nullable=False, default="")
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    discount = Column(Numeric(15, 2), nullable=False, default=0)
    line_total = Column(Numeric(15, 2), nullable=False)

    ticket = relationship("Ticket", back_populates="items")


class FolioSequence(Base):
    """Consecutivo de folios por prefijo"""
    __tablename__ = "folio_sequences"

    prefix = Column(String(10), primary_key=True)
    current_number = Column(Integer, nullable=False, default=0)
