"""
Servicios de negocio para el módulo POS (Point of Sale)

Implementa:
- CheckoutService: Convierte un carrito en un ticket descontando stock
- TicketService: Libro de tickets, historial y cancelación con devolución de stock

La venta es todo o nada: los ajustes de stock de todas las líneas, el folio y
el ticket viajan en una sola transacción. Si una línea pierde la carrera por el
stock se hace rollback y ninguna línea queda descontada.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Any
from uuid import UUID
from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import update, select, or_, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from omicron.core.config import settings
from omicron.common.date_ranges import RangeKind, resolve_range, utcnow
from omicron.common.exceptions import (
    EmptyCart, InsufficientPayment, StockConflict, ProductNotFound,
    TicketNotFound, AlreadyCancelled
)
from omicron.modules.cart import pricing
from omicron.modules.cart.service import Cart
from omicron.modules.catalog.service import CatalogService
from omicron.modules.pos.models import (
    Ticket, TicketItem, FolioSequence, TicketStatus, PaymentMethod
)

logger = logging.getLogger(__name__)


class CheckoutService:
    """Servicio para confirmar ventas"""

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogService(db)

    def checkout(self, cart: Cart, payment_method: PaymentMethod,
                 tendered_amount: Optional[Decimal], seller: str) -> Ticket:
        """
        Cobrar un carrito y registrar el ticket.

        Args:
            cart: Carrito a cobrar (no se modifica; el llamador lo descarta)
            payment_method: Efectivo, tarjeta o transferencia
            tendered_amount: Monto recibido; obligatorio en efectivo
            seller: Etiqueta del vendedor

        Returns:
            Ticket ACTIVE con folio nuevo

        Raises:
            EmptyCart: el carrito no tiene líneas
            InsufficientPayment: en efectivo, lo recibido no cubre el total
            StockConflict: alguna línea ya no tiene stock suficiente
        """
        if cart.is_empty:
            raise EmptyCart()

        lines = cart.lines
        total = sum((line.total for line in lines), pricing.ZERO)

        # Validar pago antes de tocar inventario
        payment_method = PaymentMethod(payment_method)
        if payment_method == PaymentMethod.CASH:
            tendered = pricing.to_money(tendered_amount) if tendered_amount is not None else pricing.ZERO
            if tendered < total:
                raise InsufficientPayment()
            received = tendered
            change = pricing.change_due(total, tendered)
        else:
            received = total
            change = pricing.ZERO

        self._ensure_folio_sequence()

        try:
            # Orden fijo por producto para que dos ventas no se bloqueen mutuamente
            for line in sorted(lines, key=lambda l: str(l.product_id)):
                try:
                    self.catalog.adjust_stock(line.product_id, -line.quantity)
                except (StockConflict, ProductNotFound):
                    logger.warning(
                        f"Stock conflict on checkout for product {line.product_id} "
                        f"(requested {line.quantity}); rolling back"
                    )
                    raise StockConflict(f"Stock insuficiente para '{line.name}'")

            folio = self._next_folio()

            ticket = Ticket(
                folio=folio,
                seller=seller,
                payment_method=payment_method,
                status=TicketStatus.ACTIVE,
                total=total,
                amount_received=received,
                change_due=change,
                created_at=utcnow()
            )

            for position, line in enumerate(lines):
                ticket.items.append(TicketItem(
                    position=position,
                    product_id=line.product_id,
                    product_name=line.name,
                    brand=line.brand,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    discount=line.discount,
                    line_total=line.total
                ))

            self.db.add(ticket)
            self.db.commit()
            self.db.refresh(ticket)

            logger.info(
                f"Ticket {ticket.folio} created: total={ticket.total} "
                f"method={payment_method.value} seller={seller} lines={len(lines)}"
            )
            return ticket

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error on checkout of cart {cart.id}: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al procesar la venta: {str(e)}"
            )

    def _ensure_folio_sequence(self) -> None:
        """Crear el consecutivo la primera vez, fuera de la transacción de venta"""
        prefix = settings.FOLIO_PREFIX
        exists = self.db.execute(
            select(FolioSequence.prefix).where(FolioSequence.prefix == prefix)
        ).first()
        if exists:
            return

        try:
            self.db.add(FolioSequence(prefix=prefix, current_number=0))
            self.db.commit()
        except IntegrityError:
            # Otra caja lo creó al mismo tiempo
            self.db.rollback()

    def _next_folio(self) -> str:
        """Incrementar el consecutivo dentro de la transacción actual"""
        prefix = settings.FOLIO_PREFIX
        self.db.execute(
            update(FolioSequence)
            .where(FolioSequence.prefix == prefix)
            .values(current_number=FolioSequence.current_number + 1)
            .execution_options(synchronize_session=False)
        )
        number = self.db.execute(
            select(FolioSequence.current_number).where(FolioSequence.prefix == prefix)
        ).scalar_one()

        return f"{prefix}{number:06d}"


class TicketService:
    """Servicio para el libro de tickets"""

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogService(db)

    def get_ticket(self, ticket_id: UUID) -> Ticket:
        """Obtener ticket con sus líneas"""
        ticket = self.db.query(Ticket).options(
            selectinload(Ticket.items)
        ).filter(Ticket.id == ticket_id).first()

        if not ticket:
            raise TicketNotFound()

        return ticket

    def list_tickets(self, reference_date: Optional[date] = None,
                     range_kind: Optional[RangeKind] = None,
                     search: Optional[str] = None,
                     limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        """
        Historial de tickets (activos y cancelados), más recientes primero.

        Args:
            reference_date: Fecha ancla de la ventana (requiere range_kind)
            range_kind: day, week o month
            search: Texto a buscar en folio, vendedor o nombre de producto
        """
        query = self.db.query(Ticket).options(selectinload(Ticket.items))

        if reference_date and range_kind:
            window = resolve_range(reference_date, range_kind)
            query = query.filter(
                Ticket.created_at >= window.start_utc,
                Ticket.created_at <= window.end_utc
            )

        if search and search.strip():
            term = f"%{search.strip().lower()}%"
            matching_items = select(TicketItem.ticket_id).where(
                TicketItem.product_name.ilike(term)
            )
            query = query.filter(or_(
                Ticket.folio.ilike(term),
                Ticket.seller.ilike(term),
                Ticket.id.in_(matching_items)
            ))

        query = query.order_by(desc(Ticket.created_at), desc(Ticket.folio))

        total = query.count()
        tickets = query.offset(offset).limit(limit).all()

        return {
            "tickets": tickets,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def cancel_ticket(self, ticket_id: UUID) -> Tuple[Ticket, List[str]]:
        """
        Cancelar ticket devolviendo su stock

        El cambio de estado es condicional (solo desde ACTIVE), así que dos
        cancelaciones simultáneas no pueden prosperar ambas. Un producto que ya
        no existe en el catálogo se omite con advertencia: la cancelación del
        lado del dinero procede de todos modos.

        Returns:
            (ticket cancelado, advertencias)

        Raises:
            TicketNotFound: el ticket no existe
            AlreadyCancelled: el ticket ya estaba cancelado
        """
        ticket = self.get_ticket(ticket_id)

        if not ticket.is_active:
            raise AlreadyCancelled()

        warnings: List[str] = []

        try:
            result = self.db.execute(
                update(Ticket)
                .where(Ticket.id == ticket_id, Ticket.status == TicketStatus.ACTIVE)
                .values(status=TicketStatus.CANCELLED, cancelled_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise AlreadyCancelled()

            for item in ticket.items:
                if item.product_id is None:
                    warnings.append(f"'{item.product_name}' no tiene producto asociado; stock no devuelto")
                    continue
                try:
                    self.catalog.adjust_stock(item.product_id, item.quantity)
                except ProductNotFound:
                    message = f"'{item.product_name}' ya no existe en el catálogo; stock no devuelto"
                    logger.warning(f"Ticket {ticket.folio}: product {item.product_id} not found on restock")
                    warnings.append(message)

            self.db.commit()
            self.db.refresh(ticket)

            logger.info(f"Ticket {ticket.folio} cancelled; {len(ticket.items)} lines restocked, {len(warnings)} warnings")
            return ticket, warnings

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error cancelling ticket {ticket_id}: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error cancelando ticket: {str(e)}"
            )
