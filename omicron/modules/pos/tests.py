"""
Tests para el módulo POS: cobro, folios, historial y cancelación

Cubren:
- Venta todo o nada (un fallo en la línea k deja intactas las líneas previas)
- Ventas concurrentes sobre el mismo producto: exactamente una gana
- Cancelación como inversa exacta y doble cancelación reportada
- Escenario completo: carrito → cobro → cancelación → corte de caja
"""

import threading
from decimal import Decimal
from uuid import UUID

import pytest
from sqlalchemy import update

from omicron.common.date_ranges import local_now
from omicron.common.exceptions import (
    AlreadyCancelled, EmptyCart, InsufficientPayment, StockConflict
)
from omicron.modules.cart.service import Cart, CartService
from omicron.modules.catalog.models import Product
from omicron.modules.catalog.service import CatalogService
from omicron.modules.pos.models import Ticket, TicketStatus, PaymentMethod
from omicron.modules.pos.services import CheckoutService, TicketService


FIRST_ID = UUID("00000000-0000-0000-0000-000000000001")
SECOND_ID = UUID("00000000-0000-0000-0000-000000000002")


def _cart_with(db, *lines):
    cart = Cart()
    service = CartService(db)
    for product, quantity in lines:
        service.add_line(cart, product.id, quantity)
    return cart


def _stock(db, product_id):
    db.expire_all()
    return db.get(Product, product_id).stock


# ===== TESTS DE COBRO =====

class TestCheckout:

    def test_cash_checkout(self, db_session, make_product):
        product = make_product(stock=3, price="100")
        cart = _cart_with(db_session, (product, 2))

        ticket = CheckoutService(db_session).checkout(
            cart, PaymentMethod.CASH, Decimal("250"), "ana"
        )

        assert ticket.folio == "T-000001"
        assert ticket.status == TicketStatus.ACTIVE
        assert ticket.total == Decimal("200.00")
        assert ticket.amount_received == Decimal("250.00")
        assert ticket.change_due == Decimal("50.00")
        assert [item.product_name for item in ticket.items] == ["Funda A15"]
        assert _stock(db_session, product.id) == 1

    def test_card_records_total_as_received(self, db_session, make_product):
        product = make_product(stock=3, price="100")
        cart = _cart_with(db_session, (product, 1))

        ticket = CheckoutService(db_session).checkout(cart, PaymentMethod.CARD, None, "ana")

        assert ticket.amount_received == Decimal("100.00")
        assert ticket.change_due == Decimal("0.00")

    def test_folios_are_sequential(self, db_session, make_product):
        product = make_product(stock=5)
        service = CheckoutService(db_session)

        first = service.checkout(_cart_with(db_session, (product, 1)), PaymentMethod.CARD, None, "ana")
        second = service.checkout(_cart_with(db_session, (product, 1)), PaymentMethod.CARD, None, "ana")

        assert (first.folio, second.folio) == ("T-000001", "T-000002")

    def test_empty_cart(self, db_session):
        with pytest.raises(EmptyCart):
            CheckoutService(db_session).checkout(Cart(), PaymentMethod.CASH, Decimal("10"), "ana")

    def test_insufficient_payment_has_no_side_effects(self, db_session, make_product):
        product = make_product(stock=3, price="100")
        cart = _cart_with(db_session, (product, 2))

        with pytest.raises(InsufficientPayment):
            CheckoutService(db_session).checkout(cart, PaymentMethod.CASH, Decimal("199.99"), "ana")

        assert _stock(db_session, product.id) == 3
        assert db_session.query(Ticket).count() == 0

    def test_failure_on_later_line_restores_earlier_lines(self, db_session, make_product):
        first = make_product(id=FIRST_ID, stock=5, model="Mica")
        second = make_product(id=SECOND_ID, stock=2, model="Cable")
        cart = _cart_with(db_session, (first, 2), (second, 2))

        # Otra caja vende una unidad del segundo producto
        db_session.execute(update(Product).where(Product.id == SECOND_ID).values(stock=1))
        db_session.commit()

        with pytest.raises(StockConflict) as exc_info:
            CheckoutService(db_session).checkout(cart, PaymentMethod.CARD, None, "ana")

        assert "Cable" in exc_info.value.detail
        assert _stock(db_session, FIRST_ID) == 5
        assert _stock(db_session, SECOND_ID) == 1
        assert db_session.query(Ticket).count() == 0

        # El folio no se consumió
        db_session.execute(update(Product).where(Product.id == SECOND_ID).values(stock=2))
        db_session.commit()
        ticket = CheckoutService(db_session).checkout(cart, PaymentMethod.CARD, None, "ana")
        assert ticket.folio == "T-000001"

    def test_concurrent_checkouts_exactly_one_wins(self, file_session_factory):
        setup = file_session_factory()
        product = Product(brand="Apple", model="Cable USB-C", price=Decimal("100"), stock=3)
        setup.add(product)
        setup.commit()
        product_id = product.id
        setup.close()

        barrier = threading.Barrier(2)
        results = []
        lock = threading.Lock()

        def sell():
            db = file_session_factory()
            try:
                cart = Cart()
                CartService(db).add_line(cart, product_id, 2)
                barrier.wait()
                ticket = CheckoutService(db).checkout(cart, PaymentMethod.CARD, None, "caja")
                outcome = ticket.folio
            except StockConflict as e:
                outcome = e
            finally:
                db.close()
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=sell) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert len(results) == 2
        assert sum(isinstance(r, StockConflict) for r in results) == 1
        assert sum(isinstance(r, str) for r in results) == 1

        check = file_session_factory()
        try:
            assert check.get(Product, product_id).stock == 1
            assert check.query(Ticket).count() == 1
        finally:
            check.close()


# ===== TESTS DE CANCELACIÓN =====

class TestCancellation:

    def test_cancel_restores_stock(self, db_session, make_product):
        first = make_product(stock=5, model="Mica")
        second = make_product(stock=4, model="Cable")
        ticket = CheckoutService(db_session).checkout(
            _cart_with(db_session, (first, 2), (second, 3)), PaymentMethod.CARD, None, "ana"
        )

        cancelled, warnings = TicketService(db_session).cancel_ticket(ticket.id)

        assert warnings == []
        assert cancelled.status == TicketStatus.CANCELLED
        assert cancelled.cancelled_at is not None
        assert _stock(db_session, first.id) == 5
        assert _stock(db_session, second.id) == 4

    def test_double_cancel_is_reported(self, db_session, make_product):
        product = make_product(stock=3)
        ticket = CheckoutService(db_session).checkout(
            _cart_with(db_session, (product, 1)), PaymentMethod.CARD, None, "ana"
        )
        service = TicketService(db_session)
        service.cancel_ticket(ticket.id)

        with pytest.raises(AlreadyCancelled):
            service.cancel_ticket(ticket.id)

        # El stock solo se devolvió una vez
        assert _stock(db_session, product.id) == 3

    def test_deleted_product_is_skipped_with_warning(self, db_session, make_product):
        kept = make_product(stock=3, model="Mica")
        gone = make_product(stock=3, model="Cable")
        ticket = CheckoutService(db_session).checkout(
            _cart_with(db_session, (kept, 1), (gone, 1)), PaymentMethod.CARD, None, "ana"
        )
        CatalogService(db_session).delete_product(gone.id)

        cancelled, warnings = TicketService(db_session).cancel_ticket(ticket.id)

        assert cancelled.status == TicketStatus.CANCELLED
        assert len(warnings) == 1
        assert "Cable" in warnings[0]
        assert _stock(db_session, kept.id) == 3


# ===== TESTS DE HISTORIAL =====

class TestTicketHistory:

    def test_search_by_folio_seller_and_product(self, db_session, make_product):
        mica = make_product(stock=5, model="Mica de vidrio")
        cable = make_product(stock=5, model="Cable USB-C")
        service = CheckoutService(db_session)
        service.checkout(_cart_with(db_session, (mica, 1)), PaymentMethod.CARD, None, "Ana")
        service.checkout(_cart_with(db_session, (cable, 1)), PaymentMethod.CARD, None, "Beto")

        history = TicketService(db_session)

        assert [t.seller for t in history.list_tickets(search="VIDRIO")["tickets"]] == ["Ana"]
        assert [t.seller for t in history.list_tickets(search="beto")["tickets"]] == ["Beto"]
        assert history.list_tickets(search="T-000002")["total"] == 1
        assert history.list_tickets()["total"] == 2

    def test_history_includes_cancelled_newest_first(self, client, make_product):
        product = make_product(stock=5)
        folios = []
        for _ in range(2):
            cart_id = client.post("/api/v1/carts").json()["id"]
            client.post(f"/api/v1/carts/{cart_id}/lines", json={"product_id": str(product.id)})
            ticket = client.post(
                f"/api/v1/carts/{cart_id}/checkout",
                json={"payment_method": "card", "seller": "ana"}
            ).json()
            folios.append(ticket["folio"])

        first_id = client.get("/api/v1/tickets", params={"search": folios[0]}).json()["tickets"][0]["id"]
        client.put(f"/api/v1/tickets/{first_id}/cancel")

        today = local_now().date().isoformat()
        response = client.get("/api/v1/tickets", params={"date": today, "range": "day"})
        data = response.json()

        assert data["total"] == 2
        assert [t["folio"] for t in data["tickets"]] == list(reversed(folios))
        assert data["tickets"][1]["status"] == "cancelled"

    def test_date_requires_range(self, client):
        response = client.get("/api/v1/tickets", params={"date": "2026-10-14"})
        assert response.status_code == 422


# ===== ESCENARIOS COMPLETOS VÍA API =====

class TestSaleScenario:

    def test_sell_cancel_and_cash_cut(self, client, make_product):
        product = make_product(stock=3, price="100")
        cart_id = client.post("/api/v1/carts").json()["id"]

        client.post(f"/api/v1/carts/{cart_id}/lines", json={"product_id": str(product.id), "quantity": 2})
        client.put(f"/api/v1/carts/{cart_id}/lines/{product.id}/discount", json={"percent": "10"})

        response = client.post(
            f"/api/v1/carts/{cart_id}/checkout",
            json={"payment_method": "cash", "tendered_amount": "200", "seller": "ana"}
        )
        assert response.status_code == 201
        ticket = response.json()
        assert Decimal(ticket["total"]) == Decimal("180")
        assert Decimal(ticket["change_due"]) == Decimal("20")
        assert ticket["status"] == "active"
        assert client.get(f"/api/v1/products/{product.id}").json()["stock"] == 1

        # El carrito se destruye al cobrar
        assert client.get(f"/api/v1/carts/{cart_id}").status_code == 404

        cut_request = {
            "reference_date": local_now().date().isoformat(),
            "range_kind": "day",
            "opening_cash": "500",
            "closing_cash": "680",
            "expenses": [{"description": "Garrafón de agua", "amount": "50"}]
        }
        cut = client.post("/api/v1/reports/cash-cut", json=cut_request).json()
        assert Decimal(cut["sales_in_range"]) == Decimal("180")
        assert Decimal(cut["expected_cash"]) == Decimal("630")
        assert Decimal(cut["variance"]) == Decimal("50")

        response = client.put(f"/api/v1/tickets/{ticket['id']}/cancel")
        assert response.status_code == 200
        assert response.json()["ticket"]["status"] == "cancelled"
        assert client.get(f"/api/v1/products/{product.id}").json()["stock"] == 3

        cut = client.post("/api/v1/reports/cash-cut", json=cut_request).json()
        assert Decimal(cut["sales_in_range"]) == Decimal("0")
        assert cut["sales_count"] == 0

        response = client.put(f"/api/v1/tickets/{ticket['id']}/cancel")
        assert response.status_code == 409
        assert response.headers["X-Error-Code"] == "already_cancelled"

    def test_insufficient_cash_keeps_cart(self, client, make_product):
        product = make_product(stock=3, price="100")
        cart_id = client.post("/api/v1/carts").json()["id"]
        client.post(f"/api/v1/carts/{cart_id}/lines", json={"product_id": str(product.id)})

        response = client.post(
            f"/api/v1/carts/{cart_id}/checkout",
            json={"payment_method": "cash", "tendered_amount": "50", "seller": "ana"}
        )
        assert response.status_code == 400
        assert response.headers["X-Error-Code"] == "insufficient_payment"
        assert client.get(f"/api/v1/carts/{cart_id}").status_code == 200
        assert client.get(f"/api/v1/products/{product.id}").json()["stock"] == 3

    def test_repeated_checkout_sells_once(self, client, make_product):
        """Un doble envío del cobro registra una sola venta"""
        product = make_product(stock=3, price="100")
        cart_id = client.post("/api/v1/carts").json()["id"]
        client.post(f"/api/v1/carts/{cart_id}/lines", json={"product_id": str(product.id)})
        checkout_data = {"payment_method": "card", "seller": "ana"}

        first = client.post(f"/api/v1/carts/{cart_id}/checkout", json=checkout_data)
        second = client.post(f"/api/v1/carts/{cart_id}/checkout", json=checkout_data)

        assert first.status_code == 201
        assert second.status_code == 404
        assert second.headers["X-Error-Code"] == "not_found"
        assert client.get("/api/v1/tickets").json()["total"] == 1
        assert client.get(f"/api/v1/products/{product.id}").json()["stock"] == 2

    def test_out_of_range_tendered_amount(self, client, make_product):
        product = make_product(stock=3, price="100")
        cart_id = client.post("/api/v1/carts").json()["id"]
        client.post(f"/api/v1/carts/{cart_id}/lines", json={"product_id": str(product.id)})

        response = client.post(
            f"/api/v1/carts/{cart_id}/checkout",
            json={"payment_method": "cash", "tendered_amount": "1e30", "seller": "ana"}
        )
        assert response.status_code == 422
        assert client.get(f"/api/v1/carts/{cart_id}").status_code == 200
        assert client.get(f"/api/v1/products/{product.id}").json()["stock"] == 3

    def test_empty_cart_checkout(self, client):
        cart_id = client.post("/api/v1/carts").json()["id"]
        response = client.post(
            f"/api/v1/carts/{cart_id}/checkout",
            json={"payment_method": "card", "seller": "ana"}
        )
        assert response.status_code == 422
        assert response.headers["X-Error-Code"] == "empty_cart"

    def test_cancel_unknown_ticket(self, client):
        response = client.put("/api/v1/tickets/00000000-0000-0000-0000-000000000009/cancel")
        assert response.status_code == 404
