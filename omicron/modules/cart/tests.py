"""
Tests para el carrito y el cálculo de precios

Cubren:
- Totales: total == max(0, Σ precio*cantidad - Σ descuentos)
- Descuentos guardados como monto absoluto; los excesivos se rechazan
- Límites de stock al capturar (sin mover inventario)
- Endpoints del carrito
"""

import threading

import pytest
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from fastapi import HTTPException

from omicron.common.exceptions import (
    CartNotFound, InvalidDiscount, LineNotFound, OutOfStock, StockExceeded
)
from omicron.modules.cart import pricing
from omicron.modules.cart.service import CartService, CartRegistry, Cart


def _line(price, quantity, discount="0"):
    return SimpleNamespace(unit_price=Decimal(price), quantity=quantity, discount=Decimal(discount))


# ===== TESTS DE PRICING =====

class TestPricing:

    def test_totals_identity(self):
        totals = pricing.calculate_totals([_line("100", 2, "20"), _line("15.50", 3, "1.50")])

        assert totals["subtotal"] == Decimal("246.50")
        assert totals["discount_total"] == Decimal("21.50")
        assert totals["total"] == Decimal("225.00")

    def test_empty_totals(self):
        assert pricing.calculate_totals([])["total"] == Decimal("0.00")

    def test_percent_rounds_half_up_to_cents(self):
        # 99.99 * 15% = 14.9985
        assert pricing.percent_to_discount(Decimal("99.99"), 1, Decimal("15")) == Decimal("15.00")

    def test_percent_display_round_trip(self):
        discount = pricing.percent_to_discount(Decimal("100"), 2, Decimal("10"))
        assert discount == Decimal("20.00")
        assert pricing.discount_percent(Decimal("100"), 2, discount) == Decimal("10.00")

    def test_change_due_never_negative(self):
        assert pricing.change_due(Decimal("180"), Decimal("200")) == Decimal("20.00")
        assert pricing.change_due(Decimal("180"), Decimal("100")) == Decimal("0.00")


# ===== TESTS DE SERVICIO =====

class TestCartService:

    def test_add_merges_lines(self, db_session, make_product):
        product = make_product(stock=5)
        service = CartService(db_session)
        cart = Cart()

        service.add_line(cart, product.id)
        service.add_line(cart, product.id, 2)

        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 3
        assert cart.subtotal == Decimal("300.00")

    def test_out_of_stock(self, db_session, make_product):
        product = make_product(stock=0)
        with pytest.raises(OutOfStock):
            CartService(db_session).add_line(Cart(), product.id)

    def test_stock_exceeded_leaves_cart_unchanged(self, db_session, make_product):
        product = make_product(stock=2)
        service = CartService(db_session)
        cart = Cart()
        service.add_line(cart, product.id, 2)

        with pytest.raises(StockExceeded):
            service.add_line(cart, product.id)

        assert cart.lines[0].quantity == 2

    def test_adding_does_not_move_stock(self, db_session, make_product):
        product = make_product(stock=2)
        CartService(db_session).add_line(Cart(), product.id, 2)

        db_session.refresh(product)
        assert product.stock == 2

    def test_price_snapshot(self, db_session, make_product):
        product = make_product(stock=2, price="100.00")
        service = CartService(db_session)
        cart = Cart()
        service.add_line(cart, product.id)

        product.price = Decimal("150.00")
        db_session.commit()

        assert cart.lines[0].unit_price == Decimal("100.00")

    def test_set_quantity_floors_to_one(self, db_session, make_product):
        product = make_product(stock=5)
        service = CartService(db_session)
        cart = service.add_line(Cart(), product.id, 3)

        service.set_quantity(cart, product.id, 0)
        assert cart.lines[0].quantity == 1

    def test_set_quantity_above_stock(self, db_session, make_product):
        product = make_product(stock=3)
        service = CartService(db_session)
        cart = service.add_line(Cart(), product.id, 2)

        with pytest.raises(StockExceeded):
            service.set_quantity(cart, product.id, 4)
        assert cart.lines[0].quantity == 2

    def test_set_quantity_rejected_when_discount_exceeds_subtotal(self, db_session, make_product):
        product = make_product(stock=3)
        service = CartService(db_session)
        cart = service.add_line(Cart(), product.id, 2)
        service.set_discount_amount(cart, product.id, Decimal("150"))

        with pytest.raises(InvalidDiscount):
            service.set_quantity(cart, product.id, 1)

        assert cart.lines[0].quantity == 2
        assert cart.lines[0].discount == Decimal("150.00")

    def test_discount_over_subtotal_rejected(self, db_session, make_product):
        product = make_product(stock=3)
        service = CartService(db_session)
        cart = service.add_line(Cart(), product.id, 1)

        with pytest.raises(InvalidDiscount):
            service.set_discount_amount(cart, product.id, Decimal("100.01"))
        with pytest.raises(InvalidDiscount):
            service.set_discount_amount(cart, product.id, Decimal("-1"))

        assert cart.lines[0].discount == Decimal("0.00")

    def test_full_discount_allowed(self, db_session, make_product):
        product = make_product(stock=3)
        service = CartService(db_session)
        cart = service.add_line(Cart(), product.id, 1)

        service.set_discount_amount(cart, product.id, Decimal("100"))
        assert cart.total == Decimal("0.00")

    def test_percent_stored_as_amount(self, db_session, make_product):
        product = make_product(stock=3)
        service = CartService(db_session)
        cart = service.add_line(Cart(), product.id, 2)

        service.set_discount_percent(cart, product.id, Decimal("10"))

        line = cart.lines[0]
        assert line.discount == Decimal("20.00")
        assert line.discount_percent == Decimal("10.00")
        assert cart.total == Decimal("180.00")

    @pytest.mark.parametrize("percent", ["-1", "100.01"])
    def test_percent_out_of_range(self, db_session, make_product, percent):
        product = make_product(stock=3)
        service = CartService(db_session)
        cart = service.add_line(Cart(), product.id, 1)

        with pytest.raises(InvalidDiscount):
            service.set_discount_percent(cart, product.id, Decimal(percent))

    def test_add_rejects_non_positive_quantity(self, db_session, make_product):
        product = make_product(stock=3)
        cart = Cart()

        with pytest.raises(HTTPException) as exc_info:
            CartService(db_session).add_line(cart, product.id, 0)

        assert exc_info.value.status_code == 422
        assert cart.is_empty

    def test_huge_discount_rejected_as_invalid(self, db_session, make_product):
        product = make_product(stock=3)
        service = CartService(db_session)
        cart = service.add_line(Cart(), product.id, 1)

        with pytest.raises(InvalidDiscount):
            service.set_discount_amount(cart, product.id, Decimal("1e30"))
        assert cart.lines[0].discount == Decimal("0.00")

    def test_remove_missing_line(self, db_session):
        with pytest.raises(LineNotFound):
            CartService(db_session).remove_line(Cart(), uuid4())


class TestCartRegistry:

    def test_lifecycle(self):
        registry = CartRegistry()
        cart = registry.create()

        assert registry.get(cart.id) is cart
        assert len(registry) == 1

        registry.discard(cart.id)
        with pytest.raises(CartNotFound):
            registry.get(cart.id)
        with pytest.raises(CartNotFound):
            registry.discard(cart.id)

    def test_take_claims_cart_once(self):
        registry = CartRegistry()
        cart = registry.create()
        barrier = threading.Barrier(2)
        outcomes = []

        def claim():
            barrier.wait()
            try:
                outcomes.append(registry.take(cart.id))
            except CartNotFound as e:
                outcomes.append(e)

        threads = [threading.Thread(target=claim) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert sum(outcome is cart for outcome in outcomes) == 1
        assert sum(isinstance(outcome, CartNotFound) for outcome in outcomes) == 1
        assert len(registry) == 0

    def test_restore_after_failed_checkout(self):
        registry = CartRegistry()
        cart = registry.take(registry.create().id)

        registry.restore(cart)
        assert registry.get(cart.id) is cart


# ===== TESTS DE API =====

class TestCartEndpoints:

    def test_example_pricing_flow(self, client, make_product):
        product = make_product(stock=3, price="100")
        cart_id = client.post("/api/v1/carts").json()["id"]

        response = client.post(
            f"/api/v1/carts/{cart_id}/lines",
            json={"product_id": str(product.id), "quantity": 2}
        )
        assert response.status_code == 200
        assert Decimal(response.json()["subtotal"]) == Decimal("200")

        response = client.put(
            f"/api/v1/carts/{cart_id}/lines/{product.id}/discount",
            json={"percent": "10"}
        )
        data = response.json()
        assert Decimal(data["discount_total"]) == Decimal("20")
        assert Decimal(data["total"]) == Decimal("180")
        assert Decimal(data["lines"][0]["discount_percent"]) == Decimal("10")

        response = client.get(f"/api/v1/carts/{cart_id}/change", params={"tendered": "200"})
        assert Decimal(response.json()["change"]) == Decimal("20")

    def test_discount_needs_exactly_one_form(self, client, make_product):
        product = make_product(stock=3)
        cart_id = client.post("/api/v1/carts").json()["id"]
        client.post(f"/api/v1/carts/{cart_id}/lines", json={"product_id": str(product.id)})

        response = client.put(
            f"/api/v1/carts/{cart_id}/lines/{product.id}/discount",
            json={"amount": "5", "percent": "5"}
        )
        assert response.status_code == 422

    def test_over_large_discount_error_code(self, client, make_product):
        product = make_product(stock=3)
        cart_id = client.post("/api/v1/carts").json()["id"]
        client.post(f"/api/v1/carts/{cart_id}/lines", json={"product_id": str(product.id)})

        response = client.put(
            f"/api/v1/carts/{cart_id}/lines/{product.id}/discount",
            json={"amount": "500"}
        )
        assert response.status_code == 422
        assert response.headers["X-Error-Code"] == "invalid_discount"

    def test_huge_discount_error_code(self, client, make_product):
        product = make_product(stock=3)
        cart_id = client.post("/api/v1/carts").json()["id"]
        client.post(f"/api/v1/carts/{cart_id}/lines", json={"product_id": str(product.id)})

        response = client.put(
            f"/api/v1/carts/{cart_id}/lines/{product.id}/discount",
            json={"amount": "1e30"}
        )
        assert response.status_code == 422
        assert response.headers["X-Error-Code"] == "invalid_discount"

    def test_change_preview_rejects_out_of_range_amount(self, client, make_product):
        product = make_product(stock=3)
        cart_id = client.post("/api/v1/carts").json()["id"]
        client.post(f"/api/v1/carts/{cart_id}/lines", json={"product_id": str(product.id)})

        response = client.get(f"/api/v1/carts/{cart_id}/change", params={"tendered": "1e30"})
        assert response.status_code == 422

    def test_stock_exceeded_error_code(self, client, make_product):
        product = make_product(stock=1)
        cart_id = client.post("/api/v1/carts").json()["id"]

        response = client.post(
            f"/api/v1/carts/{cart_id}/lines",
            json={"product_id": str(product.id), "quantity": 2}
        )
        assert response.status_code == 409
        assert response.headers["X-Error-Code"] == "stock_exceeded"

    def test_remove_line_and_abandon(self, client, make_product):
        product = make_product(stock=3)
        cart_id = client.post("/api/v1/carts").json()["id"]
        client.post(f"/api/v1/carts/{cart_id}/lines", json={"product_id": str(product.id)})

        response = client.delete(f"/api/v1/carts/{cart_id}/lines/{product.id}")
        assert response.json()["lines"] == []

        assert client.delete(f"/api/v1/carts/{cart_id}").status_code == 204
        assert client.get(f"/api/v1/carts/{cart_id}").status_code == 404

    def test_unknown_cart(self, client):
        response = client.get(f"/api/v1/carts/{uuid4()}")
        assert response.status_code == 404
        assert response.headers["X-Error-Code"] == "not_found"
