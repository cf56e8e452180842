"""
Tests para el catálogo de productos

Cubren:
- Ajuste atómico de stock (nunca negativo)
- Lista de resurtido (stock bajo / agotados)
- CRUD vía API con soft delete
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from omicron.common.exceptions import ProductNotFound, StockConflict
from omicron.modules.catalog.schemas import StockFilter
from omicron.modules.catalog.service import CatalogService


@pytest.fixture
def sample_product_data():
    return {
        "brand": "Xiaomi",
        "model": "Cargador 33W",
        "type": "Cargador",
        "color": "Blanco",
        "category": "Accesorios",
        "price": "249.90",
        "stock": 4,
        "scan_code": "QR-0001"
    }


# ===== TESTS DE STOCK =====

class TestAdjustStock:

    def test_decrement_and_increment(self, db_session, make_product):
        product = make_product(stock=3)
        service = CatalogService(db_session)

        assert service.adjust_stock(product.id, -2) == 1
        assert service.adjust_stock(product.id, 2) == 3
        db_session.commit()

        assert service.get_product(product.id).stock == 3

    def test_never_goes_negative(self, db_session, make_product):
        product = make_product(stock=1)
        service = CatalogService(db_session)

        with pytest.raises(StockConflict):
            service.adjust_stock(product.id, -2)

        db_session.rollback()
        assert service.get_product(product.id).stock == 1

    def test_exact_depletion_allowed(self, db_session, make_product):
        product = make_product(stock=2)
        assert CatalogService(db_session).adjust_stock(product.id, -2) == 0

    def test_unknown_product(self, db_session):
        with pytest.raises(ProductNotFound):
            CatalogService(db_session).adjust_stock(uuid4(), 1)

    def test_deleted_product_is_not_found(self, db_session, make_product):
        product = make_product(stock=2)
        service = CatalogService(db_session)
        service.delete_product(product.id)

        with pytest.raises(ProductNotFound):
            service.adjust_stock(product.id, 1)


class TestRestockList:

    def test_low_and_zero_filters(self, db_session, make_product):
        make_product(stock=0, model="Agotado")
        make_product(stock=4, model="Bajo")
        make_product(stock=5, model="Suficiente")
        service = CatalogService(db_session)

        low = service.list_products(StockFilter.LOW)
        zero = service.list_products(StockFilter.ZERO)
        everything = service.list_products(StockFilter.ALL)

        assert [p.model for p in low["products"]] == ["Bajo"]
        assert [p.model for p in zero["products"]] == ["Agotado"]
        assert everything["total"] == 3


# ===== TESTS DE API =====

class TestProductEndpoints:

    def test_create_and_get(self, client, sample_product_data):
        response = client.post("/api/v1/products", json=sample_product_data)
        assert response.status_code == 201
        data = response.json()
        assert data["stock"] == 4
        assert Decimal(data["price"]) == Decimal("249.90")

        response = client.get(f"/api/v1/products/{data['id']}")
        assert response.status_code == 200
        assert response.json()["model"] == "Cargador 33W"

    def test_duplicate_scan_code(self, client, sample_product_data):
        assert client.post("/api/v1/products", json=sample_product_data).status_code == 201
        response = client.post("/api/v1/products", json=sample_product_data)
        assert response.status_code == 409

    def test_negative_price_rejected(self, client, sample_product_data):
        sample_product_data["price"] = "-1"
        assert client.post("/api/v1/products", json=sample_product_data).status_code == 422

    def test_update_never_touches_stock(self, client, sample_product_data):
        product = client.post("/api/v1/products", json=sample_product_data).json()

        response = client.put(
            f"/api/v1/products/{product['id']}",
            json={"price": "199.00", "stock": 999}
        )
        assert response.status_code == 200
        assert Decimal(response.json()["price"]) == Decimal("199.00")
        assert response.json()["stock"] == 4

    def test_restock(self, client, sample_product_data):
        product = client.post("/api/v1/products", json=sample_product_data).json()

        response = client.post(f"/api/v1/products/{product['id']}/restock", json={"quantity": 6})
        assert response.status_code == 200
        assert response.json()["stock"] == 10

    def test_restock_requires_positive_quantity(self, client, sample_product_data):
        product = client.post("/api/v1/products", json=sample_product_data).json()
        response = client.post(f"/api/v1/products/{product['id']}/restock", json={"quantity": 0})
        assert response.status_code == 422

    def test_soft_delete(self, client, sample_product_data):
        product = client.post("/api/v1/products", json=sample_product_data).json()

        assert client.delete(f"/api/v1/products/{product['id']}").status_code == 204

        response = client.get(f"/api/v1/products/{product['id']}")
        assert response.status_code == 404
        assert response.headers["X-Error-Code"] == "not_found"

        # El código queda libre para otro artículo
        assert client.post("/api/v1/products", json=sample_product_data).status_code == 201

    def test_list_low_stock(self, client, sample_product_data):
        client.post("/api/v1/products", json=sample_product_data)
        response = client.get("/api/v1/products", params={"stock": "low"})
        assert response.status_code == 200
        assert response.json()["total"] == 1
