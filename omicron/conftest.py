"""
Fixtures compartidas para los tests de los módulos

Los tests usan SQLite: en memoria (StaticPool) para los tests normales y un
archivo temporal para los tests concurrentes, donde cada hilo necesita su
propia conexión.
"""

import os

# Debe definirse antes de importar la app: evita create_all contra PostgreSQL
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from omicron.database.database import Base, build_engine, get_db
from omicron.main import app
from omicron.modules.cart.service import CartRegistry, get_cart_registry
from omicron.modules.catalog.models import Product
from omicron.modules.pos.models import Ticket, TicketStatus, PaymentMethod


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def file_session_factory(tmp_path):
    """Base SQLite en archivo; una conexión por hilo"""
    engine = build_engine(f"sqlite:///{tmp_path / 'omicron_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def cart_registry():
    return CartRegistry()


@pytest.fixture
def client(session_factory, cart_registry):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cart_registry] = lambda: cart_registry

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_product(db_session):
    """Factory de productos persistidos"""
    def _make(stock=3, price="100.00", brand="Samsung", model="Funda A15", **kwargs):
        product = Product(
            brand=brand,
            model=model,
            type=kwargs.pop("type", "Funda"),
            color=kwargs.pop("color", "Negro"),
            category=kwargs.pop("category", "Accesorios"),
            price=Decimal(price),
            stock=stock,
            **kwargs
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture
def make_ticket(db_session):
    """Factory de tickets ya confirmados, con fecha controlada (UTC sin tzinfo)"""
    counter = {"n": 0}

    def _make(seller: str, total: str, created_at: datetime,
              status: TicketStatus = TicketStatus.ACTIVE):
        counter["n"] += 1
        ticket = Ticket(
            id=uuid4(),
            folio=f"X-{counter['n']:06d}",
            seller=seller,
            payment_method=PaymentMethod.CARD,
            status=status,
            total=Decimal(total),
            amount_received=Decimal(total),
            change_due=Decimal("0"),
            created_at=created_at
        )
        db_session.add(ticket)
        db_session.commit()
        return ticket

    return _make
