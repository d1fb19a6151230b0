from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from mfgops import models  # noqa: F401  registers tables
from mfgops.database import get_session
from mfgops.main import app
from mfgops.models.enums import Status
from mfgops.models.master import Customer, Product, WorkCenter
from mfgops.services.view_cache import ViewCache

USER_ID = "user-admin"
AUTH = {"X-User-Id": USER_ID}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def cache():
    return ViewCache()


@pytest.fixture
def client(session, cache):
    def _get_session():
        yield session

    app.dependency_overrides[get_session] = _get_session
    app.state.view_cache = cache
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def customer(session):
    c = Customer(name="Northwind Traders", email="orders@northwind.example")
    session.add(c)
    session.commit()
    session.refresh(c)
    return c


@pytest.fixture
def make_product(session):
    counter = {"n": 0}

    def _make(current_stock=100, minimum_stock_level=20, lead_time=5,
              selling_price=Decimal("10.00"), status=Status.ACTIVE, name=None):
        counter["n"] += 1
        p = Product(
            sku=f"SKU-{counter['n']:03d}",
            name=name or f"Product {counter['n']}",
            current_stock=current_stock,
            minimum_stock_level=minimum_stock_level,
            lead_time=lead_time,
            selling_price=selling_price,
            status=status,
        )
        session.add(p)
        session.commit()
        session.refresh(p)
        return p

    return _make


@pytest.fixture
def make_work_center(session):
    def _make(code, name, status=Status.ACTIVE):
        wc = WorkCenter(code=code, name=name, status=status, capacity_per_hour=10)
        session.add(wc)
        session.commit()
        session.refresh(wc)
        return wc

    return _make


@pytest.fixture
def work_center(make_work_center):
    return make_work_center("WC-ASM", "Assembly Cell A")
