"""
Pytest fixtures for caixa backend tests.

Provides test database setup, catalog fixtures, and test client.
"""

import pytest
from caixa import create_app
from caixa.extensions import db
from caixa.models import Product
from caixa.services.held_sale_service import EXTENSION_KEY, HeldSaleStore


class FakeClock:
    """Monotonic clock the tests can move forward by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DEFAULT_TAX_RATE_BPS': 1700,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def clock():
    return FakeClock()


@pytest.fixture(scope='function')
def held_store(app, clock):
    """Replace the app's held-sale store with one driven by the fake clock."""
    original = app.extensions[EXTENSION_KEY]
    store = HeldSaleStore(ttl_seconds=60, clock=clock)
    app.extensions[EXTENSION_KEY] = store
    yield store
    app.extensions[EXTENSION_KEY] = original


def make_product(db_session, **overrides) -> Product:
    """Insert a product; defaults can be overridden per test."""
    values = {
        "name": "Test Product",
        "barcode": None,
        "cost_price_cents": 0,
        "sale_price_cents": 0,
        "stock_quantity": 0,
    }
    values.update(overrides)
    product = Product(**values)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product(db_session):
    """Widget: barcode 123, cost 30.00, price 50.00, 10 in stock."""
    return make_product(
        db_session,
        name="Widget",
        barcode="123",
        sku="WID-001",
        cost_price_cents=3000,
        sale_price_cents=5000,
        stock_quantity=10,
    )


@pytest.fixture(scope='function')
def products(db_session):
    """Three products with 5 units each."""
    return [
        make_product(
            db_session,
            name=f"Item {i}",
            barcode=f"B{i:03d}",
            sku=f"SKU-{i:03d}",
            cost_price_cents=100 * i,
            sale_price_cents=250 * i,
            stock_quantity=5,
        )
        for i in range(1, 4)
    ]
