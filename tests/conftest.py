"""Shared fixtures: a throwaway SQLite database per test and product helpers."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from storefront.db.postgres_client import PostgresConnection
from storefront.models import Order, OrderItem, Product


@pytest.fixture
def db(tmp_path):
    conn = PostgresConnection(url=f"sqlite:///{tmp_path / 'storefront.db'}", timeout_ms=30000)
    conn.create_tables()
    yield conn
    conn.dispose()


@pytest.fixture
def make_product(db):
    def _make(name="Widget", price="10.00", stock=5, image_url=None):
        with db.transaction() as session:
            product = Product(name=name, price=Decimal(price), stock=stock, image_url=image_url)
            session.add(product)
            session.flush()
            return product.id

    return _make


@pytest.fixture
def stock_of(db):
    def _stock(product_id):
        with db.transaction() as session:
            return session.execute(select(Product.stock).where(Product.id == product_id)).scalar_one()

    return _stock


@pytest.fixture
def counts(db):
    """(orders, order items) currently persisted."""

    def _counts():
        with db.transaction() as session:
            orders = session.execute(select(func.count()).select_from(Order)).scalar_one()
            items = session.execute(select(func.count()).select_from(OrderItem)).scalar_one()
            return orders, items

    return _counts
