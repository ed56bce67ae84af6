"""
Pytest fixtures for the POS backend tests.

Provides test database setup, catalog factories, and test client.
"""

from decimal import Decimal

import pytest
from sqlalchemy import text

from pos_api import create_app
from pos_api.extensions import db
from pos_api.models import InventoryRecord
from pos_api.services import catalog_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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
        # AUTOINCREMENT counters survive DELETE; reset them so invoice
        # numbering starts at 1 in every test
        db.session.execute(text("DELETE FROM sqlite_sequence"))
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_category(db_session):
    """Factory for categories with generated codes."""
    def _make(name="General", **kwargs):
        return catalog_service.create_category(name, **kwargs)
    return _make


@pytest.fixture(scope='function')
def make_item(db_session):
    """
    Factory for active items.

    make_item(price="100", discount="10", tax="5", stock=3) creates a stock
    item with 3 units on hand; stock=None creates a non-stock item.
    """
    def _make(name="Test Item", price="100", discount="0", tax="0", stock=None, **kwargs):
        return catalog_service.create_item(
            name,
            selling_price=Decimal(price),
            default_discount=Decimal(discount),
            tax=Decimal(tax),
            is_stock_item=stock is not None,
            initial_quantity=stock or 0,
            **kwargs,
        )
    return _make


@pytest.fixture(scope='function')
def stock_of(db_session):
    """Fresh on-hand quantity read straight from the database."""
    def _stock(item_code: str) -> int | None:
        db.session.expire_all()
        record = db.session.query(InventoryRecord).filter_by(item_code=item_code).first()
        return record.quantity if record else None
    return _stock
