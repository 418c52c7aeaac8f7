"""
Pytest fixtures for RetailPOS backend tests.

Provides test database setup, users with session tokens, catalog factories,
and the Flask test client.
"""

from decimal import Decimal

import pytest
from retailpos import create_app
from retailpos.extensions import db
from retailpos.models import Category, Customer, Product
from retailpos.services.auth_service import create_user
from retailpos.services.session_service import create_session


TEST_PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TAX_RATE': '0.10',
        'STORE_TIMEZONE': 'UTC',
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
def admin_user(db_session):
    # Low bcrypt cost keeps the suite fast
    return create_user("admin", TEST_PASSWORD, role="admin", rounds=4)


@pytest.fixture(scope='function')
def cashier_user(db_session):
    return create_user("cashier", TEST_PASSWORD, role="cashier", rounds=4)


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    _, token = create_session(admin_user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def cashier_headers(cashier_user):
    _, token = create_session(cashier_user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def make_category(db_session):
    def _make(name="Beverages", description=None):
        category = Category(name=name, description=description)
        db_session.add(category)
        db_session.commit()
        return category
    return _make


@pytest.fixture(scope='function')
def make_product(db_session):
    """Insert a product row directly (bypasses the initial-stock movement)."""
    counter = {"n": 0}

    def _make(name=None, price="10.00", cost="6.00", stock=10, min_stock=5,
              barcode=None, category=None, is_active=True):
        counter["n"] += 1
        product = Product(
            name=name or f"Product {counter['n']}",
            price=Decimal(price),
            cost=Decimal(cost),
            stock=stock,
            min_stock=min_stock,
            barcode=barcode,
            category_id=category.id if category else None,
            is_active=is_active,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def make_customer(db_session):
    def _make(name="Jane Doe", email="jane@example.com", phone="555-0100"):
        customer = Customer(name=name, email=email, phone=phone)
        db_session.add(customer)
        db_session.commit()
        return customer
    return _make


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
