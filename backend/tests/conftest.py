"""
Pytest fixtures for tabstock backend tests.

Provides test database setup, data factories and test client.
"""

import pytest
from tabstock import create_app
from tabstock.extensions import db
from tabstock.models import User, Product, Order, MonthlyDebt
from tabstock.models.billing import DEBT_STATUS_INVOICED


ADMIN_TOKEN = "test-admin-token"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ADMIN_TOKEN': ADMIN_TOKEN,
        'BILLING_TIMEZONE': 'Europe/Paris',
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
def make_user(db_session):
    def _make(name: str, email: str | None = None, is_active: bool = True) -> User:
        user = User(name=name, email=email, is_active=is_active)
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def make_product(db_session):
    def _make(name: str, qty: int = 0) -> Product:
        product = Product(name=name, qty=qty)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def make_debt(db_session):
    def _make(user: User, month_key: str, amount_cents: int, status: str = DEBT_STATUS_INVOICED, paid_at=None) -> MonthlyDebt:
        debt = MonthlyDebt(
            month_key=month_key,
            user_id=user.id,
            amount_cents=amount_cents,
            status=status,
            paid_at=paid_at,
        )
        db_session.add(debt)
        db_session.commit()
        return debt
    return _make


@pytest.fixture(scope='function')
def make_order(db_session):
    def _make(user: User, month_key: str, total_cents: int, status: str = "committed") -> Order:
        order = Order(user_id=user.id, month_key=month_key, total_cents=total_cents, status=status)
        db_session.add(order)
        db_session.commit()
        return order
    return _make


def stock_of(product_id: int) -> int:
    """Stock as persisted, bypassing the session identity map."""
    return db.session.query(Product.qty).filter(Product.id == product_id).scalar()


def admin_headers(token: str = ADMIN_TOKEN) -> dict:
    """Helper to create admin token headers."""
    return {'X-Admin-Token': token}
