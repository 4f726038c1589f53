"""
Pytest fixtures for AgriFerti backend tests.

Every test that uses `app` runs twice: once against the SQL entity store
and once against the in-memory store. Both must behave identically.
"""

import uuid
from dataclasses import dataclass

import pytest
from sqlalchemy.exc import OperationalError

from agriferti import create_app
from agriferti.extensions import db
from agriferti.models import User
from agriferti.services import products_service
from agriferti.services.entity_store import SALES
from agriferti.services.session_service import create_session


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'HEALTH_POLL_ENABLED': False,
    'STORE_RETRY_BACKOFF': 0,
}


@dataclass
class Owner:
    user_id: int
    owner_id: str
    token: str

    @property
    def headers(self) -> dict:
        return auth_headers(self.token)


def build_app(backend: str, **overrides):
    config = dict(TEST_CONFIG, STORE_BACKEND=backend)
    config.update(overrides)
    return create_app(config)


@pytest.fixture(params=['sql', 'memory'])
def app(request):
    """Application with a fresh in-memory database, once per store backend."""
    app = build_app(request.param)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def _make_owner(email: str) -> Owner:
    user = User(public_id=uuid.uuid4().hex, email=email, is_active=True)
    db.session.add(user)
    db.session.commit()
    _, token = create_session(user.id)
    return Owner(user_id=user.id, owner_id=user.public_id, token=token)


@pytest.fixture
def owner_a(app):
    """Owner A (first data partition)."""
    return _make_owner("owner_a@agri.test")


@pytest.fixture
def owner_b(app):
    """Owner B (second data partition)."""
    return _make_owner("owner_b@agri.test")


@pytest.fixture
def make_product(app):
    """Factory creating a product through the service layer."""
    def _make(owner_id: str, **overrides) -> dict:
        fields = {
            "name": "Urea 46%",
            "category": "Nitrogen",
            "unit": "bag",
            "purchase_price": 1100,
            "selling_price": 1150,
            "stock": 15,
        }
        fields.update(overrides)
        return products_service.create_product(owner_id, fields)
    return _make


CUSTOMER = {
    "name": "Ramesh Patil",
    "city": "Nashik",
    "address": "Plot 12, Market Yard",
    "phone_number": "9876543210",
}


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def locked_database() -> OperationalError:
    return OperationalError("INSERT INTO sales", {}, Exception("database is locked"))


def failing_sales_unit(store, error_factory=locked_database, failures=None):
    """
    Unit of work class whose Sale insert raises error_factory().

    failures=None fails every attempt; otherwise only the first `failures`
    attempts fail and later ones go through.
    """
    base = store.unit_class
    calls = {"failed": 0}

    class FailingSalesUnit(base):
        def insert(self, collection, owner_id, fields):
            if collection == SALES and (failures is None or calls["failed"] < failures):
                calls["failed"] += 1
                raise error_factory()
            return super().insert(collection, owner_id, fields)

    FailingSalesUnit.calls = calls
    return FailingSalesUnit
