"""
Pytest fixtures for Kouriten backend tests.

Every test gets a fresh in-memory database, a test client bound to the same
app context, and small factories for the rows most tests need.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from kouriten import create_app
from kouriten.config import TestingConfig
from kouriten.extensions import db
from kouriten.models import (
    Category,
    Customer,
    Event,
    EventRegistration,
    InventoryItem,
    Supplier,
)
from kouriten.services.auth_service import create_staff
from kouriten.time_utils import utcnow

STAFF_PASSWORD = "Password123!"


@pytest.fixture(scope='function')
def app():
    """Create application with a fresh schema for each test."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def staff(app):
    return create_staff("counter", STAFF_PASSWORD, "manager")


@pytest.fixture(scope='function')
def auth_headers(client, staff):
    """Authorization header for a logged-in staff member."""
    token = get_auth_token(client, "counter", STAFF_PASSWORD)
    assert token
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def category(app):
    row = Category(name="Booster Box")
    db.session.add(row)
    db.session.commit()
    return row


@pytest.fixture(scope='function')
def supplier(app):
    row = Supplier(name="Bandai Distribution", payment_terms="Net 30")
    db.session.add(row)
    db.session.commit()
    return row


@pytest.fixture(scope='function')
def customer(app):
    row = Customer(name="Aiko Tan", email="aiko@example.com", mobile_number="91234567")
    db.session.add(row)
    db.session.commit()
    return row


@pytest.fixture(scope='function')
def make_item(app, category):
    """Factory: make_item(stock=5, card_name="...") -> InventoryItem (committed)."""
    counter = {"n": 0}

    def _make(stock: int = 0, **overrides) -> InventoryItem:
        counter["n"] += 1
        fields = {
            "card_name": f"OP-07 Booster Box #{counter['n']}",
            "game_title": "One Piece",
            "category_id": category.id,
            "price": Decimal("150.00"),
            "cost_price": Decimal("110.00"),
            "stock_quantity": stock,
        }
        fields.update(overrides)
        item = InventoryItem(**fields)
        db.session.add(item)
        db.session.commit()
        return item

    return _make


@pytest.fixture(scope='function')
def make_event(app):
    def _make(name: str = "Store Championship", days_ahead: int = 7) -> Event:
        event = Event(
            name=name,
            game_title="One Piece",
            event_date=utcnow() + timedelta(days=days_ahead),
            entry_fee=Decimal("10.00"),
        )
        db.session.add(event)
        db.session.commit()
        return event

    return _make


@pytest.fixture(scope='function')
def register(app):
    """Factory: register(event_id, customer_id) inserts a registration row."""
    def _register(event_id: int, customer_id: int) -> EventRegistration:
        row = EventRegistration(event_id=event_id, customer_id=customer_id)
        db.session.add(row)
        db.session.commit()
        return row

    return _register


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a staff member."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None
