"""
Pytest fixtures for front-desk backend tests.

Provides test database setup, record factories, and test client.
"""

from datetime import datetime

import pytest
from frontdesk import create_app
from frontdesk.extensions import db
from frontdesk.models import Room, Stay, PaymentEntry, ShopPurchase
from frontdesk.services.cache import get_cache


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'CACHE_TTL_SECONDS': 30,
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
        get_cache().clear()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_room(db_session):
    """Factory for rooms."""
    def _make(room_number=101, floor="1", status="available", **kwargs):
        room = Room(room_number=room_number, floor=floor, status=status, **kwargs)
        db_session.add(room)
        db_session.commit()
        return room
    return _make


@pytest.fixture(scope='function')
def make_stay(db_session):
    """Factory for stays (checked out by default, as history screens expect)."""
    def _make(room, guest_name="Asha Rao", rent_cents=100000, checked_in_at=None,
              is_checked_out=True, **kwargs):
        stay = Stay(
            room_id=room.id,
            guest_name=guest_name,
            rent_cents=rent_cents,
            checked_in_at=checked_in_at or datetime(2025, 3, 5, 14, 30),
            is_checked_out=is_checked_out,
            **kwargs,
        )
        db_session.add(stay)
        db_session.commit()
        return stay
    return _make


@pytest.fixture(scope='function')
def add_entry(db_session):
    """Append a stored payment entry to a stay."""
    def _add(stay, amount_cents, entry_type, mode="cash", timestamp=None, description=None):
        entry = PaymentEntry(
            stay_id=stay.id,
            amount_cents=amount_cents,
            entry_type=entry_type,
            mode=mode,
            timestamp=timestamp,
            description=description,
        )
        db_session.add(entry)
        db_session.commit()
        return entry
    return _add


@pytest.fixture(scope='function')
def add_purchase(db_session):
    def _add(stay, item_name="Water bottle", quantity=1, amount_cents=2000):
        purchase = ShopPurchase(
            stay_id=stay.id,
            item_name=item_name,
            quantity=quantity,
            amount_cents=amount_cents,
        )
        db_session.add(purchase)
        db_session.commit()
        return purchase
    return _add
