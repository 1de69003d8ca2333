from datetime import datetime

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.room import Room
from services import BookingService, SqlAlchemyBookingStore

NOW = datetime(2026, 3, 1, 9, 0, 0)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_room(app):
    def _make(room_number=101, room_type="Standard", price_per_hour=500):
        room = Room(room_number=room_number, type=room_type, price_per_hour=price_per_hour)
        db.session.add(room)
        db.session.commit()
        return room
    return _make


@pytest.fixture
def service(app):
    """Service over the real SQLAlchemy store with the clock pinned to NOW."""
    return BookingService(store=SqlAlchemyBookingStore(db.session), clock=lambda: NOW)
