import logging
from datetime import datetime
from functools import wraps
from typing import Iterable, Optional, Protocol

from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as PoolTimeoutError

from models.booking import Booking, STATUS_ACTIVE
from models.room import Room
from services.errors import Conflict, Unavailable

logger = logging.getLogger(__name__)

OVERLAP_MESSAGE = "Overlapping booking exists for this room and time range"


class BookingStore(Protocol):
    """Room lookup and booking persistence used by BookingService."""

    def get_room_by_id(self, room_id: str) -> Optional[Room]: ...

    def lock_room(self, room_id: str) -> Optional[Room]: ...

    def list_rooms(self, room_number: Optional[int] = None, room_type: Optional[str] = None) -> list[Room]: ...

    def get_booking_by_id(self, booking_id: str) -> Optional[Booking]: ...

    def insert_booking(self, **fields) -> Booking: ...

    def update_booking(self, booking: Booking, **fields) -> Booking: ...

    def count_overlapping(self, room_id: str, start: datetime, end: datetime,
                          status: str = STATUS_ACTIVE, exclude_id: Optional[str] = None) -> int: ...

    def list_bookings(self, room_ids: Optional[Iterable[str]] = None,
                      start_time_gte: Optional[datetime] = None,
                      end_time_lte: Optional[datetime] = None) -> list[Booking]: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


def _store_call(fn):
    """Map driver failures onto the booking error taxonomy."""
    @wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except IntegrityError as exc:
            # exclusion constraint: another writer reserved the interval first
            self.session.rollback()
            logger.warning("booking write rejected by store: %s", exc.orig)
            raise Conflict(OVERLAP_MESSAGE) from exc
        except (OperationalError, PoolTimeoutError) as exc:
            self.session.rollback()
            logger.error("store call %s failed: %s", fn.__name__, exc)
            raise Unavailable("Booking store unavailable, try again later") from exc
    return wrapper


class SqlAlchemyBookingStore:
    def __init__(self, session):
        self.session = session

    @_store_call
    def get_room_by_id(self, room_id):
        return self.session.get(Room, room_id)

    @_store_call
    def lock_room(self, room_id):
        # FOR UPDATE serializes writers of the same room until commit/rollback;
        # SQLite ignores it and relies on BEGIN IMMEDIATE (models.db)
        return (
            self.session.query(Room)
            .filter(Room.id == room_id)
            .with_for_update()
            .first()
        )

    @_store_call
    def list_rooms(self, room_number=None, room_type=None):
        q = self.session.query(Room)
        if room_number is not None:
            q = q.filter(Room.room_number == room_number)
        if room_type is not None:
            q = q.filter(Room.type == room_type)
        return q.order_by(Room.room_number.asc()).all()

    @_store_call
    def get_booking_by_id(self, booking_id):
        return self.session.get(Booking, booking_id)

    @_store_call
    def insert_booking(self, **fields):
        booking = Booking(**fields)
        self.session.add(booking)
        self.session.flush()
        return booking

    @_store_call
    def update_booking(self, booking, **fields):
        for key, value in fields.items():
            setattr(booking, key, value)
        self.session.flush()
        return booking

    @_store_call
    def count_overlapping(self, room_id, start, end, status=STATUS_ACTIVE, exclude_id=None):
        q = self.session.query(Booking).filter(
            Booking.room_id == room_id,
            Booking.status == status,
            Booking.start_time < end,
            Booking.end_time > start,
        )
        if exclude_id is not None:
            q = q.filter(Booking.id != exclude_id)
        return q.count()

    @_store_call
    def list_bookings(self, room_ids=None, start_time_gte=None, end_time_lte=None):
        q = self.session.query(Booking)
        if room_ids is not None:
            q = q.filter(Booking.room_id.in_(list(room_ids)))
        if start_time_gte is not None:
            q = q.filter(Booking.start_time >= start_time_gte)
        if end_time_lte is not None:
            q = q.filter(Booking.end_time <= end_time_lte)
        return q.order_by(Booking.start_time.asc()).all()

    @_store_call
    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
