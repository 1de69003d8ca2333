"""Booking lifecycle: create, update, cancel and filtered listing.

The service owns every booking rule (ordering of validation, overlap,
pricing, refund tiers). Persistence goes through an injected store so the
same rules run against SQLAlchemy in the app and against fakes in tests.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from models.booking import BOOKING_STATUSES, STATUS_ACTIVE, STATUS_CANCELLED
from services import pricing
from services.errors import BookingError, Conflict, InvalidInput, NotFound
from services.store import OVERLAP_MESSAGE, BookingStore

logger = logging.getLogger(__name__)

UNSET = object()

PATCH_FIELDS = ("user_email", "room_id", "start_time", "end_time", "status")


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value) -> Optional[datetime]:
    """ISO-8601 string (or datetime) -> naive UTC datetime, None if unparseable.

    Values without an offset are taken as UTC.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is not None:
        try:
            dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
        except (ValueError, OverflowError):
            # offset pushes the instant outside datetime's range
            return None
    return dt


def _clean_email(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _clean_room_id(value) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


@dataclass
class BookingPatch:
    """Partial update. A field left as UNSET keeps the stored value."""

    user_email: object = UNSET
    room_id: object = UNSET
    start_time: object = UNSET
    end_time: object = UNSET
    status: object = UNSET

    @classmethod
    def from_json(cls, data: dict) -> "BookingPatch":
        return cls(**{name: data[name] for name in PATCH_FIELDS if name in data})

    def provided(self, name: str) -> bool:
        return getattr(self, name) is not UNSET


@dataclass
class CancelResult:
    booking: object
    refund_percent: int
    refund_amount: int


@dataclass
class BookingService:
    store: BookingStore
    clock: Callable[[], datetime] = field(default=utcnow)
    full_refund_hours: int = pricing.REFUND_FULL_HOURS
    half_refund_hours: int = pricing.REFUND_HALF_HOURS

    # ---------- create ----------
    def create_booking(self, user_email, room_id, start_time, end_time):
        email = _clean_email(user_email)
        rid = _clean_room_id(room_id)
        start = parse_timestamp(start_time)
        end = parse_timestamp(end_time)

        if not email or not rid or not start or not end:
            raise InvalidInput("Missing or invalid fields: user_email, room_id, start_time, end_time")
        if start >= end:
            raise InvalidInput("start_time must be before end_time")

        with self._write():
            room = self.store.lock_room(rid)
            if room is None:
                raise NotFound("Room not found")
            self._ensure_available(rid, start, end)

            booking = self.store.insert_booking(
                user_email=email,
                room_id=rid,
                start_time=start,
                end_time=end,
                price=pricing.compute_price(start, end, room.price_per_hour),
                status=STATUS_ACTIVE,
            )
            self.store.commit()

        logger.info("booking %s created for room %s", booking.id, rid)
        return booking

    # ---------- update ----------
    def update_booking(self, booking_id, patch: BookingPatch):
        booking = self.store.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFound("Booking not found")
        if booking.status == STATUS_CANCELLED:
            raise InvalidInput("Cancelled bookings cannot be modified")

        email = booking.user_email
        if patch.provided("user_email"):
            email = _clean_email(patch.user_email)
            if not email:
                raise InvalidInput("user_email cannot be empty")

        status = booking.status
        if patch.provided("status"):
            status = patch.status
            if status not in BOOKING_STATUSES:
                raise InvalidInput(f"status must be one of {', '.join(BOOKING_STATUSES)}")

        rid = booking.room_id
        if patch.provided("room_id"):
            rid = _clean_room_id(patch.room_id)
            if not rid:
                raise InvalidInput("room_id cannot be empty")

        start = parse_timestamp(patch.start_time) if patch.provided("start_time") else booking.start_time
        end = parse_timestamp(patch.end_time) if patch.provided("end_time") else booking.end_time
        if not start or not end:
            raise InvalidInput("Invalid dates")
        if start >= end:
            raise InvalidInput("start_time must be before end_time")

        with self._write():
            room = self.store.lock_room(rid)
            if room is None:
                raise NotFound("Room not found")
            self._ensure_available(rid, start, end, exclude_id=booking.id)

            changes = {
                "user_email": email,
                "room_id": rid,
                "start_time": start,
                "end_time": end,
                "price": pricing.compute_price(start, end, room.price_per_hour),
                "status": status,
            }
            if status == STATUS_CANCELLED:
                changes["cancelled_at"] = self.clock()
            booking = self.store.update_booking(booking, **changes)
            self.store.commit()

        logger.info("booking %s updated", booking.id)
        return booking

    # ---------- cancel ----------
    def cancel_booking(self, booking_id) -> CancelResult:
        booking = self.store.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFound("Booking not found")
        if booking.status == STATUS_CANCELLED:
            raise InvalidInput("Booking already cancelled")

        now = self.clock()
        percent = pricing.refund_percent(
            now, booking.start_time,
            full_hours=self.full_refund_hours,
            half_hours=self.half_refund_hours,
        )
        amount = pricing.refund_amount(percent, booking.price)

        with self._write():
            booking = self.store.update_booking(booking, status=STATUS_CANCELLED, cancelled_at=now)
            self.store.commit()

        logger.info("booking %s cancelled, refund %s%% (%s)", booking.id, percent, amount)
        return CancelResult(booking=booking, refund_percent=percent, refund_amount=amount)

    # ---------- list ----------
    def list_bookings(self, room_number=None, room_type=None, start_time=None, end_time=None):
        """Bookings ordered by start_time, each paired with its room (or None)."""
        if room_number is not None and not isinstance(room_number, int):
            try:
                room_number = int(str(room_number).strip())
            except ValueError:
                raise InvalidInput("room_number must be a whole number, e.g. 101")

        lower = upper = None
        if start_time is not None:
            lower = parse_timestamp(start_time)
            if lower is None:
                raise InvalidInput("Invalid start_time filter")
        if end_time is not None:
            upper = parse_timestamp(end_time)
            if upper is None:
                raise InvalidInput("Invalid end_time filter")

        room_filtered = room_number is not None or room_type is not None
        rooms = self.store.list_rooms(room_number=room_number, room_type=room_type)
        if room_filtered and not rooms:
            return []

        room_map = {r.id: r for r in rooms}
        bookings = self.store.list_bookings(
            room_ids=list(room_map) if room_filtered else None,
            start_time_gte=lower,
            end_time_lte=upper,
        )
        return [(b, room_map.get(b.room_id)) for b in bookings]

    # ---------- helpers ----------
    def _ensure_available(self, room_id, start, end, exclude_id=None):
        overlapping = self.store.count_overlapping(
            room_id, start, end, status=STATUS_ACTIVE, exclude_id=exclude_id
        )
        if overlapping:
            logger.info("overlap on room %s for %s - %s", room_id, start, end)
            raise Conflict(OVERLAP_MESSAGE)

    @contextmanager
    def _write(self):
        # a failed step rolls back, releasing the room lock
        try:
            yield
        except BookingError:
            self.store.rollback()
            raise
