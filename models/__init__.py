from .db import db, serialize_sqlite_writes
from .room import Room, ROOM_TYPES
from .booking import Booking, BOOKING_STATUSES, STATUS_ACTIVE, STATUS_CANCELLED
from .audit_log import AuditLog
