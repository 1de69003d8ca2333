import uuid
from datetime import datetime, timezone
from models.db import db

STATUS_ACTIVE = "active"
STATUS_CANCELLED = "cancelled"
BOOKING_STATUSES = (STATUS_ACTIVE, STATUS_CANCELLED)


def _iso(dt):
    # stored naive, always UTC
    return dt.replace(tzinfo=timezone.utc).isoformat() if dt else None


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    user_email = db.Column(db.String(255), nullable=False)
    room_id = db.Column(db.String(36), db.ForeignKey("rooms.id"), nullable=False, index=True)

    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)

    price = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE)
    # status values: active, cancelled

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.CheckConstraint("start_time < end_time", name="ck_bookings_time_order"),
        # overlap scans filter on these three together
        db.Index("ix_bookings_room_status_start", "room_id", "status", "start_time"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_email": self.user_email,
            "room_id": self.room_id,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "price": self.price,
            "status": self.status,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "cancelled_at": _iso(self.cancelled_at),
        }
