import uuid
from datetime import datetime
from models.db import db

ROOM_TYPES = ("Standard", "Deluxe", "Superior")


class Room(db.Model):
    __tablename__ = "rooms"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_number = db.Column(db.Integer, nullable=False, unique=True, index=True)
    type = db.Column(db.String(20), nullable=False)  # Standard, Deluxe, Superior
    price_per_hour = db.Column(db.Integer, nullable=False)  # whole-number rate

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("room_number > 0", name="ck_rooms_number_positive"),
        db.CheckConstraint("price_per_hour > 0", name="ck_rooms_price_positive"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "room_number": self.room_number,
            "type": self.type,
            "price_per_hour": self.price_per_hour,
        }
