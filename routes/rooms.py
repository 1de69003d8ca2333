from flask import Blueprint, request, jsonify
from sqlalchemy.exc import IntegrityError

from models import db
from models.room import Room, ROOM_TYPES
from utils.audit import log_event

rooms_bp = Blueprint("rooms", __name__, url_prefix="/rooms")


def _positive_int(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, int) and value > 0:
        return value
    return None


@rooms_bp.get("")
def list_rooms():
    rooms = Room.query.order_by(Room.room_number.asc()).all()
    return jsonify(rooms=[r.to_dict() for r in rooms]), 200


@rooms_bp.post("")
def create_room():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(error="JSON object body required"), 400

    room_number = _positive_int(data.get("room_number"))
    room_type = data.get("type")
    price = _positive_int(data.get("price_per_hour"))

    if room_number is None:
        return jsonify(error="room_number must be a positive integer"), 400
    if room_type not in ROOM_TYPES:
        allowed = ", ".join(f"'{t}'" for t in ROOM_TYPES)
        return jsonify(error=f"type must be one of {allowed}"), 400
    if price is None:
        return jsonify(error="price_per_hour must be a positive integer"), 400

    room = Room(room_number=room_number, type=room_type, price_per_hour=price)
    db.session.add(room)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error=f"Room {room_number} already exists"), 409

    log_event("ROOM_CREATE", entity="room", entity_id=room.id, metadata={"room_number": room_number})
    return jsonify(room=room.to_dict()), 201
