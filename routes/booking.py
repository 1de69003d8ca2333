from flask import Blueprint, request, jsonify, current_app

from models import db
from services import BookingService, BookingPatch, SqlAlchemyBookingStore, Conflict, InvalidInput
from utils.audit import log_event
from utils.notifications import booking_snapshot, queue_booking_cancelled

booking_bp = Blueprint("booking", __name__, url_prefix="/bookings")


def _service() -> BookingService:
    # one store per request, bound to this request's session
    return BookingService(
        store=SqlAlchemyBookingStore(db.session),
        full_refund_hours=current_app.config.get("REFUND_FULL_HOURS", 48),
        half_refund_hours=current_app.config.get("REFUND_HALF_HOURS", 24),
    )


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInput("JSON object body required")
    return data


# ---------- create booking ----------
@booking_bp.post("")
def create_booking():
    data = _json_body()
    try:
        booking = _service().create_booking(
            user_email=data.get("user_email"),
            room_id=data.get("room_id"),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
        )
    except Conflict:
        log_event("BOOKING_CONFLICT", entity="room", entity_id=data.get("room_id"),
                  metadata={"start_time": data.get("start_time"), "end_time": data.get("end_time")})
        raise

    log_event("BOOKING_CREATE", entity="booking", entity_id=booking.id,
              metadata={"user_email": booking.user_email, "room_id": booking.room_id, "price": booking.price})
    return jsonify(booking=booking.to_dict()), 201


# ---------- update booking ----------
@booking_bp.put("/<booking_id>")
def update_booking(booking_id: str):
    patch = BookingPatch.from_json(_json_body())
    try:
        booking = _service().update_booking(booking_id, patch)
    except Conflict:
        log_event("BOOKING_CONFLICT", entity="booking", entity_id=booking_id)
        raise

    log_event("BOOKING_UPDATE", entity="booking", entity_id=booking.id,
              metadata={"status": booking.status, "price": booking.price})
    return jsonify(booking=booking.to_dict()), 200


# ---------- cancel booking (refund tier) ----------
@booking_bp.delete("/<booking_id>")
def cancel_booking(booking_id: str):
    service = _service()
    result = service.cancel_booking(booking_id)
    booking = result.booking

    log_event("BOOKING_CANCEL", entity="booking", entity_id=booking.id,
              metadata={"refund_percent": result.refund_percent, "refund_amount": result.refund_amount})

    if current_app.config.get("NOTIFY_ON_CANCEL"):
        room = service.store.get_room_by_id(booking.room_id)
        queue_booking_cancelled(
            booking.user_email,
            booking_snapshot(booking, room),
            refund_percent=result.refund_percent,
            refund_amount=result.refund_amount,
        )

    return jsonify(
        booking=booking.to_dict(),
        refund_percent=result.refund_percent,
        refund_amount=result.refund_amount,
    ), 200


# ---------- list bookings (filters + room enrichment) ----------
@booking_bp.get("")
def list_bookings():
    rows = _service().list_bookings(
        room_number=request.args.get("room_number") or None,
        room_type=request.args.get("room_type") or None,
        start_time=request.args.get("start_time") or None,
        end_time=request.args.get("end_time") or None,
    )
    return jsonify(bookings=[
        {**b.to_dict(), "room": r.to_dict() if r else None}
        for b, r in rows
    ]), 200
