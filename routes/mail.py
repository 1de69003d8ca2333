from flask import Blueprint, request, jsonify

from utils.notifications import send_booking_confirmed, send_booking_cancelled

mail_bp = Blueprint("mail", __name__, url_prefix="/mail")


def _mail_payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    email = data.get("email")
    email = email.strip() if isinstance(email, str) else ""
    booking = data.get("booking")
    if not isinstance(booking, dict):
        booking = {}
    return email, booking, data


@mail_bp.post("/booking-confirm")
def booking_confirm():
    email, booking, _ = _mail_payload()
    if not email:
        return jsonify(error="Missing email"), 400

    ok, err = send_booking_confirmed(email, booking)
    if not ok:
        return jsonify(error="Failed to send confirmation email."), 500
    return jsonify(ok=True, message="Confirmation email sent."), 200


@mail_bp.post("/booking-cancelled")
def booking_cancelled():
    email, booking, data = _mail_payload()
    if not email:
        return jsonify(error="Missing email"), 400

    ok, err = send_booking_cancelled(
        email,
        booking,
        refund_percent=data.get("refund_percent"),
        refund_amount=data.get("refund_amount"),
    )
    if not ok:
        return jsonify(error="Failed to send cancellation email."), 500
    return jsonify(ok=True, message="Cancellation email sent."), 200
