"""Booking confirmation / cancellation emails.

Times are rendered in one configured zone (DISPLAY_TIMEZONE) and always carry
the zone abbreviation; the API itself only ever speaks UTC.
"""
import logging
from datetime import timezone
from zoneinfo import ZoneInfo

from celery import shared_task
from flask import current_app, render_template
from kombu.exceptions import OperationalError as BrokerUnavailable

from services.booking_service import parse_timestamp
from utils.emailer import EMAIL_NOT_CONFIGURED, send_email

logger = logging.getLogger(__name__)


def format_local(value, tz_name: str) -> str:
    dt = parse_timestamp(value)
    if dt is None:
        return "-" if value in (None, "") else str(value)
    local = dt.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(tz_name))
    return local.strftime("%d/%m/%Y %H:%M %Z")


def format_money(amount) -> str:
    return "-" if amount is None else f"₹{amount}"


def booking_snapshot(booking, room=None) -> dict:
    """JSON-safe dict the templates render; taken before the request ends."""
    return {
        "room_number": room.room_number if room else None,
        "room_type": room.type if room else None,
        "start_time": booking.start_time.isoformat(),
        "end_time": booking.end_time.isoformat(),
        "price": booking.price,
    }


def _context(snapshot: dict) -> dict:
    tz_name = current_app.config.get("DISPLAY_TIMEZONE", "UTC")
    room = snapshot.get("room_number")
    room_label = "-" if room is None else str(room)
    if snapshot.get("room_type"):
        room_label += f" ({snapshot['room_type']})"
    return {
        "room": room_label,
        "start": format_local(snapshot.get("start_time"), tz_name),
        "end": format_local(snapshot.get("end_time"), tz_name),
        "price": format_money(snapshot.get("price")),
    }


def send_booking_confirmed(email: str, snapshot: dict):
    ctx = _context(snapshot)
    subject = "Your booking is confirmed"
    text = (
        "Booking Confirmed\n\n"
        f"Room: {ctx['room']}\nStart: {ctx['start']}\nEnd: {ctx['end']}\nPrice: {ctx['price']}\n"
    )
    html = render_template("email/booking_confirmed.html", **ctx)
    return send_email(email, subject, text, html=html)


def send_booking_cancelled(email: str, snapshot: dict, refund_percent=None, refund_amount=None):
    ctx = _context(snapshot)
    ctx["refund"] = format_money(refund_amount)
    ctx["refund_percent"] = "-" if refund_percent is None else refund_percent
    ctx["full_hours"] = current_app.config.get("REFUND_FULL_HOURS", 48)
    ctx["half_hours"] = current_app.config.get("REFUND_HALF_HOURS", 24)
    subject = "Your booking has been cancelled"
    text = (
        "Booking Cancelled\n\n"
        f"Room: {ctx['room']}\nStart: {ctx['start']}\nEnd: {ctx['end']}\n"
        f"Original Price: {ctx['price']}\nRefund Amount: {ctx['refund']} ({ctx['refund_percent']}%)\n"
    )
    html = render_template("email/booking_cancelled.html", **ctx)
    return send_email(email, subject, text, html=html)


class NotificationFailed(Exception):
    pass


@shared_task(bind=True, ignore_result=True)
def send_booking_cancelled_task(self, email: str, snapshot: dict, refund_percent=None, refund_amount=None):
    """Deliver the cancellation e-mail, retrying SMTP failures up to NOTIFY_MAX_ATTEMPTS."""
    max_retries = max(1, current_app.config.get("NOTIFY_MAX_ATTEMPTS", 1)) - 1
    attempt = self.request.retries + 1

    ok, err = send_booking_cancelled(email, snapshot, refund_percent=refund_percent, refund_amount=refund_amount)
    if ok:
        return True
    if err == EMAIL_NOT_CONFIGURED:
        logger.info("cancellation email to %s skipped: %s", email, err)
        return False
    if self.request.retries >= max_retries:
        logger.error("cancellation email to %s failed after %d attempt(s): %s", email, attempt, err)
        return False

    logger.warning("cancellation email to %s failed (attempt %d/%d): %s", email, attempt, max_retries + 1, err)
    raise self.retry(
        exc=NotificationFailed(err),
        countdown=current_app.config.get("NOTIFY_RETRY_SECONDS", 30),
        max_retries=max_retries,
    )


def queue_booking_cancelled(email: str, snapshot: dict, refund_percent=None, refund_amount=None) -> bool:
    """Hand the cancellation e-mail to the worker; the response never waits on SMTP."""
    try:
        send_booking_cancelled_task.delay(email, snapshot, refund_percent=refund_percent, refund_amount=refund_amount)
    except BrokerUnavailable as exc:
        logger.error("could not queue cancellation email for %s: %s", email, exc)
        return False
    return True
