from datetime import datetime
from types import SimpleNamespace
from unittest import mock

import pytest
from kombu.exceptions import OperationalError as BrokerUnavailable

from utils import notifications
from utils.notifications import (
    booking_snapshot,
    format_local,
    queue_booking_cancelled,
    send_booking_cancelled,
    send_booking_cancelled_task,
    send_booking_confirmed,
)


@pytest.fixture
def smtp_app(app):
    app.config.update(SMTP_HOST="smtp.example.com", SMTP_FROM_EMAIL="hotel@example.com", SMTP_PORT=587)
    return app


def test_format_local_uses_display_zone():
    assert format_local("2026-01-10T04:30:00Z", "Asia/Kolkata") == "10/01/2026 10:00 IST"
    assert format_local(datetime(2026, 1, 10, 4, 30), "UTC") == "10/01/2026 04:30 UTC"
    assert format_local(None, "UTC") == "-"


def test_booking_snapshot():
    booking = SimpleNamespace(start_time=datetime(2026, 1, 10, 4, 30), end_time=datetime(2026, 1, 10, 6, 30), price=1000)
    room = SimpleNamespace(room_number=101, type="Standard")
    snap = booking_snapshot(booking, room)
    assert snap["room_number"] == 101
    assert snap["room_type"] == "Standard"
    assert snap["price"] == 1000
    assert snap["start_time"] == "2026-01-10T04:30:00"
    assert booking_snapshot(booking)["room_number"] is None


def test_send_booking_confirmed_renders_and_sends(smtp_app):
    snapshot = {"room_number": 101, "room_type": "Standard",
                "start_time": "2026-01-10T04:30:00Z", "end_time": "2026-01-10T07:30:00Z", "price": 1500}

    with mock.patch("utils.emailer.smtplib.SMTP") as smtp:
        ok, err = send_booking_confirmed("guest@example.com", snapshot)

    assert ok and err is None
    server = smtp.return_value.__enter__.return_value
    server.starttls.assert_called_once()
    msg = server.send_message.call_args[0][0]
    assert msg["To"] == "guest@example.com"
    assert msg["Subject"] == "Your booking is confirmed"
    html = msg.get_body(preferencelist=("html",)).get_content()
    assert "101 (Standard)" in html
    assert "10/01/2026 10:00 IST" in html
    assert "₹1500" in html


def test_send_booking_cancelled_includes_refund(smtp_app):
    snapshot = {"room_number": 101, "start_time": "2026-01-10T04:30:00Z",
                "end_time": "2026-01-10T07:30:00Z", "price": 1500}

    with mock.patch("utils.emailer.smtplib.SMTP") as smtp:
        ok, _ = send_booking_cancelled("guest@example.com", snapshot, refund_percent=50, refund_amount=750)

    assert ok
    msg = smtp.return_value.__enter__.return_value.send_message.call_args[0][0]
    html = msg.get_body(preferencelist=("html",)).get_content()
    assert "₹750 (50%)" in html
    assert "48+ hours before check-in" in html


def test_send_without_smtp_config(app):
    ok, err = send_booking_confirmed("guest@example.com", {})
    assert not ok
    assert err == "Email not configured"


def test_mail_endpoints(client, smtp_app):
    assert client.post("/mail/booking-confirm", json={}).status_code == 400

    with mock.patch("utils.emailer.smtplib.SMTP"):
        resp = client.post("/mail/booking-confirm", json={"email": "guest@example.com", "booking": {"room_number": 101}})
    assert resp.get_json() == {"ok": True, "message": "Confirmation email sent."}

    with mock.patch("utils.emailer.smtplib.SMTP", side_effect=OSError("down")):
        resp = client.post("/mail/booking-cancelled", json={"email": "guest@example.com", "refund_percent": 0})
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to send cancellation email."}


SNAPSHOT = {"room_number": 101, "start_time": "2026-01-10T04:30:00", "end_time": "2026-01-10T07:30:00", "price": 1500}


def test_cancellation_task_retries_then_gives_up(app):
    app.config["NOTIFY_MAX_ATTEMPTS"] = 3

    with mock.patch.object(notifications, "send_booking_cancelled", return_value=(False, "connection refused")) as sender:
        result = send_booking_cancelled_task.delay("guest@example.com", SNAPSHOT, refund_percent=50, refund_amount=750)

    assert result.get() is False
    assert sender.call_count == 3
    sender.assert_called_with("guest@example.com", SNAPSHOT, refund_percent=50, refund_amount=750)


def test_cancellation_task_stops_after_first_success(app):
    outcomes = [(False, "timed out"), (True, None)]

    with mock.patch.object(notifications, "send_booking_cancelled", side_effect=outcomes) as sender:
        result = send_booking_cancelled_task.delay("guest@example.com", SNAPSHOT)

    assert result.get() is True
    assert sender.call_count == 2


def test_cancellation_task_skips_when_email_not_configured(app):
    with mock.patch.object(notifications, "send_booking_cancelled", wraps=send_booking_cancelled) as sender:
        result = send_booking_cancelled_task.delay("guest@example.com", SNAPSHOT)

    assert result.get() is False
    assert sender.call_count == 1


def test_queue_reports_unreachable_broker(app):
    task = mock.Mock()
    task.delay.side_effect = BrokerUnavailable("Connection refused")

    with mock.patch.object(notifications, "send_booking_cancelled_task", task):
        assert queue_booking_cancelled("guest@example.com", SNAPSHOT) is False
    task.delay.assert_called_once()


def test_cancel_queues_notification(client, app):
    app.config["NOTIFY_ON_CANCEL"] = True
    room = client.post("/rooms", json={"room_number": 101, "type": "Standard", "price_per_hour": 500}).get_json()["room"]
    booking = client.post("/bookings", json={
        "user_email": "guest@example.com", "room_id": room["id"],
        "start_time": "2030-01-01T10:00:00Z", "end_time": "2030-01-01T11:00:00Z",
    }).get_json()["booking"]

    with mock.patch.object(notifications, "send_booking_cancelled", return_value=(True, None)) as sender:
        resp = client.delete(f"/bookings/{booking['id']}")

    assert resp.status_code == 200
    sender.assert_called_once()
    email, snapshot = sender.call_args.args
    assert email == "guest@example.com"
    assert snapshot["room_number"] == 101
    assert snapshot["start_time"] == "2030-01-01T10:00:00"
    assert sender.call_args.kwargs == {"refund_percent": 100, "refund_amount": 500}


def test_cancel_succeeds_when_email_delivery_fails(client, app):
    app.config["NOTIFY_ON_CANCEL"] = True
    room = client.post("/rooms", json={"room_number": 101, "type": "Standard", "price_per_hour": 500}).get_json()["room"]
    booking = client.post("/bookings", json={
        "user_email": "guest@example.com", "room_id": room["id"],
        "start_time": "2030-01-01T10:00:00Z", "end_time": "2030-01-01T11:00:00Z",
    }).get_json()["booking"]

    with mock.patch.object(notifications, "send_booking_cancelled", return_value=(False, "connection refused")):
        resp = client.delete(f"/bookings/{booking['id']}")

    assert resp.status_code == 200
    assert resp.get_json()["booking"]["status"] == "cancelled"
