import logging
from datetime import datetime, timezone

from flask import Flask, request, jsonify, current_app
from werkzeug.exceptions import HTTPException

from config import Config
from routes import health_bp, rooms_bp, booking_bp, mail_bp

from models import db, serialize_sqlite_writes
from flask_migrate import Migrate
from services.errors import BookingError
from utils.worker import celery_init_app

logger = logging.getLogger(__name__)

BLUEPRINTS = (health_bp, rooms_bp, booking_bp, mail_bp)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Register routes, bare and under /api (the dashboard's base URL)
    for bp in BLUEPRINTS:
        app.register_blueprint(bp)
        app.register_blueprint(bp, url_prefix="/api" + bp.url_prefix, name=f"api_{bp.name}")

    @app.get("/")
    def index():
        return jsonify(status="ok", service="hotel-booking-api", time=datetime.now(timezone.utc).isoformat()), 200

    # Database init
    db.init_app(app)
    with app.app_context():
        if db.engine.dialect.name == "sqlite":
            serialize_sqlite_writes(db.engine)

    # Migrations
    Migrate(app, db)

    # Background notifications
    celery_init_app(app)

    register_error_handlers(app)

    @app.before_request
    def _cors_preflight():
        if request.method == "OPTIONS":
            return current_app.response_class(status=204)

    @app.after_request
    def add_headers(resp):
        resp.headers["Access-Control-Allow-Origin"] = app.config.get("CORS_ALLOWED_ORIGINS", "*")
        resp.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
        resp.headers["Access-Control-Allow-Headers"] = "Content-Type"
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app


def register_error_handlers(app):
    @app.errorhandler(BookingError)
    def _booking_error(exc):
        return jsonify(error=exc.message), exc.status_code

    @app.errorhandler(HTTPException)
    def _http_error(exc):
        return jsonify(error=exc.description), exc.code

    @app.errorhandler(Exception)
    def _unexpected(exc):
        db.session.rollback()
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return jsonify(error="Internal server error"), 500

#-------------------------
import click
from sqlalchemy.exc import IntegrityError
from models.room import Room, ROOM_TYPES

def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables directly (local SQLite; use `flask db upgrade` elsewhere)."""
        db.create_all()
        print("Tables created")

    @app.cli.command("create-room")
    @click.argument("room_number", type=click.IntRange(min=1))
    @click.argument("room_type", type=click.Choice(ROOM_TYPES))
    @click.argument("price_per_hour", type=click.IntRange(min=1))
    def create_room(room_number, room_type, price_per_hour):
        """Add a room to the inventory (bootstrap)."""
        room = Room(room_number=room_number, type=room_type, price_per_hour=price_per_hour)
        db.session.add(room)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            print(f"Room {room_number} already exists")
            return

        print(f"Room {room.room_number} ({room.type}) created with id {room.id}")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=3000)
