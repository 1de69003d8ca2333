import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _engine_options(uri: str, timeout: int) -> dict:
    """Bound every store call: pool checkout, connect and (postgres) statements."""
    options = {"pool_pre_ping": True}
    if uri.startswith("sqlite"):
        # sqlite waits this long on a locked database file
        options["connect_args"] = {"timeout": timeout}
        return options

    options["pool_timeout"] = timeout
    if uri.startswith("postgresql"):
        options["connect_args"] = {
            "connect_timeout": timeout,
            "options": f"-c statement_timeout={timeout * 1000} -c lock_timeout={timeout * 1000}",
        }
    return options


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to app.py as hotelbooking.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "hotelbooking.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Seconds before a store call is treated as unavailable
    STORE_TIMEOUT_SECONDS = int(os.getenv("STORE_TIMEOUT_SECONDS", "5"))
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options(SQLALCHEMY_DATABASE_URI, STORE_TIMEOUT_SECONDS)

    # Refund policy (hours before start_time)
    REFUND_FULL_HOURS = 48
    REFUND_HALF_HOURS = 24

    # CORS for the dashboard
    CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "*")

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_FROM_NAME = os.getenv("SMTP_FROM_NAME", "Scaler Hotel")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Notifications
    NOTIFY_ON_CANCEL = os.getenv("NOTIFY_ON_CANCEL", "true").lower() == "true"
    NOTIFY_MAX_ATTEMPTS = int(os.getenv("NOTIFY_MAX_ATTEMPTS", "2"))
    NOTIFY_RETRY_SECONDS = int(os.getenv("NOTIFY_RETRY_SECONDS", "30"))

    # Celery worker delivers notification e-mails off the request path
    CELERY = {
        "broker_url": os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0"),
        "task_ignore_result": True,
    }

    # Emails show times in this zone; the API itself is always UTC
    DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "Asia/Kolkata")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    NOTIFY_ON_CANCEL = False
    SMTP_HOST = None
    CELERY = {
        "broker_url": "memory://",
        "task_ignore_result": True,
        "task_always_eager": True,
    }
    LOG_LEVEL = "WARNING"
