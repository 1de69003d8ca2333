from datetime import datetime, timezone

from flask import Blueprint, jsonify

health_bp = Blueprint("health", __name__, url_prefix="/health")


@health_bp.get("")
def health():
    return jsonify(ok=True, time=datetime.now(timezone.utc).isoformat()), 200
