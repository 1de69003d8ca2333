import json
import logging

from flask import request
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def log_event(action: str, entity=None, entity_id=None, metadata=None) -> bool:
    """Record an audit row. Runs after the business write has committed, so a
    failure here is logged and rolled back rather than failing the request."""
    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    user_agent = request.headers.get("User-Agent", "")

    row = AuditLog(
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None
    )
    try:
        db.session.add(row)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.warning("audit event %s for %s %s not recorded", action, entity, entity_id, exc_info=True)
        return False
    return True
