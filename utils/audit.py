import json
import logging

from flask import g, has_request_context, request

from models import db
from models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def _request_meta(user_id):
    if not has_request_context():
        return None, None, None

    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    user_agent = (request.headers.get("User-Agent") or "")[:255] or None

    actor = getattr(g, "user", None)
    role = actor.role if actor is not None and actor.id == user_id else None
    return ip, user_agent, role


def log_event(action: str, user_id=None, entity=None, entity_id=None, metadata=None, commit=True):
    """Adds an audit row to the session, committing unless the caller owns the transaction."""
    ip, user_agent, role = _request_meta(user_id)

    row = AuditLog(
        user_id=user_id,
        actor_role=role,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent,
        # round-trip through json so Decimal and date values are stored as strings
        details=json.loads(json.dumps(metadata, default=str)) if metadata else None,
    )
    db.session.add(row)
    if commit:
        db.session.commit()

    logger.info("audit %s user=%s %s=%s", action, user_id, entity or "-", entity_id if entity_id is not None else "-")
