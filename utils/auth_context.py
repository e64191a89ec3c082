from functools import wraps
from flask import g, request

from models import db
from models.user import User, STATUS_INACTIVE, STATUS_SUSPENDED
from security.tokens import decode_access_token
from utils.errors import UnauthorizedError

BLOCKED_STATUSES = {STATUS_SUSPENDED, STATUS_INACTIVE}


def _bearer_token():
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[7:].strip() or None


def load_current_user():
    g.user = None
    g.token_claims = None

    token = _bearer_token()
    if not token:
        return

    claims = decode_access_token(token)
    if not claims:
        return

    user = db.session.get(User, int(claims["sub"]))
    if not user or user.status in BLOCKED_STATUSES:
        return

    g.user = user
    g.token_claims = claims


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            raise UnauthorizedError("Authentication required")
        return fn(*args, **kwargs)
    return wrapper
