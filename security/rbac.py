from functools import wraps
from flask import g

from utils.errors import ForbiddenError, UnauthorizedError


def require_roles(*role_names: str):
    """
    Usage: @require_roles("admin", "nurse")
    """
    allowed = frozenset(role_names)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                raise UnauthorizedError("Authentication required")

            if user.role not in allowed:
                raise ForbiddenError("Insufficient permissions")

            return fn(*args, **kwargs)
        return wrapper
    return decorator
