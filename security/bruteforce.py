"""Per-account login lockout.

Counters live on the ``users`` row so the lock follows the account, not the
client address. Callers own the transaction; nothing here commits.
"""
from datetime import datetime, timedelta
from typing import Optional, Tuple

from models.user import User


def is_locked(user: User, now: Optional[datetime] = None) -> Tuple[bool, int]:
    """
    Returns (locked, seconds_remaining)
    """
    now = now or datetime.utcnow()
    if not user.lock_until or user.lock_until <= now:
        return False, 0

    seconds = int((user.lock_until - now).total_seconds())
    return True, max(seconds, 1)


def register_failure(user: User, max_attempts: int, lock_minutes: int,
                     now: Optional[datetime] = None) -> Tuple[int, bool]:
    """
    Increments the failure counter. Returns (login_attempts, locked_now)
    """
    now = now or datetime.utcnow()

    # an expired lock starts a fresh count
    if user.lock_until and user.lock_until <= now:
        user.login_attempts = 1
        user.lock_until = None
        return user.login_attempts, False

    user.login_attempts = (user.login_attempts or 0) + 1

    locked_now = False
    if user.login_attempts >= max_attempts:
        user.lock_until = now + timedelta(minutes=lock_minutes)
        locked_now = True

    return user.login_attempts, locked_now


def reset_attempts(user: User):
    """
    Clears failure counter after successful login or password reset.
    """
    user.login_attempts = 0
    user.lock_until = None
