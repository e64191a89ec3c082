from datetime import datetime, timedelta

from conftest import PASSWORD
from models import db
from models.user import User
from security.bruteforce import is_locked, register_failure, reset_attempts

LOCKED_MESSAGE = "Account temporarily locked due to too many failed attempts"


def _login(client, email, password):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


def test_five_failures_lock_the_account(client, patient):
    for _ in range(5):
        resp = _login(client, patient.email, "Wr0ng!Pass")
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid credentials"

    user = db.session.get(User, patient.id)
    assert user.login_attempts == 5
    assert user.lock_until > datetime.utcnow() + timedelta(minutes=119)

    resp = _login(client, patient.email, PASSWORD)
    assert resp.status_code == 401
    assert resp.get_json()["message"] == LOCKED_MESSAGE


def test_locked_attempts_do_not_move_the_counter(client, patient):
    for _ in range(5):
        _login(client, patient.email, "Wr0ng!Pass")
    _login(client, patient.email, "Wr0ng!Pass")
    assert db.session.get(User, patient.id).login_attempts == 5


def test_login_works_again_once_the_lock_expires(client, patient):
    for _ in range(5):
        _login(client, patient.email, "Wr0ng!Pass")

    user = db.session.get(User, patient.id)
    user.lock_until = datetime.utcnow() - timedelta(seconds=1)
    db.session.commit()

    resp = _login(client, patient.email, PASSWORD)
    assert resp.status_code == 200
    user = db.session.get(User, patient.id)
    assert user.login_attempts == 0
    assert user.lock_until is None


def test_success_before_the_limit_resets_the_counter(client, patient):
    for _ in range(4):
        _login(client, patient.email, "Wr0ng!Pass")
    assert _login(client, patient.email, PASSWORD).status_code == 200
    assert db.session.get(User, patient.id).login_attempts == 0


def test_register_failure_counts_up_to_the_lock():
    user = User(login_attempts=0)
    now = datetime(2026, 3, 2, 9, 0)

    for expected in range(1, 5):
        assert register_failure(user, 5, 120, now=now) == (expected, False)
    assert register_failure(user, 5, 120, now=now) == (5, True)
    assert user.lock_until == now + timedelta(minutes=120)

    locked, seconds = is_locked(user, now=now + timedelta(minutes=60))
    assert locked is True
    assert seconds == 3600


def test_expired_lock_restarts_the_count_at_one():
    now = datetime(2026, 3, 2, 9, 0)
    user = User(login_attempts=5, lock_until=now - timedelta(minutes=1))

    assert is_locked(user, now=now) == (False, 0)
    assert register_failure(user, 5, 120, now=now) == (1, False)
    assert user.lock_until is None


def test_reset_attempts_clears_everything():
    user = User(login_attempts=3, lock_until=datetime.utcnow() + timedelta(hours=1))
    reset_attempts(user)
    assert user.login_attempts == 0
    assert user.lock_until is None
