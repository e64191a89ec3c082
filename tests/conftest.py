import itertools
from datetime import timedelta

import pytest
from sqlalchemy import event

from app import create_app
from config import Config
from models import db
from models.booking import Booking
from models.user import ROLE_ADMIN, ROLE_CLIENT, ROLE_NURSE
from security.tokens import create_access_token
from services import pricing
from services.booking_service import local_now
from services.user_service import create_user

PASSWORD = "Str0ng!Pass"

_seq = itertools.count(1)


def _enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite leaves FK constraints off unless asked, per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    BCRYPT_ROUNDS = 4
    PAYMENT_SUCCESS_RATE = 1.0
    REQUIRE_EMAIL_VERIFICATION = False
    SMTP_HOST = None
    LOG_LEVEL = "WARNING"


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        event.listen(db.engine, "connect", _enable_foreign_keys)
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(role=ROLE_CLIENT, email=None, password=PASSWORD, **profile):
        n = next(_seq)
        user = create_user(
            email=email or f"{role}{n}@example.com",
            phone=f"0803{n:07d}",
            password=password,
            first_name="Ada",
            last_name="Okafor",
            role=role,
            **profile,
        )
        db.session.commit()
        return user
    return _make


@pytest.fixture
def patient(make_user):
    return make_user(ROLE_CLIENT)


@pytest.fixture
def nurse(make_user):
    return make_user(ROLE_NURSE)


@pytest.fixture
def admin(make_user):
    return make_user(ROLE_ADMIN)


def auth_header(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def make_booking(app):
    """Inserts a booking whose appointment is ``hours_ahead`` from now, Lagos time."""
    def _make(patient, hours_ahead=24, status="pending", nurse=None, state="Lagos"):
        when = local_now() + timedelta(hours=hours_ahead)
        breakdown = pricing.calculate_pricing(5000, False, False, state)
        booking = Booking(
            patient_id=patient.id,
            nurse_id=nurse.id if nurse else None,
            service_type="general-health-assessment",
            service_name="General Health Assessment",
            category="general",
            base_price=breakdown.service_price,
            transport_fee=breakdown.transport_fee,
            tax=breakdown.tax,
            total_price=breakdown.total,
            scheduled_date=when.date(),
            scheduled_time=when.strftime("%H:%M"),
            patient_address="12 Admiralty Way, Lekki",
            city="Lagos",
            state=state,
            emergency_contact_name="Chidi Okafor",
            emergency_contact_phone="08098765432",
            status=status,
        )
        db.session.add(booking)
        db.session.commit()
        return booking
    return _make


def next_weekday(days_ahead=3, weekday=1):
    """A date at least ``days_ahead`` out that falls on ``weekday`` (Mon=0)."""
    day = local_now().date() + timedelta(days=days_ahead)
    while day.weekday() != weekday:
        day += timedelta(days=1)
    return day
