from conftest import auth_header
from models import db
from models.audit_log import AuditLog
from models.booking import Booking


def _initiate(client, user, booking, **extra):
    payload = {"bookingId": booking.id, "gateway": "paystack", "method": "card"}
    payload.update(extra)
    return client.post("/api/v1/payments/initiate", headers=auth_header(user), json=payload)


def test_successful_payment_marks_booking_paid(client, patient, make_booking):
    booking = make_booking(patient)
    resp = _initiate(client, patient, booking)
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["status"] == "PAID"
    assert data["amount"] == 7350.0
    assert data["transactionId"].startswith("PSK-")

    booking = db.session.get(Booking, booking.id)
    assert booking.payment_status == "paid"
    assert booking.payment_reference == data["reference"]


def test_failed_payment(client, app, patient, make_booking):
    app.config["PAYMENT_SUCCESS_RATE"] = 0.0
    booking = make_booking(patient)
    resp = _initiate(client, patient, booking)
    assert resp.status_code == 402
    assert resp.get_json()["data"]["status"] == "FAILED"
    assert db.session.get(Booking, booking.id).payment_status == "failed"
    assert AuditLog.query.filter_by(action="PAYMENT_FAILED").count() == 1


def test_cash_stays_pending(client, patient, make_booking):
    booking = make_booking(patient)
    resp = _initiate(client, patient, booking, method="cash")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["gateway"] == "cash"
    assert db.session.get(Booking, booking.id).payment_status == "pending"


def test_cannot_pay_twice(client, patient, make_booking):
    booking = make_booking(patient)
    assert _initiate(client, patient, booking).status_code == 200
    assert _initiate(client, patient, booking).status_code == 400


def test_cannot_pay_cancelled_booking(client, patient, make_booking):
    booking = make_booking(patient, status="cancelled")
    assert _initiate(client, patient, booking).status_code == 400


def test_only_owner_pays(client, patient, admin, make_user, make_booking):
    booking = make_booking(patient)
    assert _initiate(client, make_user(), booking).status_code == 403
    assert _initiate(client, admin, booking).status_code == 403


def test_unknown_gateway(client, patient, make_booking):
    booking = make_booking(patient)
    assert _initiate(client, patient, booking, gateway="bitcoin").status_code == 400


def test_payment_history(client, patient, admin, make_user, make_booking):
    booking = make_booking(patient)
    _initiate(client, patient, booking, method="cash")
    _initiate(client, patient, booking)

    url = f"/api/v1/payments/booking/{booking.id}"
    assert len(client.get(url, headers=auth_header(patient)).get_json()["data"]) == 2
    assert client.get(url, headers=auth_header(admin)).status_code == 200
    assert client.get(url, headers=auth_header(make_user())).status_code == 403
