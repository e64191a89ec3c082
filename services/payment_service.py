"""Simulated Flutterwave / Paystack charges.

No network calls are made: a gateway "succeeds" with probability
``PAYMENT_SUCCESS_RATE``. The booking's payment status mirrors the outcome.
"""
import logging
import random
import secrets
import time
from datetime import datetime

from flask import current_app

from models import db
from models.booking import Booking, PAYMENT_PAID, PAYMENT_FAILED, PAYMENT_PENDING
from models.payment import Payment, GATEWAYS, METHODS
from models.user import User, ROLE_ADMIN
from utils.audit import log_event
from utils.errors import ForbiddenError, InvalidStateError, NotFoundError
from utils.validators import parse_choice

logger = logging.getLogger(__name__)

GATEWAY_PREFIX = {"flutterwave": "FLW", "paystack": "PSK", "cash": "CASH"}


def _new_reference() -> str:
    return f"RHC-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"


def _gateway_succeeds() -> bool:
    rate = float(current_app.config.get("PAYMENT_SUCCESS_RATE", 0.9))
    return random.random() < rate


def serialize_payment(p: Payment) -> dict:
    return {
        "id": p.id,
        "bookingId": p.booking_id,
        "gateway": p.gateway,
        "method": p.method,
        "amount": float(p.amount),
        "currency": p.currency,
        "status": p.status,
        "reference": p.reference,
        "transactionId": p.transaction_id,
        "createdAt": p.created_at.isoformat() if p.created_at else None,
        "paidAt": p.paid_at.isoformat() if p.paid_at else None,
    }


def _load_booking(booking_id, actor: User, owner_only: bool) -> Booking:
    try:
        booking = db.session.get(Booking, int(booking_id))
    except (TypeError, ValueError):
        booking = None
    if not booking:
        raise NotFoundError("Booking not found")

    if booking.patient_id == actor.id:
        return booking
    if not owner_only and actor.role == ROLE_ADMIN:
        return booking
    raise ForbiddenError("You can only pay for your own bookings")


def initiate_payment(booking_id, actor: User, gateway: str, method: str) -> Payment:
    booking = _load_booking(booking_id, actor, owner_only=True)
    method = parse_choice(method or "card", "method", METHODS)
    gateway = "cash" if method == "cash" else parse_choice(gateway or "flutterwave", "gateway", GATEWAYS[:2])

    if booking.is_terminal:
        raise InvalidStateError(f"Cannot pay for a {booking.status} booking")
    if booking.payment_status == PAYMENT_PAID:
        raise InvalidStateError("Booking is already paid")

    payment = Payment(
        booking_id=booking.id,
        gateway=gateway,
        method=method,
        amount=booking.total_price,
        currency="NGN",
        status="INIT",
        reference=_new_reference(),
    )
    db.session.add(payment)
    booking.payment_method = method

    if gateway == "cash":
        # settled at the visit, the booking stays pending
        booking.payment_status = PAYMENT_PENDING
    elif _gateway_succeeds():
        payment.status = "PAID"
        payment.paid_at = datetime.utcnow()
        payment.transaction_id = f"{GATEWAY_PREFIX[gateway]}-{int(time.time() * 1000)}"
        booking.payment_status = PAYMENT_PAID
        booking.payment_reference = payment.reference
    else:
        payment.status = "FAILED"
        booking.payment_status = PAYMENT_FAILED

    db.session.flush()
    action = "PAYMENT_CASH_SELECTED" if gateway == "cash" else f"PAYMENT_{payment.status}"
    log_event(action, user_id=actor.id, entity="payment", entity_id=payment.id,
              metadata={"booking_id": booking.id, "gateway": gateway, "amount": str(payment.amount)},
              commit=False)
    db.session.commit()
    logger.info("Payment %s for booking %s via %s: %s", payment.reference, booking.id, gateway, payment.status)
    return payment


def payments_for_booking(booking_id, actor: User):
    booking = _load_booking(booking_id, actor, owner_only=False)
    return Payment.query.filter_by(booking_id=booking.id).order_by(Payment.created_at.desc()).all()
