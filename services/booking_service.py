import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from flask import current_app
from sqlalchemy import func, case

from models import db
from models.booking import (
    Booking, BOOKING_STATUSES, PAYMENT_STATUSES, TERMINAL_STATUSES,
    STATUS_PENDING, STATUS_CONFIRMED, STATUS_IN_PROGRESS, STATUS_COMPLETED,
    STATUS_CANCELLED, STATUS_NO_SHOW, PAYMENT_PENDING,
)
from models.user import User, ROLE_ADMIN, ROLE_CLIENT, ROLE_NURSE, STATUS_ACTIVE
from services import pricing
from services.assessments import get_assessment
from services.user_service import serialize_user_brief
from utils.audit import log_event
from utils.errors import (
    ForbiddenError, InvalidStateError, NotFoundError, UnauthorizedError, ValidationError,
)
from utils.validators import (
    clean_str, is_valid_phone, parse_bool, parse_choice, parse_date, parse_time,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    STATUS_PENDING: {STATUS_CONFIRMED, STATUS_CANCELLED},
    STATUS_CONFIRMED: {STATUS_IN_PROGRESS, STATUS_CANCELLED, STATUS_NO_SHOW},
    STATUS_IN_PROGRESS: {STATUS_COMPLETED},
}

# still editable after a booking reaches a terminal status
AUDIT_FIELDS = {
    "assessmentNotes": "assessment_notes",
    "assessmentRecommendations": "assessment_recommendations",
    "followUpRequired": "follow_up_required",
    "followUpDate": "follow_up_date",
    "paymentStatus": "payment_status",
    "paymentReference": "payment_reference",
}
SCHEDULE_FIELDS = {
    "scheduledDate": "scheduled_date",
    "scheduledTime": "scheduled_time",
    "specialInstructions": "special_instructions",
}
NURSE_EDITABLE = {"status", "assessmentNotes", "assessmentRecommendations",
                  "followUpRequired", "followUpDate", "specialInstructions"}
ADMIN_EDITABLE = {"status", "nurseId"} | set(AUDIT_FIELDS) | set(SCHEDULE_FIELDS)

PAYMENT_METHODS = ("card", "bank_transfer", "ussd", "qr", "cash")


def local_now() -> datetime:
    """Current wall-clock time in the clinic's timezone, naive."""
    tz = ZoneInfo(current_app.config.get("APP_TIMEZONE", "Africa/Lagos"))
    return datetime.now(tz).replace(tzinfo=None)


def appointment_datetime(booking: Booking) -> datetime:
    hour, minute = (int(p) for p in booking.scheduled_time.split(":")[:2])
    return datetime(booking.scheduled_date.year, booking.scheduled_date.month,
                    booking.scheduled_date.day, hour, minute)


def _iso(value):
    return value.isoformat() if value else None


def _money(value):
    return float(value) if value is not None else None


def _amount(value, field: str):
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")


def _duration(value, default: int) -> int:
    if value is None:
        return default
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        minutes = 0
    if isinstance(value, bool) or minutes <= 0:
        raise ValidationError("duration must be a positive integer")
    return minutes


def serialize_booking(b: Booking) -> dict:
    return {
        "id": b.id,
        "patientId": b.patient_id,
        "nurseId": b.nurse_id,
        "patient": serialize_user_brief(b.patient) if b.patient else None,
        "nurse": serialize_user_brief(b.nurse) if b.nurse else None,
        "serviceType": b.service_type,
        "serviceName": b.service_name,
        "serviceDescription": b.service_description,
        "category": b.category,
        "pricing": {
            "servicePrice": _money(b.base_price),
            "emergencyFee": _money(b.emergency_fee),
            "weekendFee": _money(b.weekend_fee),
            "transportFee": _money(b.transport_fee),
            "discount": _money(b.discount),
            "tax": _money(b.tax),
            "total": _money(b.total_price),
            "currency": "NGN",
        },
        "basePrice": _money(b.base_price),
        "totalPrice": _money(b.total_price),
        "promoCode": b.promo_code,
        "scheduledDate": _iso(b.scheduled_date),
        "scheduledTime": b.scheduled_time,
        "duration": b.duration,
        "patientAddress": b.patient_address,
        "city": b.city,
        "state": b.state,
        "postalCode": b.postal_code,
        "specialInstructions": b.special_instructions,
        "emergencyContactName": b.emergency_contact_name,
        "emergencyContactPhone": b.emergency_contact_phone,
        "medicalConditions": b.medical_conditions,
        "currentMedications": b.current_medications,
        "allergies": b.allergies,
        "requiresSpecialEquipment": b.requires_special_equipment,
        "equipmentNeeded": b.equipment_needed,
        "status": b.status,
        "paymentStatus": b.payment_status,
        "paymentMethod": b.payment_method,
        "paymentReference": b.payment_reference,
        "assessmentNotes": b.assessment_notes,
        "assessmentRecommendations": b.assessment_recommendations,
        "followUpRequired": b.follow_up_required,
        "followUpDate": _iso(b.follow_up_date),
        "cancelReason": b.cancel_reason,
        "createdAt": _iso(b.created_at),
        "updatedAt": _iso(b.updated_at),
        "completedAt": _iso(b.completed_at),
        "cancelledAt": _iso(b.cancelled_at),
    }


# ---------- pricing ----------

def quote_request(data: dict):
    """Resolves the assessment and schedule in ``data`` and prices them."""
    service_type = clean_str(data, "serviceType", required=True, max_len=60)
    assessment = get_assessment(service_type)
    if not assessment:
        raise ValidationError("Unknown assessment type")

    base_price = _amount(data.get("basePrice"), "basePrice")
    if base_price is not None and base_price != assessment["price"]:
        raise ValidationError(f"Assessment price must be exactly ₦{assessment['price']:,}")

    scheduled_date = parse_date(data.get("scheduledDate"), "scheduledDate")
    scheduled_time = parse_time(data.get("scheduledTime"), "scheduledTime")
    state = clean_str(data, "state", required=True, max_len=50)
    promo_code = clean_str(data, "promoCode", max_len=30)

    breakdown = pricing.quote(
        assessment["price"], assessment["category"], scheduled_date, scheduled_time,
        state, promo_code,
    )
    return assessment, scheduled_date, scheduled_time, breakdown


# ---------- create / read ----------

def create_booking(patient: User, data: dict) -> Booking:
    if patient.role != ROLE_CLIENT:
        raise ForbiddenError("Only patients can book assessments")

    assessment, scheduled_date, scheduled_time, breakdown = quote_request(data)

    total = _amount(data.get("totalPrice"), "totalPrice")
    if total is not None and round(total, 2) != float(breakdown.total):
        raise ValidationError("totalPrice does not match the calculated price",
                              details=breakdown.to_dict())

    booking = Booking(
        patient_id=patient.id,
        service_type=assessment["id"],
        service_name=assessment["name"],
        service_description=clean_str(data, "serviceDescription") or assessment["description"],
        category=assessment["category"],
        base_price=breakdown.service_price,
        emergency_fee=breakdown.emergency_fee,
        weekend_fee=breakdown.weekend_fee,
        transport_fee=breakdown.transport_fee,
        discount=breakdown.discount,
        tax=breakdown.tax,
        total_price=breakdown.total,
        promo_code=clean_str(data, "promoCode", max_len=30),
        scheduled_date=scheduled_date,
        scheduled_time=scheduled_time,
        duration=_duration(data.get("duration"), assessment["duration"]),
        patient_address=clean_str(data, "patientAddress", required=True),
        city=clean_str(data, "city", required=True, max_len=80),
        state=clean_str(data, "state", required=True, max_len=50),
        postal_code=clean_str(data, "postalCode", max_len=20),
        special_instructions=clean_str(data, "specialInstructions"),
        emergency_contact_name=clean_str(data, "emergencyContactName", required=True, max_len=120),
        emergency_contact_phone=clean_str(data, "emergencyContactPhone", required=True, max_len=30),
        medical_conditions=clean_str(data, "medicalConditions"),
        current_medications=clean_str(data, "currentMedications"),
        allergies=clean_str(data, "allergies"),
        requires_special_equipment=bool(data.get("requiresSpecialEquipment")),
        equipment_needed=clean_str(data, "equipmentNeeded"),
        payment_method=parse_choice(data.get("paymentMethod") or "card", "paymentMethod", PAYMENT_METHODS),
        status=STATUS_PENDING,
        payment_status=PAYMENT_PENDING,
    )

    if not is_valid_phone(booking.emergency_contact_phone):
        raise ValidationError("Invalid emergency contact phone number")
    if appointment_datetime(booking) <= local_now():
        raise ValidationError("Cannot book an appointment in the past")

    db.session.add(booking)
    db.session.flush()
    log_event("BOOKING_CREATE", user_id=patient.id, entity="booking", entity_id=booking.id,
              metadata={"service_type": booking.service_type, "total": str(booking.total_price)},
              commit=False)
    db.session.commit()
    logger.info("Booking %s created for patient %s", booking.id, patient.id)
    return booking


def get_booking(booking_id: int, for_update: bool = False) -> Booking:
    q = Booking.query.filter_by(id=booking_id)
    if for_update:
        q = q.with_for_update()
    booking = q.first()
    if not booking:
        raise NotFoundError(f"Booking with ID {booking_id} not found")
    return booking


def get_booking_for(actor: User, booking_id: int) -> Booking:
    booking = get_booking(booking_id)
    if actor.role == ROLE_ADMIN or booking.patient_id == actor.id or booking.nurse_id == actor.id:
        return booking
    raise ForbiddenError("You do not have access to this booking")


def list_for_user(user: User, status: Optional[str] = None):
    q = Booking.query
    if user.role == ROLE_NURSE:
        q = q.filter(Booking.nurse_id == user.id)
    else:
        q = q.filter(Booking.patient_id == user.id)
    if status:
        q = q.filter(Booking.status == parse_choice(status, "status", BOOKING_STATUSES))
    return q.order_by(Booking.created_at.desc()).all()


def list_all(status: Optional[str] = None):
    q = Booking.query
    if status:
        q = q.filter(Booking.status == parse_choice(status, "status", BOOKING_STATUSES))
    return q.order_by(Booking.created_at.desc()).all()


def booking_stats() -> dict:
    def by_status(s):
        return func.sum(case((Booking.status == s, 1), else_=0))

    row = db.session.query(
        func.count(Booking.id),
        by_status(STATUS_PENDING),
        by_status(STATUS_CONFIRMED),
        by_status(STATUS_IN_PROGRESS),
        by_status(STATUS_COMPLETED),
        by_status(STATUS_CANCELLED),
        by_status(STATUS_NO_SHOW),
        func.sum(case((Booking.status == STATUS_COMPLETED, Booking.total_price), else_=0)),
    ).one()

    total, pending, confirmed, in_progress, completed, cancelled, no_show, revenue = row
    return {
        "total": int(total or 0),
        "pending": int(pending or 0),
        "confirmed": int(confirmed or 0),
        "inProgress": int(in_progress or 0),
        "completed": int(completed or 0),
        "cancelled": int(cancelled or 0),
        "noShow": int(no_show or 0),
        "revenue": float(revenue or 0),
    }


def available_nurses():
    return (
        User.query
        .filter(User.role == ROLE_NURSE, User.status == STATUS_ACTIVE)
        .order_by(User.first_name.asc())
        .all()
    )


# ---------- lifecycle ----------

def _transition(booking: Booking, new_status: str):
    if new_status == booking.status:
        return
    if booking.status in TERMINAL_STATUSES:
        raise InvalidStateError(f"Booking is already {booking.status}")
    if new_status not in ALLOWED_TRANSITIONS.get(booking.status, set()):
        raise InvalidStateError(f"Cannot move booking from {booking.status} to {new_status}")

    booking.status = new_status
    if new_status == STATUS_COMPLETED:
        booking.completed_at = datetime.utcnow()
    elif new_status == STATUS_CANCELLED:
        booking.cancelled_at = datetime.utcnow()


def check_cancellable(booking: Booking, actor: User, now: datetime, cutoff_hours: float):
    """Raises unless ``actor`` may cancel ``booking`` at wall-clock time ``now``."""
    if actor.role != ROLE_ADMIN and booking.patient_id != actor.id:
        raise UnauthorizedError("You can only cancel your own bookings")

    if booking.status == STATUS_CANCELLED:
        raise InvalidStateError("Booking is already cancelled")
    if booking.status == STATUS_COMPLETED:
        raise InvalidStateError("Cannot cancel completed booking")
    if booking.status in TERMINAL_STATUSES:
        raise InvalidStateError(f"Cannot cancel booking with status {booking.status}")

    hours_until = (appointment_datetime(booking) - now).total_seconds() / 3600
    if 0 < hours_until < cutoff_hours:
        raise InvalidStateError(
            f"Cannot cancel booking within {cutoff_hours:g} hours of appointment time"
        )


def cancel_booking(booking_id: int, actor: User, reason: Optional[str] = None) -> Booking:
    booking = get_booking(booking_id, for_update=True)
    try:
        check_cancellable(
            booking, actor, local_now(), current_app.config.get("CANCEL_CUTOFF_HOURS", 2)
        )
    except (UnauthorizedError, InvalidStateError):
        db.session.rollback()
        raise

    booking.status = STATUS_CANCELLED
    booking.cancelled_at = datetime.utcnow()
    booking.cancel_reason = reason
    log_event("BOOKING_CANCEL", user_id=actor.id, entity="booking", entity_id=booking.id,
              metadata={"reason": reason, "by_admin": actor.role == ROLE_ADMIN}, commit=False)
    db.session.commit()
    return booking


def _set_nurse(booking: Booking, nurse_id) -> User:
    if booking.is_terminal:
        raise InvalidStateError(f"Cannot assign a nurse to a {booking.status} booking")

    try:
        nurse = db.session.get(User, int(nurse_id))
    except (TypeError, ValueError):
        raise ValidationError("nurseId is required")
    if not nurse or nurse.role != ROLE_NURSE:
        raise ValidationError("Assigned user must be a nurse")
    if nurse.status != STATUS_ACTIVE:
        raise InvalidStateError("Nurse account is not active")

    booking.nurse_id = nurse.id
    if booking.status == STATUS_PENDING:
        booking.status = STATUS_CONFIRMED
    return nurse


def assign_nurse(booking_id: int, nurse_id, admin: User) -> Booking:
    booking = get_booking(booking_id)
    nurse = _set_nurse(booking, nurse_id)

    log_event("BOOKING_ASSIGN_NURSE", user_id=admin.id, entity="booking", entity_id=booking.id,
              metadata={"nurse_id": nurse.id}, commit=False)
    db.session.commit()
    return booking


def _apply_notes(booking: Booking, data: dict):
    for key in ("assessmentNotes", "assessmentRecommendations"):
        if key in data:
            setattr(booking, AUDIT_FIELDS[key], clean_str(data, key))
    if "followUpRequired" in data:
        booking.follow_up_required = parse_bool(data["followUpRequired"], "followUpRequired")
    if "followUpDate" in data:
        value = data["followUpDate"]
        booking.follow_up_date = parse_date(value, "followUpDate") if value else None


def complete_booking(booking_id: int, actor: User, data: dict) -> Booking:
    booking = get_booking(booking_id)
    if actor.role != ROLE_ADMIN and booking.nurse_id != actor.id:
        raise ForbiddenError("Only the assigned nurse can complete this booking")
    if booking.status == STATUS_CONFIRMED:
        # visits that were never marked started still go through in_progress
        _transition(booking, STATUS_IN_PROGRESS)
    _transition(booking, STATUS_COMPLETED)
    _apply_notes(booking, data)

    log_event("BOOKING_COMPLETE", user_id=actor.id, entity="booking", entity_id=booking.id, commit=False)
    db.session.commit()
    return booking


def update_booking(booking_id: int, actor: User, data: dict) -> Booking:
    booking = get_booking(booking_id)

    if actor.role == ROLE_NURSE:
        if booking.nurse_id != actor.id:
            raise ForbiddenError("You are not assigned to this booking")
        editable = NURSE_EDITABLE
    else:
        editable = ADMIN_EDITABLE

    not_allowed = sorted(k for k in data if k not in editable)
    if not_allowed:
        raise ValidationError("Field(s) cannot be updated", details=not_allowed)

    if booking.is_terminal:
        locked = sorted(k for k in data if k not in AUDIT_FIELDS)
        if locked:
            raise InvalidStateError(f"Booking is {booking.status}; only notes and payment fields can change",
                                    details=locked)

    if "status" in data:
        status = parse_choice(data["status"], "status", BOOKING_STATUSES)
        if status == STATUS_CANCELLED and status != booking.status:
            raise InvalidStateError("Use the cancel endpoint to cancel a booking")
        _transition(booking, status)

    if "nurseId" in data and data["nurseId"] != booking.nurse_id:
        if data["nurseId"] is None:
            booking.nurse_id = None
        else:
            _set_nurse(booking, data["nurseId"])

    if "scheduledDate" in data:
        booking.scheduled_date = parse_date(data["scheduledDate"], "scheduledDate")
    if "scheduledTime" in data:
        booking.scheduled_time = parse_time(data["scheduledTime"], "scheduledTime")
    if "specialInstructions" in data:
        booking.special_instructions = clean_str(data, "specialInstructions")

    if "paymentStatus" in data:
        booking.payment_status = parse_choice(data["paymentStatus"], "paymentStatus", PAYMENT_STATUSES)
    if "paymentReference" in data:
        booking.payment_reference = clean_str(data, "paymentReference", max_len=80)

    _apply_notes(booking, data)

    log_event("BOOKING_UPDATE", user_id=actor.id, entity="booking", entity_id=booking.id,
              metadata={"fields": sorted(data)}, commit=False)
    db.session.commit()
    return booking
