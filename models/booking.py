from datetime import datetime
from models.db import db

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_NO_SHOW = "no_show"
BOOKING_STATUSES = (
    STATUS_PENDING,
    STATUS_CONFIRMED,
    STATUS_IN_PROGRESS,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
    STATUS_NO_SHOW,
)
TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_CANCELLED, STATUS_NO_SHOW})

PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"
PAYMENT_FAILED = "failed"
PAYMENT_REFUNDED = "refunded"
PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_PAID, PAYMENT_FAILED, PAYMENT_REFUNDED)

MONEY = db.Numeric(10, 2)


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    patient_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    nurse_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    patient = db.relationship("User", foreign_keys=[patient_id])
    nurse = db.relationship("User", foreign_keys=[nurse_id])

    # assessment
    service_type = db.Column(db.String(60), nullable=False)
    service_name = db.Column(db.String(120), nullable=False)
    service_description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(30), nullable=False, default="general")

    # pricing, NGN
    base_price = db.Column(MONEY, nullable=False, default=5000)
    emergency_fee = db.Column(MONEY, nullable=False, default=0)
    weekend_fee = db.Column(MONEY, nullable=False, default=0)
    transport_fee = db.Column(MONEY, nullable=False, default=0)
    discount = db.Column(MONEY, nullable=False, default=0)
    tax = db.Column(MONEY, nullable=False, default=0)
    total_price = db.Column(MONEY, nullable=False, default=5000)
    promo_code = db.Column(db.String(30), nullable=True)

    # scheduling, wall-clock in APP_TIMEZONE
    scheduled_date = db.Column(db.Date, nullable=False, index=True)
    scheduled_time = db.Column(db.String(5), nullable=False)  # "HH:MM"
    duration = db.Column(db.Integer, nullable=False, default=60)  # minutes

    # location
    patient_address = db.Column(db.Text, nullable=False)
    city = db.Column(db.String(80), nullable=False)
    state = db.Column(db.String(50), nullable=False)
    postal_code = db.Column(db.String(20), nullable=True)
    special_instructions = db.Column(db.Text, nullable=True)

    emergency_contact_name = db.Column(db.String(120), nullable=False)
    emergency_contact_phone = db.Column(db.String(30), nullable=False)

    # medical
    medical_conditions = db.Column(db.Text, nullable=True)
    current_medications = db.Column(db.Text, nullable=True)
    allergies = db.Column(db.Text, nullable=True)
    requires_special_equipment = db.Column(db.Boolean, default=False, nullable=False)
    equipment_needed = db.Column(db.Text, nullable=True)

    status = db.Column(
        db.Enum(*BOOKING_STATUSES, name="booking_status", native_enum=False),
        nullable=False,
        default=STATUS_PENDING,
    )
    payment_status = db.Column(
        db.Enum(*PAYMENT_STATUSES, name="payment_status", native_enum=False),
        nullable=False,
        default=PAYMENT_PENDING,
    )
    payment_method = db.Column(db.String(20), nullable=False, default="card")
    payment_reference = db.Column(db.String(80), nullable=True)

    # filled in by the nurse
    assessment_notes = db.Column(db.Text, nullable=True)
    assessment_recommendations = db.Column(db.Text, nullable=True)
    follow_up_required = db.Column(db.Boolean, default=False, nullable=False)
    follow_up_date = db.Column(db.Date, nullable=True)

    cancel_reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
