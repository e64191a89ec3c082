from datetime import datetime
from models.db import db

ROLE_CLIENT = "client"
ROLE_NURSE = "nurse"
ROLE_ADMIN = "admin"
ROLES = (ROLE_CLIENT, ROLE_NURSE, ROLE_ADMIN)

STATUS_PENDING_VERIFICATION = "pending_verification"
STATUS_ACTIVE = "active"
STATUS_SUSPENDED = "suspended"
STATUS_INACTIVE = "inactive"
USER_STATUSES = (
    STATUS_PENDING_VERIFICATION,
    STATUS_ACTIVE,
    STATUS_SUSPENDED,
    STATUS_INACTIVE,
)

GENDERS = ("male", "female", "other")


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(30), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)

    role = db.Column(
        db.Enum(*ROLES, name="user_role", native_enum=False),
        nullable=False,
        default=ROLE_CLIENT,
    )
    status = db.Column(
        db.Enum(*USER_STATUSES, name="user_status", native_enum=False),
        nullable=False,
        default=STATUS_ACTIVE,
    )

    date_of_birth = db.Column(db.Date, nullable=True)
    gender = db.Column(db.Enum(*GENDERS, name="user_gender", native_enum=False), nullable=True)
    national_id = db.Column(db.String(50), nullable=True)
    address = db.Column(db.Text, nullable=True)
    state = db.Column(db.String(50), nullable=True)
    city = db.Column(db.String(80), nullable=True)
    avatar = db.Column(db.String(500), nullable=True)
    preferred_language = db.Column(db.String(5), nullable=False, default="en")

    emergency_contact_name = db.Column(db.String(120), nullable=True)
    emergency_contact_phone = db.Column(db.String(30), nullable=True)
    medical_history = db.Column(db.JSON, nullable=True)

    # verification + reset secrets, never serialized
    is_email_verified = db.Column(db.Boolean, default=True, nullable=False)
    is_phone_verified = db.Column(db.Boolean, default=True, nullable=False)
    email_verification_token = db.Column(db.String(64), nullable=True, index=True)
    phone_verification_code = db.Column(db.String(6), nullable=True)
    password_reset_token = db.Column(db.String(64), nullable=True, index=True)
    password_reset_expires = db.Column(db.DateTime, nullable=True)

    # lockout
    login_attempts = db.Column(db.Integer, default=0, nullable=False)
    lock_until = db.Column(db.DateTime, nullable=True)
    last_login_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_locked(self) -> bool:
        return bool(self.lock_until and self.lock_until > datetime.utcnow())
