import logging
import secrets

from sqlalchemy import or_, func

from models import db
from models.booking import Booking, TERMINAL_STATUSES
from models.refresh_token import RefreshToken
from models.user import (
    User, ROLES, USER_STATUSES, GENDERS, ROLE_CLIENT, ROLE_NURSE, ROLE_ADMIN,
    STATUS_ACTIVE, STATUS_PENDING_VERIFICATION,
)
from security.password import hash_password
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.validators import (
    clean_str, is_valid_phone, normalize_email, parse_choice, parse_date,
)

logger = logging.getLogger(__name__)

# wire name -> column, for fields a user may edit on their own profile
PROFILE_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "phone": "phone",
    "dateOfBirth": "date_of_birth",
    "gender": "gender",
    "nationalId": "national_id",
    "address": "address",
    "state": "state",
    "city": "city",
    "avatar": "avatar",
    "preferredLanguage": "preferred_language",
    "emergencyContactName": "emergency_contact_name",
    "emergencyContactPhone": "emergency_contact_phone",
    "medicalHistory": "medical_history",
}

SORTABLE = {
    "createdAt": User.created_at,
    "email": User.email,
    "firstName": User.first_name,
    "lastName": User.last_name,
    "role": User.role,
    "status": User.status,
}

LANGUAGES = ("en", "ha", "yo", "ig")


def _iso(value):
    return value.isoformat() if value else None


def serialize_user(user: User) -> dict:
    # secrets (password hash, verification and reset tokens) are never exposed
    return {
        "id": user.id,
        "email": user.email,
        "phone": user.phone,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "fullName": user.full_name,
        "role": user.role,
        "status": user.status,
        "dateOfBirth": _iso(user.date_of_birth),
        "gender": user.gender,
        "nationalId": user.national_id,
        "address": user.address,
        "state": user.state,
        "city": user.city,
        "avatar": user.avatar,
        "preferredLanguage": user.preferred_language,
        "emergencyContactName": user.emergency_contact_name,
        "emergencyContactPhone": user.emergency_contact_phone,
        "medicalHistory": user.medical_history,
        "isEmailVerified": user.is_email_verified,
        "isPhoneVerified": user.is_phone_verified,
        "lastLoginAt": _iso(user.last_login_at),
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def serialize_user_brief(user: User) -> dict:
    return {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "phone": user.phone,
        "avatar": user.avatar,
        "createdAt": _iso(user.created_at),
    }


def generate_verification_token() -> str:
    return secrets.token_hex(32)


def generate_phone_code() -> str:
    return f"{secrets.randbelow(900000) + 100000}"


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def find_by_email(email: str):
    return User.query.filter_by(email=normalize_email(email)).first()


def find_by_phone(phone: str):
    return User.query.filter_by(phone=phone).first()


def create_user(email: str, phone: str, password: str, first_name: str, last_name: str,
                role: str = ROLE_CLIENT, require_verification: bool = False, **profile) -> User:
    """Persists a new user. The password is hashed here, before the row is added."""
    email = normalize_email(email)
    if find_by_email(email):
        raise ConflictError("Email already registered")
    if find_by_phone(phone):
        raise ConflictError("Phone number already registered")

    user = User(
        email=email,
        phone=phone,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        status=STATUS_PENDING_VERIFICATION if require_verification else STATUS_ACTIVE,
        is_email_verified=not require_verification,
        is_phone_verified=not require_verification,
        email_verification_token=generate_verification_token(),
        phone_verification_code=generate_phone_code(),
        **profile,
    )
    db.session.add(user)
    db.session.flush()
    logger.info("Created %s user %s", role, user.id)
    return user


def set_password(user: User, new_password: str):
    user.password_hash = hash_password(new_password)


def apply_profile_update(user: User, data: dict, allowed=PROFILE_FIELDS) -> User:
    """Validates and applies the editable profile fields present in ``data``."""
    unknown = [k for k in data if k not in allowed]
    if unknown:
        raise ValidationError("Unknown field(s)", details=sorted(unknown))

    for key, column in allowed.items():
        if key not in data:
            continue
        value = data[key]

        if column in ("first_name", "last_name"):
            value = clean_str(data, key, required=True, min_len=2, max_len=50)
        elif column == "phone":
            value = clean_str(data, key, required=True, max_len=30)
            if not is_valid_phone(value):
                raise ValidationError("Invalid Nigerian phone number")
            if value != user.phone:
                existing = find_by_phone(value)
                if existing and existing.id != user.id:
                    raise ConflictError("Phone number already in use")
                # a new number has to be verified again
                user.is_phone_verified = False
                user.phone_verification_code = generate_phone_code()
        elif column == "date_of_birth":
            value = parse_date(value, key) if value else None
        elif column == "gender":
            value = parse_choice(value, key, GENDERS) if value else None
        elif column == "preferred_language":
            value = parse_choice(value, key, LANGUAGES)
        elif column == "medical_history":
            if value is not None and not isinstance(value, dict):
                raise ValidationError("medicalHistory must be an object")
        else:
            value = clean_str(data, key, max_len=500)

        setattr(user, column, value)

    db.session.commit()
    return user


def update_status(user: User, status: str) -> User:
    user.status = parse_choice(status, "status", USER_STATUSES)
    db.session.commit()
    return user


def update_role(user: User, role: str) -> User:
    role = parse_choice(role, "role", ROLES)
    if user.role == ROLE_NURSE and role != ROLE_NURSE:
        open_assignments = (
            Booking.query
            .filter(Booking.nurse_id == user.id, Booking.status.notin_(sorted(TERMINAL_STATUSES)))
            .count()
        )
        if open_assignments:
            raise ConflictError("Nurse still has open assignments")
    user.role = role
    db.session.commit()
    return user


def delete_user(user: User):
    referenced = Booking.query.filter(
        or_(Booking.patient_id == user.id, Booking.nurse_id == user.id)
    ).count()
    if referenced:
        raise ConflictError("User has bookings and cannot be deleted")
    RefreshToken.query.filter_by(user_id=user.id).delete(synchronize_session=False)
    db.session.delete(user)
    db.session.commit()


def list_users(page=1, limit=10, role=None, status=None, search=None,
               sort_by="createdAt", sort_order="DESC"):
    page = max(1, int(page or 1))
    limit = max(1, min(int(limit or 10), 100))

    q = User.query
    if role:
        q = q.filter(User.role == parse_choice(role, "role", ROLES))
    if status:
        q = q.filter(User.status == parse_choice(status, "status", USER_STATUSES))
    if search:
        pattern = f"%{search.strip().lower()}%"
        q = q.filter(or_(
            func.lower(User.first_name).like(pattern),
            func.lower(User.last_name).like(pattern),
            func.lower(User.email).like(pattern),
            User.phone.like(pattern),
        ))

    column = SORTABLE.get(sort_by, User.created_at)
    q = q.order_by(column.asc() if (sort_order or "").upper() == "ASC" else column.desc())

    total = q.count()
    users = q.offset((page - 1) * limit).limit(limit).all()
    return users, {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit,
    }


def user_stats() -> dict:
    def count(*criteria):
        return User.query.filter(*criteria).count()

    recent = User.query.order_by(User.created_at.desc()).limit(10).all()
    return {
        "total": User.query.count(),
        "active": count(User.status == STATUS_ACTIVE),
        "roles": {
            "clients": count(User.role == ROLE_CLIENT),
            "nurses": count(User.role == ROLE_NURSE),
            "admins": count(User.role == ROLE_ADMIN),
        },
        "pendingVerification": count(User.status == STATUS_PENDING_VERIFICATION),
        "recent": [serialize_user(u) for u in recent],
    }
