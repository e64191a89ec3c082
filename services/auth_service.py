import hashlib
import logging
import secrets
from datetime import datetime, timedelta

from flask import current_app

from models import db
from models.user import (
    User, ROLE_ADMIN, ROLE_CLIENT, ROLES, STATUS_ACTIVE, STATUS_INACTIVE, STATUS_SUSPENDED,
)
from security.bruteforce import is_locked, register_failure, reset_attempts
from security.password import verify_password
from security.password_policy import validate_password
from security.tokens import get_refresh_record, issue_token_pair, revoke_all_refresh_tokens
from services import user_service
from utils.audit import log_event
from utils.emailer import send_password_reset_email, send_verification_email
from utils.errors import NotFoundError, UnauthorizedError, ValidationError
from utils.validators import (
    clean_str, is_valid_email, is_valid_phone, normalize_email, parse_choice, parse_date,
)

logger = logging.getLogger(__name__)

RESET_MESSAGE = "If the email exists, a reset link has been sent"


def _hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _check_new_password(password: str, confirm: str):
    if password != confirm:
        raise ValidationError("Passwords do not match")
    valid, errors = validate_password(password)
    if not valid:
        raise ValidationError("Password does not meet policy", details=errors)


def _auth_response(user: User, access_seconds=None) -> dict:
    tokens = issue_token_pair(user, access_seconds)
    return dict(tokens, user=user_service.serialize_user(user))


def register(data: dict) -> dict:
    email = normalize_email(data.get("email"))
    phone = clean_str(data, "phone", required=True, max_len=30)
    password = data.get("password") or ""

    if not is_valid_email(email):
        raise ValidationError("Invalid email")
    if not is_valid_phone(phone):
        raise ValidationError("Invalid Nigerian phone number")
    _check_new_password(password, data.get("confirmPassword") or "")

    first_name = clean_str(data, "firstName", required=True, min_len=2, max_len=50)
    last_name = clean_str(data, "lastName", required=True, min_len=2, max_len=50)

    role = data.get("role") or ROLE_CLIENT
    parse_choice(role, "role", ROLES)
    if role == ROLE_ADMIN:
        # admins are promoted via the CLI, never self-registered
        raise ValidationError("Cannot self-register as admin")

    profile = {
        "state": clean_str(data, "state", max_len=50),
        "city": clean_str(data, "city", max_len=80),
        "gender": data.get("gender") or None,
        "preferred_language": data.get("preferredLanguage") or "en",
    }
    if profile["gender"]:
        parse_choice(profile["gender"], "gender", ("male", "female", "other"))
    if data.get("dateOfBirth"):
        profile["date_of_birth"] = parse_date(data["dateOfBirth"], "dateOfBirth")

    require_verification = current_app.config.get("REQUIRE_EMAIL_VERIFICATION", False)
    user = user_service.create_user(
        email=email,
        phone=phone,
        password=password,
        first_name=first_name,
        last_name=last_name,
        role=role,
        require_verification=require_verification,
        **profile,
    )
    response = _auth_response(user)
    log_event("REGISTER_SUCCESS", user_id=user.id, entity="user", entity_id=user.id, commit=False)
    db.session.commit()

    if require_verification:
        send_verification_email(user)
    return response


def login(data: dict) -> dict:
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    remember_me = data.get("rememberMe") is True

    # row lock so concurrent attempts on one account serialize
    user = User.query.filter_by(email=email).with_for_update().first()
    if not user:
        log_event("LOGIN_FAIL_UNKNOWN_EMAIL", metadata={"email": email})
        raise UnauthorizedError("Invalid credentials")

    locked, seconds_left = is_locked(user)
    if locked:
        db.session.rollback()
        log_event("LOGIN_LOCKED", user_id=user.id, metadata={"seconds_left": seconds_left})
        raise UnauthorizedError("Account temporarily locked due to too many failed attempts")

    if user.status == STATUS_SUSPENDED:
        db.session.rollback()
        log_event("LOGIN_SUSPENDED", user_id=user.id)
        raise UnauthorizedError("Account suspended. Please contact support")
    if user.status == STATUS_INACTIVE:
        db.session.rollback()
        log_event("LOGIN_INACTIVE", user_id=user.id)
        raise UnauthorizedError("Account is inactive. Please contact support")

    if not verify_password(password, user.password_hash):
        attempts, locked_now = register_failure(
            user,
            max_attempts=current_app.config.get("MAX_LOGIN_ATTEMPTS", 5),
            lock_minutes=current_app.config.get("LOCKOUT_MINUTES", 120),
        )
        log_event(
            "LOGIN_FAIL",
            user_id=user.id,
            metadata={"login_attempts": attempts, "locked_now": locked_now},
            commit=False,
        )
        db.session.commit()
        if locked_now:
            logger.warning("Account %s locked after %d failed attempts", user.id, attempts)
        raise UnauthorizedError("Invalid credentials")

    reset_attempts(user)
    user.last_login_at = datetime.utcnow()

    if remember_me:
        access_seconds = current_app.config.get("REMEMBER_ME_TOKEN_SECONDS", 7 * 24 * 3600)
    else:
        access_seconds = current_app.config.get("ACCESS_TOKEN_SECONDS", 3600)
    response = _auth_response(user, access_seconds)

    log_event("LOGIN_SUCCESS", user_id=user.id, commit=False)
    db.session.commit()
    return response


def forgot_password(data: dict) -> str:
    user = user_service.find_by_email(data.get("email"))
    if not user:
        # don't reveal whether the email exists
        return RESET_MESSAGE

    raw_token = secrets.token_hex(32)
    ttl = current_app.config.get("PASSWORD_RESET_TTL_MINUTES", 10)
    user.password_reset_token = _hash_reset_token(raw_token)
    user.password_reset_expires = datetime.utcnow() + timedelta(minutes=ttl)
    log_event("PASSWORD_RESET_REQUESTED", user_id=user.id, commit=False)
    db.session.commit()

    send_password_reset_email(user, raw_token)
    return RESET_MESSAGE


def reset_password(data: dict) -> str:
    token = data.get("token") or ""
    password = data.get("password") or ""
    _check_new_password(password, data.get("confirmPassword") or "")

    user = None
    if token:
        user = User.query.filter_by(password_reset_token=_hash_reset_token(token)).first()
    if not user or not user.password_reset_expires or user.password_reset_expires < datetime.utcnow():
        raise ValidationError("Invalid or expired reset token")

    user_service.set_password(user, password)
    user.password_reset_token = None
    user.password_reset_expires = None
    reset_attempts(user)
    revoke_all_refresh_tokens(user.id)

    log_event("PASSWORD_RESET", user_id=user.id, commit=False)
    db.session.commit()
    return "Password reset successful"


def change_password(user: User, data: dict) -> str:
    current_password = data.get("currentPassword") or ""
    new_password = data.get("newPassword") or ""
    _check_new_password(new_password, data.get("confirmPassword") or "")

    if not verify_password(current_password, user.password_hash):
        raise UnauthorizedError("Current password is incorrect")

    user_service.set_password(user, new_password)
    log_event("PASSWORD_CHANGED", user_id=user.id, commit=False)
    db.session.commit()
    return "Password changed successfully"


def verify_email(token: str) -> str:
    user = User.query.filter_by(email_verification_token=token).first() if token else None
    if not user:
        raise ValidationError("Invalid verification token")

    user.is_email_verified = True
    user.email_verification_token = None
    user.status = STATUS_ACTIVE
    log_event("EMAIL_VERIFIED", user_id=user.id, commit=False)
    db.session.commit()
    return "Email verified successfully"


def verify_phone(user: User, code) -> str:
    if not isinstance(code, str) or len(code) != 6 or not code.isdigit():
        raise ValidationError("Verification code must be 6 digits")
    if not user.phone_verification_code or user.phone_verification_code != code:
        raise ValidationError("Invalid verification code")

    user.is_phone_verified = True
    user.phone_verification_code = None
    log_event("PHONE_VERIFIED", user_id=user.id, commit=False)
    db.session.commit()
    return "Phone verified successfully"


def resend_verification(user: User, kind) -> str:
    parse_choice(kind, "type", ("email", "phone"))

    if kind == "email":
        if user.is_email_verified:
            raise ValidationError("Email already verified")
        user.email_verification_token = user_service.generate_verification_token()
        db.session.commit()
        send_verification_email(user)
    else:
        if user.is_phone_verified:
            raise ValidationError("Phone already verified")
        user.phone_verification_code = user_service.generate_phone_code()
        db.session.commit()
        # TODO: hand the code to an SMS gateway once one is contracted
        logger.info("Phone verification code regenerated for user %s", user.id)

    return f"Verification {kind} sent successfully"


def refresh(refresh_token) -> dict:
    record = get_refresh_record(refresh_token if isinstance(refresh_token, str) else "")
    if not record:
        raise UnauthorizedError("Invalid refresh token")

    user = db.session.get(User, record.user_id)
    if not user or user.status in (STATUS_SUSPENDED, STATUS_INACTIVE):
        raise UnauthorizedError("Invalid refresh token")

    # rotate: the presented token is single-use
    record.revoked = True
    response = _auth_response(user)
    db.session.commit()
    return response


def logout(user: User) -> int:
    count = revoke_all_refresh_tokens(user.id)
    log_event("LOGOUT", user_id=user.id, metadata={"revoked_tokens": count}, commit=False)
    db.session.commit()
    return count


def profile(user_id: int) -> dict:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user_service.serialize_user(user)
