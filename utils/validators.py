import re
from datetime import date, datetime

from flask import request

from utils.errors import ValidationError

# Nigerian mobile numbers: +234 / 234 / 0 prefix, then 7x/8x/9x
PHONE_REGEX = re.compile(r"^(\+234|234|0)?[789][01]\d{8}$")
TIME_REGEX = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def normalize_email(value) -> str:
    return (value or "").strip().lower() if isinstance(value, str) else ""


def is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and "." in email.split("@")[-1] and len(email) <= 255


def is_valid_phone(phone: str) -> bool:
    return isinstance(phone, str) and PHONE_REGEX.match(phone.replace(" ", "")) is not None


def clean_str(data: dict, key: str, required=False, min_len=0, max_len=None):
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{key} is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    value = value.strip()
    if len(value) < min_len:
        raise ValidationError(f"{key} must be at least {min_len} characters")
    if max_len is not None and len(value) > max_len:
        raise ValidationError(f"{key} must be at most {max_len} characters")
    return value


def parse_date(value, field: str) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    try:
        # accept full ISO timestamps too, the frontend sends both
        return datetime.fromisoformat(value.strip()[:10]).date()
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use YYYY-MM-DD")


def parse_time(value, field: str) -> str:
    if not isinstance(value, str) or not TIME_REGEX.match(value.strip()[:5]):
        raise ValidationError(f"Invalid {field}. Use HH:MM")
    return value.strip()[:5]


def parse_choice(value, field: str, choices):
    if value not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}")
    return value


def parse_bool(value, field: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValidationError(f"{field} must be a boolean")


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
