import re
from typing import List, Tuple

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT_OR_SYMBOL = re.compile(r"[\d\W]")

MIN_LEN = 8
MAX_LEN = 128


def validate_password(pw: str) -> Tuple[bool, List[str]]:
    errors: List[str] = []

    if not isinstance(pw, str):
        return False, ["Password must be a string"]

    if len(pw) < MIN_LEN:
        errors.append(f"Password must be at least {MIN_LEN} characters")
    if len(pw) > MAX_LEN:
        errors.append(f"Password must be at most {MAX_LEN} characters")
    if not _UPPER.search(pw):
        errors.append("Password must include at least 1 uppercase letter")
    if not _LOWER.search(pw):
        errors.append("Password must include at least 1 lowercase letter")
    if not _DIGIT_OR_SYMBOL.search(pw):
        errors.append("Password must include at least 1 number or special character")

    return (len(errors) == 0), errors
