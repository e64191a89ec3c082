import hashlib
import logging
import secrets
import time
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app, request, has_request_context
from jose import jwt, JWTError

from models import db
from models.refresh_token import RefreshToken

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"


def _hash_token(value: str) -> str:
    # SHA-256 is fine for hashing random token ids
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _encode(user, token_type: str, secret: str, expires_in: int, jti: Optional[str] = None) -> str:
    now = int(time.time())
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "type": token_type,
        "iat": now,
        "exp": now + int(expires_in),
    }
    if jti:
        payload["jti"] = jti
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def _decode(token: str, secret: str, token_type: str) -> Optional[dict]:
    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if claims.get("type") != token_type or not str(claims.get("sub", "")).isdigit():
        return None
    return claims


def create_access_token(user, expires_in: Optional[int] = None) -> str:
    expires_in = expires_in or current_app.config.get("ACCESS_TOKEN_SECONDS", 3600)
    return _encode(user, ACCESS, current_app.config["JWT_SECRET"], expires_in)


def decode_access_token(token: str) -> Optional[dict]:
    return _decode(token, current_app.config["JWT_SECRET"], ACCESS)


def create_refresh_token(user) -> str:
    """
    Issues a refresh JWT and records its hashed jti so it can be revoked.
    The caller commits.
    """
    jti = secrets.token_urlsafe(32)
    lifetime = current_app.config.get("REFRESH_TOKEN_SECONDS", 7 * 24 * 3600)

    ip = None
    user_agent = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        user_agent = (request.headers.get("User-Agent") or "")[:255]

    db.session.add(RefreshToken(
        user_id=user.id,
        token_hash=_hash_token(jti),
        expires_at=datetime.utcnow() + timedelta(seconds=lifetime),
        ip=ip,
        user_agent=user_agent,
    ))
    return _encode(user, REFRESH, current_app.config["JWT_REFRESH_SECRET"], lifetime, jti=jti)


def get_refresh_record(token: str) -> Optional[RefreshToken]:
    """Returns the live record behind a refresh JWT, or None."""
    claims = _decode(token or "", current_app.config["JWT_REFRESH_SECRET"], REFRESH)
    if not claims or not claims.get("jti"):
        return None

    row = RefreshToken.query.filter_by(token_hash=_hash_token(claims["jti"]), revoked=False).first()
    if not row or row.user_id != int(claims["sub"]):
        return None
    if row.expires_at <= datetime.utcnow():
        return None
    return row


def revoke_all_refresh_tokens(user_id: int) -> int:
    rows = RefreshToken.query.filter_by(user_id=user_id, revoked=False).all()
    for r in rows:
        r.revoked = True
    if rows:
        logger.info("Revoked %d refresh token(s) for user %s", len(rows), user_id)
    return len(rows)


def issue_token_pair(user, access_seconds: Optional[int] = None) -> dict:
    access_seconds = access_seconds or current_app.config.get("ACCESS_TOKEN_SECONDS", 3600)
    return {
        "accessToken": create_access_token(user, access_seconds),
        "refreshToken": create_refresh_token(user),
        "expiresIn": access_seconds,
    }
