"""Secrets for the two-step sign-in.

A magic link carries a random token; only its peppered HMAC is stored. Redeeming
the link yields a short-lived HS256 bearer token whose subject is the user id.
"""
import hashlib
import hmac
import secrets
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from app.config import settings
from app.models.base import utcnow

ACCESS_TOKEN_ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["sub", "iss", "aud", "iat", "exp"]

# some backends (sqlite) hand back naive datetimes; they are stored as utc
def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def hash_magic_token(token: str) -> str:
    key = settings.magic_link_pepper.encode("utf-8")
    return hmac.new(key, token.encode("utf-8"), hashlib.sha256).hexdigest()

def new_magic_link(issued_at: datetime | None = None) -> tuple[str, str, datetime]:
    """Return (token for the user, digest to store, expiry)."""
    issued_at = issued_at or utcnow()
    token = secrets.token_urlsafe(32)
    expires_at = issued_at + timedelta(minutes=settings.magic_link_expires_minutes)
    return token, hash_magic_token(token), expires_at

def issue_access_token(user_id: uuid.UUID, issued_at: datetime | None = None) -> str:
    issued_at = issued_at or utcnow()
    claims = {
        "sub": str(user_id),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=ACCESS_TOKEN_ALGORITHM)

def access_token_ttl_seconds() -> int:
    return settings.jwt_expires_minutes * 60

def access_token_subject(token: str) -> uuid.UUID:
    """User id carried by a valid token.

    Raises jwt.PyJWTError for a bad signature, wrong issuer/audience, expiry or a
    missing claim, and ValueError when the subject is not a uuid.
    """
    claims = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[ACCESS_TOKEN_ALGORITHM],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
        options={"require": REQUIRED_CLAIMS},
    )
    return uuid.UUID(claims["sub"])
