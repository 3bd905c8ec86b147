from __future__ import annotations

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.auth.tokens import (
    access_token_ttl_seconds,
    as_utc,
    hash_magic_token,
    issue_access_token,
    new_magic_link,
)
from app.config import settings
from app.db import get_db
from app.errors import InvalidMagicLink
from app.models.auth_magic_link import AuthMagicLink
from app.models.base import utcnow
from app.models.enums import Role
from app.models.user import User
from app.ratelimit import rate_limit
from app.schemas.auth import AccessTokenOut, RedeemIn, RequestLinkIn, RequestLinkOut
from app.schemas.users import UserOut

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

def _get_or_register(db: Session, email: str, name: str | None) -> User:
    user = db.scalar(select(User).where(User.email == email))
    if user is not None:
        return user

    # self sign-up always lands on the lowest role
    user = User(email=email, name=(name or "").strip() or email.split("@", 1)[0], role=Role.user)
    db.add(user)
    db.flush()
    log.info("user_registered", user_id=str(user.id))
    return user

def _redeem_failure(db: Session, token_hash: str, now: datetime) -> InvalidMagicLink:
    row = db.get(AuthMagicLink, token_hash)
    if row is not None and row.used_at is not None:
        return InvalidMagicLink("token already used")
    if row is not None and as_utc(row.expires_at) <= now:
        return InvalidMagicLink("token expired")
    return InvalidMagicLink()

@router.post(
    "/request-link",
    response_model=RequestLinkOut,
    dependencies=[
        Depends(
            rate_limit(
                "auth:request_link",
                limit_per_window=settings.rate_limit_auth_request_link_per_min,
                window_seconds=60,
            )
        )
    ],
)
def request_link(payload: RequestLinkIn, db: Session = Depends(get_db)) -> RequestLinkOut:
    user = _get_or_register(db, payload.email.lower().strip(), payload.name)

    token, token_hash, expires_at = new_magic_link()
    db.add(AuthMagicLink(token_hash=token_hash, user_id=user.id, expires_at=expires_at))
    db.commit()
    log.info("magic_link_issued", user_id=str(user.id), expires_at=expires_at.isoformat())

    if settings.app_env == "prod":
        return RequestLinkOut(link=f"{settings.base_url}/auth/redeem?token={token}")
    return RequestLinkOut(token=token)

@router.post(
    "/redeem",
    response_model=AccessTokenOut,
    dependencies=[
        Depends(
            rate_limit(
                "auth:redeem",
                limit_per_window=settings.rate_limit_auth_redeem_per_min,
                window_seconds=60,
            )
        )
    ],
)
def redeem(payload: RedeemIn, db: Session = Depends(get_db)) -> AccessTokenOut:
    token_hash = hash_magic_token(payload.token.strip())
    now = utcnow()

    # single UPDATE so two concurrent redeems cannot both succeed
    user_id = db.scalar(
        update(AuthMagicLink)
        .where(AuthMagicLink.token_hash == token_hash)
        .where(AuthMagicLink.used_at.is_(None))
        .where(AuthMagicLink.expires_at > now)
        .values(used_at=now)
        .returning(AuthMagicLink.user_id)
    )
    if user_id is None:
        db.rollback()
        raise _redeem_failure(db, token_hash, now)

    user = db.get(User, user_id)
    if user is None:
        db.rollback()
        raise InvalidMagicLink()

    db.commit()
    log.info("magic_link_redeemed", user_id=str(user.id))
    return AccessTokenOut(
        access_token=issue_access_token(user.id, issued_at=now),
        expires_in=access_token_ttl_seconds(),
    )

@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)) -> UserOut:
    return UserOut.model_validate(user)
