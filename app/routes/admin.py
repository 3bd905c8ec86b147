import uuid

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.deps import Principal
from app.db import get_db
from app.errors import UserNotFound
from app.models.user import User
from app.rbac.deps import require_perm
from app.schemas.users import RoleUpdateIn, UserOut

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/admin/users", tags=["admin"])

@router.get("", response_model=list[UserOut])
def list_users(
    _: Principal = Depends(require_perm("users:read")),
    db: Session = Depends(get_db),
) -> list[UserOut]:
    rows = db.scalars(select(User).order_by(User.created_at.desc(), User.email)).all()
    return [UserOut.model_validate(u) for u in rows]

@router.patch("/{user_id}/role", response_model=UserOut)
def set_role(
    user_id: uuid.UUID,
    payload: RoleUpdateIn,
    principal: Principal = Depends(require_perm("users:set_role")),
    db: Session = Depends(get_db),
) -> UserOut:
    u = db.get(User, user_id)
    if u is None:
        raise UserNotFound()

    previous = u.role
    u.role = payload.role
    db.add(u)
    db.commit()
    db.refresh(u)
    log.info(
        "user_role_changed",
        user_id=str(u.id),
        previous=previous.value,
        role=u.role.value,
        changed_by=str(principal.id),
    )
    return UserOut.model_validate(u)
