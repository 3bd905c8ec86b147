import uuid
from dataclasses import dataclass

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.auth.tokens import access_token_subject
from app.db import get_db
from app.errors import PrincipalNotFound, Unauthenticated
from app.models.enums import Role
from app.models.user import User

bearer = HTTPBearer(auto_error=False)

@dataclass(frozen=True)
class Principal:
    id: uuid.UUID
    role: Role

def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if creds is None or creds.scheme.lower() != "bearer":
        raise Unauthenticated("missing bearer token")

    try:
        user_id = access_token_subject(creds.credentials)
    except (jwt.PyJWTError, ValueError):
        raise Unauthenticated("invalid token")

    user = db.get(User, user_id)
    if user is None:
        raise PrincipalNotFound()

    return user

# role is read once here and stays fixed for the rest of the request
def get_principal(user: User = Depends(get_current_user)) -> Principal:
    return Principal(id=user.id, role=Role(user.role))
