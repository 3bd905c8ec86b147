import uuid
from datetime import datetime

from pydantic import ConfigDict

from app.models.enums import Role
from app.schemas.common import CamelModel

class UserOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: str | None
    role: Role
    created_at: datetime

class RoleUpdateIn(CamelModel):
    model_config = ConfigDict(extra="forbid")

    role: Role
