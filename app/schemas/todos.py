import uuid
from datetime import datetime
from typing import Annotated, Any

from pydantic import ConfigDict, StrictBool, StringConstraints, model_validator

from app.models.enums import Role
from app.models.todo import CONTENT_MAX_LENGTH, TITLE_MAX_LENGTH
from app.schemas.common import CamelModel

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=TITLE_MAX_LENGTH)]
Content = Annotated[str, StringConstraints(max_length=CONTENT_MAX_LENGTH)]

# unknown keys (ownerId included) are dropped: the owner always comes from the token
class TodoCreateIn(CamelModel):
    title: Title
    content: Content | None = None
    is_done: StrictBool = False

class TodoUpdateIn(CamelModel):
    model_config = ConfigDict(extra="forbid")

    title: Title | None = None
    content: Content | None = None
    is_done: StrictBool | None = None

    @model_validator(mode="after")
    def _reject_null_for_required(self) -> "TodoUpdateIn":
        for name in ("title", "is_done"):
            if name in self.model_fields_set and getattr(self, name) is None:
                alias = type(self).model_fields[name].alias or name
                raise ValueError(f"{alias} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Only the fields the client actually sent, keyed by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}

class OwnerOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    name: str | None
    email: str
    role: Role

class TodoOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    content: str | None
    is_done: bool
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    owner: OwnerOut

class TodoDeletedOut(CamelModel):
    message: str = "todo deleted"
    id: uuid.UUID
