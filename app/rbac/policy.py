"""Authorization decisions for todo mutations.

Every function here is pure: it looks at the caller's role and id, the stored
todo and the set of fields a request wants to change, and returns a
`Decision`. Denial is an ordinary return value. The HTTP layer turns it into a
403 carrying `Decision.reason`.

Each operation dispatches through a table with one entry per `Role`; the
tables are checked against the enum at import so adding a role without a rule
fails loudly instead of falling through to some default.
"""
from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from app.models.enums import Role

TITLE = "title"
CONTENT = "content"
IS_DONE = "is_done"

MUTABLE_FIELDS: frozenset[str] = frozenset({TITLE, CONTENT, IS_DONE})
COMPLETION_ONLY: frozenset[str] = frozenset({IS_DONE})

DENY_UPDATE_NOT_OWNER = "you can only update your own todos"
DENY_UPDATE_MANAGER = "managers can only mark todos as done/undone"
DENY_DELETE_NOT_OWNER = "you can only delete your own todos"
DENY_DELETE_MANAGER = "managers cannot delete todos"

class Action(str, Enum):
    create = "create"
    update = "update"
    delete = "delete"

class OwnedTask(Protocol):
    owner_id: uuid.UUID

@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed

ALLOW = Decision(allowed=True)

def _exhaustive(table: Mapping[Role, Callable], name: str) -> Mapping[Role, Callable]:
    missing = set(Role) - set(table)
    if missing:
        raise RuntimeError(f"{name} has no rule for roles: {sorted(r.value for r in missing)}")
    return table

def _owns(task: OwnedTask, principal_id: uuid.UUID) -> bool:
    return task.owner_id == principal_id

# create

def decide_create(role: Role) -> Decision:
    # every role may create and the owner is always the caller
    return ALLOW

# read

_VISIBILITY: Mapping[Role, Callable[[uuid.UUID], uuid.UUID | None]] = _exhaustive(
    {
        Role.user: lambda principal_id: principal_id,
        Role.manager: lambda principal_id: None,
        Role.admin: lambda principal_id: None,
    },
    "visibility",
)

def visibility_owner(role: Role, principal_id: uuid.UUID) -> uuid.UUID | None:
    """Owner id a listing must be restricted to, or None for everything."""
    return _VISIBILITY[role](principal_id)

def can_view(role: Role, task: OwnedTask, principal_id: uuid.UUID) -> bool:
    owner = visibility_owner(role, principal_id)
    return owner is None or task.owner_id == owner

# update

def _user_update(task: OwnedTask, principal_id: uuid.UUID, fields: frozenset[str]) -> Decision:
    if not _owns(task, principal_id):
        return Decision.deny(DENY_UPDATE_NOT_OWNER)
    return ALLOW

def _manager_update(task: OwnedTask, principal_id: uuid.UUID, fields: frozenset[str]) -> Decision:
    # ownership does not matter for managers, only the shape of the change
    if fields != COMPLETION_ONLY:
        return Decision.deny(DENY_UPDATE_MANAGER)
    return ALLOW

def _admin_update(task: OwnedTask, principal_id: uuid.UUID, fields: frozenset[str]) -> Decision:
    return ALLOW

_UPDATE: Mapping[Role, Callable[[OwnedTask, uuid.UUID, frozenset[str]], Decision]] = _exhaustive(
    {
        Role.user: _user_update,
        Role.manager: _manager_update,
        Role.admin: _admin_update,
    },
    "update",
)

def decide_update(
    role: Role,
    task: OwnedTask,
    principal_id: uuid.UUID,
    fields: Iterable[str],
) -> Decision:
    fields = frozenset(fields)
    unknown = fields - MUTABLE_FIELDS
    if unknown:
        # input validation is expected to have caught this already
        raise ValueError(f"unrecognised todo fields: {sorted(unknown)}")
    return _UPDATE[role](task, principal_id, fields)

# delete

def _user_delete(task: OwnedTask, principal_id: uuid.UUID) -> Decision:
    if not _owns(task, principal_id):
        return Decision.deny(DENY_DELETE_NOT_OWNER)
    return ALLOW

def _manager_delete(task: OwnedTask, principal_id: uuid.UUID) -> Decision:
    return Decision.deny(DENY_DELETE_MANAGER)

def _admin_delete(task: OwnedTask, principal_id: uuid.UUID) -> Decision:
    return ALLOW

_DELETE: Mapping[Role, Callable[[OwnedTask, uuid.UUID], Decision]] = _exhaustive(
    {
        Role.user: _user_delete,
        Role.manager: _manager_delete,
        Role.admin: _admin_delete,
    },
    "delete",
)

def decide_delete(role: Role, task: OwnedTask, principal_id: uuid.UUID) -> Decision:
    return _DELETE[role](task, principal_id)

def decide(
    action: Action,
    role: Role,
    principal_id: uuid.UUID,
    task: OwnedTask | None = None,
    fields: Iterable[str] = (),
) -> Decision:
    if action is Action.create:
        return decide_create(role)
    if task is None:
        raise ValueError(f"{action.value} needs the stored todo")
    if action is Action.update:
        return decide_update(role, task, principal_id, fields)
    return decide_delete(role, task, principal_id)
