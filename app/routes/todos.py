import uuid

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.auth.deps import Principal, get_principal
from app.db import get_db
from app.errors import Forbidden, TaskNotFound, ValidationFailed
from app.models.todo import Todo
from app.rbac.policy import Action, can_view, decide_delete, decide_update, visibility_owner
from app.schemas.todos import TodoCreateIn, TodoDeletedOut, TodoOut, TodoUpdateIn
from app.store import todos as store

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/todos", tags=["todos"])

# declared after get_principal so 401/404-principal always win over 404-todo
def get_target_todo(
    todo_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> Todo:
    t = store.get_todo(db, todo_id)
    if t is None:
        raise TaskNotFound()
    return t

def _deny(action: Action, principal: Principal, todo: Todo, reason: str | None) -> Forbidden:
    log.info(
        "todo_mutation_denied",
        action=action.value,
        role=principal.role.value,
        principal_id=str(principal.id),
        todo_id=str(todo.id),
        reason=reason,
    )
    return Forbidden(reason)

@router.get("", response_model=list[TodoOut])
def list_todos(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> list[TodoOut]:
    rows = store.list_todos(db, owner_id=visibility_owner(principal.role, principal.id))
    return [TodoOut.model_validate(r) for r in rows]

@router.post("", response_model=TodoOut, status_code=status.HTTP_201_CREATED)
def create_todo(
    payload: TodoCreateIn,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> TodoOut:
    t = store.create_todo(
        db,
        owner_id=principal.id,
        title=payload.title,
        content=payload.content,
        is_done=payload.is_done,
    )
    log.info("todo_created", todo_id=str(t.id), owner_id=str(t.owner_id))
    return TodoOut.model_validate(t)

@router.get("/{todo_id}", response_model=TodoOut)
def get_todo(
    principal: Principal = Depends(get_principal),
    todo: Todo = Depends(get_target_todo),
) -> TodoOut:
    # hidden todos look exactly like missing ones
    if not can_view(principal.role, todo, principal.id):
        raise TaskNotFound()
    return TodoOut.model_validate(todo)

@router.patch("/{todo_id}", response_model=TodoOut)
def update_todo(
    payload: TodoUpdateIn,
    principal: Principal = Depends(get_principal),
    todo: Todo = Depends(get_target_todo),
    db: Session = Depends(get_db),
) -> TodoOut:
    changes = payload.changes()
    if not changes:
        raise ValidationFailed("no fields to update")

    decision = decide_update(principal.role, todo, principal.id, changes.keys())
    if not decision:
        raise _deny(Action.update, principal, todo, decision.reason)

    t = store.update_todo(db, todo, changes)
    log.info("todo_updated", todo_id=str(t.id), fields=sorted(changes))
    return TodoOut.model_validate(t)

@router.delete("/{todo_id}", response_model=TodoDeletedOut)
def delete_todo(
    principal: Principal = Depends(get_principal),
    todo: Todo = Depends(get_target_todo),
    db: Session = Depends(get_db),
) -> TodoDeletedOut:
    decision = decide_delete(principal.role, todo, principal.id)
    if not decision:
        raise _deny(Action.delete, principal, todo, decision.reason)

    todo_id = todo.id
    store.delete_todo(db, todo_id)
    log.info("todo_deleted", todo_id=str(todo_id), role=principal.role.value)
    return TodoDeletedOut(id=todo_id)
