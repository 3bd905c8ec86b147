"""Todo persistence. Each write is a single-row statement committed on its own."""
from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, InvalidRequestError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.errors import Conflict, TaskNotFound
from app.models.todo import Todo

def list_todos(db: Session, owner_id: uuid.UUID | None = None) -> Sequence[Todo]:
    q = select(Todo).order_by(Todo.created_at.desc(), Todo.id)
    if owner_id is not None:
        q = q.where(Todo.owner_id == owner_id)
    return db.scalars(q).all()

def get_todo(db: Session, todo_id: uuid.UUID) -> Todo | None:
    return db.get(Todo, todo_id)

def create_todo(
    db: Session,
    owner_id: uuid.UUID,
    title: str,
    content: str | None = None,
    is_done: bool = False,
) -> Todo:
    t = Todo(owner_id=owner_id, title=title, content=content, is_done=is_done)
    db.add(t)
    _commit(db)
    db.refresh(t)
    return t

def update_todo(db: Session, todo: Todo, changes: Mapping[str, Any]) -> Todo:
    for name, value in changes.items():
        setattr(todo, name, value)
    db.add(todo)
    _commit(db)
    try:
        db.refresh(todo)
    except InvalidRequestError:
        # deleted by someone else right after our write landed
        raise TaskNotFound()
    return todo

def delete_todo(db: Session, todo_id: uuid.UUID) -> None:
    result = db.execute(delete(Todo).where(Todo.id == todo_id))
    if result.rowcount == 0:
        db.rollback()
        raise TaskNotFound()
    _commit(db)

def _commit(db: Session) -> None:
    try:
        db.commit()
    except StaleDataError:
        # UPDATE matched zero rows: the todo was deleted after we read it
        db.rollback()
        raise TaskNotFound()
    except IntegrityError:
        db.rollback()
        raise Conflict()
