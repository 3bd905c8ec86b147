from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import Database
from app.models.enums import Role
from app.models.todo import Todo
from app.models.user import User

@dataclass
class SeedResult:
    user_email: str
    manager_email: str
    admin_email: str
    todo_count: int

def get_or_create_user(db: Session, email: str, name: str, role: Role) -> User:
    email = email.lower().strip()
    u = db.scalar(select(User).where(User.email == email))
    if u is None:
        u = User(email=email, name=name, role=role)
        db.add(u)
        db.flush()
    elif u.role != role:
        # keep it stable if you re-run seed
        u.role = role
        db.add(u)
        db.flush()
    return u

def get_or_create_todo(db: Session, owner: User, title: str, content: str | None = None) -> Todo:
    t = db.scalar(select(Todo).where(Todo.owner_id == owner.id, Todo.title == title))
    if t is None:
        t = Todo(owner_id=owner.id, title=title, content=content)
        db.add(t)
        db.flush()
    return t

def seed(database: Database) -> SeedResult:
    database.create_all()
    with database.session() as db:
        user = get_or_create_user(db, "user@example.com", "user", Role.user)
        manager = get_or_create_user(db, "manager@example.com", "manager", Role.manager)
        admin = get_or_create_user(db, "admin@example.com", "admin", Role.admin)

        for owner in (user, manager, admin):
            get_or_create_todo(db, owner, f"seeded todo for {owner.name}", content="created by seed")

        db.commit()
        todo_count = len(db.scalars(select(Todo.id)).all())

        return SeedResult(
            user_email=user.email,
            manager_email=manager.email,
            admin_email=admin.email,
            todo_count=todo_count,
        )

if __name__ == "__main__":
    database = Database.from_settings()
    try:
        r = seed(database)
    finally:
        database.dispose()
    print("seed complete")
    print(f"todos={r.todo_count}")
    print("users:")
    print(f"  user:    {r.user_email}")
    print(f"  manager: {r.manager_email}")
    print(f"  admin:   {r.admin_email}")
