import os

# settings are read at import time
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DATABASE_CREATE_ALL", "false")

import uuid
from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.db import Database
from app.main import create_app
from app.models.enums import Role
from app.models.user import User

@dataclass
class Actor:
    id: str
    email: str
    jwt: str
    role: Role

    @property
    def headers(self) -> dict[str, str]:
        return _auth(self.jwt)

@pytest.fixture()
def database() -> Database:
    # one in-memory sqlite shared by the app and the test through StaticPool
    db = Database(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db.create_all()
    try:
        yield db
    finally:
        db.dispose()

@pytest.fixture()
def db_session(database: Database) -> Session:
    session = database.session()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture()
def client(database: Database) -> TestClient:
    app = create_app(database=database)
    return TestClient(app)

def _login(client, email: str) -> str:
    r = client.post("/auth/request-link", json={"email": email})
    assert r.status_code == 200, r.text
    token = r.json()["token"]

    r = client.post("/auth/redeem", json={"token": token})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]

def _auth(jwt: str) -> dict[str, str]:
    return {"authorization": f"bearer {jwt}"}

def set_role(database: Database, user_id: str, role: Role) -> None:
    with database.session() as s:
        u = s.get(User, uuid.UUID(user_id))
        assert u is not None
        u.role = role
        s.commit()

@pytest.fixture()
def make_actor(client, database):
    def _make(role: Role = Role.user, email: str | None = None) -> Actor:
        # unique per test to avoid collisions
        email = email or f"{role.value}+{uuid.uuid4().hex[:8]}@example.com"
        jwt = _login(client, email)

        r = client.get("/auth/me", headers=_auth(jwt))
        assert r.status_code == 200, r.text
        user_id = r.json()["id"]

        if role is not Role.user:
            set_role(database, user_id, role)
        return Actor(id=user_id, email=email, jwt=jwt, role=role)

    return _make

@pytest.fixture()
def alice(make_actor) -> Actor:
    return make_actor(Role.user, "alice@example.com")

@pytest.fixture()
def bob(make_actor) -> Actor:
    return make_actor(Role.user, "bob@example.com")

@pytest.fixture()
def manager(make_actor) -> Actor:
    return make_actor(Role.manager, "manager@example.com")

@pytest.fixture()
def admin(make_actor) -> Actor:
    return make_actor(Role.admin, "admin@example.com")
