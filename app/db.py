from __future__ import annotations

from collections.abc import Generator
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.config import settings
from app.models.base import Base

class Database:
    """Owns the engine and session factory for one process.

    Built once at startup and handed to the app; `dispose()` drains the pool on
    shutdown. Nothing else in the codebase creates an engine.
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs: Any) -> None:
        self.url = url
        engine_kwargs.setdefault("pool_pre_ping", True)
        self.engine: Engine = create_engine(url, echo=echo, **engine_kwargs)
        self.session_factory = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)

    @classmethod
    def from_settings(cls) -> "Database":
        return cls(settings.database_url, echo=settings.database_echo)

    def create_all(self) -> None:
        # registers every mapped class on Base.metadata
        import app.models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def session(self) -> Session:
        return self.session_factory()

    # db connectivity check
    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    def dispose(self) -> None:
        self.engine.dispose()

def get_database(request: Request) -> Database:
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("database not initialised; is the app lifespan running?")
    return database

def get_db(request: Request) -> Generator[Session, None, None]:
    db = get_database(request).session()
    try:
        yield db
    finally:
        db.close()
