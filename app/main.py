from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import redis
import structlog
from fastapi import FastAPI

from app.config import settings
from app.db import Database
from app.errors import install_error_handlers
from app.logging_config import setup_logging
from app.middleware import RequestLoggingMiddleware
from app.redis_client import create_redis
from app.routes.admin import router as admin_router
from app.routes.auth import router as auth_router
from app.routes.health import router as health_router
from app.routes.todos import router as todos_router

log = structlog.get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # only what is created here is torn down here; injected collaborators belong to the caller
    owned_db: Database | None = None
    owned_redis: redis.Redis | None = None

    if getattr(app.state, "database", None) is None:
        owned_db = Database.from_settings()
        if settings.database_create_all:
            owned_db.create_all()
        app.state.database = owned_db

    if getattr(app.state, "redis", None) is None:
        owned_redis = create_redis()
        app.state.redis = owned_redis

    log.info("app_started", env=settings.app_env)
    try:
        yield
    finally:
        if owned_redis is not None:
            owned_redis.close()
            app.state.redis = None
        if owned_db is not None:
            owned_db.dispose()
            app.state.database = None
        log.info("app_stopped")

def create_app(database: Database | None = None, redis_client: redis.Redis | None = None) -> FastAPI:
    setup_logging()

    app = FastAPI(title="todo-rbac-api", version="0.1.0", lifespan=lifespan)
    app.state.database = database
    app.state.redis = redis_client

    app.add_middleware(RequestLoggingMiddleware)
    install_error_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(todos_router)
    app.include_router(admin_router)
    return app

app = create_app()
