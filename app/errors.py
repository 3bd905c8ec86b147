from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

log = structlog.get_logger(__name__)

class AppError(HTTPException):
    status_code: int = 500
    code: str = "internal_error"
    default_detail: str = "internal server error"

    def __init__(self, detail: str | None = None, *, errors: list[Any] | None = None) -> None:
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)
        self.errors = errors

class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"
    default_detail = "unauthorized"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail)
        self.headers = {"WWW-Authenticate": "Bearer"}

# session is valid but the backing user row is gone
class PrincipalNotFound(AppError):
    status_code = 404
    code = "principal_not_found"
    default_detail = "user not found"

class TaskNotFound(AppError):
    status_code = 404
    code = "task_not_found"
    default_detail = "todo not found"

class UserNotFound(AppError):
    status_code = 404
    code = "user_not_found"
    default_detail = "user not found"

class ValidationFailed(AppError):
    status_code = 400
    code = "validation_error"
    default_detail = "request validation failed"

class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_detail = "forbidden"

class Conflict(AppError):
    status_code = 409
    code = "conflict"
    default_detail = "todo was modified concurrently"

# redeem failures; detail says which of unknown, used or expired
class InvalidMagicLink(AppError):
    status_code = 400
    code = "invalid_magic_link"
    default_detail = "invalid token"

class RateLimited(AppError):
    status_code = 429
    code = "rate_limited"
    default_detail = "rate_limited"

_CODES_BY_STATUS = {
    400: "bad_request",
    401: "unauthenticated",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    429: "rate_limited",
}

def error_body(code: str, detail: Any, errors: list[Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"error": code, "detail": detail}
    if errors:
        body["errors"] = jsonable_encoder(errors)
    return body

async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc, AppError):
        code, errors = exc.code, exc.errors
    else:
        code, errors = _CODES_BY_STATUS.get(exc.status_code, "error"), None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(code, exc.detail, errors),
        headers=getattr(exc, "headers", None),
    )

async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=error_body("validation_error", "request validation failed", list(exc.errors())),
    )

async def _database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log.error("database_error", exc_info=exc)
    return JSONResponse(status_code=500, content=error_body("internal_error", "internal server error"))

async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error("unhandled_error", exc_info=exc)
    return JSONResponse(status_code=500, content=error_body("internal_error", "internal server error"))

def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, _database_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
