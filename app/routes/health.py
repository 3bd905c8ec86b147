from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.redis_client import get_redis, redis_ping

router = APIRouter(tags=["health"])

@router.get("/health")
def health() -> dict:
    return {"status": "ok"}

# readiness probe
@router.get("/ready")
def ready(request: Request):
    database = getattr(request.app.state, "database", None)
    checks: dict[str, bool] = {
        "db": database.ping() if database is not None else False,
        "redis": redis_ping(get_redis(request)),
    }
    ok = all(checks.values())

    # returns 200 only when db + redis are reachable
    # returns 503 with details if not
    return JSONResponse(
        status_code=200 if ok else 503,
        content={"status": "ok" if ok else "unready", "checks": checks},
    )
