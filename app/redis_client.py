import redis
from fastapi import Request

from app.config import settings

def create_redis(url: str | None = None) -> redis.Redis:
    # from_url is lazy; nothing connects until the first command
    return redis.Redis.from_url(url or settings.redis_url, decode_responses=True)

def get_redis(request: Request) -> redis.Redis | None:
    return getattr(request.app.state, "redis", None)

# redis connectivity check
def redis_ping(client: redis.Redis | None) -> bool:
    if client is None:
        return False
    try:
        return bool(client.ping())
    except redis.RedisError:
        return False
