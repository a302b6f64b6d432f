import redis

from .config import settings

_redis_client: redis.Redis | None = None


def get_redis() -> redis.Redis | None:
    """Lazily build the cache client; None when no REDIS_HOST is configured."""
    global _redis_client
    if _redis_client is None and settings.REDIS_HOST:
        _redis_client = redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            password=settings.REDIS_PASSWORD,
            decode_responses=True,   # bytes to strings
            socket_timeout=2,
        )
    return _redis_client


def set_redis(client: redis.Redis | None) -> None:
    global _redis_client
    _redis_client = client
