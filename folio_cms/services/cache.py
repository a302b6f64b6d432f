"""Redis cache for public API responses and rendered public pages.

The cache is best effort: a missing or unreachable Redis only means every
request goes to MongoDB.
"""
import json
import logging
from typing import Any, Optional

from redis.exceptions import RedisError

from ..config import settings
from ..redis_client import get_redis

logger = logging.getLogger(__name__)

CONTENT_PREFIX = "content"
PAGE_PREFIX = "page"


def content_key(*parts: Any) -> str:
    return ":".join([CONTENT_PREFIX, *(str(p) for p in parts)])


def page_key(path: str) -> str:
    return f"{PAGE_PREFIX}:{path}"


def get_cached(key: str) -> Optional[str]:
    client = get_redis()
    if client is None:
        return None
    try:
        return client.get(key)
    except RedisError as e:
        logger.warning("Cache read failed for %s: %s", key, e)
        return None


def set_cached(key: str, value: str, ttl: Optional[int] = None) -> None:
    client = get_redis()
    if client is None:
        return
    try:
        client.setex(key, ttl or settings.CACHE_TTL, value)
    except RedisError as e:
        logger.warning("Cache write failed for %s: %s", key, e)


def get_cached_json(key: str) -> Any:
    raw = get_cached(key)
    return json.loads(raw) if raw else None


def set_cached_json(key: str, value: Any, ttl: Optional[int] = None) -> None:
    set_cached(key, json.dumps(value), ttl)


def invalidate_public() -> int:
    """Drop every cached public response and page. Returns the number of keys removed."""
    client = get_redis()
    if client is None:
        return 0

    removed = 0
    try:
        for prefix in (CONTENT_PREFIX, PAGE_PREFIX):
            cursor = 0
            while True:
                cursor, keys = client.scan(cursor, match=f"{prefix}:*", count=100)
                if keys:
                    removed += client.delete(*keys)
                if cursor == 0:
                    break
    except RedisError as e:
        logger.warning("Cache invalidation failed: %s", e)
        return removed

    logger.info("Invalidated %d public cache keys", removed)
    return removed
