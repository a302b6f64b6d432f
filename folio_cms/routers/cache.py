from fastapi import APIRouter, Depends
from redis.exceptions import RedisError

from ..redis_client import get_redis
from ..services.auth_service import get_current_user
from ..services.cache import invalidate_public

router = APIRouter(
    prefix="/api/admin/cache",
    tags=["Cache Management"],
    dependencies=[Depends(get_current_user)],
)


@router.post("/clear")
def clear_public_cache():
    """Drop cached public API responses and pages"""
    removed = invalidate_public()
    return {"ok": True, "removed": removed}


@router.get("/stats")
def get_cache_stats():
    client = get_redis()
    if client is None:
        return {"enabled": False}
    try:
        info = client.info()
    except RedisError as e:
        return {"enabled": True, "error": str(e)}
    return {
        "enabled": True,
        "used_memory": info.get("used_memory_human"),
        "connected_clients": info.get("connected_clients"),
        "total_commands_processed": info.get("total_commands_processed"),
    }
