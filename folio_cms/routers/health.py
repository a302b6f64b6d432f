import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from ..db import ping
from ..utils import now_iso

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/health", tags=["health"])
def health():
    error = None
    try:
        ping()
    except PyMongoError as e:
        logger.warning("Health check ping failed: %s", e)
        error = str(e)

    connected = error is None
    body = {
        "status": "healthy" if connected else "unhealthy",
        "database": "connected" if connected else "disconnected",
        "error": error,
        "timestamp": now_iso(),
    }
    return JSONResponse(body, status_code=200 if connected else 503)
