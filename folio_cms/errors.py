"""Turning repository outcomes and unexpected failures into ``{"error": ...}`` responses."""
import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .models.result import ErrorKind, Outcome

logger = logging.getLogger(__name__)

STATUS_FOR_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.STORAGE: 502,
}


def raise_for(outcome: Outcome):
    """Return the outcome's value, or raise the matching HTTPException."""
    if outcome.ok:
        return outcome.value
    detail = {"error": outcome.error}
    if outcome.kind == ErrorKind.VALIDATION:
        detail["errors"] = outcome.errors
    raise HTTPException(status_code=STATUS_FOR_KIND.get(outcome.kind, 400), detail=detail)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(body, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        errors.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return JSONResponse({"error": "Invalid request body", "errors": errors}, status_code=400)


async def database_exception_handler(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    if isinstance(exc, (ConnectionFailure, ServerSelectionTimeoutError)):
        return JSONResponse({"error": "Database unavailable"}, status_code=503)
    return JSONResponse({"error": "Database error"}, status_code=500)


def install_handlers(app) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PyMongoError, database_exception_handler)
