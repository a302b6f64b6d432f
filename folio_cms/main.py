import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError

from .config import settings
from .db import ensure_indexes
from .errors import install_handlers
from .routers import auth, cache, categories, content, entries, health, media, site, users

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        ensure_indexes()
    except PyMongoError as e:
        # the health endpoint reports this; requests fail with 503 until the database is back
        logger.error("Could not create indexes on startup: %s", e)
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Folio CMS", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_handlers(app)

    if settings.BLOB_BACKEND == "local":
        uploads = Path(settings.UPLOAD_DIR) / "uploads"
        uploads.mkdir(parents=True, exist_ok=True)
        app.mount("/uploads", StaticFiles(directory=uploads), name="uploads")

    # routers
    app.include_router(health.router)       # /api/health
    app.include_router(auth.router)         # /api/auth/*
    app.include_router(users.router)        # /api/admin/users/*
    app.include_router(entries.router)      # /api/admin/collections/*
    app.include_router(media.router)        # /api/admin/media/*
    app.include_router(categories.router)   # /api/admin/categories/*
    app.include_router(cache.router)        # /api/admin/cache/*
    app.include_router(content.router)      # /api/content/*
    # last: the site's /{category} route would shadow anything after it
    app.include_router(site.router)

    return app


app = create_app()
