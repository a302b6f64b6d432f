import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from .config import settings

logger = logging.getLogger(__name__)

ENTRIES = "entries"
MEDIA = "media"
CATEGORIES = "categories"
USERS = "users"

_client: MongoClient | None = None


def get_client() -> MongoClient:
    """Return the process-wide client, connecting on first use."""
    global _client
    if _client is None:
        _client = MongoClient(
            settings.MONGO_URI,
            serverSelectionTimeoutMS=5000,
            socketTimeoutMS=45000,
            maxPoolSize=10,
            retryWrites=True,
        )
        logger.info("MongoDB client created for database %s", settings.MONGO_DB_NAME)
    return _client


def set_client(client: MongoClient | None) -> None:
    global _client
    _client = client


def get_db() -> Database:
    return get_client()[settings.MONGO_DB_NAME]


def entries_collection():
    return get_db()[ENTRIES]


def media_collection():
    return get_db()[MEDIA]


def categories_collection():
    return get_db()[CATEGORIES]


def users_collection():
    return get_db()[USERS]


def ensure_indexes() -> None:
    entries_collection().create_index(
        [("collection", ASCENDING), ("slug", ASCENDING)], unique=True
    )
    entries_collection().create_index(
        [("status", ASCENDING), ("publishedAt", DESCENDING), ("createdAt", DESCENDING)]
    )
    media_collection().create_index("id", unique=True)
    categories_collection().create_index("id", unique=True)
    users_collection().create_index("id", unique=True)
    users_collection().create_index("email", unique=True)


def ping() -> None:
    """Raise if the database cannot be reached."""
    get_db().command("ping")
