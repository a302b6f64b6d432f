import io
import os
import tempfile

# must be set before folio_cms.config is imported
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="folio-uploads-"))
os.environ.setdefault("SECRET_KEY", "test-secret")

import fakeredis
import mongomock
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from folio_cms.db import ensure_indexes, set_client
from folio_cms.redis_client import set_redis
from folio_cms.services.blob_storage import LocalBlobStorage, set_blob_storage
from folio_cms.services.schema_registry import clear_schema_cache
from folio_cms.services.users import setup_owner
from folio_cms.utils import create_access_token


@pytest.fixture(autouse=True)
def mongo():
    client = mongomock.MongoClient()
    set_client(client)
    ensure_indexes()
    yield client
    set_client(None)


@pytest.fixture(autouse=True)
def redis_cache():
    client = fakeredis.FakeRedis(decode_responses=True)
    set_redis(client)
    yield client
    set_redis(None)


@pytest.fixture(autouse=True)
def blob_storage(tmp_path):
    storage = LocalBlobStorage(str(tmp_path / "public"))
    set_blob_storage(storage)
    yield storage
    set_blob_storage(None)


@pytest.fixture(autouse=True)
def _schemas():
    clear_schema_cache()
    yield
    clear_schema_cache()


@pytest.fixture
def owner():
    result = setup_owner("Owner", "owner@example.com", "correct-horse")
    assert result.ok, result.error
    return result.value


@pytest.fixture
def client():
    from folio_cms.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_client(client, owner):
    token = create_access_token({"sub": owner["id"]})
    client.headers.update({"Authorization": f"Bearer {token}"})
    return client


def make_image(width: int, height: int, fmt: str = "JPEG", color=(200, 40, 40)) -> bytes:
    if fmt == "PNG":
        img = Image.new("RGBA", (width, height), (*color, 255))
    else:
        img = Image.new("RGB", (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def jpeg_bytes():
    return make_image(1800, 1200)
