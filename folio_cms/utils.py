import hashlib
import re
import secrets
import time
import unicodedata
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from .config import settings

# password hashing
_pwd = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return _pwd.hash(password)


def verify_password(plain_pw: str, hashed_pw: str) -> bool:
    return _pwd.verify(plain_pw, hashed_pw)


# JWT helpers
def create_access_token(data: dict, minutes: int | None = None) -> str:
    """Return a signed JWT access token with 'sub' claim in data."""
    exp_minutes = minutes if minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=exp_minutes)
    payload = data.copy()
    payload.update({"exp": int(expire.timestamp()), "type": "access"})
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT, raising JWTError on failure."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def now_iso() -> str:
    """UTC timestamp with fixed millisecond precision so strings sort chronologically."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_millis() -> int:
    return int(time.time() * 1000)


def slugify(text: str) -> str:
    """'Hello World!' -> 'hello-world'"""
    slug = str(text).strip().lower()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w\-]+", "", slug, flags=re.ASCII)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def sanitize_filename(filename: str) -> str:
    """'My Photo (2023) - Beach Sunset!.JPG' -> 'my-photo-2023-beach-sunset'"""
    name = re.sub(r"\.[^./\\]*$", "", filename)
    name = unicodedata.normalize("NFD", name.lower())
    name = "".join(c for c in name if not unicodedata.combining(c))
    name = re.sub(r"[\s_]+", "-", name)
    name = re.sub(r"[^a-z0-9-]", "", name)
    name = re.sub(r"-+", "-", name)
    return name.strip("-")[:100]


def short_id() -> str:
    """4 hex chars appended to upload filenames."""
    return secrets.token_hex(2)


def file_hash(content: bytes) -> str:
    return hashlib.md5(content).hexdigest()


def strip_mongo_id(doc: dict | None) -> dict | None:
    if doc is None:
        return None
    doc.pop("_id", None)
    return doc


def to_iso(dt: datetime | None) -> str:
    if dt is None:
        return now_iso()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
