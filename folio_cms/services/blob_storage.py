"""Binary storage for uploaded media.

Only metadata lives in MongoDB; the bytes go to S3 in production or to a
local directory (served under ``/uploads``) in development.
"""
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import settings

logger = logging.getLogger(__name__)


class BlobStorageError(Exception):
    """Raised when the blob backend rejects a write or cannot be reached."""


@dataclass
class StoredBlob:
    url: str
    pathname: str
    size: int
    uploaded_at: Optional[datetime] = None

    @property
    def filename(self) -> str:
        return self.pathname.rsplit("/", 1)[-1]


class LocalBlobStorage:
    def __init__(self, root: str, url_prefix: str = ""):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def _url(self, pathname: str) -> str:
        return f"{self.url_prefix}/{pathname}"

    def put(self, content: bytes, pathname: str, content_type: Optional[str] = None) -> StoredBlob:
        target = self.root / pathname
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise BlobStorageError(f"Failed to write {pathname}: {e}") from e
        return StoredBlob(url=self._url(pathname), pathname=pathname, size=len(content),
                          uploaded_at=datetime.now(timezone.utc))

    def delete(self, pathnames: Iterable[str]) -> None:
        for pathname in pathnames:
            try:
                (self.root / pathname).unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise BlobStorageError(f"Failed to delete {pathname}: {e}") from e

    def list(self, prefix: str = "uploads/") -> Iterator[StoredBlob]:
        base = self.root / prefix
        if not base.exists():
            return
        for dirpath, _, files in os.walk(base):
            for name in sorted(files):
                full = Path(dirpath) / name
                pathname = full.relative_to(self.root).as_posix()
                stat = full.stat()
                yield StoredBlob(
                    url=self._url(pathname),
                    pathname=pathname,
                    size=stat.st_size,
                    uploaded_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )


class S3BlobStorage:
    def __init__(self, bucket: str):
        self.bucket = bucket
        self.client = boto3.client(
            "s3",
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=settings.AWS_REGION,
        )

    def _url(self, pathname: str) -> str:
        return f"https://{self.bucket}.s3.amazonaws.com/{pathname}"

    def put(self, content: bytes, pathname: str, content_type: Optional[str] = None) -> StoredBlob:
        extra = {"ContentType": content_type} if content_type else {}
        try:
            self.client.put_object(Bucket=self.bucket, Key=pathname, Body=content, **extra)
        except (BotoCoreError, ClientError) as e:
            raise BlobStorageError(f"S3 upload failed for {pathname}: {e}") from e
        return StoredBlob(url=self._url(pathname), pathname=pathname, size=len(content),
                          uploaded_at=datetime.now(timezone.utc))

    def delete(self, pathnames: Iterable[str]) -> None:
        keys: List[dict] = [{"Key": p} for p in pathnames]
        # delete_objects accepts at most 1000 keys per call
        for i in range(0, len(keys), 1000):
            try:
                self.client.delete_objects(Bucket=self.bucket, Delete={"Objects": keys[i:i + 1000]})
            except (BotoCoreError, ClientError) as e:
                raise BlobStorageError(f"S3 delete failed: {e}") from e

    def list(self, prefix: str = "uploads/") -> Iterator[StoredBlob]:
        paginator = self.client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    yield StoredBlob(
                        url=self._url(obj["Key"]),
                        pathname=obj["Key"],
                        size=obj.get("Size", 0),
                        uploaded_at=obj.get("LastModified"),
                    )
        except (BotoCoreError, ClientError) as e:
            raise BlobStorageError(f"S3 listing failed: {e}") from e


_storage = None


def get_blob_storage():
    global _storage
    if _storage is None:
        if settings.BLOB_BACKEND == "s3":
            if not settings.S3_BUCKET:
                raise BlobStorageError("BLOB_BACKEND=s3 requires S3_BUCKET")
            _storage = S3BlobStorage(settings.S3_BUCKET)
        else:
            _storage = LocalBlobStorage(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)
        logger.info("Using %s blob storage", settings.BLOB_BACKEND)
    return _storage


def set_blob_storage(storage) -> None:
    global _storage
    _storage = storage
