"""Posts that reference media ids with no MediaItem behind them.

Matching an orphaned id back to a stored file is a guess, so ``fix_orphans``
only reports its proposals unless ``apply`` is set.
"""
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from pymongo.errors import PyMongoError

from ..db import entries_collection, media_collection
from ..models.model import MediaItem
from ..utils import to_iso
from .blob_storage import BlobStorageError, StoredBlob, get_blob_storage
from .media import insert_media_record

logger = logging.getLogger(__name__)

POSTS = "posts"

EXTENSION_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
    "avif": "image/avif",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",
}

_EXT_RE = re.compile(r"\.[^.]+$")
_SUFFIX_RE = re.compile(r"-[a-f0-9]{4}$", re.IGNORECASE)


def guess_mime_type(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return EXTENSION_MIME_TYPES.get(ext, "image/jpeg")


def _post_refs(data: Dict[str, Any]) -> List[str]:
    refs = [m for m in data.get("media") or [] if isinstance(m, str) and m]
    if isinstance(data.get("coverMediaId"), str) and data["coverMediaId"]:
        refs.append(data["coverMediaId"])
    return refs


def diagnose_orphans() -> Dict[str, Any]:
    posts = list(entries_collection().find({"collection": POSTS}, {"_id": 0, "slug": 1, "data": 1}))

    referenced: Dict[str, None] = {}
    for post in posts:
        for media_id in _post_refs(post.get("data") or {}):
            referenced.setdefault(media_id, None)

    existing = {
        doc["id"]
        for doc in media_collection().find({"id": {"$in": list(referenced)}}, {"_id": 0, "id": 1})
    }
    orphaned = [m for m in referenced if m not in existing]
    orphan_set = set(orphaned)

    affected = []
    for post in posts:
        data = post.get("data") or {}
        missing = [m for m in _post_refs(data) if m in orphan_set]
        if missing:
            affected.append({
                "slug": post["slug"],
                "title": data.get("title") or post["slug"],
                "orphanedIds": missing,
            })

    return {
        "referencedIds": list(referenced),
        "existingIds": [m for m in referenced if m in existing],
        "orphanedIds": orphaned,
        "affectedPosts": affected,
        "summary": {
            "totalPosts": len(posts),
            "referenced": len(referenced),
            "existing": len(existing),
            "orphaned": len(orphaned),
            "affectedPosts": len(affected),
        },
    }


def _base_name(filename: str) -> str:
    return _EXT_RE.sub("", filename)


def match_blob(media_id: str, blobs: Iterable[StoredBlob]) -> Optional[StoredBlob]:
    """First stored file that plausibly belongs to media_id."""
    blobs = list(blobs)
    for blob in blobs:
        base = _base_name(blob.filename)
        stem = _SUFFIX_RE.sub("", base)
        if media_id in blob.pathname or media_id in blob.url:
            return blob
        if base and base in media_id:
            return blob
        if stem and stem != base and stem in media_id:
            return blob

    if media_id.startswith("http"):
        filename = media_id.rsplit("/", 1)[-1]
        for blob in blobs:
            if blob.filename == filename:
                return blob
        return StoredBlob(url=media_id, pathname="/".join(media_id.split("/")[-2:]), size=0)

    return None


def media_record_from_blob(media_id: str, blob: StoredBlob) -> Dict[str, Any]:
    filename = blob.url.rsplit("/", 1)[-1]
    base = _base_name(filename)
    return MediaItem(
        id=media_id,
        filename=filename,
        originalName=filename,
        slug=base,
        path=blob.pathname,
        url=blob.url,
        mime=guess_mime_type(filename),
        size=blob.size,
        title=_SUFFIX_RE.sub("", base).replace("-", " "),
        alt="",
        activeVariant="original",
        createdAt=to_iso(blob.uploaded_at),
    ).model_dump(exclude_none=True)


def fix_orphans(apply: bool = False, only_ids: Optional[List[str]] = None) -> Dict[str, Any]:
    """Propose (and with ``apply``, create) MediaItems for orphaned ids.

    ``only_ids`` restricts the run to a reviewed subset of orphaned ids.
    Each insert is independent; the report carries partial counts.
    """
    orphaned = diagnose_orphans()["orphanedIds"]
    if only_ids is not None:
        wanted = set(only_ids)
        orphaned = [m for m in orphaned if m in wanted]

    report: Dict[str, Any] = {
        "applied": apply,
        "orphaned": len(orphaned),
        "matches": [],
        "unmatched": [],
        "created": 0,
        "skipped": 0,
        "failed": 0,
    }
    if not orphaned:
        return report

    try:
        blobs = list(get_blob_storage().list("uploads/"))
    except BlobStorageError as e:
        logger.error("Could not list stored files: %s", e)
        report["unmatched"] = orphaned
        report["error"] = "Could not list stored files"
        return report

    matches = []
    for media_id in orphaned:
        blob = match_blob(media_id, blobs)
        if blob is None:
            report["unmatched"].append(media_id)
            continue
        matches.append((media_id, blob))
        report["matches"].append({"id": media_id, "url": blob.url, "pathname": blob.pathname})

    if not apply:
        return report

    for media_id, blob in matches:
        try:
            if insert_media_record(media_record_from_blob(media_id, blob)):
                report["created"] += 1
            else:
                report["skipped"] += 1
        except PyMongoError:
            logger.exception("Failed to restore media %s", media_id)
            report["failed"] += 1

    logger.info(
        "Orphan fix: %d created, %d skipped, %d failed, %d unmatched",
        report["created"], report["skipped"], report["failed"], len(report["unmatched"]),
    )
    return report
