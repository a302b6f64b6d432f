"""Media library: upload, metadata edits, deletion and reference bookkeeping.

Entries point at media by id only. The shapes that can hold a media id are
``featuredImage``, ``coverMediaId``, the ``media`` list, ``mediaId`` /
``mediaIds`` on content blocks and ``seo.ogImage``.
"""
import logging
import os
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..db import entries_collection, media_collection
from ..models.model import MediaItem, Rendition
from ..models.result import ErrorKind, Outcome
from ..utils import file_hash, now_iso, sanitize_filename, short_id
from .blob_storage import BlobStorageError, get_blob_storage
from .images import ImageProcessingError, is_processable_image, process_image, variant_filename

logger = logging.getLogger(__name__)

MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/avif": ".avif",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/quicktime": ".mov",
}

ORIGINALS_PREFIX = "uploads/originals"
VARIANTS_PREFIX = "uploads/variants"
DEFAULT_PAGE_SIZE = 50
EDITABLE_FIELDS = ("alt", "title", "caption", "description", "tags")


def list_media(limit: Optional[int] = None, offset: int = 0, mime: Optional[str] = None) -> Tuple[List[Dict[str, Any]], int]:
    query: Dict[str, Any] = {}
    if mime:
        query["mime"] = {"$regex": f"^{re.escape(mime)}"}
    col = media_collection()
    total = col.count_documents(query)
    cursor = (
        col.find(query, {"_id": 0})
        .sort([("createdAt", DESCENDING), ("id", DESCENDING)])
        .skip(max(offset, 0))
        .limit(limit or DEFAULT_PAGE_SIZE)
    )
    return list(cursor), total


def get_media(media_id: str) -> Optional[Dict[str, Any]]:
    return media_collection().find_one({"id": media_id}, {"_id": 0})


def get_media_by_ids(ids: List[str]) -> List[Dict[str, Any]]:
    """Items in the order requested; unknown ids are skipped."""
    if not ids:
        return []
    found = {doc["id"]: doc for doc in media_collection().find({"id": {"$in": list(ids)}}, {"_id": 0})}
    return [found[i] for i in ids if i in found]


def _extension_for(mime: str, original_name: str) -> str:
    return MIME_EXTENSIONS.get(mime) or os.path.splitext(original_name)[1].lower()


def upload_media(content: bytes, original_name: str, mime: str) -> Outcome:
    """Store the original plus any downscaled variants and record a MediaItem.

    The new item starts with ``activeVariant`` set to ``original``.
    """
    if mime not in MIME_EXTENSIONS:
        return Outcome.bad_request(f"Unsupported file type: {mime or 'unknown'}")
    if not content:
        return Outcome.bad_request("Empty file")

    base_name = sanitize_filename(original_name) or "file"
    suffix = short_id()
    ext = _extension_for(mime, original_name)

    processed = None
    if is_processable_image(mime):
        try:
            processed = process_image(content)
        except ImageProcessingError as e:
            logger.warning("Rejected upload %s: %s", original_name, e)
            return Outcome.bad_request(str(e))

    storage = get_blob_storage()
    written: List[str] = []
    try:
        filename = variant_filename(base_name, suffix, None, ext)
        blob = storage.put(content, f"{ORIGINALS_PREFIX}/{filename}", mime)
        written.append(blob.pathname)
        original = Rendition(
            filename=filename,
            path=blob.pathname,
            url=blob.url,
            width=processed.width if processed else 0,
            height=processed.height if processed else 0,
            size=len(content),
        )

        variants: Dict[str, Rendition] = {}
        for name, variant in (processed.variants.items() if processed else []):
            vname = variant_filename(base_name, suffix, name, variant.extension)
            vmime = "image/png" if variant.extension == ".png" else "image/jpeg"
            vblob = storage.put(variant.content, f"{VARIANTS_PREFIX}/{vname}", vmime)
            written.append(vblob.pathname)
            variants[name] = Rendition(
                filename=vname,
                path=vblob.pathname,
                url=vblob.url,
                width=variant.width,
                height=variant.height,
                size=variant.size,
            )
    except BlobStorageError as e:
        logger.error("Upload of %s failed: %s", original_name, e)
        _delete_blobs(written)
        return Outcome.fail(ErrorKind.STORAGE, "Failed to store file")

    item = MediaItem(
        filename=original.filename,
        originalName=original_name,
        slug=f"{base_name}-{suffix}",
        path=original.path,
        url=original.url,
        mime=mime,
        size=original.size,
        width=processed.width if processed else None,
        height=processed.height if processed else None,
        title=base_name.replace("-", " "),
        alt="",
        hash=file_hash(content),
        original=original,
        variants=variants or None,
        activeVariant="original",
    ).model_dump(exclude_none=True)

    try:
        media_collection().insert_one(dict(item))
    except PyMongoError:
        _delete_blobs(written)
        raise
    logger.info("Uploaded media %s (%s, %d variants)", item["id"], item["filename"], len(variants))
    return Outcome.success(item)


def _rendition(item: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
    if name == "original":
        return item.get("original")
    return (item.get("variants") or {}).get(name)


def update_media(media_id: str, updates: Dict[str, Any]) -> Outcome:
    """Edit descriptive fields; switching ``activeVariant`` re-points url/path/size/dimensions."""
    item = get_media(media_id)
    if item is None:
        return Outcome.not_found("Media not found")

    changes: Dict[str, Any] = {k: updates[k] for k in EDITABLE_FIELDS if k in updates}

    active = updates.get("activeVariant")
    if active is not None and active != item.get("activeVariant"):
        rendition = _rendition(item, active)
        if rendition is None:
            return Outcome.invalid([f'Variant "{active}" is not available for this media'])
        changes["activeVariant"] = active
        for key in ("url", "path", "width", "height", "size"):
            changes[key] = rendition.get(key)

    changes["updatedAt"] = now_iso()
    media_collection().update_one({"id": media_id}, {"$set": changes})
    item.update(changes)
    return Outcome.success(item)


def bulk_update_media(ids: List[str], updates: Dict[str, Any]) -> Dict[str, int]:
    modified = 0
    failed = 0
    for media_id in ids:
        result = update_media(media_id, updates)
        if result.ok:
            modified += 1
        else:
            failed += 1
            logger.warning("Bulk update skipped %s: %s", media_id, result.error)
    return {"modifiedCount": modified, "errorCount": failed}


def _blob_paths(item: Dict[str, Any]) -> List[str]:
    paths: List[str] = []
    for rendition in [item.get("original"), *(item.get("variants") or {}).values()]:
        if rendition and rendition.get("path"):
            paths.append(rendition["path"])
    if item.get("path") and item["path"] not in paths:
        paths.append(item["path"])
    return paths


def _delete_blobs(paths: List[str]) -> None:
    if not paths:
        return
    try:
        get_blob_storage().delete(paths)
    except BlobStorageError as e:
        logger.error("Could not remove blobs %s: %s", paths, e)


def delete_media(media_id: str) -> Outcome:
    item = get_media(media_id)
    if item is None:
        return Outcome.not_found("Media not found")

    _delete_blobs(_blob_paths(item))
    media_collection().delete_one({"id": media_id})
    logger.info("Deleted media %s", media_id)
    return Outcome.success(item)


def iter_media_refs(data: Dict[str, Any]) -> Iterator[str]:
    """Every media id an entry's data refers to, in document order."""
    for key in ("featuredImage", "coverMediaId"):
        if isinstance(data.get(key), str) and data[key]:
            yield data[key]

    media = data.get("media")
    if isinstance(media, list):
        for media_id in media:
            if isinstance(media_id, str):
                yield media_id

    content = data.get("content")
    if isinstance(content, list):
        for block in content:
            if not isinstance(block, dict):
                continue
            if isinstance(block.get("mediaId"), str) and block["mediaId"]:
                yield block["mediaId"]
            if isinstance(block.get("mediaIds"), list):
                yield from (m for m in block["mediaIds"] if isinstance(m, str))

    seo = data.get("seo")
    if isinstance(seo, dict) and isinstance(seo.get("ogImage"), str) and seo["ogImage"]:
        yield seo["ogImage"]


def rewrite_media_refs(data: Dict[str, Any], old_id: str, new_id: str) -> Tuple[Dict[str, Any], bool]:
    """Copy of ``data`` with every reference to old_id pointing at new_id."""
    changed = False
    out = dict(data)

    for key in ("featuredImage", "coverMediaId"):
        if out.get(key) == old_id:
            out[key] = new_id
            changed = True

    if isinstance(out.get("media"), list) and old_id in out["media"]:
        out["media"] = [new_id if m == old_id else m for m in out["media"]]
        changed = True

    if isinstance(out.get("content"), list):
        blocks = []
        for block in out["content"]:
            if isinstance(block, dict):
                block = dict(block)
                if block.get("mediaId") == old_id:
                    block["mediaId"] = new_id
                    changed = True
                if isinstance(block.get("mediaIds"), list) and old_id in block["mediaIds"]:
                    block["mediaIds"] = [new_id if m == old_id else m for m in block["mediaIds"]]
                    changed = True
            blocks.append(block)
        out["content"] = blocks

    if isinstance(out.get("seo"), dict) and out["seo"].get("ogImage") == old_id:
        out["seo"] = {**out["seo"], "ogImage": new_id}
        changed = True

    return out, changed


def replace_references(old_id: str, new_id: str) -> int:
    """Point every entry that uses old_id at new_id. Returns the number of entries changed.

    Each entry is written on its own; a failure part way leaves earlier
    entries updated, and a re-run picks up the rest.
    """
    col = entries_collection()
    updated = 0
    for entry in col.find({}, {"_id": 0, "id": 1, "data": 1}):
        data, changed = rewrite_media_refs(entry.get("data") or {}, old_id, new_id)
        if not changed:
            continue
        col.update_one({"id": entry["id"]}, {"$set": {"data": data, "updatedAt": now_iso()}})
        updated += 1

    logger.info("Replaced media %s with %s in %d entries", old_id, new_id, updated)
    return updated


def replace_media(old_id: str, content: bytes, original_name: str, mime: str) -> Outcome:
    """Upload a new file, move all references over to it, then drop the old item."""
    if get_media(old_id) is None:
        return Outcome.not_found("Media not found")

    uploaded = upload_media(content, original_name, mime)
    if not uploaded.ok:
        return uploaded

    new_item = uploaded.value
    updated = replace_references(old_id, new_item["id"])
    delete_media(old_id)
    return Outcome.success({"item": new_item, "updatedEntries": updated})


def find_usages(media_id: str) -> List[Dict[str, str]]:
    usages = []
    for entry in entries_collection().find({}, {"_id": 0, "collection": 1, "slug": 1, "data": 1}):
        data = entry.get("data") or {}
        if media_id in iter_media_refs(data):
            usages.append({
                "collection": entry["collection"],
                "slug": entry["slug"],
                "title": data.get("title") or entry["slug"],
            })
    return usages


def list_used_media_ids() -> List[str]:
    seen: Dict[str, None] = {}
    for entry in entries_collection().find({}, {"_id": 0, "data": 1}):
        for media_id in iter_media_refs(entry.get("data") or {}):
            seen.setdefault(media_id, None)
    return list(seen)


def insert_media_record(item: Dict[str, Any]) -> bool:
    """Insert a pre-built record; False when the id already exists."""
    if media_collection().count_documents({"id": item["id"]}, limit=1):
        return False
    try:
        media_collection().insert_one(dict(item))
    except DuplicateKeyError:
        return False
    return True
