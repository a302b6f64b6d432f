"""Entry repository: CRUD over the ``entries`` collection, keyed by (collection, slug)."""
import logging
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from ..db import entries_collection
from ..models.model import Entry
from ..models.result import Outcome
from ..utils import now_iso, now_millis, slugify
from .schema_registry import get_collection_schema, validate_entry_data

logger = logging.getLogger(__name__)

ENTRY_FIELDS = set(Entry.model_fields)
DEFAULT_LIST_LIMIT = 1000
SLUG_RETRIES = 3


def _sort_spec(field: str, direction: str) -> List[Tuple[str, int]]:
    key = field if field in ENTRY_FIELDS else f"data.{field}"
    order = ASCENDING if direction == "asc" else DESCENDING
    spec = [(key, order)]
    if key != "createdAt":
        spec.append(("createdAt", DESCENDING))
    return spec


def list_entries(
    collection: str,
    status: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    sort_field: Optional[str] = None,
    sort_direction: Optional[str] = None,
    public_only: bool = False,
) -> Tuple[List[Dict[str, Any]], int]:
    """One page of entries plus the total count for the filter."""
    query: Dict[str, Any] = {"collection": collection}
    if status:
        query["status"] = status
    if public_only:
        query["visibility"] = {"$ne": "private"}

    if sort_field is None:
        schema = get_collection_schema(collection)
        sort_field = schema.admin.defaultSort.field if schema else "createdAt"
        sort_direction = sort_direction or (schema.admin.defaultSort.direction if schema else "desc")

    col = entries_collection()
    total = col.count_documents(query)
    cursor = (
        col.find(query, {"_id": 0})
        .sort(_sort_spec(sort_field, sort_direction or "desc"))
        .skip(max(offset, 0))
        .limit(limit or DEFAULT_LIST_LIMIT)
    )
    return list(cursor), total


def get_entry(collection: str, slug: str) -> Optional[Dict[str, Any]]:
    return entries_collection().find_one({"collection": collection, "slug": slug}, {"_id": 0})


def get_public_entry(collection: str, slug: str) -> Optional[Dict[str, Any]]:
    return entries_collection().find_one(
        {"collection": collection, "slug": slug, "status": "published", "visibility": {"$ne": "private"}},
        {"_id": 0},
    )


def _slug_taken(collection: str, slug: str) -> bool:
    return entries_collection().count_documents({"collection": collection, "slug": slug}, limit=1) > 0


def _unique_slug(collection: str, base: str) -> str:
    if not _slug_taken(collection, base):
        return base
    candidate = f"{base}-{now_millis()}"
    n = 2
    while _slug_taken(collection, candidate):
        candidate = f"{base}-{now_millis()}-{n}"
        n += 1
    return candidate


def create_entry(
    collection: str,
    data: Dict[str, Any],
    slug: Optional[str] = None,
    status: Optional[str] = None,
    title: Optional[str] = None,
    author_id: Optional[str] = None,
) -> Outcome:
    schema = get_collection_schema(collection)
    if schema is None:
        return Outcome.not_found(f'Collection "{collection}" not found')

    status = status or "draft"
    errors = validate_entry_data(schema, data, status)
    if errors:
        return Outcome.invalid(errors)

    title_value = data.get(schema.admin.titleField) or title or "untitled"
    base_slug = slug or slugify(str(title_value)) or "untitled"

    for _ in range(SLUG_RETRIES):
        now = now_iso()
        entry = Entry(
            collection=collection,
            slug=_unique_slug(collection, base_slug),
            status=status,
            createdAt=now,
            updatedAt=now,
            publishedAt=now if status == "published" else None,
            authorId=author_id,
            data=data,
        ).model_dump()
        try:
            entries_collection().insert_one(dict(entry))
        except DuplicateKeyError:
            # another writer took the slug between the check and the insert
            continue
        logger.info("Created %s entry %s (%s)", collection, entry["slug"], status)
        return Outcome.success(entry)

    return Outcome.conflict(f'Could not allocate a unique slug for "{base_slug}"')


def update_entry(
    collection: str,
    slug: str,
    data: Optional[Dict[str, Any]] = None,
    status: Optional[str] = None,
    new_slug: Optional[str] = None,
) -> Outcome:
    """Shallow-merge ``data`` into the entry and re-validate the result.

    ``publishedAt`` is stamped the first time the entry becomes published and
    is never touched afterwards.
    """
    existing = get_entry(collection, slug)
    if existing is None:
        return Outcome.not_found(f'Entry "{slug}" not found in "{collection}"')

    schema = get_collection_schema(collection)
    if schema is None:
        return Outcome.not_found(f'Collection "{collection}" not found')

    merged = {**existing.get("data", {}), **data} if data is not None else existing.get("data", {})
    target_status = status or existing["status"]

    errors = validate_entry_data(schema, merged, target_status)
    if errors:
        return Outcome.invalid(errors)

    target_slug = slug
    if new_slug and new_slug != slug:
        if _slug_taken(collection, new_slug):
            return Outcome.conflict(f'Slug "{new_slug}" is already in use')
        target_slug = new_slug

    now = now_iso()
    published_at = existing.get("publishedAt")
    if published_at is None and target_status == "published":
        published_at = now

    updated = {
        **existing,
        "slug": target_slug,
        "status": target_status,
        "data": merged,
        "updatedAt": now,
        "publishedAt": published_at,
    }

    try:
        entries_collection().replace_one({"id": existing["id"]}, updated)
    except DuplicateKeyError:
        return Outcome.conflict(f'Slug "{target_slug}" is already in use')

    logger.info("Updated %s entry %s (%s)", collection, target_slug, target_status)
    return Outcome.success(updated)


def delete_entry(collection: str, slug: str) -> Outcome:
    """Delete one entry; the removed document is returned so callers can react to its status."""
    existing = get_entry(collection, slug)
    if existing is None:
        return Outcome.not_found(f'Entry "{slug}" not found')

    result = entries_collection().delete_one({"collection": collection, "slug": slug})
    if result.deleted_count == 0:
        return Outcome.not_found(f'Entry "{slug}" not found')

    logger.info("Deleted %s entry %s", collection, slug)
    return Outcome.success(existing)


def duplicate_entry(collection: str, slug: str) -> Outcome:
    original = get_entry(collection, slug)
    if original is None:
        return Outcome.not_found("Entry not found")

    schema = get_collection_schema(collection)
    if schema is None:
        return Outcome.not_found(f'Collection "{collection}" not found')

    title_field = schema.admin.titleField
    new_title = f"{original['data'].get(title_field) or original['slug']} (Copy)"
    return create_entry(
        collection,
        data={**original["data"], title_field: new_title},
        slug=slugify(new_title),
        status="draft",
        title=new_title,
    )


def list_published(collection: Optional[str] = None) -> List[Dict[str, Any]]:
    """Published, public entries: newest publish first, creation time breaks ties."""
    query: Dict[str, Any] = {"status": "published", "visibility": {"$ne": "private"}}
    if collection:
        query["collection"] = collection
    cursor = entries_collection().find(query, {"_id": 0}).sort(
        [("publishedAt", DESCENDING), ("createdAt", DESCENDING)]
    )
    return list(cursor)


def count_entries(collection: Optional[str] = None, status: Optional[str] = None) -> int:
    query: Dict[str, Any] = {}
    if collection:
        query["collection"] = collection
    if status:
        query["status"] = status
    return entries_collection().count_documents(query)
