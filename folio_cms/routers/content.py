"""Public read API: published, public entries only, cached in Redis."""
from fastapi import APIRouter, HTTPException, Query

from ..services import entries as entry_repo
from ..services.cache import content_key, get_cached_json, set_cached_json
from ..services.categories import list_categories
from ..services.media import get_media
from ..services.schema_registry import get_collection_schema

router = APIRouter(prefix="/api/content", tags=["content"])

ADMIN_ONLY_FIELDS = ("authorId", "visibility")


def public_entry(entry: dict) -> dict:
    return {k: v for k, v in entry.items() if k not in ADMIN_ONLY_FIELDS}


@router.get("/categories")
def public_categories():
    cache_key = content_key("categories")
    cached = get_cached_json(cache_key)
    if cached is not None:
        return cached

    body = {"data": list_categories()}
    set_cached_json(cache_key, body)
    return body


@router.get("/media/{media_id}")
def public_media(media_id: str):
    cache_key = content_key("media", media_id)
    cached = get_cached_json(cache_key)
    if cached is not None:
        return cached

    item = get_media(media_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Media not found")
    body = {"data": item}
    set_cached_json(cache_key, body)
    return body


@router.get("/{collection}")
def public_list(
    collection: str,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    if get_collection_schema(collection) is None:
        raise HTTPException(status_code=404, detail=f'Collection "{collection}" not found')

    cache_key = content_key(collection, "list", limit, offset)
    cached = get_cached_json(cache_key)
    if cached is not None:
        return cached

    entries, total = entry_repo.list_entries(
        collection, status="published", limit=limit, offset=offset, public_only=True
    )
    body = {"data": [public_entry(e) for e in entries], "total": total, "limit": limit, "offset": offset}
    set_cached_json(cache_key, body)
    return body


@router.get("/{collection}/{slug}")
def public_detail(collection: str, slug: str):
    if get_collection_schema(collection) is None:
        raise HTTPException(status_code=404, detail=f'Collection "{collection}" not found')

    cache_key = content_key(collection, "entry", slug)
    cached = get_cached_json(cache_key)
    if cached is not None:
        return cached

    entry = entry_repo.get_public_entry(collection, slug)
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    body = {"data": public_entry(entry)}
    set_cached_json(cache_key, body)
    return body
