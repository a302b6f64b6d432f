from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional

from .. import schemas
from ..errors import raise_for
from ..models.model import EntryStatus
from ..services import entries as entry_repo
from ..services.auth_service import get_current_user
from ..services.cache import invalidate_public
from ..services.schema_registry import get_collection_schema, list_collections

router = APIRouter(
    prefix="/api/admin/collections",
    tags=["entries"],
    dependencies=[Depends(get_current_user)],
)


def _require_collection(collection: str):
    schema = get_collection_schema(collection)
    if schema is None:
        raise HTTPException(status_code=404, detail=f'Collection "{collection}" not found')
    return schema


@router.get("")
def get_collections():
    return {"data": [s.model_dump(exclude_none=True) for s in list_collections()]}


@router.get("/{collection}")
def get_collection(collection: str):
    return {"data": _require_collection(collection).model_dump(exclude_none=True)}


@router.get("/{collection}/entries")
def list_collection_entries(
    collection: str,
    limit: int = Query(default=50, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    status: Optional[EntryStatus] = None,
    sort: Optional[str] = None,
    direction: Optional[str] = Query(default=None, pattern="^(asc|desc)$"),
):
    _require_collection(collection)
    entries, total = entry_repo.list_entries(
        collection, status=status, limit=limit, offset=offset, sort_field=sort, sort_direction=direction
    )
    return {"data": entries, "total": total, "limit": limit, "offset": offset}


@router.post("/{collection}/entries", status_code=status.HTTP_201_CREATED)
def create_collection_entry(collection: str, body: schemas.EntryCreate, user: dict = Depends(get_current_user)):
    entry = raise_for(entry_repo.create_entry(
        collection,
        data=body.data,
        slug=body.slug,
        status=body.status,
        title=body.title,
        author_id=user["id"],
    ))
    if entry["status"] == "published":
        invalidate_public()
    return {"data": entry}


@router.get("/{collection}/entries/{slug}")
def get_collection_entry(collection: str, slug: str):
    _require_collection(collection)
    entry = entry_repo.get_entry(collection, slug)
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    return {"data": entry}


@router.patch("/{collection}/entries/{slug}")
def update_collection_entry(collection: str, slug: str, body: schemas.EntryUpdate):
    _require_collection(collection)
    before = entry_repo.get_entry(collection, slug)
    entry = raise_for(entry_repo.update_entry(
        collection, slug, data=body.data, status=body.status, new_slug=body.slug
    ))
    # unpublishing has to drop cached pages too
    if entry["status"] == "published" or (before and before["status"] == "published"):
        invalidate_public()
    return {"data": entry}


@router.delete("/{collection}/entries/{slug}")
def delete_collection_entry(collection: str, slug: str):
    _require_collection(collection)
    deleted = raise_for(entry_repo.delete_entry(collection, slug))
    if deleted["status"] == "published":
        invalidate_public()
    return {"success": True}


@router.post("/{collection}/entries/{slug}/duplicate", status_code=status.HTTP_201_CREATED)
def duplicate_collection_entry(collection: str, slug: str):
    _require_collection(collection)
    return {"data": raise_for(entry_repo.duplicate_entry(collection, slug))}
