from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from starlette.concurrency import run_in_threadpool
from typing import Optional

from .. import schemas
from ..errors import raise_for
from ..services import media as media_repo
from ..services import orphans
from ..services.auth_service import get_current_user
from ..services.cache import invalidate_public

router = APIRouter(
    prefix="/api/admin/media",
    tags=["media"],
    dependencies=[Depends(get_current_user)],
)


async def _read_upload(file: Optional[UploadFile]) -> tuple[bytes, str, str]:
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")
    content = await file.read()
    return content, file.filename, file.content_type or ""


@router.get("")
def list_media(
    limit: int = Query(default=50, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    mime: Optional[str] = None,
):
    items, total = media_repo.list_media(limit=limit, offset=offset, mime=mime)
    return {"data": items, "total": total, "limit": limit, "offset": offset}


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_media(file: Optional[UploadFile] = File(default=None)):
    content, filename, mime = await _read_upload(file)
    item = raise_for(await run_in_threadpool(media_repo.upload_media, content, filename, mime))
    return {"data": item}


@router.get("/bulk")
def get_media_bulk(ids: str = Query(default="")):
    wanted = [i for i in (s.strip() for s in ids.split(",")) if i]
    return {"data": media_repo.get_media_by_ids(wanted)}


@router.post("/bulk-update")
def bulk_update_media(body: schemas.MediaBulkUpdate):
    if not body.ids:
        raise HTTPException(status_code=400, detail="Media IDs are required")
    result = media_repo.bulk_update_media(body.ids, body.updates.model_dump(exclude_none=True))
    if result["modifiedCount"]:
        invalidate_public()
    return {"success": True, **result}


@router.get("/used")
def used_media():
    return {"data": media_repo.list_used_media_ids()}


@router.get("/diagnose")
def diagnose_media():
    return {"data": orphans.diagnose_orphans()}


@router.post("/fix-orphans")
def fix_orphan_media(apply: bool = False, body: Optional[schemas.FixOrphansRequest] = None):
    report = orphans.fix_orphans(apply=apply, only_ids=body.ids if body else None)
    return {"data": report}


@router.get("/{media_id}")
def get_media(media_id: str):
    item = media_repo.get_media(media_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Media not found")
    return {"data": item}


@router.patch("/{media_id}")
def update_media(media_id: str, body: schemas.MediaUpdate):
    item = raise_for(media_repo.update_media(media_id, body.model_dump(exclude_none=True)))
    invalidate_public()
    return {"data": item}


@router.delete("/{media_id}")
def delete_media(media_id: str):
    raise_for(media_repo.delete_media(media_id))
    invalidate_public()
    return {"success": True}


@router.post("/{media_id}/replace")
async def replace_media(media_id: str, file: Optional[UploadFile] = File(default=None)):
    content, filename, mime = await _read_upload(file)
    result = raise_for(await run_in_threadpool(media_repo.replace_media, media_id, content, filename, mime))
    invalidate_public()
    return {"data": result["item"], "updatedEntries": result["updatedEntries"]}


@router.get("/{media_id}/usage")
def media_usage(media_id: str):
    return {"data": media_repo.find_usages(media_id)}
