from fastapi import APIRouter, Depends, HTTPException, status

from .. import schemas
from ..errors import raise_for
from ..services import categories as category_repo
from ..services.auth_service import get_current_user
from ..services.cache import invalidate_public

router = APIRouter(
    prefix="/api/admin/categories",
    tags=["categories"],
    dependencies=[Depends(get_current_user)],
)


@router.get("")
def list_categories():
    return {"data": category_repo.list_categories()}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_category(body: schemas.CategoryCreate):
    category = raise_for(category_repo.create_category(
        name=body.name or body.label or "",
        category_id=body.id,
        color=body.color,
        description=body.description,
        show_on_homepage=body.showOnHomepage,
    ))
    invalidate_public()
    return {"data": category}


def _reorder(body: schemas.CategoryReorder):
    categories = category_repo.reorder_categories(body.ids)
    invalidate_public()
    return {"data": categories}


@router.put("")
def reorder_categories(body: schemas.CategoryReorder):
    return _reorder(body)


@router.post("/reorder")
def reorder_categories_post(body: schemas.CategoryReorder):
    return _reorder(body)


@router.get("/{category_id}")
def get_category(category_id: str):
    category = category_repo.get_category(category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"data": category}


@router.patch("/{category_id}")
def update_category(category_id: str, body: schemas.CategoryUpdate):
    category = raise_for(category_repo.update_category(category_id, body.model_dump(exclude_none=True)))
    invalidate_public()
    return {"data": category}


@router.delete("/{category_id}")
def delete_category(category_id: str):
    raise_for(category_repo.delete_category(category_id))
    invalidate_public()
    return {"success": True}
