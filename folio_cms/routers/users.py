from fastapi import APIRouter, Depends, HTTPException, status

from .. import schemas
from ..errors import raise_for
from ..services import users as user_repo
from ..services.auth_service import get_current_user, require_role

router = APIRouter(prefix="/api/admin/users", tags=["users"])


@router.get("/check")
def check_setup():
    """Tells the admin UI whether first-run setup is still needed."""
    return {"hasUsers": user_repo.has_users()}


@router.post("/setup")
def setup(body: schemas.SetupRequest):
    user = raise_for(user_repo.setup_owner(body.name or "", body.email or "", body.password or ""))
    return {"success": True, "user": user}


@router.get("")
def list_users(user: dict = Depends(get_current_user)):
    return {"data": user_repo.list_users()}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(body: schemas.UserCreate, user: dict = Depends(require_role("owner", "admin"))):
    if body.role == "owner":
        raise HTTPException(status_code=400, detail="The owner account is created during setup")
    return {"data": raise_for(user_repo.create_user(body.email, body.name, body.password, body.role))}


@router.patch("/{user_id}")
def update_user(user_id: str, body: schemas.UserUpdate, user: dict = Depends(get_current_user)):
    if user["id"] != user_id and user["role"] not in ("owner", "admin"):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    if body.role is not None and user["role"] != "owner":
        raise HTTPException(status_code=403, detail="Only the owner can change roles")
    target = user_repo.get_user(user_id)
    if target and target["role"] == "owner" and user["id"] != user_id:
        raise HTTPException(status_code=403, detail="Only the owner can edit the owner account")
    return {"data": raise_for(user_repo.update_user(user_id, body.model_dump(exclude_none=True)))}


@router.delete("/{user_id}")
def delete_user(user_id: str, user: dict = Depends(require_role("owner", "admin"))):
    target = user_repo.get_user(user_id)
    if target and target["role"] == "owner" and user["role"] != "owner":
        raise HTTPException(status_code=403, detail="Only an owner can delete an owner account")
    raise_for(user_repo.delete_user(user_id))
    return {"success": True}
