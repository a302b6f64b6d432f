from pydantic import BaseModel, EmailStr
from typing import Any, Dict, Optional, List

from .models.model import EntryStatus, UserRole, VariantName


class EntryCreate(BaseModel):
    slug: Optional[str] = None
    status: Optional[EntryStatus] = None
    title: Optional[str] = None
    data: Dict[str, Any] = {}


class EntryUpdate(BaseModel):
    slug: Optional[str] = None
    status: Optional[EntryStatus] = None
    data: Optional[Dict[str, Any]] = None


class MediaUpdate(BaseModel):
    alt: Optional[str] = None
    title: Optional[str] = None
    caption: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    activeVariant: Optional[VariantName] = None


class MediaBulkUpdate(BaseModel):
    ids: List[str]
    updates: MediaUpdate


class FixOrphansRequest(BaseModel):
    ids: Optional[List[str]] = None


class CategoryCreate(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    label: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None
    showOnHomepage: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    label: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None
    showOnHomepage: Optional[bool] = None
    order: Optional[int] = None


class CategoryReorder(BaseModel):
    ids: List[str]


class SetupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserCreate(BaseModel):
    email: EmailStr
    name: str
    password: str
    role: UserRole = "editor"


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None


class UserLogin(BaseModel):
    email: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str
    user: Dict[str, Any]
