from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional
import uuid
import secrets

from ..utils import now_iso

EntryStatus = Literal["draft", "published", "archived"]
EntryVisibility = Literal["public", "private"]
UserRole = Literal["owner", "admin", "editor"]
VariantName = Literal["original", "display", "large", "medium", "thumb"]


class Entry(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    collection: str
    slug: str
    status: EntryStatus = "draft"
    visibility: EntryVisibility = "public"
    createdAt: str = Field(default_factory=now_iso)
    updatedAt: str = Field(default_factory=now_iso)
    publishedAt: Optional[str] = None
    authorId: Optional[str] = None
    data: Dict[str, Any] = {}


class Rendition(BaseModel):
    filename: str
    path: str
    url: str
    width: int = 0
    height: int = 0
    size: int = 0


class MediaItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    filename: str
    originalName: str
    slug: str
    path: str
    url: str
    mime: str
    size: int = 0
    width: Optional[int] = None
    height: Optional[int] = None
    title: Optional[str] = None
    alt: Optional[str] = ""
    caption: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = []
    hash: Optional[str] = None
    original: Optional[Rendition] = None
    variants: Optional[Dict[str, Rendition]] = None
    activeVariant: VariantName = "original"
    createdAt: str = Field(default_factory=now_iso)
    updatedAt: Optional[str] = None


class Category(BaseModel):
    id: str
    name: str
    label: str
    color: str = "#64748B"
    description: Optional[str] = None
    showOnHomepage: bool = True
    order: int = 0
    createdAt: str = Field(default_factory=now_iso)
    updatedAt: str = Field(default_factory=now_iso)


class User(BaseModel):
    id: str = Field(default_factory=lambda: f"user_{secrets.token_urlsafe(9)}")
    email: str
    name: str
    passwordHash: str
    role: UserRole = "editor"
    createdAt: str = Field(default_factory=now_iso)
    updatedAt: Optional[str] = None
    lastLoginAt: Optional[str] = None
