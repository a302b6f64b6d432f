from pydantic import BaseModel
from typing import Any, List, Literal, Optional

FieldType = Literal[
    "text",
    "textarea",
    "slug",
    "date",
    "datetime",
    "boolean",
    "number",
    "select",
    "categories",
    "media",
    "media:list",
    "reference",
    "reference:list",
    "blocks",
    "object",
    "tags",
]


class SelectOption(BaseModel):
    value: str
    label: str


class FieldDefinition(BaseModel):
    key: str
    type: FieldType
    required: bool = False
    label: str
    placeholder: Optional[str] = None
    description: Optional[str] = None
    options: Optional[List[SelectOption]] = None   # select
    accept: Optional[List[str]] = None             # media
    max: Optional[int] = None                      # media:list
    blockTypes: Optional[List[str]] = None         # blocks
    fields: Optional[List["FieldDefinition"]] = None  # object
    to: Optional[str] = None                       # reference
    defaultValue: Optional[Any] = None


class DefaultSort(BaseModel):
    field: str = "createdAt"
    direction: Literal["asc", "desc"] = "desc"


class AdminOptions(BaseModel):
    titleField: str = "title"
    subtitleField: Optional[str] = None
    thumbnailField: Optional[str] = None
    defaultSort: DefaultSort = DefaultSort()


class CollectionSchema(BaseModel):
    slug: str
    name: str
    description: str = ""
    fields: List[FieldDefinition]
    admin: AdminOptions = AdminOptions()
