"""Collection schemas and entry data validation.

Schemas live in ``*.schema.json`` files, one per collection. They drive both
validation and the admin UI (title field, default sort).
"""
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..config import settings
from ..models.collection import CollectionSchema

logger = logging.getLogger(__name__)

BUNDLED_SCHEMA_DIR = Path(__file__).resolve().parent.parent / "content" / "collections"

_schema_cache: Optional[Dict[str, CollectionSchema]] = None


def _schema_dir() -> Path:
    return Path(settings.SCHEMA_DIR) if settings.SCHEMA_DIR else BUNDLED_SCHEMA_DIR


def load_schemas() -> Dict[str, CollectionSchema]:
    global _schema_cache
    if _schema_cache is not None:
        return _schema_cache

    schemas: Dict[str, CollectionSchema] = {}
    for path in sorted(_schema_dir().glob("*.schema.json")):
        try:
            schema = CollectionSchema.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, ValidationError):
            logger.exception("Failed to load schema %s", path.name)
            continue
        schemas[schema.slug] = schema

    logger.info("Loaded %d collection schemas from %s", len(schemas), _schema_dir())
    _schema_cache = schemas
    return schemas


def get_collection_schema(slug: str) -> Optional[CollectionSchema]:
    return load_schemas().get(slug)


def list_collections() -> List[CollectionSchema]:
    return list(load_schemas().values())


def clear_schema_cache() -> None:
    global _schema_cache
    _schema_cache = None


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, list) and len(value) == 0)


def validate_entry_data(schema: CollectionSchema, data: Mapping[str, Any], status: str) -> List[str]:
    """Return a human-readable error per violated field; an empty list means valid.

    Required fields are only enforced for ``published`` entries, drafts may be
    incomplete. Type checks apply to every value that is present.
    """
    errors: List[str] = []
    enforce_required = status == "published"

    for field in schema.fields:
        value = data.get(field.key)

        if _is_empty(value):
            if field.required and enforce_required:
                errors.append(f"{field.label} is required")
            continue

        error = _check_type(field, value)
        if error:
            errors.append(error)

    return errors


def _is_id_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) and v for v in value)


def _check_type(field, value: Any) -> Optional[str]:
    label = field.label
    kind = field.type

    if kind in ("text", "textarea", "slug"):
        if not isinstance(value, str):
            return f"{label} must be text"
    elif kind in ("date", "datetime"):
        if not isinstance(value, str):
            return f"{label} must be a date string"
    elif kind == "number":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return f"{label} must be a number"
    elif kind == "boolean":
        if not isinstance(value, bool):
            return f"{label} must be true or false"
    elif kind in ("media", "reference"):
        if not isinstance(value, str):
            return f"{label} must be a media ID" if kind == "media" else f"{label} must be an ID"
    elif kind == "media:list":
        if not _is_id_list(value):
            return f"{label} must be an array of media IDs"
        if field.max and len(value) > field.max:
            return f"{label} can have at most {field.max} items"
    elif kind == "blocks":
        if not isinstance(value, list):
            return f"{label} must be an array of blocks"
        if field.blockTypes:
            unknown = [b.get("type") for b in value if isinstance(b, dict) and b.get("type") not in field.blockTypes]
            if unknown:
                return f"{label} contains unsupported block types: {', '.join(map(str, unknown))}"
    elif kind == "categories":
        if not _is_id_list(value):
            return f"{label} must be an array of category IDs"
    elif kind == "tags":
        if not _is_id_list(value):
            return f"{label} must be a list of tags"
    elif kind == "reference:list":
        if not _is_id_list(value):
            return f"{label} must be a list of IDs"
    elif kind == "select":
        if field.options:
            allowed = [o.value for o in field.options]
            if value not in allowed:
                return f"{label} must be one of: {', '.join(allowed)}"
    elif kind == "object":
        if not isinstance(value, Mapping):
            return f"{label} must be an object"
    return None
