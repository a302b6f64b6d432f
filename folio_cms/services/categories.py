import logging
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from ..db import categories_collection
from ..models.model import Category
from ..models.result import Outcome
from ..utils import now_iso, slugify

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("color", "description", "showOnHomepage")


def list_categories() -> List[Dict[str, Any]]:
    cursor = categories_collection().find({}, {"_id": 0}).sort([("order", ASCENDING), ("name", ASCENDING)])
    return list(cursor)


def get_category(category_id: str) -> Optional[Dict[str, Any]]:
    return categories_collection().find_one({"id": category_id}, {"_id": 0})


def create_category(
    name: str,
    category_id: Optional[str] = None,
    color: Optional[str] = None,
    description: Optional[str] = None,
    show_on_homepage: bool = True,
) -> Outcome:
    name = (name or "").strip()
    if not name:
        return Outcome.invalid(["Name is required"])

    slug = slugify(category_id or name)
    if not slug:
        return Outcome.invalid(["Name must contain at least one letter or digit"])
    if get_category(slug):
        return Outcome.conflict(f'Category "{slug}" already exists')

    category = Category(
        id=slug,
        name=name,
        label=name,
        description=description,
        showOnHomepage=show_on_homepage,
        order=categories_collection().count_documents({}),
        **({"color": color} if color else {}),
    ).model_dump()

    try:
        categories_collection().insert_one(dict(category))
    except DuplicateKeyError:
        return Outcome.conflict(f'Category "{slug}" already exists')

    logger.info("Created category %s", slug)
    return Outcome.success(category)


def update_category(category_id: str, updates: Dict[str, Any]) -> Outcome:
    existing = get_category(category_id)
    if existing is None:
        return Outcome.not_found("Category not found")

    changes = {k: updates[k] for k in UPDATABLE_FIELDS if updates.get(k) is not None}
    # name and label are the same thing under two keys
    new_name = updates.get("name") or updates.get("label")
    if new_name is not None:
        new_name = new_name.strip()
        if not new_name:
            return Outcome.invalid(["Name is required"])
        changes["name"] = changes["label"] = new_name
    if updates.get("order") is not None:
        changes["order"] = int(updates["order"])

    changes["updatedAt"] = now_iso()
    categories_collection().update_one({"id": category_id}, {"$set": changes})
    return Outcome.success({**existing, **changes})


def delete_category(category_id: str) -> Outcome:
    result = categories_collection().delete_one({"id": category_id})
    if result.deleted_count == 0:
        return Outcome.not_found("Category not found")
    logger.info("Deleted category %s", category_id)
    return Outcome.success(True)


def reorder_categories(ordered_ids: List[str]) -> List[Dict[str, Any]]:
    """Listed ids take positions 0..n-1 in the given order.

    Unknown ids are ignored. Categories left out of the list follow the
    listed ones and keep their previous relative order.
    """
    current = list_categories()
    by_id = {c["id"]: c for c in current}

    listed: List[str] = []
    for category_id in ordered_ids:
        if category_id in by_id and category_id not in listed:
            listed.append(category_id)
    rest = [c["id"] for c in current if c["id"] not in listed]

    final = listed + rest
    now = now_iso()
    col = categories_collection()
    for pos, cid in enumerate(final):
        if by_id[cid].get("order") != pos:
            col.update_one({"id": cid}, {"$set": {"order": pos, "updatedAt": now}})

    logger.info("Reordered %d categories", len(final))
    return list_categories()
