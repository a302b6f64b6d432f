"""Admin accounts. Nothing returned from here carries ``passwordHash`` except get_user_by_email."""
import logging
from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from ..db import users_collection
from ..models.model import User
from ..models.result import Outcome
from ..utils import hash_password, now_iso, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
ROLES = ("owner", "admin", "editor")
SAFE_PROJECTION = {"_id": 0, "passwordHash": 0}


def has_users() -> bool:
    return users_collection().count_documents({}, limit=1) > 0


def list_users() -> List[Dict[str, Any]]:
    return list(users_collection().find({}, SAFE_PROJECTION).sort("createdAt", 1))


def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    return users_collection().find_one({"id": user_id}, SAFE_PROJECTION)


def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    """Includes the password hash; for authentication only."""
    return users_collection().find_one({"email": email.strip().lower()}, {"_id": 0})


def _public(user: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in user.items() if k not in ("passwordHash", "_id")}


def create_user(email: str, name: str, password: str, role: str = "editor") -> Outcome:
    email = (email or "").strip().lower()
    name = (name or "").strip()

    errors = []
    if not email:
        errors.append("Email is required")
    if not name:
        errors.append("Name is required")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if role not in ROLES:
        errors.append(f"Role must be one of: {', '.join(ROLES)}")
    if errors:
        return Outcome.invalid(errors)

    if role == "owner" and has_users():
        return Outcome.bad_request("The owner account is created during setup")
    if get_user_by_email(email):
        return Outcome.conflict("A user with this email already exists")

    user = User(email=email, name=name, passwordHash=hash_password(password), role=role).model_dump()
    try:
        users_collection().insert_one(dict(user))
    except DuplicateKeyError:
        return Outcome.conflict("A user with this email already exists")

    logger.info("Created %s account %s", role, user["id"])
    return Outcome.success(_public(user))


def setup_owner(name: str, email: str, password: str) -> Outcome:
    """First-run setup: only allowed while the users collection is empty."""
    if has_users():
        return Outcome.bad_request("Setup already complete")
    if not name or not email or not password:
        return Outcome.bad_request("Name, email, and password are required")
    return create_user(email, name, password, role="owner")


def update_user(user_id: str, updates: Dict[str, Any]) -> Outcome:
    existing = users_collection().find_one({"id": user_id}, {"_id": 0})
    if existing is None:
        return Outcome.not_found("User not found")

    changes: Dict[str, Any] = {}
    if updates.get("name"):
        changes["name"] = updates["name"].strip()
    if updates.get("email"):
        email = updates["email"].strip().lower()
        if email != existing["email"] and get_user_by_email(email):
            return Outcome.conflict("A user with this email already exists")
        changes["email"] = email
    if updates.get("password"):
        if len(updates["password"]) < MIN_PASSWORD_LENGTH:
            return Outcome.invalid([f"Password must be at least {MIN_PASSWORD_LENGTH} characters"])
        changes["passwordHash"] = hash_password(updates["password"])
    if updates.get("role"):
        role = updates["role"]
        if role not in ROLES:
            return Outcome.invalid([f"Role must be one of: {', '.join(ROLES)}"])
        if existing["role"] == "owner" and role != "owner" and _owner_count() <= 1:
            return Outcome.bad_request("Cannot demote the last owner")
        changes["role"] = role

    changes["updatedAt"] = now_iso()
    users_collection().update_one({"id": user_id}, {"$set": changes})
    return Outcome.success(_public({**existing, **changes}))


def _owner_count() -> int:
    return users_collection().count_documents({"role": "owner"})


def delete_user(user_id: str) -> Outcome:
    existing = get_user(user_id)
    if existing is None:
        return Outcome.not_found("User not found")
    if existing["role"] == "owner" and _owner_count() <= 1:
        return Outcome.bad_request("Cannot delete the last owner")

    users_collection().delete_one({"id": user_id})
    logger.info("Deleted user %s", user_id)
    return Outcome.success(existing)


def authenticate(email: str, password: str) -> Optional[Dict[str, Any]]:
    user = get_user_by_email(email or "")
    if not user or not verify_password(password, user["passwordHash"]):
        return None

    now = now_iso()
    users_collection().update_one({"id": user["id"]}, {"$set": {"lastLoginAt": now}})
    user["lastLoginAt"] = now
    return _public(user)
