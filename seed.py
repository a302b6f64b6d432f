# seed.py: local development data (owner account, categories, one draft post)
import os

from folio_cms.db import ensure_indexes
from folio_cms.services.categories import create_category, get_category
from folio_cms.services.entries import create_entry, get_entry
from folio_cms.services.users import has_users, setup_owner

ensure_indexes()

if not has_users():
    result = setup_owner(
        name=os.getenv("SEED_OWNER_NAME", "Owner"),
        email=os.getenv("SEED_OWNER_EMAIL", "owner@example.com"),
        password=os.getenv("SEED_OWNER_PASSWORD", "change-me-please"),
    )
    print("Owner created" if result.ok else f"Owner not created: {result.error}")

categories = [
    {"name": "Photography", "color": "#0EA5E9"},
    {"name": "Design", "color": "#F97316"},
    {"name": "Writing", "color": "#22C55E", "show_on_homepage": False},
]

for c in categories:
    if not get_category(c["name"].lower()):
        create_category(**c)

if not get_entry("posts", "hello-world"):
    create_entry(
        "posts",
        data={"title": "Hello World", "description": "First post", "media": [], "categories": ["photography"]},
        status="draft",
    )

print("Seed data inserted")
