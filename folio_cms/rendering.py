"""View models and Jinja2 environment for the public site.

Pages only ever see published, public entries. Media is resolved in bulk per
page so a grid of N posts costs one media query.
"""
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .services.categories import get_category, list_categories
from .services.entries import count_entries, get_public_entry, list_published
from .services.media import get_media_by_ids, list_media
from .services.schema_registry import list_collections

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
MAX_RELATED_POSTS = 12

_YOUTUBE_RE = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([a-zA-Z0-9_-]{11})")


def youtube_id(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    match = _YOUTUBE_RE.search(url)
    return match.group(1) if match else None


def format_date(value: Optional[str]) -> str:
    """'2024-03-05' -> 'Mar 5, 2024'; unparseable input is returned as-is."""
    if not value:
        return ""
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return str(value)
    return f"{dt.strftime('%b')} {dt.day}, {dt.year}"


def media_src(item: Optional[Dict[str, Any]], variant: str = "large") -> Optional[str]:
    """URL of the requested rendition, falling back to the item's active one."""
    if not item:
        return None
    if variant == "original" and item.get("original"):
        return item["original"]["url"]
    rendition = (item.get("variants") or {}).get(variant)
    return rendition["url"] if rendition else item.get("url")


def build_environment(template_dir: Path = TEMPLATE_DIR) -> Environment:
    env = Environment(
        loader=FileSystemLoader(template_dir),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["format_date"] = format_date
    env.filters["youtube_id"] = youtube_id
    env.filters["media_src"] = media_src
    return env


env = build_environment()


def render(template_name: str, **context: Any) -> str:
    return env.get_template(template_name).render(**context)


def _media_map(ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    unique = list(dict.fromkeys(i for i in ids if i))
    return {m["id"]: m for m in get_media_by_ids(unique)}


def _cover_id(entry: Dict[str, Any]) -> Optional[str]:
    data = entry.get("data") or {}
    if entry.get("collection") == "articles":
        return data.get("featuredImage")
    media = data.get("media") or []
    return data.get("coverMediaId") or (media[0] if media else None)


def _cards(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Grid cards: one cover image per entry plus its link target."""
    covers = _media_map(_cover_id(e) for e in entries)
    cards = []
    for entry in entries:
        data = entry.get("data") or {}
        prefix = "article" if entry["collection"] == "articles" else "post"
        cards.append({
            "slug": entry["slug"],
            "href": f"/{prefix}/{entry['slug']}",
            "title": data.get("title") or entry["slug"],
            "date": data.get("date"),
            "categories": data.get("categories") or [],
            "cover": covers.get(_cover_id(entry)),
        })
    return cards


def _tab_categories(entries: List[Dict[str, Any]], homepage_only: bool = True) -> List[Dict[str, Any]]:
    used = {c for e in entries for c in (e.get("data") or {}).get("categories") or []}
    return [
        c for c in list_categories()
        if c["id"] in used and (c.get("showOnHomepage", True) or not homepage_only)
    ]


def home_context() -> Dict[str, Any]:
    posts = list_published("posts")
    return {"categories": _tab_categories(posts), "cards": _cards(posts), "active": None}


def category_context(category_id: str) -> Optional[Dict[str, Any]]:
    category = get_category(category_id)
    if category is None:
        return None

    entries = list_published("posts") + list_published("articles")
    matching = [e for e in entries if category_id in ((e.get("data") or {}).get("categories") or [])]
    matching.sort(key=lambda e: (e.get("data") or {}).get("date") or e["createdAt"], reverse=True)
    return {
        "category": category,
        "categories": _tab_categories(entries),
        "cards": _cards(matching),
        "active": category_id,
    }


def _labels(category_ids: List[str]) -> List[Dict[str, Any]]:
    by_id = {c["id"]: c for c in list_categories()}
    return [by_id[c] for c in category_ids if c in by_id]


def post_context(slug: str) -> Optional[Dict[str, Any]]:
    post = get_public_entry("posts", slug)
    if post is None:
        return None

    data = post.get("data") or {}
    media_ids = data.get("media") or []
    media_by_id = _media_map(media_ids)
    slides = [media_by_id[m] for m in media_ids if m in media_by_id]

    slide_ids = [s["id"] for s in slides]
    cover = data.get("coverMediaId")
    start = slide_ids.index(cover) if cover in slide_ids else 0

    category_ids = data.get("categories") or []
    others = [p for p in list_published("posts") if p["id"] != post["id"]]
    related = [p for p in others if set(category_ids) & set((p.get("data") or {}).get("categories") or [])]
    unrelated = [p for p in others if p not in related]

    return {
        "post": post,
        "data": data,
        "slides": slides,
        "start_index": start,
        "post_categories": _labels(category_ids),
        "more": _cards((related + unrelated)[:MAX_RELATED_POSTS]),
    }


def article_context(slug: str) -> Optional[Dict[str, Any]]:
    article = get_public_entry("articles", slug)
    if article is None:
        return None

    data = article.get("data") or {}
    blocks = [b for b in data.get("content") or [] if isinstance(b, dict)]
    ids: List[str] = [data.get("featuredImage")]
    for block in blocks:
        ids.append(block.get("mediaId"))
        ids.extend(block.get("mediaIds") or [])

    return {
        "article": article,
        "data": data,
        "blocks": blocks,
        "media": _media_map(ids),
        "article_categories": _labels(data.get("categories") or []),
    }


def dashboard_context() -> Dict[str, Any]:
    collections = []
    for schema in list_collections():
        collections.append({
            "slug": schema.slug,
            "name": schema.name,
            "total": count_entries(schema.slug),
            "published": count_entries(schema.slug, "published"),
            "drafts": count_entries(schema.slug, "draft"),
        })
    _, media_total = list_media(limit=1)
    return {
        "collections": collections,
        "media_total": media_total,
        "category_total": len(list_categories()),
    }
