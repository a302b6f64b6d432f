"""Server-rendered public pages. Rendered HTML is cached under ``page:<path>``."""
from typing import Callable, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse

from .. import rendering
from ..services.cache import get_cached, page_key, set_cached

router = APIRouter(tags=["site"], include_in_schema=False)


def _cached_page(path: str, template: str, build: Callable[[], Optional[dict]]) -> HTMLResponse:
    cache_key = page_key(path)
    cached = get_cached(cache_key)
    if cached is not None:
        return HTMLResponse(cached)

    context = build()
    if context is None:
        raise HTTPException(status_code=404, detail="Page not found")

    html = rendering.render(template, **context)
    set_cached(cache_key, html)
    return HTMLResponse(html)


@router.get("/", response_class=HTMLResponse)
def home():
    return _cached_page("/", "home.html", rendering.home_context)


@router.get("/admin", response_class=HTMLResponse)
def admin_dashboard():
    # counts change on every admin write, so never cached
    return HTMLResponse(rendering.render("admin.html", **rendering.dashboard_context()))


@router.get("/post/{slug}", response_class=HTMLResponse)
def post_page(slug: str):
    return _cached_page(f"/post/{slug}", "post.html", lambda: rendering.post_context(slug))


@router.get("/article/{slug}", response_class=HTMLResponse)
def article_page(slug: str):
    return _cached_page(f"/article/{slug}", "article.html", lambda: rendering.article_context(slug))


@router.get("/{category}", response_class=HTMLResponse)
def category_page(category: str):
    return _cached_page(f"/{category}", "category.html", lambda: rendering.category_context(category))
