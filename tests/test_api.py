from conftest import make_image

from folio_cms.services import entries


def test_health_ok(client, monkeypatch):
    monkeypatch.setattr("folio_cms.routers.health.ping", lambda: None)
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["error"] is None


def test_health_reports_database_down(client, monkeypatch):
    from pymongo.errors import ServerSelectionTimeoutError

    def down():
        raise ServerSelectionTimeoutError("no servers")

    monkeypatch.setattr("folio_cms.routers.health.ping", down)
    response = client.get("/api/health")
    assert response.status_code == 503
    assert response.json()["database"] == "disconnected"


def test_admin_routes_require_token(client):
    response = client.get("/api/admin/collections/posts/entries")
    assert response.status_code == 401
    assert "error" in response.json()


def test_setup_and_login_flow(client):
    assert client.get("/api/admin/users/check").json() == {"hasUsers": False}

    short = client.post("/api/admin/users/setup", json={"name": "Ada", "email": "ada@example.com", "password": "short"})
    assert short.status_code == 400

    created = client.post("/api/admin/users/setup", json={"name": "Ada", "email": "ada@example.com", "password": "longenough"})
    assert created.status_code == 200
    assert created.json()["user"]["role"] == "owner"
    assert client.get("/api/admin/users/check").json() == {"hasUsers": True}

    again = client.post("/api/admin/users/setup", json={"name": "Bob", "email": "bob@example.com", "password": "longenough"})
    assert again.status_code == 400
    assert again.json() == {"error": "Setup already complete"}

    assert client.post("/api/auth/login", json={"email": "ada@example.com", "password": "nope"}).status_code == 401
    login = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "longenough"})
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["data"]["email"] == "ada@example.com"


def test_collections_endpoint(auth_client):
    slugs = [c["slug"] for c in auth_client.get("/api/admin/collections").json()["data"]]
    assert "posts" in slugs
    assert auth_client.get("/api/admin/collections/widgets").status_code == 404


def test_entry_lifecycle_end_to_end(auth_client, owner):
    base = "/api/admin/collections/posts/entries"

    created = auth_client.post(base, json={"data": {"title": "Trip"}})
    assert created.status_code == 201
    slug = created.json()["data"]["slug"]
    assert created.json()["data"]["authorId"] == owner["id"]

    failed = auth_client.patch(f"{base}/{slug}", json={"status": "published"})
    assert failed.status_code == 400
    assert failed.json()["errors"] == ["Media is required"]

    fixed = auth_client.patch(f"{base}/{slug}", json={"status": "published", "data": {"media": ["m1"]}})
    assert fixed.status_code == 200
    assert fixed.json()["data"]["publishedAt"]
    assert fixed.json()["data"]["data"]["title"] == "Trip"

    public = auth_client.get("/api/content/posts").json()
    assert [e["slug"] for e in public["data"]] == [slug]
    assert "authorId" not in public["data"][0]
    assert "visibility" not in public["data"][0]
    assert auth_client.get(f"/api/content/posts/{slug}").status_code == 200

    deleted = auth_client.delete(f"{base}/{slug}")
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True}

    assert auth_client.get("/api/content/posts").json()["data"] == []
    assert auth_client.get(f"/api/content/posts/{slug}").status_code == 404
    assert auth_client.delete(f"{base}/{slug}").status_code == 404


def test_drafts_are_not_public(auth_client):
    auth_client.post("/api/admin/collections/posts/entries", json={"data": {"title": "Draft"}})
    assert auth_client.get("/api/content/posts").json()["total"] == 0
    assert auth_client.get("/api/content/posts/draft").status_code == 404


def test_slug_conflict_is_409(auth_client):
    base = "/api/admin/collections/posts/entries"
    auth_client.post(base, json={"data": {"title": "One"}})
    auth_client.post(base, json={"data": {"title": "Two"}})
    response = auth_client.patch(f"{base}/one", json={"slug": "two"})
    assert response.status_code == 409


def test_malformed_body_is_400(auth_client):
    response = auth_client.post(
        "/api/admin/collections/posts/entries",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"


def test_publishing_invalidates_public_cache(auth_client, redis_cache):
    entries.create_entry("posts", {"title": "Cached", "media": ["m1"]}, status="published")

    assert auth_client.get("/api/content/posts").json()["total"] == 1
    assert any(k.startswith("content:") for k in redis_cache.keys("*"))

    # a second publish is invisible until the cache is dropped
    entries.create_entry("posts", {"title": "Sneaky", "media": ["m1"]}, status="published")
    assert auth_client.get("/api/content/posts").json()["total"] == 1

    auth_client.post("/api/admin/collections/posts/entries", json={"status": "published", "data": {"title": "New", "media": ["m1"]}})
    assert redis_cache.keys("content:*") == []
    assert auth_client.get("/api/content/posts").json()["total"] == 3


def test_media_upload_and_usage(auth_client):
    upload = auth_client.post(
        "/api/admin/media",
        files={"file": ("Beach Day.jpg", make_image(1700, 900), "image/jpeg")},
    )
    assert upload.status_code == 201
    item = upload.json()["data"]
    assert set(item["variants"]) == {"large", "medium", "thumb"}

    entries.create_entry("posts", {"title": "Beach", "media": [item["id"]]})
    usage = auth_client.get(f"/api/admin/media/{item['id']}/usage").json()["data"]
    assert usage == [{"collection": "posts", "slug": "beach", "title": "Beach"}]
    assert auth_client.get("/api/admin/media/used").json()["data"] == [item["id"]]

    bulk = auth_client.get("/api/admin/media/bulk", params={"ids": f"{item['id']},missing"}).json()["data"]
    assert [m["id"] for m in bulk] == [item["id"]]

    patched = auth_client.patch(f"/api/admin/media/{item['id']}", json={"activeVariant": "thumb"})
    assert patched.json()["data"]["width"] == 400

    public = auth_client.get(f"/api/content/media/{item['id']}")
    assert public.status_code == 200


def test_upload_without_file_is_400(auth_client):
    response = auth_client.post("/api/admin/media")
    assert response.status_code == 400
    assert response.json() == {"error": "No file provided"}


def test_upload_unsupported_type_is_400(auth_client):
    response = auth_client.post("/api/admin/media", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 400


def test_media_replace_endpoint(auth_client):
    old = auth_client.post("/api/admin/media", files={"file": ("old.jpg", make_image(60, 60), "image/jpeg")}).json()["data"]
    entries.create_entry("posts", {"title": "P", "media": [old["id"]]})

    response = auth_client.post(
        f"/api/admin/media/{old['id']}/replace",
        files={"file": ("new.jpg", make_image(80, 80), "image/jpeg")},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["updatedEntries"] == 1
    assert auth_client.get(f"/api/admin/media/{old['id']}").status_code == 404


def test_orphan_endpoints(auth_client, blob_storage):
    blob_storage.put(b"data", "uploads/originals/lost-one.jpg", "image/jpeg")
    entries.create_entry("posts", {"title": "P", "media": ["lost-one"]})

    diagnosis = auth_client.get("/api/admin/media/diagnose").json()["data"]
    assert diagnosis["orphanedIds"] == ["lost-one"]

    preview = auth_client.post("/api/admin/media/fix-orphans").json()["data"]
    assert preview["applied"] is False
    assert preview["created"] == 0

    applied = auth_client.post("/api/admin/media/fix-orphans", params={"apply": "true"}).json()["data"]
    assert applied["created"] == 1
    assert auth_client.get("/api/admin/media/lost-one").status_code == 200


def test_category_endpoints(auth_client):
    for name in ("c1", "c2", "c3"):
        assert auth_client.post("/api/admin/categories", json={"name": name}).status_code == 201
    assert auth_client.post("/api/admin/categories", json={"name": "c1"}).status_code == 409

    reordered = auth_client.put("/api/admin/categories", json={"ids": ["c3", "c1", "c2"]}).json()["data"]
    assert [c["id"] for c in reordered] == ["c3", "c1", "c2"]

    auth_client.post("/api/admin/categories/reorder", json={"ids": ["c2"]})
    listed = auth_client.get("/api/content/categories").json()["data"]
    assert [c["id"] for c in listed] == ["c2", "c3", "c1"]

    assert auth_client.patch("/api/admin/categories/c1", json={"label": "First"}).json()["data"]["name"] == "First"
    assert auth_client.delete("/api/admin/categories/c1").status_code == 200
    assert auth_client.get("/api/admin/categories/c1").status_code == 404


def test_user_management(auth_client, owner):
    created = auth_client.post("/api/admin/users", json={"email": "ed@example.com", "name": "Ed", "password": "password1"})
    assert created.status_code == 201
    ed = created.json()["data"]
    assert ed["role"] == "editor"

    assert auth_client.post("/api/admin/users", json={"email": "ED@example.com", "name": "Ed", "password": "password1"}).status_code == 409
    assert len(auth_client.get("/api/admin/users").json()["data"]) == 2

    assert auth_client.delete(f"/api/admin/users/{owner['id']}").status_code == 400
    assert auth_client.delete(f"/api/admin/users/{ed['id']}").status_code == 200


def test_cache_clear_endpoint(auth_client, redis_cache):
    redis_cache.set("content:posts:list:20:0", "{}")
    redis_cache.set("page:/", "<html>")
    redis_cache.set("unrelated", "1")
    assert auth_client.post("/api/admin/cache/clear").json() == {"ok": True, "removed": 2}
    assert redis_cache.keys("*") == ["unrelated"]


def test_admin_cannot_edit_owner_account(client, owner):
    from folio_cms.services.users import authenticate, create_user
    from folio_cms.utils import create_access_token

    admin = create_user("ad@example.com", "Ad", "password1", role="admin").value
    headers = {"Authorization": f"Bearer {create_access_token({'sub': admin['id']})}"}

    response = client.patch(
        f"/api/admin/users/{owner['id']}",
        json={"password": "taken-over", "email": "other@example.com"},
        headers=headers,
    )
    assert response.status_code == 403
    assert client.delete(f"/api/admin/users/{owner['id']}", headers=headers).status_code == 403

    assert authenticate("owner@example.com", "correct-horse")["role"] == "owner"
    assert authenticate("other@example.com", "taken-over") is None

    own = client.patch(f"/api/admin/users/{admin['id']}", json={"name": "Adele"}, headers=headers)
    assert own.json()["data"]["name"] == "Adele"


def test_publishing_non_string_media_ids_is_rejected(auth_client):
    response = auth_client.post(
        "/api/admin/collections/posts/entries",
        json={"status": "published", "data": {"title": "Bad", "media": [{"id": "m1"}], "categories": [["x"]]}},
    )
    assert response.status_code == 400
    assert "Media must be an array of media IDs" in response.json()["errors"]
    assert auth_client.get("/").status_code == 200
