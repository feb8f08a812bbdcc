"""
Tests for the Admin Blog API.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.clock import FixedClock
from src.adapters.local_storage import InMemoryLocalCache
from src.api.deps import get_blog_service
from src.api.routes import admin_blog
from src.app_shell.context import ServiceContext
from src.components.blog import BlogPostService
from src.components.persistence import CachedCollectionStore, create_resilient_store
from src.core.errors import BackendUnavailableError

# --- Test Setup ---


class OfflineStore(CachedCollectionStore):
    """Primary tier that is always unreachable."""

    def __init__(self) -> None:
        super().__init__(InMemoryLocalCache(key_prefix="remote"), "blog_posts")

    async def list(self, filters=None, order_by=None, descending=False):
        raise BackendUnavailableError("list", "offline")

    async def get(self, record_id):
        raise BackendUnavailableError("get", "offline")

    async def insert(self, record):
        raise BackendUnavailableError("insert", "offline")

    async def update(self, record_id, changes):
        raise BackendUnavailableError("update", "offline")

    async def remove(self, record_id):
        raise BackendUnavailableError("remove", "offline")


def make_client(service: BlogPostService) -> TestClient:
    app = FastAPI()
    app.include_router(admin_blog.router, prefix="/blog")
    app.dependency_overrides[get_blog_service] = lambda: service
    return TestClient(app)


@pytest.fixture
def client(memory_ctx: ServiceContext) -> TestClient:
    return make_client(memory_ctx.blog_service)


@pytest.fixture
def offline_client() -> TestClient:
    store = create_resilient_store(OfflineStore(), InMemoryLocalCache())
    clock = FixedClock(datetime(2024, 3, 15, 12, 0, tzinfo=UTC))
    return make_client(BlogPostService(store, clock))


# --- Routes ---


class TestPosts:
    """CRUD through the primary tier."""

    def test_create_derives_slug(self, client: TestClient) -> None:
        response = client.post("/blog/posts", json={"title": "Best Standing Desks 2024"})

        assert response.status_code == 201
        post = response.json()
        assert post["slug"] == "best-standing-desks-2024"
        assert post["id"]
        assert response.headers["X-Served-From"] == "primary"

    def test_duplicate_slug_rejected(self, client: TestClient) -> None:
        client.post("/blog/posts", json={"title": "Hello"})

        response = client.post("/blog/posts", json={"title": "Hello again", "slug": "hello"})

        assert response.status_code == 400
        assert response.json()["detail"][0]["code"] == "slug_duplicate"

    def test_blank_title_rejected(self, client: TestClient) -> None:
        response = client.post("/blog/posts", json={"title": "   ", "slug": "x"})

        assert response.status_code == 400
        assert response.json()["detail"][0]["field"] == "title"

    def test_get_by_id_and_slug(self, client: TestClient) -> None:
        created = client.post("/blog/posts", json={"title": "Hello"}).json()

        by_id = client.get(f"/blog/posts/{created['id']}")
        by_slug = client.get("/blog/posts/by-slug/hello")

        assert by_id.json()["title"] == "Hello"
        assert by_slug.json()["id"] == created["id"]

    def test_get_missing_is_404(self, client: TestClient) -> None:
        assert client.get("/blog/posts/nope").status_code == 404

    def test_partial_update(self, client: TestClient) -> None:
        created = client.post("/blog/posts", json={"title": "Hello", "excerpt": "old"}).json()

        response = client.patch(f"/blog/posts/{created['id']}", json={"published": True})

        assert response.status_code == 200
        post = response.json()
        assert post["published"] is True
        assert post["excerpt"] == "old"
        assert post["published_at"] is not None

    def test_update_missing_is_404(self, client: TestClient) -> None:
        response = client.patch("/blog/posts/nope", json={"title": "x"})

        assert response.status_code == 404

    def test_delete(self, client: TestClient) -> None:
        created = client.post("/blog/posts", json={"title": "Hello"}).json()

        assert client.delete(f"/blog/posts/{created['id']}").status_code == 204
        assert client.get(f"/blog/posts/{created['id']}").status_code == 404
        assert client.delete(f"/blog/posts/{created['id']}").status_code == 404

    def test_list_and_search(self, client: TestClient) -> None:
        client.post("/blog/posts", json={"title": "Desk Review", "published": True})
        client.post("/blog/posts", json={"title": "Chair Review", "published": True})
        client.post("/blog/posts", json={"title": "Desk Draft"})

        everything = client.get("/blog/posts").json()
        published = client.get("/blog/posts", params={"published": True}).json()
        desks = client.get("/blog/posts", params={"q": "desk"}).json()

        assert everything["total"] == 3
        assert published["total"] == 2
        assert [p["title"] for p in desks["items"]] == ["Desk Review"]

    def test_publish_due(self, client: TestClient) -> None:
        client.post(
            "/blog/posts",
            json={"title": "Due", "scheduled_at": "2024-03-15T08:00:00Z"},
        )
        client.post(
            "/blog/posts",
            json={"title": "Later", "scheduled_at": "2024-04-01T08:00:00Z"},
        )

        response = client.post("/blog/posts/publish-due")

        assert response.status_code == 200
        assert [p["title"] for p in response.json()["items"]] == ["Due"]


class TestOffline:
    """Writes and reads fall back to the local tier."""

    def test_create_and_read_back_locally(self, offline_client: TestClient) -> None:
        created = offline_client.post("/blog/posts", json={"title": "Offline Post"})

        assert created.status_code == 201
        assert created.headers["X-Served-From"] == "fallback"

        listed = offline_client.get("/blog/posts")
        assert listed.headers["X-Served-From"] == "fallback"
        assert [p["title"] for p in listed.json()["items"]] == ["Offline Post"]

    def test_create_update_delete_leaves_nothing(self, offline_client: TestClient) -> None:
        post_id = offline_client.post("/blog/posts", json={"title": "Temp"}).json()["id"]

        offline_client.patch(f"/blog/posts/{post_id}", json={"title": "Temp 2"})
        deleted = offline_client.delete(f"/blog/posts/{post_id}")

        assert deleted.status_code == 204
        assert deleted.headers["X-Served-From"] == "fallback"
        assert offline_client.get("/blog/posts").json()["total"] == 0

    def test_edit_of_remote_only_post_is_503(self, offline_client: TestClient) -> None:
        patched = offline_client.patch("/blog/posts/remote-only", json={"title": "Edited"})
        deleted = offline_client.delete("/blog/posts/remote-only")

        assert patched.status_code == 503
        assert patched.json()["detail"][0]["code"] == "backend_unavailable"
        assert deleted.status_code == 503
