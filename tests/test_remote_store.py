"""Tests for the HTTP and hybrid content stores."""

from __future__ import annotations

import json

import httpx
import pytest
from pydantic import TypeAdapter

from lumina.api.v1.dependencies import close_remote_store, get_remote_store, get_store
from lumina.core.settings import settings
from lumina.domain import Post, PostStatus, User, UserRole
from lumina.repositories import HttpContentStore, HybridContentStore, MemoryContentStore, SqlContentStore
from lumina.services.errors import ConflictError, NotFoundError, StoreUnavailableError

_post_adapter = TypeAdapter(Post)


class FakeRemote:
    """In-process stand-in for a remote content API."""

    def __init__(self) -> None:
        self.posts: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self.down = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.down:
            raise httpx.ConnectError("remote down", request=request)

        parts = request.url.path.strip("/").split("/")
        if parts[0] == "posts" and len(parts) >= 2:
            post_id = parts[1]
            expected = request.headers.get("If-Match")
            current = self.posts.get(post_id, {}).get("status")
            if request.method == "GET":
                if post_id not in self.posts:
                    return httpx.Response(404)
                return httpx.Response(200, json=self.posts[post_id])
            if expected and current != expected:
                return httpx.Response(409, text=f"status is {current}")
            if request.method == "PUT":
                stored = {"likes": 0, "views": 0, **self.posts.get(post_id, {})}
                stored.update(json.loads(request.content))
                self.posts[post_id] = stored
                return httpx.Response(200, json=stored)
            if request.method == "POST" and parts[2:] == ["counters"]:
                if post_id not in self.posts:
                    return httpx.Response(404)
                stored = self.posts[post_id]
                deltas = json.loads(request.content)
                for name in ("likes", "views"):
                    stored[name] = max(0, stored[name] + deltas.get(name, 0))
                return httpx.Response(200, json=stored)
        if parts == ["posts"]:
            status = request.url.params.get("status")
            posts = [p for p in self.posts.values() if status is None or p["status"] == status]
            return httpx.Response(200, json=posts)
        if parts[0] == "users":
            if request.method == "PUT":
                return httpx.Response(200, content=request.content)
            return httpx.Response(404)
        return httpx.Response(500)


@pytest.fixture()
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture()
def http_store(remote: FakeRemote) -> HttpContentStore:
    store = HttpContentStore(
        httpx.Client(base_url="http://remote.test", transport=httpx.MockTransport(remote))
    )
    yield store
    store.close()


@pytest.fixture()
def author() -> User:
    return User(id="author-1", email="ada@lumina.test", name="Ada", role=UserRole.AUTHOR)


def _post(author: User, status: PostStatus = PostStatus.PENDING) -> Post:
    return Post(
        id="post-1",
        slug="post-1",
        title="Post",
        content="<h1>Body</h1>",
        author_id=author.id,
        author_name=author.name,
        status=status,
    )


def test_http_store_round_trip(http_store, remote, author) -> None:
    post = _post(author)
    http_store.save_post(post)
    assert http_store.get_post("post-1") == post
    assert http_store.get_post("missing") is None
    assert [p.id for p in http_store.list_posts(status=PostStatus.PENDING)] == ["post-1"]
    assert remote.requests[-1].url.params["status"] == "PENDING"


def test_http_store_sends_expected_status(http_store, remote, author) -> None:
    post = _post(author)
    http_store.save_post(post)

    post.status = PostStatus.PUBLISHED
    http_store.save_post(post, expected_status=PostStatus.PENDING)
    assert remote.requests[-1].headers["If-Match"] == "PENDING"

    post.status = PostStatus.REJECTED
    with pytest.raises(ConflictError):
        http_store.save_post(post, expected_status=PostStatus.PENDING)


def test_http_store_unreachable(http_store, remote) -> None:
    remote.down = True
    with pytest.raises(StoreUnavailableError):
        http_store.get_post("post-1")


def test_http_store_does_not_serve_comments(http_store) -> None:
    with pytest.raises(StoreUnavailableError):
        http_store.list_comments("post-1")


def test_hybrid_reads_fall_back_when_primary_is_down(http_store, remote, author) -> None:
    local = MemoryContentStore()
    hybrid = HybridContentStore(http_store, local)
    post = _post(author)
    hybrid.save_post(post)
    assert local.get_post(post.id) == post
    assert post.id in remote.posts

    remote.down = True
    assert hybrid.get_post(post.id) == post
    assert [p.id for p in hybrid.list_posts()] == [post.id]


def test_hybrid_writes_locally_when_primary_is_down(http_store, remote, author) -> None:
    local = MemoryContentStore()
    hybrid = HybridContentStore(http_store, local)
    remote.down = True

    post = _post(author)
    hybrid.save_post(post)
    assert local.get_post(post.id) == post
    assert remote.posts == {}

    post.status = PostStatus.PUBLISHED
    with pytest.raises(ConflictError):
        hybrid.save_post(post, expected_status=PostStatus.REJECTED)


def test_hybrid_conflict_from_primary_is_not_mirrored(http_store, remote, author) -> None:
    local = MemoryContentStore()
    hybrid = HybridContentStore(http_store, local)
    post = _post(author)
    hybrid.save_post(post)

    remote.posts[post.id]["status"] = PostStatus.PUBLISHED.value
    post.status = PostStatus.REJECTED
    with pytest.raises(ConflictError):
        hybrid.save_post(post, expected_status=PostStatus.PENDING)
    assert local.get_post(post.id).status == PostStatus.PENDING


def test_hybrid_serves_comments_locally(http_store, author) -> None:
    local = MemoryContentStore()
    hybrid = HybridContentStore(http_store, local)
    assert hybrid.list_comments("post-1") == []


def test_http_store_put_leaves_counters_to_the_remote(http_store, remote, author) -> None:
    post = _post(author, PostStatus.PUBLISHED)
    http_store.save_post(post)
    remote.posts[post.id]["likes"] = 4

    stale = _post(author, PostStatus.PUBLISHED)
    stale.title = "Retitled"
    saved = http_store.save_post(stale, expected_status=PostStatus.PUBLISHED)

    body = json.loads(remote.requests[-1].content)
    assert "likes" not in body and "views" not in body
    assert saved.likes == 4
    assert remote.posts[post.id]["likes"] == 4
    assert remote.posts[post.id]["title"] == "Retitled"


def test_like_after_remote_delete_keeps_post_deleted(http_store, remote, author) -> None:
    http_store.save_post(_post(author, PostStatus.PUBLISHED))
    read_by_reader = http_store.get_post("post-1")

    moderated = http_store.get_post("post-1")
    moderated.status = PostStatus.DELETED
    http_store.save_post(moderated, expected_status=PostStatus.PUBLISHED)

    reader = User(id="reader-1", email="rhea@lumina.test", name="Rhea", role=UserRole.READER)
    reader.liked_posts = [read_by_reader.id]
    post, _ = http_store.save_engagement(read_by_reader.id, reader, likes_delta=1)

    assert remote.posts["post-1"]["status"] == PostStatus.DELETED.value
    assert remote.posts["post-1"]["likes"] == 1
    assert post.status == PostStatus.DELETED


def test_http_store_engagement_on_missing_post(http_store, author) -> None:
    with pytest.raises(NotFoundError):
        http_store.save_engagement("missing", author, likes_delta=1)


def test_http_store_counts_views_only_when_published(http_store, remote, author) -> None:
    http_store.save_post(_post(author, PostStatus.PUBLISHED))
    assert http_store.increment_views("post-1").views == 1
    assert remote.requests[-1].headers["If-Match"] == "PUBLISHED"

    remote.posts["post-1"]["status"] = PostStatus.DELETED.value
    assert http_store.increment_views("post-1") is None
    assert remote.posts["post-1"]["views"] == 1


def test_hybrid_mirrors_like_onto_local_copy(http_store, remote, author) -> None:
    local = MemoryContentStore()
    hybrid = HybridContentStore(http_store, local)
    hybrid.save_post(_post(author, PostStatus.PUBLISHED))

    author.liked_posts = ["post-1"]
    post, _ = hybrid.save_engagement("post-1", author, likes_delta=1)

    assert post.likes == 1
    assert remote.posts["post-1"]["likes"] == 1
    assert local.get_post("post-1").likes == 1
    assert local.get_user(author.id).liked_posts == ["post-1"]


@pytest.fixture()
def remote_store_url(monkeypatch):
    monkeypatch.setattr(settings, "content_store_url", "https://content.test/api")
    close_remote_store()
    yield settings.content_store_url
    close_remote_store()


def test_store_dependency_uses_local_database_by_default(db_session) -> None:
    assert settings.content_store_url is None
    assert get_remote_store() is None
    assert isinstance(get_store(db_session), SqlContentStore)


def test_store_dependency_puts_remote_in_front_when_configured(db_session, remote_store_url) -> None:
    store = get_store(db_session)
    assert isinstance(store, HybridContentStore)
    assert isinstance(store.primary, HttpContentStore)
    assert str(store.primary.client.base_url) == "https://content.test/api/"
    assert isinstance(store.fallback, SqlContentStore)
    assert get_store(db_session).primary is store.primary


def test_api_serves_local_data_while_remote_is_unreachable(client, author_headers, remote_store_url, mocker) -> None:
    remote = get_remote_store()
    mocker.patch.object(
        remote.client,
        "request",
        side_effect=httpx.ConnectError("remote down"),
    )

    response = client.get("/api/v1/posts/mine", headers=author_headers)
    assert response.status_code == 200
    assert response.json() == []
    assert remote.client.request.called
