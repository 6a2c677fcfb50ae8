from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from httpx import ASGITransport, AsyncClient
from jose import jwt
import pytest
import pytest_asyncio

from luxeblog.config import settings
from luxeblog.exceptions import UnauthenticatedError
from luxeblog.main import app
from luxeblog.routes.auth.dependencies import decode_access_token, get_optional_principal
from luxeblog.services.comment_service import PENDING_MESSAGE


def make_token(principal=None, **claims):
    payload = {"exp": datetime.now(timezone.utc) + timedelta(minutes=30)}
    if principal is not None:
        payload.update({"sub": principal.id, "role": principal.role.value, "name": principal.name})
    payload.update(claims)
    return jwt.encode(payload, settings.SECRET_KEY.get_secret_value(), algorithm=settings.ALGORITHM)


def auth(principal):
    return {"Authorization": f"Bearer {make_token(principal)}"}


@pytest_asyncio.fixture
async def client(mock_database):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def create_post(client, principal, **fields):
    body = {
        "title": "The Art of Slow Travel",
        "excerpt": "Why the journey matters",
        "content": "<p>Slow down.</p>",
        "category": "Travel",
        "tags": ["Luxury"],
        "status": "published",
    }
    body.update(fields)
    response = await client.post("/api/posts", json=body, headers=auth(principal))
    assert response.status_code == 201, response.text
    return response.json()["data"]


# Identity

def test_decode_access_token_reads_claims(author):
    principal = decode_access_token(make_token(author))
    assert principal.id == author.id
    assert principal.role == author.role
    assert principal.name == author.name


def test_decode_access_token_defaults_role():
    assert decode_access_token(make_token(sub="user_1")).role.value == "user"


@pytest.mark.parametrize(
    "token",
    [
        "not-a-jwt",
        jwt.encode({"sub": "user_1"}, "some-other-signing-key", algorithm="HS256"),
    ],
)
def test_decode_access_token_rejects_bad_tokens(token):
    with pytest.raises(UnauthenticatedError):
        decode_access_token(token)


def test_decode_access_token_rejects_missing_subject_and_unknown_role():
    with pytest.raises(UnauthenticatedError):
        decode_access_token(make_token(role="author"))
    with pytest.raises(UnauthenticatedError):
        decode_access_token(make_token(sub="user_1", role="superuser"))


def test_decode_access_token_rejects_expired():
    token = make_token(sub="user_1", exp=datetime.now(timezone.utc) - timedelta(minutes=1))
    with pytest.raises(UnauthenticatedError):
        decode_access_token(token)


# Posts

@pytest.mark.asyncio
async def test_create_and_list_posts(client, author):
    created = await create_post(client, author)
    assert created["slug"] == "the-art-of-slow-travel"
    assert created["category"]["slug"] == "travel"
    assert [t["name"] for t in created["tags"]] == ["Luxury"]
    assert "comments" not in created

    response = await client.get("/api/posts", params={"limit": "5"})
    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["count"] == 1
    assert body["total"] == 1
    assert body["pagination"] == {"page": 1, "limit": 5, "has_next": False, "has_prev": False}
    assert body["data"][0]["post_id"] == created["post_id"]


@pytest.mark.asyncio
async def test_pagination_links(client, author):
    for i in range(3):
        await create_post(client, author, title=f"Journey {i}")

    body = (await client.get("/api/posts", params={"page": "2", "limit": "1"})).json()
    assert body["pagination"]["next"] == {"page": 3, "limit": 1}
    assert body["pagination"]["prev"] == {"page": 1, "limit": 1}
    assert body["data"][0]["title"] == "Journey 1"


@pytest.mark.asyncio
async def test_huge_paging_values_do_not_fail(client, author):
    await create_post(client, author)

    response = await client.get("/api/posts", params={"page": str(10**20), "limit": str(10**20)})
    body = response.json()
    assert response.status_code == 200
    assert body["data"] == []
    assert body["total"] == 1
    assert body["pagination"]["page"] == settings.MAX_PAGE
    assert body["pagination"]["limit"] == settings.MAX_PAGE_LIMIT


@pytest.mark.asyncio
async def test_read_post_by_slug_counts_views(client, author):
    created = await create_post(client, author)

    first = (await client.get(f"/api/posts/slug/{created['slug']}")).json()
    second = (await client.get(f"/api/posts/{created['post_id']}")).json()
    assert first["data"]["views"] == 1
    assert second["data"]["views"] == 2
    assert second["data"]["comments"] == []


@pytest.mark.asyncio
async def test_create_post_requires_token(client):
    response = await client.post("/api/posts", json={"title": "x", "excerpt": "y", "content": "z", "category": "c"})
    body = response.json()

    assert response.status_code == 401
    assert body["success"] is False
    assert body["message"] == "Not authorized to access this route"
    assert body["error"]["type"] == "Unauthenticated"


@pytest.mark.asyncio
async def test_invalid_token_is_rejected_on_public_route(client, author):
    created = await create_post(client, author)
    response = await client.get(f"/api/posts/{created['post_id']}", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_missing_fields_are_validation_errors(client, author):
    response = await client.post("/api/posts", json={"excerpt": "y", "content": "z"}, headers=auth(author))
    body = response.json()

    assert response.status_code == 400
    assert body["error"]["type"] == "ValidationError"
    assert "title" in body["message"]
    assert "category" in body["message"]


@pytest.mark.asyncio
async def test_overlong_category_and_tag_labels_are_rejected(client, author):
    body = {"title": "Long Labels", "excerpt": "y", "content": "z"}
    for extra in ({"category": "c" * 51}, {"category": "Travel", "tags": ["t" * 31]}):
        response = await client.post("/api/posts", json={**body, **extra}, headers=auth(author))
        assert response.status_code == 400
        assert response.json()["error"]["type"] == "ValidationError"

    categories = (await client.get("/api/categories")).json()["data"]
    assert categories == []


@pytest.mark.asyncio
async def test_update_post_by_other_author_is_forbidden(client, author, other_author, admin):
    created = await create_post(client, author)
    url = f"/api/posts/{created['post_id']}"

    response = await client.put(url, json={"title": "Stolen"}, headers=auth(other_author))
    assert response.status_code == 403
    assert response.json()["error"]["type"] == "Forbidden"

    response = await client.put(url, json={"title": "Edited by Admin"}, headers=auth(admin))
    assert response.status_code == 200
    assert response.json()["data"]["slug"] == "edited-by-admin"


@pytest.mark.asyncio
async def test_delete_post_returns_empty_data(client, author):
    created = await create_post(client, author)

    response = await client.delete(f"/api/posts/{created['post_id']}", headers=auth(author))
    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {}}

    response = await client.get(f"/api/posts/{created['post_id']}")
    body = response.json()
    assert response.status_code == 404
    assert body["message"] == "Post not found"
    assert body["error"]["type"] == "NotFound"


@pytest.mark.asyncio
async def test_user_posts_self_or_admin(client, author, reader):
    await create_post(client, author, status="draft")

    own = await client.get(f"/api/posts/user/{author.id}", headers=auth(author))
    assert own.status_code == 200
    assert own.json()["count"] == 1

    response = await client.get(f"/api/posts/user/{author.id}", headers=auth(reader))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_dependency_override_principal(client, author):
    created = await create_post(client, author, status="draft")
    app.dependency_overrides[get_optional_principal] = lambda: author

    response = await client.get(f"/api/posts/{created['post_id']}")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "draft"


# Comments

@pytest.mark.asyncio
async def test_guest_comment_flow(client, author, admin):
    post = await create_post(client, author)

    response = await client.post(
        "/api/comments",
        json={
            "post_id": post["post_id"],
            "content": "Lovely read.",
            "guest_name": "Grace",
            "guest_email": "grace@example.com",
        },
    )
    body = response.json()
    assert response.status_code == 201
    assert body["message"] == PENDING_MESSAGE
    assert body["data"]["status"] == "pending"
    assert body["data"]["is_guest"] is True
    comment_id = body["data"]["comment_id"]

    listed = (await client.get(f"/api/comments/post/{post['post_id']}")).json()
    assert listed["count"] == 0

    assert (await client.put(f"/api/comments/{comment_id}/approve", headers=auth(author))).status_code == 403
    approved = await client.put(f"/api/comments/{comment_id}/approve", headers=auth(admin))
    assert approved.json()["data"]["status"] == "approved"

    listed = (await client.get(f"/api/comments/post/{post['post_id']}")).json()
    assert [c["comment_id"] for c in listed["data"]] == [comment_id]

    rejected = await client.put(f"/api/comments/{comment_id}/reject", headers=auth(admin))
    assert rejected.status_code == 400
    assert rejected.json()["error"]["type"] == "Conflict"


@pytest.mark.asyncio
async def test_guest_comment_without_identity(client, author):
    post = await create_post(client, author)
    response = await client.post("/api/comments", json={"post_id": post["post_id"], "content": "Anonymous"})
    assert response.status_code == 400
    assert response.json()["error"]["type"] == "ValidationError"


@pytest.mark.asyncio
async def test_pending_queue_requires_admin(client, author, admin):
    post = await create_post(client, author)
    await client.post(
        "/api/comments",
        json={"post_id": post["post_id"], "content": "Hi", "guest_name": "Gus", "guest_email": "gus@example.com"},
    )

    assert (await client.get("/api/comments/pending")).status_code == 401
    assert (await client.get("/api/comments/pending", headers=auth(author))).status_code == 403
    queue = (await client.get("/api/comments/pending", headers=auth(admin))).json()
    assert queue["count"] == 1


@pytest.mark.asyncio
async def test_comment_edit_and_delete(client, author, other_author):
    post = await create_post(client, author)
    created = await client.post(
        "/api/comments", json={"post_id": post["post_id"], "content": "Mine"}, headers=auth(author)
    )
    comment_id = created.json()["data"]["comment_id"]

    response = await client.put(f"/api/comments/{comment_id}", json={"content": "Theirs"}, headers=auth(other_author))
    assert response.status_code == 403

    response = await client.put(f"/api/comments/{comment_id}", json={"content": "Mine, edited"}, headers=auth(author))
    assert response.json()["data"]["content"] == "Mine, edited"

    response = await client.delete(f"/api/comments/{comment_id}", headers=auth(author))
    assert response.json() == {"success": True, "data": {}}


# Taxonomy

@pytest.mark.asyncio
async def test_category_crud_and_conflict(client, author, reader, admin):
    assert (await client.post("/api/categories", json={"name": "Art"}, headers=auth(reader))).status_code == 403

    created = await client.post("/api/categories", json={"name": "Art"}, headers=auth(author))
    assert created.status_code == 201
    category = created.json()["data"]

    duplicate = await client.post("/api/categories", json={"name": "art"}, headers=auth(author))
    body = duplicate.json()
    assert duplicate.status_code == 400
    assert body["message"] == "Duplicate field value"
    assert body["error"]["type"] == "Conflict"

    assert (await client.get("/api/categories/slug/art")).json()["data"]["category_id"] == category["category_id"]

    renamed = await client.put(
        f"/api/categories/{category['category_id']}", json={"name": "Fine Art"}, headers=auth(admin)
    )
    assert renamed.json()["data"]["slug"] == "fine-art"

    listed = (await client.get("/api/categories")).json()
    assert listed["count"] == 1

    assert (await client.delete(f"/api/categories/{category['category_id']}", headers=auth(author))).status_code == 403
    assert (await client.delete(f"/api/categories/{category['category_id']}", headers=auth(admin))).status_code == 200
    assert (await client.get(f"/api/categories/{category['category_id']}")).status_code == 404


@pytest.mark.asyncio
async def test_category_posts(client, author):
    post = await create_post(client, author, category="Design")
    await create_post(client, author, title="Unpublished", category="Design", status="draft")

    response = await client.get(f"/api/categories/{post['category']['category_id']}/posts")
    body = response.json()
    assert body["count"] == 1
    assert body["data"][0]["post_id"] == post["post_id"]


@pytest.mark.asyncio
async def test_tag_lookup(client, author):
    await create_post(client, author, tags=["Interior Design"])
    response = await client.get("/api/tags/slug/interior-design")
    assert response.json()["data"]["name"] == "Interior Design"
    assert (await client.get("/api/tags/slug/unknown")).status_code == 404


# Error envelope and health

@pytest.mark.asyncio
async def test_production_envelope_hides_details(client):
    with patch.object(settings, "DEBUG", False):
        response = await client.get("/api/posts/post_missing")
    assert response.json() == {"success": False, "message": "Post not found", "error": {"type": "NotFound"}}


@pytest.mark.asyncio
async def test_development_envelope_has_context(client):
    with patch.object(settings, "DEBUG", True):
        response = await client.get("/api/posts/post_missing")
    error = response.json()["error"]
    assert error["path"] == "/api/posts/post_missing"
    assert error["method"] == "GET"
    assert error["details"] == {"id": "post_missing"}
    assert "timestamp" in error


@pytest.mark.asyncio
async def test_health(client):
    with patch("luxeblog.routes.main.db_manager.health_check", AsyncMock(return_value=True)):
        response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["data"]["database"] == "connected"

    with patch("luxeblog.routes.main.db_manager.health_check", AsyncMock(return_value=False)):
        response = await client.get("/api/health")
    assert response.status_code == 503
    assert response.json()["success"] is False
