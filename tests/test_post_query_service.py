import asyncio

import pytest

from luxeblog.config import settings
from luxeblog.database.blog_indexes import COMMENTS_COLLECTION
from luxeblog.exceptions import ForbiddenError, NotFoundError, UnauthenticatedError
from luxeblog.models.blog_models import CreatePostRequest, PostFilter, PostStatus, UpdatePostRequest
from luxeblog.services.post_query_service import PostQueryService, coerce_positive_int


@pytest.fixture
def service():
    return PostQueryService()


async def add_post(service, title, author_id="user_author", **fields):
    data = {
        "title": title,
        "excerpt": "Excerpt",
        "content": fields.pop("content", "Body text"),
        "category_id": fields.pop("category_id", "category_none"),
        "tag_ids": fields.pop("tag_ids", []),
        "status": fields.pop("status", "published"),
    }
    data.update(fields)
    return await service.content.create_post(author_id, data)


@pytest.mark.parametrize(
    "value, expected",
    [(None, 7), ("3", 3), (2, 2), ("0", 7), ("-4", 7), ("abc", 7), ("", 7)],
)
def test_coerce_positive_int(value, expected):
    assert coerce_positive_int(value, 7) == expected


def test_coerce_positive_int_clamps_to_maximum():
    assert coerce_positive_int("50", 7, maximum=20) == 20
    assert coerce_positive_int(str(10**30), 7, maximum=20) == 20
    assert coerce_positive_int("20", 7, maximum=20) == 20
    assert coerce_positive_int("0", 7, maximum=20) == 7


@pytest.mark.asyncio
async def test_pagination_over_25_posts(mock_database, service):
    for i in range(25):
        await add_post(service, f"Post {i + 1}")

    first = await service.list_posts(page=1, limit=10)
    assert first.total == 25
    assert len(first.items) == 10
    assert first.has_next is True
    assert first.has_prev is False
    assert first.items[0].title == "Post 25"

    last = await service.list_posts(page=3, limit=10)
    assert len(last.items) == 5
    assert last.has_next is False
    assert last.has_prev is True
    assert last.items[-1].title == "Post 1"

    meta = last.pagination()
    assert meta.prev.page == 2
    assert meta.next is None


@pytest.mark.asyncio
async def test_invalid_paging_falls_back_to_defaults(mock_database, service):
    for i in range(3):
        await add_post(service, f"Entry {i}")

    result = await service.list_posts(page="zero", limit="-1")
    assert result.page == 1
    assert result.limit == 100
    assert len(result.items) == 3
    assert result.has_next is False


@pytest.mark.asyncio
async def test_huge_paging_values_are_clamped(mock_database, service):
    for i in range(3):
        await add_post(service, f"Entry {i}")

    result = await service.list_posts(page=10**20, limit=str(10**20))
    assert result.page == settings.MAX_PAGE
    assert result.limit == settings.MAX_PAGE_LIMIT
    assert result.items == []
    assert result.total == 3
    assert result.has_next is False
    assert result.has_prev is True


@pytest.mark.asyncio
async def test_listing_excludes_drafts(mock_database, service):
    await add_post(service, "Visible")
    await add_post(service, "Hidden", status="draft")

    result = await service.list_posts()
    assert [p.title for p in result.items] == ["Visible"]
    assert result.total == 1


@pytest.mark.asyncio
async def test_search_is_case_insensitive_and_literal(mock_database, service):
    await add_post(service, "C++ for Designers")
    await add_post(service, "Plain Title", content="A quiet LUXURY retreat")
    await add_post(service, "Cxx Tips")

    by_title = await service.list_posts(PostFilter(search="c++"))
    assert [p.title for p in by_title.items] == ["C++ for Designers"]

    by_content = await service.list_posts(PostFilter(search="luxury"))
    assert [p.title for p in by_content.items] == ["Plain Title"]


@pytest.mark.asyncio
async def test_filter_by_category_and_tag_id_or_slug(mock_database, service):
    travel = await service.taxonomy.resolve_category("Travel")
    design = await service.taxonomy.resolve_category("Design")
    art = await service.taxonomy.resolve_tag("Art")

    await add_post(service, "Trip", category_id=travel, tag_ids=[art])
    await add_post(service, "Chair", category_id=design)

    for value in (travel, "travel"):
        result = await service.list_posts(PostFilter(category=value))
        assert [p.title for p in result.items] == ["Trip"]
    for value in (art, "art"):
        result = await service.list_posts(PostFilter(tag=value))
        assert [p.title for p in result.items] == ["Trip"]

    unknown = await service.list_posts(PostFilter(category="no-such-category"))
    assert unknown.items == []
    assert unknown.total == 0


@pytest.mark.asyncio
async def test_filter_by_author(mock_database, service):
    await add_post(service, "Mine", author_id="user_author")
    await add_post(service, "Theirs", author_id="user_other")

    result = await service.list_posts(PostFilter(author="user_other"))
    assert [p.title for p in result.items] == ["Theirs"]


@pytest.mark.asyncio
async def test_concurrent_reads_count_every_view(mock_database, service):
    doc = await add_post(service, "Popular")

    await asyncio.gather(service.get_post(doc["post_id"]), service.get_post_by_slug(doc["slug"]))

    stored = await service.content.get_post(doc["post_id"])
    assert stored["views"] == 2


@pytest.mark.asyncio
async def test_read_attaches_approved_comments(mock_database, service, author):
    doc = await add_post(service, "Discussed")
    await service.comments.add_comment(doc["post_id"], "Approved", principal=author)
    await service.comments.add_comment(doc["post_id"], "Pending", guest={"name": "Gus", "email": "gus@example.com"})

    post = await service.get_post_by_slug("discussed")
    assert post.views == 1
    assert [c.content for c in post.comments] == ["Approved"]


@pytest.mark.asyncio
async def test_draft_visible_to_owner_and_admin_only(mock_database, service, author, other_author, admin):
    draft = await add_post(service, "Work in Progress", author_id=author.id, status="draft")

    with pytest.raises(NotFoundError):
        await service.get_post(draft["post_id"])
    with pytest.raises(NotFoundError):
        await service.get_post_by_slug(draft["slug"], other_author)

    assert (await service.get_post(draft["post_id"], author)).status == PostStatus.DRAFT
    assert (await service.get_post(draft["post_id"], admin)).post_id == draft["post_id"]

    with pytest.raises(NotFoundError):
        await service.get_post("post_missing", admin)


@pytest.mark.asyncio
async def test_create_post_resolves_labels(mock_database, service, reader):
    request = CreatePostRequest(
        title="Spa Weekends",
        excerpt="Unwind",
        content="<p>Relax</p><script>alert(1)</script>",
        category="wellness",
        tags=["Spa", "spa", "Luxury"],
        status="published",
    )

    with pytest.raises(UnauthenticatedError):
        await service.create_post(request, None)

    post = await service.create_post(request, reader)
    assert post.author_id == reader.id
    assert post.slug == "spa-weekends"
    assert post.category.name == "Wellness"
    assert [t.name for t in post.tags] == ["Spa", "Luxury"]
    assert "script" not in post.content


@pytest.mark.asyncio
async def test_update_post_authorization(mock_database, service, author, other_author, admin):
    doc = await add_post(service, "Original", author_id=author.id)

    with pytest.raises(UnauthenticatedError):
        await service.update_post(doc["post_id"], UpdatePostRequest(title="Nope"), None)
    with pytest.raises(ForbiddenError):
        await service.update_post(doc["post_id"], UpdatePostRequest(title="Nope"), other_author)
    with pytest.raises(NotFoundError):
        await service.update_post("post_missing", UpdatePostRequest(title="Nope"), admin)

    updated = await service.update_post(
        doc["post_id"], UpdatePostRequest(title="Revised", category="Design", status="draft"), author
    )
    assert updated.slug == "revised"
    assert updated.category.slug == "design"
    assert updated.status == PostStatus.DRAFT

    by_admin = await service.update_post(doc["post_id"], UpdatePostRequest(is_featured=True), admin)
    assert by_admin.is_featured is True
    assert by_admin.slug == "revised"


@pytest.mark.asyncio
async def test_delete_post_keeps_comments(mock_database, service, author, other_author):
    doc = await add_post(service, "Short Lived", author_id=author.id)
    await service.comments.add_comment(doc["post_id"], "First!", principal=author)

    with pytest.raises(ForbiddenError):
        await service.delete_post(doc["post_id"], other_author)

    await service.delete_post(doc["post_id"], author)
    assert await service.content.get_post(doc["post_id"]) is None
    assert await mock_database[COMMENTS_COLLECTION].count_documents({"post_id": doc["post_id"]}) == 1

    with pytest.raises(NotFoundError):
        await service.delete_post(doc["post_id"], author)


@pytest.mark.asyncio
async def test_list_posts_by_author_includes_drafts(mock_database, service, author, reader, admin):
    await add_post(service, "Published One", author_id=author.id)
    await add_post(service, "Draft One", author_id=author.id, status="draft")
    await add_post(service, "Someone Else", author_id="user_other")

    own = await service.list_posts_by_author(author.id, author)
    assert sorted(p.title for p in own) == ["Draft One", "Published One"]
    assert len(await service.list_posts_by_author(author.id, admin)) == 2

    with pytest.raises(ForbiddenError):
        await service.list_posts_by_author(author.id, reader)
