import asyncio
from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import DuplicateKeyError

from luxeblog.database.blog_indexes import COMMENTS_COLLECTION, POSTS_COLLECTION
from luxeblog.exceptions import ConflictError
from luxeblog.managers.blog_manager import BlogContentService


def post_data(title="The Art of Slow Travel", content="word " * 450, **overrides):
    data = {
        "title": title,
        "excerpt": "An excerpt",
        "content": content,
        "category_id": "category_test",
        "tag_ids": [],
        "status": "published",
    }
    data.update(overrides)
    return data


@pytest.fixture
def content():
    return BlogContentService()


@pytest.mark.asyncio
async def test_create_post_derives_fields(mock_database, content):
    doc = await content.create_post("user_author", post_data())

    assert doc["post_id"].startswith("post_")
    assert doc["slug"] == "the-art-of-slow-travel"
    assert doc["read_time"] == 3
    assert doc["views"] == 0
    assert doc["featured_image"] == "default-post.jpg"
    assert doc["author_id"] == "user_author"


@pytest.mark.asyncio
async def test_same_title_gets_numbered_slugs(mock_database, content):
    slugs = [(await content.create_post("user_author", post_data(title="Luxury Living")))["slug"] for _ in range(3)]
    assert slugs == ["luxury-living", "luxury-living-2", "luxury-living-3"]


@pytest.mark.asyncio
async def test_symbol_only_title_falls_back(mock_database, content):
    doc = await content.create_post("user_author", post_data(title="!!!"))
    assert doc["slug"] == "post"


@pytest.mark.asyncio
async def test_slug_race_moves_to_next_candidate(mock_database, content):
    """A concurrent writer takes the candidate between the check and the insert."""
    collection = mock_database[POSTS_COLLECTION]
    real_insert = collection.insert_one
    raced = {"done": False}

    async def racing_insert(document, *args, **kwargs):
        if not raced["done"]:
            raced["done"] = True
            await real_insert({"post_id": "post_rival", "slug": document["slug"], "title": "Rival"})
            raise DuplicateKeyError("E11000 duplicate key error: slug")
        return await real_insert(document, *args, **kwargs)

    with patch.object(collection, "insert_one", racing_insert), \
            patch("luxeblog.managers.blog_manager.db_manager.get_collection", return_value=collection):
        doc = await content.create_post("user_author", post_data(title="Quiet Luxury"))

    assert doc["slug"] == "quiet-luxury-2"


@pytest.mark.asyncio
async def test_slug_candidates_exhausted(mock_database, content):
    with patch("luxeblog.managers.blog_manager.settings") as mock_settings:
        mock_settings.SLUG_MAX_ATTEMPTS = 2
        await content.create_post("user_author", post_data(title="Repeat"))
        await content.create_post("user_author", post_data(title="Repeat"))
        with pytest.raises(ConflictError):
            await content.create_post("user_author", post_data(title="Repeat"))


@pytest.mark.asyncio
async def test_update_keeps_slug_unless_title_changes(mock_database, content):
    doc = await content.create_post("user_author", post_data(title="Design Notes"))

    same = await content.update_post(doc, {"excerpt": "New excerpt"})
    assert same["slug"] == "design-notes"
    assert same["read_time"] == doc["read_time"]

    renamed = await content.update_post(same, {"title": "Design Principles"})
    assert renamed["slug"] == "design-principles"

    unchanged_title = await content.update_post(renamed, {"title": "Design Principles", "content": "short"})
    assert unchanged_title["slug"] == "design-principles"
    assert unchanged_title["read_time"] == 1


@pytest.mark.asyncio
async def test_update_does_not_collide_with_own_slug(mock_database, content):
    await content.create_post("user_author", post_data(title="Minimalism"))
    other = await content.create_post("user_author", post_data(title="Other"))

    updated = await content.update_post(other, {"title": "Minimalism"})
    assert updated["slug"] == "minimalism-2"

    again = await content.update_post(updated, {"title": "minimalism!"})
    assert again["slug"] == "minimalism-2"


@pytest.mark.asyncio
async def test_increment_views_is_atomic(mock_database, content):
    doc = await content.create_post("user_author", post_data())

    await asyncio.gather(*(content.increment_views({"post_id": doc["post_id"]}) for _ in range(5)))

    stored = await content.get_post(doc["post_id"])
    assert stored["views"] == 5


@pytest.mark.asyncio
async def test_delete_post_keeps_comments(mock_database, content):
    doc = await content.create_post("user_author", post_data())
    await mock_database[COMMENTS_COLLECTION].insert_one({"comment_id": "comment_1", "post_id": doc["post_id"]})

    assert await content.delete_post(doc["post_id"]) is True
    assert await content.get_post(doc["post_id"]) is None
    assert await mock_database[COMMENTS_COLLECTION].count_documents({"post_id": doc["post_id"]}) == 1


@pytest.mark.asyncio
async def test_populate_posts_batches_lookups(mock_database, content):
    category = await content.insert_taxonomy("category", {"name": "Travel"})
    tag = await content.insert_taxonomy("tag", {"name": "Luxury"})
    doc = await content.create_post(
        "user_author", post_data(category_id=category["category_id"], tag_ids=[tag["tag_id"], "tag_missing"])
    )

    [post] = await content.populate_posts([doc])
    assert post.category.slug == "travel"
    assert [t.name for t in post.tags] == ["Luxury"]


@pytest.mark.asyncio
async def test_insert_taxonomy_slug_modes(mock_database, content):
    await content.insert_taxonomy("tag", {"name": "Slow Travel"})

    suffixed = await content.insert_taxonomy("tag", {"name": "Slow-travel"})
    assert suffixed["slug"] == "slow-travel-2"

    with pytest.raises(DuplicateKeyError):
        await content.insert_taxonomy("tag", {"name": "Slow travel!"}, suffix_slug=False)


@pytest.mark.asyncio
async def test_posts_in_category_only_published(mock_database, content):
    await content.create_post("user_author", post_data(title="Live", category_id="category_a"))
    await content.create_post("user_author", post_data(title="Hidden", category_id="category_a", status="draft"))
    await content.create_post("user_author", post_data(title="Elsewhere", category_id="category_b"))

    docs = await content.posts_in_category("category_a")
    assert [d["title"] for d in docs] == ["Live"]


@pytest.mark.asyncio
async def test_find_posts_logs_and_reraises_errors(content):
    collection = MagicMock()
    collection.find.side_effect = RuntimeError("boom")
    with patch("luxeblog.managers.blog_manager.db_manager") as mock_db:
        mock_db.get_collection.return_value = collection
        with pytest.raises(RuntimeError):
            await content.find_posts({"status": "published"})
        mock_db.log_query_error.assert_called_once()


@pytest.mark.asyncio
async def test_replies_of_filters_by_status(mock_database, content):
    comments = mock_database[COMMENTS_COLLECTION]
    for comment_id, status in (("comment_a", "approved"), ("comment_b", "pending"), ("comment_c", "approved")):
        await comments.insert_one({"comment_id": comment_id, "post_id": "post_1", "parent_id": "comment_root", "status": status})
    await comments.insert_one({"comment_id": "comment_other", "post_id": "post_1", "parent_id": "comment_x", "status": "approved"})

    assert [c["comment_id"] for c in await content.replies_of("comment_root")] == ["comment_a", "comment_b", "comment_c"]
    assert [c["comment_id"] for c in await content.replies_of("comment_root", status="approved")] == ["comment_a", "comment_c"]
