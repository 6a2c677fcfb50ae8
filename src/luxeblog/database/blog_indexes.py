"""
# Blog Content Indexes

This module defines the **database indexes** for the blog content graph. The unique indexes are
not an optimisation: they are what makes slug allocation and taxonomy find-or-create safe when
concurrent requests race for the same name.

## Index Catalog

| Collection | Fields | Type | Purpose |
|------------|--------|------|---------|
| `blog_posts` | `post_id` | Unique | Public identifier |
| `blog_posts` | `slug` | Unique | Post URL; collisions retried with `-2`, `-3`, ... |
| `blog_posts` | `status`, `created_at` (-1), `_id` (-1) | Compound | Public listing, newest first |
| `blog_posts` | `author_id`, `created_at` (-1) | Compound | Author dashboards |
| `blog_posts` | `category_id` / `tag_ids` | Single | Taxonomy filters |
| `blog_categories` | `category_id`, `name_key`, `slug` | Unique | One category per normalized name |
| `blog_tags` | `tag_id`, `name_key`, `slug` | Unique | One tag per normalized name |
| `blog_comments` | `comment_id` | Unique | Public identifier |
| `blog_comments` | `post_id`, `parent_id`, `status`, `created_at` | Compound | Approved thread listing |
| `blog_comments` | `status`, `created_at` | Compound | Moderation queue |

Attributes:
    BLOG_INDEXES (List[Dict]): Configuration list defining all required indexes.
"""

from typing import Any, Dict, List

from luxeblog.managers.logging_manager import get_logger

logger = get_logger(prefix="[BlogIndexes]")

POSTS_COLLECTION = "blog_posts"
CATEGORIES_COLLECTION = "blog_categories"
TAGS_COLLECTION = "blog_tags"
COMMENTS_COLLECTION = "blog_comments"

BLOG_INDEXES: List[Dict[str, Any]] = [
    # Posts
    {"collection": POSTS_COLLECTION, "index": [("post_id", 1)], "options": {"name": "post_id_idx", "unique": True}},
    {"collection": POSTS_COLLECTION, "index": [("slug", 1)], "options": {"name": "post_slug_idx", "unique": True}},
    {
        "collection": POSTS_COLLECTION,
        "index": [("status", 1), ("created_at", -1), ("_id", -1)],
        "options": {"name": "post_status_created_idx"},
    },
    {
        "collection": POSTS_COLLECTION,
        "index": [("author_id", 1), ("created_at", -1)],
        "options": {"name": "post_author_created_idx"},
    },
    {"collection": POSTS_COLLECTION, "index": [("category_id", 1)], "options": {"name": "post_category_idx"}},
    {"collection": POSTS_COLLECTION, "index": [("tag_ids", 1)], "options": {"name": "post_tags_idx"}},
    # Categories
    {
        "collection": CATEGORIES_COLLECTION,
        "index": [("category_id", 1)],
        "options": {"name": "category_id_idx", "unique": True},
    },
    {
        "collection": CATEGORIES_COLLECTION,
        "index": [("name_key", 1)],
        "options": {"name": "category_name_key_idx", "unique": True},
    },
    {
        "collection": CATEGORIES_COLLECTION,
        "index": [("slug", 1)],
        "options": {"name": "category_slug_idx", "unique": True},
    },
    # Tags
    {"collection": TAGS_COLLECTION, "index": [("tag_id", 1)], "options": {"name": "tag_id_idx", "unique": True}},
    {"collection": TAGS_COLLECTION, "index": [("name_key", 1)], "options": {"name": "tag_name_key_idx", "unique": True}},
    {"collection": TAGS_COLLECTION, "index": [("slug", 1)], "options": {"name": "tag_slug_idx", "unique": True}},
    # Comments
    {
        "collection": COMMENTS_COLLECTION,
        "index": [("comment_id", 1)],
        "options": {"name": "comment_id_idx", "unique": True},
    },
    {
        "collection": COMMENTS_COLLECTION,
        "index": [("post_id", 1), ("parent_id", 1), ("status", 1), ("created_at", 1)],
        "options": {"name": "comment_thread_idx"},
    },
    {
        "collection": COMMENTS_COLLECTION,
        "index": [("status", 1), ("created_at", 1)],
        "options": {"name": "comment_moderation_idx"},
    },
]


async def create_blog_indexes(manager=None):
    """
    Create all indexes listed in `BLOG_INDEXES`.

    Idempotent: existing indexes with the same specification are left untouched. A failure on a
    non-unique index is logged and skipped; a failure on a unique index propagates, because the
    content store cannot guarantee slug and taxonomy uniqueness without it.

    Args:
        manager (DatabaseManager, optional): Manager to use. Defaults to the global `db_manager`.
    """
    if manager is None:
        from luxeblog.database import db_manager as manager

    logger.info("Creating blog content indexes...")
    for index_spec in BLOG_INDEXES:
        collection = manager.get_collection(index_spec["collection"])
        await manager._create_index_if_not_exists(collection, index_spec["index"], index_spec.get("options", {}))

    logger.info("Blog content index creation completed: %d indexes ensured", len(BLOG_INDEXES))
