"""
# Blog Content Store

`BlogContentService` owns the persistent blog entities (posts, categories, tags, comments) and
their relationships. Every write path runs the derived-field transforms explicitly:

- **Slug**: `slugify(title or name)`, made unique per entity type by trying `base`, `base-2`,
  `base-3`, ... The unique index is the arbiter; a `DuplicateKeyError` on the slug moves on to
  the next candidate.
- **Reading time**: `ceil(words / 200)`, recomputed only when post content changes.
- **Views**: incremented atomically with `$inc`, never read-modify-write.

Relationships that an ORM would populate lazily are explicit query methods here:
`replies_of(comment_id)`, `posts_in_category(category_id)` and `populate_posts(docs)`.

Deleting a post does not touch its comments.

## Usage

```python
from luxeblog.managers.blog_manager import BlogContentService

content_service = BlogContentService()
doc = await content_service.create_post("user_42", {...})
```
"""

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from luxeblog.config import settings
from luxeblog.database import db_manager
from luxeblog.database.blog_indexes import (
    CATEGORIES_COLLECTION,
    COMMENTS_COLLECTION,
    POSTS_COLLECTION,
    TAGS_COLLECTION,
)
from luxeblog.exceptions import ConflictError
from luxeblog.managers.logging_manager import get_logger
from luxeblog.models.blog_models import (
    DEFAULT_FEATURED_IMAGE,
    CategorySummary,
    PostResponse,
    PostStatus,
    TagSummary,
)
from luxeblog.utils.content_utils import read_time_minutes
from luxeblog.utils.slug_utils import slug_candidates, slugify

logger = get_logger(prefix="[Blog Content]")

# Newest first; the store-assigned _id breaks ties in insertion order
POST_SORT: List[Tuple[str, int]] = [("created_at", DESCENDING), ("_id", DESCENDING)]
THREAD_SORT: List[Tuple[str, int]] = [("created_at", ASCENDING), ("_id", ASCENDING)]

TAXONOMY_KINDS: Dict[str, Tuple[str, str]] = {
    "category": (CATEGORIES_COLLECTION, "category_id"),
    "tag": (TAGS_COLLECTION, "tag_id"),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:16]}"


class BlogContentService:
    """Persistence operations for the blog content graph."""

    def _collection(self, name: str):
        return db_manager.get_collection(name)

    # ------------------------------------------------------------------
    # Slug allocation
    # ------------------------------------------------------------------
    async def _write_with_unique_slug(
        self,
        collection_name: str,
        id_field: str,
        entity_id: str,
        source_text: str,
        fallback: str,
        write: Callable[[str], Awaitable[Any]],
    ) -> str:
        """
        Run `write(slug)` with the first slug candidate the unique index accepts.

        Candidates already held by another entity are skipped without a write. If the write
        still fails with a duplicate key (a concurrent writer took the candidate), the next
        candidate is tried. A duplicate on any other unique field propagates.

        Returns:
            str: The slug that was written.

        Raises:
            DuplicateKeyError: A unique field other than the slug clashed.
            ConflictError: No free candidate within `SLUG_MAX_ATTEMPTS`.
        """
        collection = self._collection(collection_name)
        base = slugify(source_text) or fallback

        for candidate in slug_candidates(base, settings.SLUG_MAX_ATTEMPTS):
            taken = await collection.find_one({"slug": candidate, id_field: {"$ne": entity_id}}, {"_id": 1})
            if taken:
                continue
            try:
                await write(candidate)
                return candidate
            except DuplicateKeyError:
                if await collection.find_one({"slug": candidate, id_field: {"$ne": entity_id}}, {"_id": 1}):
                    logger.info("Slug '%s' claimed concurrently in %s, trying next candidate", candidate, collection_name)
                    continue
                raise

        logger.error("Exhausted slug candidates for '%s' in %s", base, collection_name)
        raise ConflictError("Duplicate field value", details={"field": "slug", "value": base})

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------
    async def create_post(self, author_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a post, deriving `slug` from the title and `read_time` from the content.

        Args:
            author_id (str): Owner of the post.
            data (Dict[str, Any]): Validated fields; `category_id` and `tag_ids` already resolved.

        Returns:
            Dict[str, Any]: The stored document.
        """
        now = utc_now()
        document: Dict[str, Any] = {
            "post_id": new_id("post"),
            "title": data["title"],
            "excerpt": data["excerpt"],
            "content": data["content"],
            "featured_image": data.get("featured_image") or DEFAULT_FEATURED_IMAGE,
            "author_id": author_id,
            "category_id": data["category_id"],
            "tag_ids": list(data.get("tag_ids") or []),
            "status": PostStatus(data.get("status") or PostStatus.DRAFT).value,
            "is_featured": bool(data.get("is_featured", False)),
            "read_time": read_time_minutes(data["content"]),
            "views": 0,
            "seo": data.get("seo"),
            "created_at": now,
            "updated_at": now,
        }
        collection = self._collection(POSTS_COLLECTION)

        async def insert(slug: str):
            await collection.insert_one({**document, "slug": slug})

        start_time = db_manager.log_query_start(POSTS_COLLECTION, "insert_one", {"post_id": document["post_id"]})
        slug = await self._write_with_unique_slug(
            POSTS_COLLECTION, "post_id", document["post_id"], document["title"], "post", insert
        )
        db_manager.log_query_success(POSTS_COLLECTION, "insert_one", start_time, result_info=slug)
        logger.info("Created post %s with slug '%s'", document["post_id"], slug)
        return await collection.find_one({"post_id": document["post_id"]})

    async def get_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        return await self._collection(POSTS_COLLECTION).find_one({"post_id": post_id})

    async def get_post_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        return await self._collection(POSTS_COLLECTION).find_one({"slug": slug})

    async def update_post(self, existing: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply `changes` to the post `existing`.

        The slug is re-derived only when the title actually changes (or the stored post has no
        slug); reading time only when content is part of the change set.
        """
        post_id = existing["post_id"]
        collection = self._collection(POSTS_COLLECTION)
        update = dict(changes)
        if "content" in update:
            update["read_time"] = read_time_minutes(update["content"])
        update["updated_at"] = utc_now()

        title_changed = "title" in update and update["title"] != existing.get("title")
        if title_changed or not existing.get("slug"):
            title = update.get("title", existing.get("title"))

            async def write(slug: str):
                await collection.update_one({"post_id": post_id}, {"$set": {**update, "slug": slug}})

            await self._write_with_unique_slug(POSTS_COLLECTION, "post_id", post_id, title, "post", write)
        else:
            await collection.update_one({"post_id": post_id}, {"$set": update})

        return await collection.find_one({"post_id": post_id})

    async def delete_post(self, post_id: str) -> bool:
        result = await self._collection(POSTS_COLLECTION).delete_one({"post_id": post_id})
        return result.deleted_count > 0

    async def increment_views(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Atomically add one view to the post matching `query` and return it after the update."""
        return await self._collection(POSTS_COLLECTION).find_one_and_update(
            query,
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER,
        )

    async def find_posts(
        self, query: Dict[str, Any], skip: int = 0, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        start_time = db_manager.log_query_start(POSTS_COLLECTION, "find", query, {"skip": skip, "limit": limit})
        try:
            cursor = self._collection(POSTS_COLLECTION).find(query).sort(POST_SORT)
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            docs = await cursor.to_list(length=None)
        except Exception as e:
            db_manager.log_query_error(POSTS_COLLECTION, "find", start_time, e, query)
            raise
        db_manager.log_query_success(POSTS_COLLECTION, "find", start_time, len(docs))
        return docs

    async def count_posts(self, query: Dict[str, Any]) -> int:
        return await self._collection(POSTS_COLLECTION).count_documents(query)

    async def posts_in_category(self, category_id: str, published_only: bool = True) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"category_id": category_id}
        if published_only:
            query["status"] = PostStatus.PUBLISHED.value
        return await self.find_posts(query)

    async def populate_posts(self, docs: Iterable[Dict[str, Any]]) -> List[PostResponse]:
        """Attach category and tag summaries to post documents in two batched lookups."""
        docs = list(docs)
        category_ids = {doc["category_id"] for doc in docs if doc.get("category_id")}
        tag_ids = {tag_id for doc in docs for tag_id in doc.get("tag_ids", [])}

        categories: Dict[str, CategorySummary] = {}
        if category_ids:
            cursor = self._collection(CATEGORIES_COLLECTION).find({"category_id": {"$in": list(category_ids)}})
            for cat in await cursor.to_list(length=None):
                categories[cat["category_id"]] = CategorySummary(
                    category_id=cat["category_id"], name=cat["name"], slug=cat["slug"]
                )

        tags: Dict[str, TagSummary] = {}
        if tag_ids:
            cursor = self._collection(TAGS_COLLECTION).find({"tag_id": {"$in": list(tag_ids)}})
            for tag in await cursor.to_list(length=None):
                tags[tag["tag_id"]] = TagSummary(tag_id=tag["tag_id"], name=tag["name"], slug=tag["slug"])

        return [
            PostResponse(
                post_id=doc["post_id"],
                title=doc["title"],
                slug=doc["slug"],
                excerpt=doc["excerpt"],
                content=doc["content"],
                featured_image=doc.get("featured_image") or DEFAULT_FEATURED_IMAGE,
                author_id=doc["author_id"],
                category=categories.get(doc.get("category_id")),
                tags=[tags[tag_id] for tag_id in doc.get("tag_ids", []) if tag_id in tags],
                status=doc["status"],
                is_featured=doc.get("is_featured", False),
                read_time=doc.get("read_time", 0),
                views=doc.get("views", 0),
                seo=doc.get("seo"),
                created_at=doc["created_at"],
                updated_at=doc.get("updated_at", doc["created_at"]),
            )
            for doc in docs
        ]

    # ------------------------------------------------------------------
    # Categories and tags
    # ------------------------------------------------------------------
    async def find_taxonomy(self, kind: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        collection_name, _ = TAXONOMY_KINDS[kind]
        return await self._collection(collection_name).find_one(query)

    async def get_taxonomy(self, kind: str, entity_id: str) -> Optional[Dict[str, Any]]:
        _, id_field = TAXONOMY_KINDS[kind]
        return await self.find_taxonomy(kind, {id_field: entity_id})

    async def list_taxonomy(self, kind: str) -> List[Dict[str, Any]]:
        collection_name, _ = TAXONOMY_KINDS[kind]
        cursor = self._collection(collection_name).find({}).sort([("name_key", ASCENDING)])
        return await cursor.to_list(length=None)

    async def insert_taxonomy(self, kind: str, fields: Dict[str, Any], suffix_slug: bool = True) -> Dict[str, Any]:
        """
        Insert a category or tag. `fields` must contain `name`; `name_key` and `slug` are derived.

        With `suffix_slug` a taken slug moves on to `base-2`, `base-3`, ... Without it the entity
        is written under exactly `slugify(name)`, so a slug clash surfaces as `DuplicateKeyError`
        like a name clash does. Find-or-create relies on that: an equal slug means the same entity.

        Raises:
            DuplicateKeyError: Another entity of this kind already has the same normalized name
                (or, without `suffix_slug`, the same slug).
        """
        collection_name, id_field = TAXONOMY_KINDS[kind]
        collection = self._collection(collection_name)
        now = utc_now()
        document = {
            id_field: new_id(kind),
            "description": None,
            **fields,
            "name_key": fields["name"].lower(),
            "created_at": now,
            "updated_at": now,
        }
        if kind == "category":
            document.setdefault("image", None)

        async def insert(slug: str):
            await collection.insert_one({**document, "slug": slug})

        if suffix_slug:
            await self._write_with_unique_slug(collection_name, id_field, document[id_field], document["name"], kind, insert)
        else:
            await insert(slugify(document["name"]) or kind)
        logger.info("Created %s '%s' (%s)", kind, document["name"], document[id_field])
        return await collection.find_one({id_field: document[id_field]})

    async def update_taxonomy(self, kind: str, existing: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update a category or tag; a name change re-derives `name_key` and the slug.

        Raises:
            DuplicateKeyError: The new name collides with another entity of this kind.
        """
        collection_name, id_field = TAXONOMY_KINDS[kind]
        collection = self._collection(collection_name)
        entity_id = existing[id_field]
        update = {**changes, "updated_at": utc_now()}

        if "name" in update and update["name"] != existing.get("name"):
            update["name_key"] = update["name"].lower()

            async def write(slug: str):
                await collection.update_one({id_field: entity_id}, {"$set": {**update, "slug": slug}})

            await self._write_with_unique_slug(collection_name, id_field, entity_id, update["name"], kind, write)
        else:
            await collection.update_one({id_field: entity_id}, {"$set": update})

        return await collection.find_one({id_field: entity_id})

    async def delete_taxonomy(self, kind: str, entity_id: str) -> bool:
        collection_name, id_field = TAXONOMY_KINDS[kind]
        result = await self._collection(collection_name).delete_one({id_field: entity_id})
        return result.deleted_count > 0

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------
    async def insert_comment(self, document: Dict[str, Any]) -> Dict[str, Any]:
        collection = self._collection(COMMENTS_COLLECTION)
        await collection.insert_one(dict(document))
        return await collection.find_one({"comment_id": document["comment_id"]})

    async def get_comment(self, comment_id: str) -> Optional[Dict[str, Any]]:
        return await self._collection(COMMENTS_COLLECTION).find_one({"comment_id": comment_id})

    async def update_comment(self, comment_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self._collection(COMMENTS_COLLECTION).find_one_and_update(
            {"comment_id": comment_id},
            {"$set": {**fields, "updated_at": utc_now()}},
            return_document=ReturnDocument.AFTER,
        )

    async def delete_comment(self, comment_id: str) -> bool:
        result = await self._collection(COMMENTS_COLLECTION).delete_one({"comment_id": comment_id})
        return result.deleted_count > 0

    async def find_comments(self, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        cursor = self._collection(COMMENTS_COLLECTION).find(query).sort(THREAD_SORT)
        return await cursor.to_list(length=None)

    async def replies_of(self, comment_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """Direct replies to `comment_id`, oldest first, optionally restricted to one status."""
        query: Dict[str, Any] = {"parent_id": comment_id}
        if status:
            query["status"] = status
        return await self.find_comments(query)

    async def replies_of_many(self, comment_ids: List[str], status: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        """Batched `replies_of`, keyed by parent id."""
        grouped: Dict[str, List[Dict[str, Any]]] = {comment_id: [] for comment_id in comment_ids}
        if not comment_ids:
            return grouped
        query: Dict[str, Any] = {"parent_id": {"$in": comment_ids}}
        if status:
            query["status"] = status
        for reply in await self.find_comments(query):
            grouped[reply["parent_id"]].append(reply)
        return grouped
