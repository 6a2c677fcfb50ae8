"""
# Post Service

Post listing, single-post reads and the post write paths.

## Listing

`list_posts(filter, page, limit)` returns one page of **published** posts, newest first (the
store-assigned `_id` breaks ties between equal timestamps).

| Filter | Matches |
|--------|---------|
| `category` | category id, or the slug of an existing category |
| `tag` | tag id, or the slug of an existing tag |
| `author` | author user id |
| `search` | case-insensitive substring of title **or** content (regex-escaped) |

`page` and `limit` are coerced to positive integers (defaults `1` and `DEFAULT_PAGE_LIMIT`) and
clamped to `MAX_PAGE` and `MAX_PAGE_LIMIT`.
`total` counts the filtered set before paging; `has_next = offset + limit < total` and
`has_prev = offset > 0`.

## Single-Post Reads

`get_post` / `get_post_by_slug` increment `views` atomically and return the post with its
approved comment tree. Drafts are returned only to their author or an admin.

## Writes

Create accepts category and tags as ids or labels (resolved through the taxonomy service).
Update and delete require ownership or the admin role.

Attributes:
    post_query_service (PostQueryService): Shared instance.
"""

import re
from typing import Any, Dict, List, Optional

from luxeblog.config import settings
from luxeblog.exceptions import NotFoundError
from luxeblog.managers.blog_auth_manager import blog_auth_manager
from luxeblog.managers.blog_manager import BlogContentService
from luxeblog.managers.logging_manager import get_logger
from luxeblog.models.blog_models import (
    CreatePostRequest,
    PostFilter,
    PostPage,
    PostResponse,
    PostStatus,
    Principal,
    UpdatePostRequest,
)
from luxeblog.services.comment_service import CommentService
from luxeblog.services.taxonomy_service import TaxonomyService

logger = get_logger(prefix="[Blog Posts]")


def coerce_positive_int(value: Any, default: int, maximum: Optional[int] = None) -> int:
    """
    Parse `value` as an integer >= 1, falling back to `default` for anything else.

    Values above `maximum` are clamped to it.
    """
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if maximum is not None and number > maximum:
        return maximum
    return number


class PostQueryService:
    """Reads and writes of blog posts."""

    def __init__(
        self,
        content_service: Optional[BlogContentService] = None,
        taxonomy: Optional[TaxonomyService] = None,
        comments: Optional[CommentService] = None,
    ):
        self.content = content_service or BlogContentService()
        self.taxonomy = taxonomy or TaxonomyService(self.content)
        self.comments = comments or CommentService(self.content)

    async def _taxonomy_filter(self, kind: str, value: str) -> str:
        """Map an id or slug to the stored id; unknown values are kept so they match nothing."""
        doc = await self.content.get_taxonomy(kind, value)
        if doc:
            return value
        doc = await self.content.find_taxonomy(kind, {"slug": value})
        if doc:
            return doc[f"{kind}_id"]
        return value

    async def build_query(self, post_filter: PostFilter) -> Dict[str, Any]:
        query: Dict[str, Any] = {"status": PostStatus.PUBLISHED.value}
        if post_filter.category:
            query["category_id"] = await self._taxonomy_filter("category", post_filter.category)
        if post_filter.tag:
            query["tag_ids"] = await self._taxonomy_filter("tag", post_filter.tag)
        if post_filter.author:
            query["author_id"] = post_filter.author
        if post_filter.search:
            pattern = re.escape(post_filter.search)
            query["$or"] = [
                {"title": {"$regex": pattern, "$options": "i"}},
                {"content": {"$regex": pattern, "$options": "i"}},
            ]
        return query

    async def list_posts(self, post_filter: Optional[PostFilter] = None, page: Any = None, limit: Any = None) -> PostPage:
        """
        One page of published posts matching `post_filter`.

        Args:
            post_filter (PostFilter, optional): Category/tag/author/search filters.
            page (Any): Requested page; invalid values fall back to 1, large ones are clamped to `MAX_PAGE`.
            limit (Any): Page size; invalid values fall back to `DEFAULT_PAGE_LIMIT`, large ones are
                clamped to `MAX_PAGE_LIMIT`.

        Returns:
            PostPage: Items plus `total`, `has_next` and `has_prev`.
        """
        page = coerce_positive_int(page, 1, settings.MAX_PAGE)
        limit = coerce_positive_int(limit, settings.DEFAULT_PAGE_LIMIT, settings.MAX_PAGE_LIMIT)
        offset = (page - 1) * limit

        query = await self.build_query(post_filter or PostFilter())
        total = await self.content.count_posts(query)
        docs = await self.content.find_posts(query, skip=offset, limit=limit)
        items = await self.content.populate_posts(docs)

        return PostPage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            has_next=offset + limit < total,
            has_prev=offset > 0,
        )

    async def list_posts_by_author(self, target_user_id: str, principal: Optional[Principal]) -> List[PostResponse]:
        """All posts (any status) of `target_user_id`; visible to that user and to admins."""
        blog_auth_manager.ensure_can_list_user_posts(target_user_id, principal)
        docs = await self.content.find_posts({"author_id": target_user_id})
        return await self.content.populate_posts(docs)

    def _can_view(self, doc: Dict[str, Any], principal: Optional[Principal]) -> bool:
        if doc["status"] == PostStatus.PUBLISHED.value:
            return True
        return blog_auth_manager.can_mutate(doc["author_id"], principal)

    async def _read(self, existing: Optional[Dict[str, Any]], identifier: str, principal: Optional[Principal]) -> PostResponse:
        if not existing or not self._can_view(existing, principal):
            raise NotFoundError("Post", identifier)

        doc = await self.content.increment_views({"post_id": existing["post_id"]})
        if not doc:
            raise NotFoundError("Post", identifier)

        post = (await self.content.populate_posts([doc]))[0]
        post.comments = await self.comments.list_approved_root_comments(doc["post_id"])
        return post

    async def get_post(self, post_id: str, principal: Optional[Principal] = None) -> PostResponse:
        """Read a post by id, counting the view and attaching approved comments."""
        return await self._read(await self.content.get_post(post_id), post_id, principal)

    async def get_post_by_slug(self, slug: str, principal: Optional[Principal] = None) -> PostResponse:
        """Read a post by slug, counting the view and attaching approved comments."""
        return await self._read(await self.content.get_post_by_slug(slug), slug, principal)

    async def create_post(self, request: CreatePostRequest, principal: Optional[Principal]) -> PostResponse:
        principal = blog_auth_manager.ensure_authenticated(principal)
        data = request.model_dump(exclude={"category", "tags"})
        data["category_id"] = await self.taxonomy.resolve_category_reference(request.category)
        data["tag_ids"] = await self.taxonomy.resolve_tag_references(request.tags)

        doc = await self.content.create_post(principal.id, data)
        return (await self.content.populate_posts([doc]))[0]

    async def update_post(self, post_id: str, request: UpdatePostRequest, principal: Optional[Principal]) -> PostResponse:
        existing = await self.content.get_post(post_id)
        if not existing:
            raise NotFoundError("Post", post_id)
        principal = blog_auth_manager.ensure_can_mutate(existing["author_id"], principal, resource="post")

        changes = request.model_dump(exclude_unset=True, exclude={"category", "tags"})
        if "category" in request.model_fields_set and request.category is not None:
            changes["category_id"] = await self.taxonomy.resolve_category_reference(request.category)
        if "tags" in request.model_fields_set and request.tags is not None:
            changes["tag_ids"] = await self.taxonomy.resolve_tag_references(request.tags)
        # Required fields cannot be cleared
        for field in ("title", "excerpt", "content", "status", "is_featured"):
            if field in changes and changes[field] is None:
                changes.pop(field)
        if "status" in changes:
            changes["status"] = PostStatus(changes["status"]).value

        doc = await self.content.update_post(existing, changes)
        logger.info("Post %s updated by %s", post_id, principal.id)
        return (await self.content.populate_posts([doc]))[0]

    async def delete_post(self, post_id: str, principal: Optional[Principal]) -> None:
        """Delete a post. Its comments are kept."""
        existing = await self.content.get_post(post_id)
        if not existing:
            raise NotFoundError("Post", post_id)
        principal = blog_auth_manager.ensure_can_mutate(existing["author_id"], principal, resource="post")
        await self.content.delete_post(post_id)
        logger.info("Post %s deleted by %s", post_id, principal.id)


post_query_service = PostQueryService()
