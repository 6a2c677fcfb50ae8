"""
# Blog Post & Comment Routes

REST endpoints for posts and their moderated comment threads. The handlers are thin: they
extract the principal, call the post or comment service, and wrap the result in the
`ApiResponse` envelope. Authorization and validation happen inside the services, which raise
`BlogError` subclasses that the application-level handlers render.

## API Endpoints

### Posts
- `GET /api/posts` - Published posts (`page`, `limit`, `category`, `tag`, `author`, `search`)
- `GET /api/posts/slug/{slug}` - Read by slug (counts a view, includes approved comments)
- `GET /api/posts/user/{user_id}` - All posts of a user (that user or admin)
- `GET /api/posts/{post_id}` - Read by id (counts a view, includes approved comments)
- `POST /api/posts` - Create (any authenticated user)
- `PUT /api/posts/{post_id}` - Update (owner or admin)
- `DELETE /api/posts/{post_id}` - Delete (owner or admin; comments are kept)

### Comments
- `GET /api/comments/post/{post_id}` - Approved root comments with approved replies
- `GET /api/comments/pending` - Moderation queue (admin)
- `POST /api/comments` - Add a comment (guest or authenticated)
- `PUT /api/comments/{comment_id}` - Edit (owner or admin)
- `DELETE /api/comments/{comment_id}` - Delete (owner or admin)
- `PUT /api/comments/{comment_id}/approve` - Approve (admin)
- `PUT /api/comments/{comment_id}/reject` - Reject (admin)

## Usage Examples

### Listing the second page of travel posts

```python
response = await client.get("/api/posts", params={"category": "travel", "page": 2, "limit": 10})
body = response.json()
body["pagination"]  # {"page": 2, "limit": 10, "has_next": false, "has_prev": true, "prev": {...}}
```

### Commenting as a guest

```python
await client.post("/api/comments", json={
    "post_id": post_id,
    "content": "Lovely read.",
    "guest_name": "Grace",
    "guest_email": "grace@example.com",
})
```

## Module Attributes

Attributes:
    router (APIRouter): FastAPI router with `/api` prefix
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from luxeblog.exceptions import BlogError, ServerError, ValidationError
from luxeblog.managers.logging_manager import get_logger
from luxeblog.models.blog_models import (
    ApiResponse,
    CreateCommentRequest,
    CreatePostRequest,
    PostFilter,
    Principal,
    UpdateCommentRequest,
    UpdatePostRequest,
)
from luxeblog.routes.auth.dependencies import get_optional_principal, require_principal
from luxeblog.routes.blog_dependencies import require_access_admin
from luxeblog.services.comment_service import comment_service
from luxeblog.services.post_query_service import post_query_service

logger = get_logger(prefix="[Blog Routes]")

router = APIRouter(prefix="/api", tags=["blog"])


# Post Routes

@router.get("/posts", response_model=ApiResponse, response_model_exclude_none=True)
async def list_posts(
    page: Optional[str] = Query(None, description="Page number, starting at 1"),
    limit: Optional[str] = Query(None, description="Posts per page"),
    category: Optional[str] = Query(None, description="Category id or slug"),
    tag: Optional[str] = Query(None, description="Tag id or slug"),
    author: Optional[str] = Query(None, description="Author user id"),
    search: Optional[str] = Query(None, description="Case-insensitive text in title or content"),
):
    """
    List published posts, newest first.

    Invalid or non-positive `page`/`limit` values fall back to the defaults (1 and 100); values above
    `MAX_PAGE`/`MAX_PAGE_LIMIT` are clamped.

    Returns:
        ApiResponse: `count`, `total`, `pagination` and the page of posts in `data`.
    """
    try:
        result = await post_query_service.list_posts(
            PostFilter(category=category, tag=tag, author=author, search=search), page=page, limit=limit
        )
        return ApiResponse(
            count=len(result.items),
            total=result.total,
            pagination=result.pagination(),
            data=result.items,
        )

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to list posts: %s", e, exc_info=True)
        raise ServerError("Failed to list posts")


@router.get("/posts/slug/{slug}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_post_by_slug(slug: str, principal: Optional[Principal] = Depends(get_optional_principal)):
    """
    Read a post by its slug.

    Counts one view and embeds the approved comment tree. Drafts are only visible to their
    author and to admins.
    """
    try:
        post = await post_query_service.get_post_by_slug(slug, principal)
        return ApiResponse(data=post)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to get post by slug %s: %s", slug, e, exc_info=True)
        raise ServerError("Failed to get post")


@router.get("/posts/user/{user_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_user_posts(user_id: str, principal: Principal = Depends(require_principal)):
    """List every post (any status) written by `user_id`. Only that user or an admin may ask."""
    try:
        posts = await post_query_service.list_posts_by_author(user_id, principal)
        return ApiResponse(count=len(posts), data=posts)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to list posts of user %s: %s", user_id, e, exc_info=True)
        raise ServerError("Failed to get posts")


@router.get("/posts/{post_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_post(post_id: str, principal: Optional[Principal] = Depends(get_optional_principal)):
    """Read a post by id, counting a view and embedding approved comments."""
    try:
        post = await post_query_service.get_post(post_id, principal)
        return ApiResponse(data=post)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to get post %s: %s", post_id, e, exc_info=True)
        raise ServerError("Failed to get post")


@router.post(
    "/posts",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_post(request: CreatePostRequest, principal: Principal = Depends(require_principal)):
    """
    Create a post owned by the caller.

    **Process:**
    1.  Title, excerpt and content are sanitized by the request model.
    2.  `category` and `tags` are resolved as ids, or found/created by label.
    3.  The slug is derived from the title and made unique; reading time from the content.

    Raises:
        ValidationError(400): Missing or empty fields.
        UnauthenticatedError(401): No valid bearer token.
    """
    try:
        post = await post_query_service.create_post(request, principal)
        logger.info("Created post %s (%s) for user %s", post.post_id, post.slug, principal.id)
        return ApiResponse(data=post)

    except BlogError:
        raise
    except ValueError as e:
        raise ValidationError(str(e))
    except Exception as e:
        logger.error("Failed to create post: %s", e, exc_info=True)
        raise ServerError("Failed to create post")


@router.put("/posts/{post_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def update_post(post_id: str, request: UpdatePostRequest, principal: Principal = Depends(require_principal)):
    """
    Update a post. Only the author or an admin may do so.

    Changing the title re-derives the slug; changing the content re-derives the reading time.
    """
    try:
        post = await post_query_service.update_post(post_id, request, principal)
        return ApiResponse(data=post)

    except BlogError:
        raise
    except ValueError as e:
        raise ValidationError(str(e))
    except Exception as e:
        logger.error("Failed to update post %s: %s", post_id, e, exc_info=True)
        raise ServerError("Failed to update post")


@router.delete("/posts/{post_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_post(post_id: str, principal: Principal = Depends(require_principal)):
    try:
        await post_query_service.delete_post(post_id, principal)
        return ApiResponse(data={})

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to delete post %s: %s", post_id, e, exc_info=True)
        raise ServerError("Failed to delete post")


# Comment Routes

@router.get("/comments/post/{post_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_post_comments(post_id: str):
    """Approved root comments of a post (oldest first), each with its approved direct replies."""
    try:
        comments = await comment_service.list_approved_root_comments(post_id)
        return ApiResponse(count=len(comments), data=comments)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to get comments for post %s: %s", post_id, e, exc_info=True)
        raise ServerError("Failed to get comments")


@router.get("/comments/pending", response_model=ApiResponse, response_model_exclude_none=True)
async def get_pending_comments(principal: Principal = Depends(require_access_admin)):
    """Moderation queue: every pending comment, oldest first."""
    try:
        comments = await comment_service.list_pending_comments(principal)
        return ApiResponse(count=len(comments), data=comments)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to get pending comments: %s", e, exc_info=True)
        raise ServerError("Failed to get comments")


@router.post(
    "/comments",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    request: CreateCommentRequest,
    principal: Optional[Principal] = Depends(get_optional_principal),
):
    """
    Add a comment to a post.

    **Guest vs. authenticated:**
    *   With a bearer token the comment belongs to the caller; `guest_*` fields are ignored.
    *   Without one, `guest_name` and `guest_email` are required and the comment is held for
        moderation.

    Returns:
        ApiResponse: The stored comment and a message telling whether it awaits approval.
    """
    try:
        guest = None if principal else {"name": request.guest_name, "email": request.guest_email}
        comment, message = await comment_service.add_comment(
            post_id=request.post_id,
            content=request.content,
            principal=principal,
            guest=guest,
            parent_id=request.parent_id,
        )
        return ApiResponse(data=comment, message=message)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to create comment on post %s: %s", request.post_id, e, exc_info=True)
        raise ServerError("Failed to create comment")


@router.put("/comments/{comment_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def update_comment(
    comment_id: str,
    request: UpdateCommentRequest,
    principal: Principal = Depends(require_principal),
):
    try:
        comment = await comment_service.update_comment(comment_id, request.content, principal)
        return ApiResponse(data=comment)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to update comment %s: %s", comment_id, e, exc_info=True)
        raise ServerError("Failed to update comment")


@router.delete("/comments/{comment_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_comment(comment_id: str, principal: Principal = Depends(require_principal)):
    try:
        await comment_service.delete_comment(comment_id, principal)
        return ApiResponse(data={})

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to delete comment %s: %s", comment_id, e, exc_info=True)
        raise ServerError("Failed to delete comment")


@router.put("/comments/{comment_id}/approve", response_model=ApiResponse, response_model_exclude_none=True)
async def approve_comment(comment_id: str, principal: Principal = Depends(require_access_admin)):
    try:
        comment = await comment_service.approve_comment(comment_id, principal)
        return ApiResponse(data=comment)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to approve comment %s: %s", comment_id, e, exc_info=True)
        raise ServerError("Failed to approve comment")


@router.put("/comments/{comment_id}/reject", response_model=ApiResponse, response_model_exclude_none=True)
async def reject_comment(comment_id: str, principal: Principal = Depends(require_access_admin)):
    try:
        comment = await comment_service.reject_comment(comment_id, principal)
        return ApiResponse(data=comment)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to reject comment %s: %s", comment_id, e, exc_info=True)
        raise ServerError("Failed to reject comment")
