"""
# Blog Content Models

This module defines the **content graph** data structures of the LuxeBlog API: posts, categories,
tags and moderated comments, together with the request, response and envelope models exposed by
the REST layer.

## Domain Model Overview

- **Post**: The primary content unit. Owned by its author, classified by one category and any
  number of tags. `slug` and `read_time` are derived on write.
- **Category**: Unique by case-insensitive name. Created explicitly by privileged roles or
  implicitly when a post names a category label that does not exist yet.
- **Tag**: Unique by case-insensitive name; many-to-many with posts.
- **Comment**: Threaded, moderated reader feedback. The author is **either** a registered user
  **or** a guest (name + email), never both.

## Key Features

### 1. Tagged Comment Authors
`CommentAuthor` is a discriminated union on `kind`:

```python
UserAuthor(kind="user", user_id="user_42", name="Ada")
GuestAuthor(kind="guest", name="Grace", email="grace@example.com")
```

Both variants expose `display_name` and `display_avatar`. Guests get a deterministic placeholder
avatar keyed by their name.

### 2. Moderation Lifecycle
`pending` → `approved`, or `pending` → `rejected` → `approved`. Approved comments do not change
state again; they can only be deleted.

### 3. Content Safety
Titles, excerpts and names are stripped of HTML with `bleach`. Post bodies keep a small allowlist
of formatting tags. Comment bodies are sanitized by the comment engine.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from urllib.parse import quote

from pydantic import BaseModel, EmailStr, Field, TypeAdapter, field_validator

from luxeblog.managers.blog_security import blog_xss_protection

DEFAULT_FEATURED_IMAGE = "default-post.jpg"
DEFAULT_USER_AVATAR = "default-avatar.jpg"
GUEST_AVATAR_URL = "https://ui-avatars.com/api/?name={name}&background=random&color=fff&size=40"

MAX_CATEGORY_NAME_LENGTH = 50
MAX_TAG_NAME_LENGTH = 30

# Tag id or label as sent with a post
TagLabel = Annotated[str, Field(max_length=MAX_TAG_NAME_LENGTH)]


# Enums
class PostStatus(str, Enum):
    """Enumeration of blog post lifecycle states.

    Attributes:
        DRAFT: Post is being written, visible to its author and admins only.
        PUBLISHED: Post is live and listed publicly.
    """

    DRAFT = "draft"
    PUBLISHED = "published"


class CommentStatus(str, Enum):
    """Enumeration of comment moderation states.

    Attributes:
        PENDING: Awaiting moderator review.
        APPROVED: Publicly visible.
        REJECTED: Hidden by a moderator; may still be approved later.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UserRole(str, Enum):
    """Roles an authenticated principal can hold.

    Attributes:
        USER: Reader; may write posts and comments, comments need approval.
        AUTHOR: Trusted writer; comments are approved on creation, may create taxonomy.
        ADMIN: Full control over all content, taxonomy and moderation.
    """

    USER = "user"
    AUTHOR = "author"
    ADMIN = "admin"


class Principal(BaseModel):
    """The authenticated caller of a request, as supplied by the identity layer."""

    id: str
    role: UserRole = UserRole.USER
    name: Optional[str] = None
    avatar: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


# Comment authors
class UserAuthor(BaseModel):
    """Comment written by a registered user. `name`/`avatar` are a snapshot taken at write time."""

    kind: Literal["user"] = "user"
    user_id: str
    name: Optional[str] = None
    avatar: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or "Anonymous"

    @property
    def display_avatar(self) -> str:
        return self.avatar or DEFAULT_USER_AVATAR


class GuestAuthor(BaseModel):
    """Comment written without an account, identified by name and email."""

    kind: Literal["guest"] = "guest"
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return blog_xss_protection.strip_tags(v) if isinstance(v, str) else v

    @property
    def display_name(self) -> str:
        return self.name or "Guest"

    @property
    def display_avatar(self) -> str:
        return GUEST_AVATAR_URL.format(name=quote(self.display_name, safe=""))


CommentAuthor = Annotated[Union[UserAuthor, GuestAuthor], Field(discriminator="kind")]
comment_author_adapter: TypeAdapter = TypeAdapter(CommentAuthor)


class SeoMetadata(BaseModel):
    """Search-engine metadata attached to a post."""

    meta_title: Optional[str] = Field(None, max_length=200)
    meta_description: Optional[str] = Field(None, max_length=500)
    keywords: Optional[str] = Field(None, max_length=500)


# Request Models
class CreatePostRequest(BaseModel):
    """
    Request model for creating a new blog post.

    **Fields:**
    *   **category**: Either an existing category id or a free-text label. Unknown labels create
        a new category ("find-or-create").
    *   **tags**: Tag ids or tag names; unknown names create new tags.
    *   **status**: Defaults to `draft`.

    **Sanitization:**
    *   **title** / **excerpt**: All HTML tags are stripped.
    *   **content**: Only a safe allowlist of formatting tags survives.
    """

    title: str = Field(..., min_length=1, max_length=200, description="Post title")
    excerpt: str = Field(..., min_length=1, max_length=500, description="Short summary")
    content: str = Field(..., min_length=1, description="Post body")
    category: str = Field(..., min_length=1, max_length=MAX_CATEGORY_NAME_LENGTH, description="Category id or label")
    tags: List[TagLabel] = Field(default_factory=list, description="Tag ids or names")
    featured_image: Optional[str] = Field(None, description="Featured image reference")
    status: PostStatus = Field(default=PostStatus.DRAFT, description="Post status")
    is_featured: bool = Field(default=False, description="Whether post is featured")
    seo: Optional[SeoMetadata] = None

    @field_validator("title", "excerpt")
    @classmethod
    def validate_plain_text(cls, v):
        cleaned = blog_xss_protection.strip_tags(v)
        if not cleaned:
            raise ValueError("Field cannot be empty")
        return cleaned

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        cleaned = blog_xss_protection.sanitize_post_content(v)
        if not cleaned.strip():
            raise ValueError("Content cannot be empty")
        return cleaned


class UpdatePostRequest(BaseModel):
    """
    Request model for updating an existing blog post.

    Supports partial updates. Changing `title` re-derives the slug; changing `content` re-derives
    the reading time.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    excerpt: Optional[str] = Field(None, min_length=1, max_length=500)
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1, max_length=MAX_CATEGORY_NAME_LENGTH)
    tags: Optional[List[TagLabel]] = None
    featured_image: Optional[str] = None
    status: Optional[PostStatus] = None
    is_featured: Optional[bool] = None
    seo: Optional[SeoMetadata] = None

    @field_validator("title", "excerpt")
    @classmethod
    def validate_plain_text(cls, v):
        if v is None:
            return v
        cleaned = blog_xss_protection.strip_tags(v)
        if not cleaned:
            raise ValueError("Field cannot be empty")
        return cleaned

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        if v is None:
            return v
        cleaned = blog_xss_protection.sanitize_post_content(v)
        if not cleaned.strip():
            raise ValueError("Content cannot be empty")
        return cleaned


class CreateCategoryRequest(BaseModel):
    """Request model for explicitly creating a category (authors and admins)."""

    name: str = Field(..., min_length=1, max_length=MAX_CATEGORY_NAME_LENGTH, description="Category name")
    description: Optional[str] = Field(None, max_length=500, description="Category description")
    image: Optional[str] = Field(None, description="Category image reference")

    @field_validator("name", "description")
    @classmethod
    def validate_plain_text(cls, v):
        return blog_xss_protection.strip_tags(v) if v is not None else v


class UpdateCategoryRequest(BaseModel):
    """Request model for updating a category. Renaming re-derives the slug."""

    name: Optional[str] = Field(None, min_length=1, max_length=MAX_CATEGORY_NAME_LENGTH)
    description: Optional[str] = Field(None, max_length=500)
    image: Optional[str] = None

    @field_validator("name", "description")
    @classmethod
    def validate_plain_text(cls, v):
        return blog_xss_protection.strip_tags(v) if v is not None else v


class CreateTagRequest(BaseModel):
    """Request model for explicitly creating a tag (authors and admins)."""

    name: str = Field(..., min_length=1, max_length=MAX_TAG_NAME_LENGTH, description="Tag name")
    description: Optional[str] = Field(None, max_length=200, description="Tag description")

    @field_validator("name", "description")
    @classmethod
    def validate_plain_text(cls, v):
        return blog_xss_protection.strip_tags(v) if v is not None else v


class UpdateTagRequest(BaseModel):
    """Request model for updating a tag. Renaming re-derives the slug."""

    name: Optional[str] = Field(None, min_length=1, max_length=MAX_TAG_NAME_LENGTH)
    description: Optional[str] = Field(None, max_length=200)

    @field_validator("name", "description")
    @classmethod
    def validate_plain_text(cls, v):
        return blog_xss_protection.strip_tags(v) if v is not None else v


class CreateCommentRequest(BaseModel):
    """
    Request model for posting a new comment.

    **Guest Comments:**
    *   Without a bearer token, `guest_name` and `guest_email` are required.
    *   With a bearer token, the guest fields are ignored and the comment is attributed to the
        authenticated user.

    Content is trimmed and sanitized by the comment engine; the 1000 character limit applies
    to the sanitized text.
    """

    content: str = Field(..., min_length=1, description="Comment content")
    post_id: str = Field(..., min_length=1, description="Post being commented on")
    parent_id: Optional[str] = Field(None, description="Parent comment ID for replies")
    guest_name: Optional[str] = Field(None, max_length=50, description="Name (guests only)")
    guest_email: Optional[str] = Field(None, description="Email (guests only)")


class UpdateCommentRequest(BaseModel):
    """Request model for editing a comment's content."""

    content: str = Field(..., min_length=1, description="Comment content")


# Response Models
class CategorySummary(BaseModel):
    category_id: str
    name: str
    slug: str


class TagSummary(BaseModel):
    tag_id: str
    name: str
    slug: str


class CategoryResponse(BaseModel):
    """Response model for a category."""

    category_id: str
    name: str
    slug: str
    description: Optional[str] = None
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TagResponse(BaseModel):
    """Response model for a tag."""

    tag_id: str
    name: str
    slug: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CommentResponse(BaseModel):
    """
    Response model for a comment.

    Supports one level of threading via `replies`.

    **Privacy:**
    *   Guest email addresses are never returned.
    """

    comment_id: str
    post_id: str
    parent_id: Optional[str] = None
    content: str
    status: CommentStatus
    is_guest: bool
    author_id: Optional[str] = None
    display_name: str
    display_avatar: str
    created_at: datetime
    updated_at: datetime
    replies: List["CommentResponse"] = []

    @classmethod
    def from_document(cls, doc: Dict[str, Any], replies: Optional[List["CommentResponse"]] = None) -> "CommentResponse":
        author = comment_author_adapter.validate_python(doc["author"])
        return cls(
            comment_id=doc["comment_id"],
            post_id=doc["post_id"],
            parent_id=doc.get("parent_id"),
            content=doc["content"],
            status=doc["status"],
            is_guest=isinstance(author, GuestAuthor),
            author_id=author.user_id if isinstance(author, UserAuthor) else None,
            display_name=author.display_name,
            display_avatar=author.display_avatar,
            created_at=doc["created_at"],
            updated_at=doc.get("updated_at", doc["created_at"]),
            replies=replies or [],
        )


class PostResponse(BaseModel):
    """
    Response model for a single blog post.

    `category` and `tags` are populated summaries. `comments` is only present on single-post
    reads, where it carries the approved comment tree.
    """

    post_id: str
    title: str
    slug: str
    excerpt: str
    content: str
    featured_image: str
    author_id: str
    category: Optional[CategorySummary] = None
    tags: List[TagSummary] = []
    status: PostStatus
    is_featured: bool
    read_time: int
    views: int
    seo: Optional[SeoMetadata] = None
    created_at: datetime
    updated_at: datetime
    comments: Optional[List[CommentResponse]] = None


# Pagination Models
class PageLink(BaseModel):
    page: int
    limit: int


class PaginationMeta(BaseModel):
    """
    Pagination metadata for post listings.

    `next`/`prev` are present only when the corresponding page exists.
    """

    page: int
    limit: int
    has_next: bool
    has_prev: bool
    next: Optional[PageLink] = None
    prev: Optional[PageLink] = None


class PostFilter(BaseModel):
    """Filters accepted by the public post listing. `category`/`tag` take an id or a slug."""

    category: Optional[str] = None
    tag: Optional[str] = None
    author: Optional[str] = None
    search: Optional[str] = None


class PostPage(BaseModel):
    """One page of a post listing."""

    items: List[PostResponse]
    total: int
    page: int
    limit: int
    has_next: bool
    has_prev: bool

    def pagination(self) -> PaginationMeta:
        return PaginationMeta(
            page=self.page,
            limit=self.limit,
            has_next=self.has_next,
            has_prev=self.has_prev,
            next=PageLink(page=self.page + 1, limit=self.limit) if self.has_next else None,
            prev=PageLink(page=self.page - 1, limit=self.limit) if self.has_prev else None,
        )


class ApiResponse(BaseModel):
    """
    Uniform response envelope.

    Routes serialize with `response_model_exclude_none=True`, so only the populated keys appear.
    """

    success: bool = True
    data: Optional[Any] = None
    message: Optional[str] = None
    count: Optional[int] = None
    total: Optional[int] = None
    pagination: Optional[PaginationMeta] = None
    error: Optional[Dict[str, Any]] = None
